"""
Chart acquisition with an in-memory, single-flight cache.

Locators:
- local archive (.tgz / .tar.gz) — read and parse in place
- local directory — parse the tree directly
- http(s) URL — one GET, then parse as an archive (no retry)
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse

import httpx

from chart_verifier.chart.loader import ChartHandle, is_archive_path, load_archive, load_directory
from chart_verifier.core.errors import AcquisitionError

logger = logging.getLogger(__name__)


def normalize_locator(locator: str) -> str:
    """
    Нормализовать локатор для ключа кэша.

    URL остаются как есть, локальные пути раскрываются в абсолютные.
    """
    locator = locator.strip()
    if not locator:
        raise AcquisitionError(locator, "empty chart locator")
    if is_remote(locator):
        return locator
    return str(Path(locator).expanduser().resolve())


def is_remote(locator: str) -> bool:
    return urlparse(locator).scheme in ("http", "https")


class ChartAcquirer:
    """
    Получение и кэширование чартов.

    Повторный materialize() для того же локатора возвращает тот же
    ChartHandle. Параллельные первые обращения ждут одну и ту же загрузку.

    Использование:
        async with ChartAcquirer() as acquirer:
            chart = await acquirer.materialize("https://example.com/chart-0.1.0.tgz")
    """

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        """
        Args:
            http_client: Готовый клиент (например, с MockTransport в тестах)
            timeout: Таймаут одного HTTP запроса в секундах
        """
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None
        self._cache: Dict[str, ChartHandle] = {}
        self._inflight: Dict[str, asyncio.Task] = {}
        # Сколько раз реально загружали чарт (для тестов и отладки)
        self.fetch_count = 0

    async def __aenter__(self) -> "ChartAcquirer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Закрыть HTTP клиент, если он создан нами."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def clear(self) -> None:
        """Очистить кэш."""
        self._cache.clear()

    def cached(self, locator: str) -> bool:
        return normalize_locator(locator) in self._cache

    async def materialize(self, locator: str) -> ChartHandle:
        """
        Получить ChartHandle для локатора.

        Raises:
            AcquisitionError: чарт не найден, не скачался или не разобрался
        """
        key = normalize_locator(locator)

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Chart cache hit: {key}")
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key))
            self._inflight[key] = task
            task.add_done_callback(lambda _t, k=key: self._inflight.pop(k, None))

        # Ошибки не кэшируются: следующий вызов попробует заново
        handle = await asyncio.shield(task)
        self._cache[key] = handle
        return handle

    async def _load(self, key: str) -> ChartHandle:
        self.fetch_count += 1
        logger.info(f"Loading chart {key}")

        if is_remote(key):
            data = await self._fetch(key)
            return load_archive(key, data)

        path = Path(key)
        if path.is_dir():
            return load_directory(key, path)
        if not path.exists():
            raise AcquisitionError(key, "no such file or directory")
        if not is_archive_path(key):
            raise AcquisitionError(key, "expected a chart directory or a .tgz archive")

        try:
            data = path.read_bytes()
        except OSError as e:
            raise AcquisitionError(key, str(e)) from e
        return load_archive(key, data)

    async def _fetch(self, url: str) -> bytes:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
            self._owns_client = True

        try:
            response = await self._client.get(url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AcquisitionError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise AcquisitionError(url, f"{type(e).__name__}: {e}") from e

        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return response.content
