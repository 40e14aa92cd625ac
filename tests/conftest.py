"""
Pytest configuration and fixtures.

Charts are built in tmp_path: as a directory or packed into a .tgz the
way `helm package` does (files under a top-level <name>/ directory).

Использование:
    pytest tests/ -v
"""

import io
import tarfile
from pathlib import Path
from typing import Callable, Dict, Optional

import httpx
import pytest

from chart_verifier.chart.acquirer import ChartAcquirer
from chart_verifier.core.version import VersionProbeError


# ═══════════════════════════════════════════════════════
# CHART FIXTURES
# ═══════════════════════════════════════════════════════

CHART_YAML = """\
apiVersion: v2
name: testchart
version: 0.1.0
kubeVersion: ">=1.20.0"
description: Chart used by the test-suite
"""

VALID_CHART_FILES: Dict[str, str] = {
    "Chart.yaml": CHART_YAML,
    "values.yaml": "replicaCount: 1\nimage:\n  repository: nginx\n",
    "values.schema.json": '{"type": "object"}\n',
    "README.md": "# testchart\n",
    "templates/deployment.yaml": "kind: Deployment\n",
    "templates/tests/test-connection.yaml": "kind: Pod\n",
}


def pack_chart(files: Dict[str, str], top_dir: str = "testchart") -> bytes:
    """Упаковать файлы в gzip tar, как helm package."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for path, content in sorted(files.items()):
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name=f"{top_dir}/{path}")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def write_chart_dir(root: Path, files: Dict[str, str]) -> Path:
    for path, content in files.items():
        target = root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def chart_files() -> Dict[str, str]:
    """Файлы валидного чарта (копия, можно менять)."""
    return dict(VALID_CHART_FILES)


@pytest.fixture
def make_chart_dir(tmp_path) -> Callable[..., Path]:
    """Фабрика каталогов чартов."""
    counter = {"n": 0}

    def factory(files: Optional[Dict[str, str]] = None) -> Path:
        counter["n"] += 1
        root = tmp_path / f"chart-dir-{counter['n']}"
        root.mkdir()
        return write_chart_dir(root, VALID_CHART_FILES if files is None else files)

    return factory


@pytest.fixture
def make_chart_archive(tmp_path) -> Callable[..., Path]:
    """Фабрика .tgz архивов чартов."""
    counter = {"n": 0}

    def factory(files: Optional[Dict[str, str]] = None, top_dir: str = "testchart") -> Path:
        counter["n"] += 1
        path = tmp_path / f"testchart-{counter['n']}.tgz"
        path.write_bytes(pack_chart(VALID_CHART_FILES if files is None else files, top_dir))
        return path

    return factory


@pytest.fixture
def chart_dir(make_chart_dir) -> Path:
    return make_chart_dir()


@pytest.fixture
def chart_archive(make_chart_archive) -> Path:
    return make_chart_archive()


# ═══════════════════════════════════════════════════════
# HTTP FIXTURES
# ═══════════════════════════════════════════════════════

CHART_URL = "http://127.0.0.1:9876/charts/chart-0.1.0-v3.valid.tgz"


class ChartServer:
    """Отдаёт чарты через httpx.MockTransport и считает запросы."""

    def __init__(self, charts: Dict[str, bytes]):
        self.charts = charts
        self.requests = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests += 1
        body = self.charts.get(str(request.url))
        if body is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, content=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def chart_server() -> ChartServer:
    return ChartServer({CHART_URL: pack_chart(VALID_CHART_FILES)})


@pytest.fixture
async def http_acquirer(chart_server):
    """ChartAcquirer поверх MockTransport."""
    client = chart_server.client()
    acquirer = ChartAcquirer(http_client=client)
    yield acquirer
    await client.aclose()


# ═══════════════════════════════════════════════════════
# VERSION PROBES
# ═══════════════════════════════════════════════════════

class StaticVersionProbe:
    """Живая версия платформы, всегда успешно."""

    def __init__(self, version: str = "4.9.7"):
        self.version = version
        self.calls = 0

    async def get_version(self, debug: bool = False) -> str:
        self.calls += 1
        return self.version


class FailingVersionProbe:
    """Живой запрос всегда падает."""

    def __init__(self):
        self.calls = 0

    async def get_version(self, debug: bool = False) -> str:
        self.calls += 1
        raise VersionProbeError("error")


@pytest.fixture
def live_version():
    return StaticVersionProbe("4.9.7")


@pytest.fixture
def live_version_error():
    return FailingVersionProbe()



@pytest.fixture
def make_probe() -> Callable[[str], StaticVersionProbe]:
    """Фабрика проб с заданной живой версией."""
    return StaticVersionProbe


@pytest.fixture
def pack() -> Callable[..., bytes]:
    return pack_chart
