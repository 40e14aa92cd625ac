"""
Chart parsing: packaged archives and chart directories.

Both forms end up as a ChartHandle whose file tree is rooted at the chart
directory (``Chart.yaml``, ``values.yaml``, ``templates/...``).
"""

import hashlib
import io
import logging
import tarfile
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

import yaml

from chart_verifier.core.errors import AcquisitionError

logger = logging.getLogger(__name__)

CHART_FILE = "Chart.yaml"
VALUES_FILE = "values.yaml"
ARCHIVE_SUFFIXES = (".tgz", ".tar.gz")


def freeze(value: Any) -> Any:
    """Рекурсивно сделать данные YAML только для чтения (dict -> proxy, list -> tuple)."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class ChartHandle:
    """
    Разобранный чарт: метаданные, values и дерево файлов.

    Принадлежит ChartAcquirer; проверки получают его только для чтения.
    """

    locator: str
    metadata: Mapping[str, Any]
    values: Mapping[str, Any]
    files: Mapping[str, bytes]
    package_digest: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "metadata", freeze(self.metadata))
        object.__setattr__(self, "values", freeze(self.values))
        object.__setattr__(self, "files", MappingProxyType(dict(self.files)))

    @property
    def name(self) -> str:
        return str(self.metadata.get("name", ""))

    @property
    def version(self) -> str:
        return str(self.metadata.get("version", ""))

    @property
    def api_version(self) -> str:
        return str(self.metadata.get("apiVersion", ""))

    def has_file(self, path: str) -> bool:
        return path in self.files

    def file_names(self) -> List[str]:
        return sorted(self.files)

    def templates(self) -> List[str]:
        return [p for p in self.file_names() if p.startswith("templates/")]

    def crds(self) -> List[str]:
        return [p for p in self.file_names() if p.startswith("crds/")]

    @cached_property
    def content_digest(self) -> str:
        """sha256 по отсортированным парам (путь, содержимое)."""
        h = hashlib.sha256()
        for path in self.file_names():
            h.update(path.encode("utf-8"))
            h.update(b"\0")
            h.update(hashlib.sha256(self.files[path]).digest())
        return "sha256:" + h.hexdigest()


def is_archive_path(path: str) -> bool:
    return path.lower().endswith(ARCHIVE_SUFFIXES)


def _load_yaml_mapping(locator: str, path: str, raw: bytes) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(raw.decode("utf-8"))
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise AcquisitionError(locator, f"{path} is not valid YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise AcquisitionError(locator, f"{path} must be a mapping, got {type(data).__name__}")
    return data


def build_handle(locator: str, files: Dict[str, bytes],
                 package_digest: Optional[str] = None) -> ChartHandle:
    """
    Собрать ChartHandle из дерева файлов.

    Args:
        locator: Исходный локатор (для сообщений об ошибках)
        files: Путь внутри чарта -> содержимое
        package_digest: sha256 архива, если чарт был упакован

    Raises:
        AcquisitionError: нет Chart.yaml или в нём нет name/version
    """
    if CHART_FILE not in files:
        raise AcquisitionError(locator, f"{CHART_FILE} not found")

    metadata = _load_yaml_mapping(locator, CHART_FILE, files[CHART_FILE])
    missing = [key for key in ("name", "version") if not metadata.get(key)]
    if missing:
        raise AcquisitionError(locator, f"{CHART_FILE} is missing {', '.join(missing)}")

    values: Dict[str, Any] = {}
    if VALUES_FILE in files:
        values = _load_yaml_mapping(locator, VALUES_FILE, files[VALUES_FILE])

    logger.debug(f"Parsed chart {metadata['name']}-{metadata['version']} ({len(files)} files)")
    return ChartHandle(
        locator=locator,
        metadata=metadata,
        values=values,
        files=files,
        package_digest=package_digest,
    )


def load_archive(locator: str, data: bytes) -> ChartHandle:
    """Разобрать упакованный чарт (gzip tar) из байтов."""
    files: Dict[str, bytes] = {}
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            for member in tar.getmembers():
                if not member.isfile():
                    continue
                parts = PurePosixPath(member.name).parts
                # Первый компонент — каталог чарта; всё вне него пропускаем
                if len(parts) < 2 or member.name.startswith("/") or ".." in parts:
                    continue
                extracted = tar.extractfile(member)
                if extracted is None:
                    continue
                files[str(PurePosixPath(*parts[1:]))] = extracted.read()
    except (tarfile.TarError, OSError, EOFError) as e:
        raise AcquisitionError(locator, f"not a valid chart archive: {e}") from e

    package_digest = "sha256:" + hashlib.sha256(data).hexdigest()
    return build_handle(locator, files, package_digest=package_digest)


def load_directory(locator: str, root: Path) -> ChartHandle:
    """Разобрать каталог чарта без упаковки."""
    files: Dict[str, bytes] = {}
    try:
        for path in sorted(root.rglob("*")):
            if path.is_symlink() or not path.is_file():
                continue
            files[path.relative_to(root).as_posix()] = path.read_bytes()
    except OSError as e:
        raise AcquisitionError(locator, f"cannot read chart directory: {e}") from e

    return build_handle(locator, files)
