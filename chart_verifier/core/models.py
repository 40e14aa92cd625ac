"""
Core data models for chart verification.
"""

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class CheckType(Enum):
    """Классификация проверки."""
    MANDATORY = "Mandatory"  # Влияет на итоговый pass/fail
    OPTIONAL = "Optional"    # Только информирует


class OutcomeType(Enum):
    """Исход одной проверки."""
    PASS = "PASS"
    FAIL = "FAIL"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class CheckResult:
    """Результат, который возвращает функция проверки."""

    ok: bool
    reason: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def passed(cls, reason: str = "", **metadata: str) -> "CheckResult":
        return cls(ok=True, reason=reason, metadata=dict(metadata))

    @classmethod
    def failed(cls, reason: str, **metadata: str) -> "CheckResult":
        return cls(ok=False, reason=reason, metadata=dict(metadata))


@dataclass(frozen=True)
class CheckOutcome:
    """Исход проверки в отчёте. Не меняется после создания."""

    name: str
    classification: CheckType
    outcome: OutcomeType
    reason: str = ""
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __hash__(self) -> int:
        # MappingProxyType не хэшируется, поэтому metadata берём отсортированными парами
        return hash((self.name, self.classification, self.outcome, self.reason,
                     tuple(sorted(self.metadata.items()))))

    @property
    def passed(self) -> bool:
        return self.outcome == OutcomeType.PASS

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON."""
        return {
            "check": self.name,
            "type": self.classification.value,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class ChartMetadata:
    """Что известно о проверенном чарте."""

    uri: str
    name: str
    version: str

    def to_dict(self) -> Dict[str, Any]:
        return {"chart-uri": self.uri, "name": self.name, "version": self.version}


@dataclass(frozen=True)
class ToolMetadata:
    """Метаданные инструмента: версия платформы и дайджесты."""

    certified_platform_version: str
    digest: str
    chart_digest: str
    package_digest: Optional[str] = None
    verifier_version: str = ""
    profile: str = "default"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verifier-version": self.verifier_version,
            "profile": self.profile,
            "certifiedPlatformVersion": self.certified_platform_version,
            "digests": {
                "report": self.digest,
                "chart": self.chart_digest,
                "package": self.package_digest,
            },
        }


@dataclass(frozen=True)
class Report:
    """
    Итоговый отчёт одного прогона.

    Собирается только через ReportBuilder. Порядок results совпадает
    с порядком разрешения проверок, а не с порядком выполнения.
    """

    chart: ChartMetadata
    tool_metadata: ToolMetadata
    results: Tuple[CheckOutcome, ...]

    def is_fully_passing(self) -> bool:
        """True, если все обязательные проверки прошли."""
        return all(
            r.outcome == OutcomeType.PASS
            for r in self.results
            if r.classification == CheckType.MANDATORY and r.outcome != OutcomeType.SKIPPED
        )

    def get_failures(self) -> List[CheckOutcome]:
        """Получить все проваленные проверки (включая опциональные)."""
        return [r for r in self.results if r.outcome == OutcomeType.FAIL]

    def get_outcome(self, name: str) -> Optional[CheckOutcome]:
        for r in self.results:
            if r.name == name:
                return r
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON/YAML."""
        return {
            "apiversion": "v1",
            "kind": "verify-report",
            "metadata": {
                "tool": self.tool_metadata.to_dict(),
                "chart": self.chart.to_dict(),
            },
            "passed": self.is_fully_passing(),
            "results": [r.to_dict() for r in self.results],
        }


def compute_digest(payload: Any) -> str:
    """sha256 от канонического JSON."""
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return "sha256:" + hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class ReportBuilder:
    """
    Сборщик отчёта. Используется только Verifier.

    Результаты добавляются в порядке разрешения проверок; build()
    замораживает их и считает дайджест.
    """

    def __init__(self, uri: str, verifier_version: str = ""):
        self.uri = uri
        self.verifier_version = verifier_version
        self.chart_name = ""
        self.chart_version = ""
        self.chart_digest = ""
        self.package_digest: Optional[str] = None
        self.platform_version = ""
        self._outcomes: List[CheckOutcome] = []

    def set_chart(self, name: str, version: str, chart_digest: str,
                  package_digest: Optional[str] = None) -> "ReportBuilder":
        self.chart_name = name
        self.chart_version = version
        self.chart_digest = chart_digest
        self.package_digest = package_digest
        return self

    def set_platform_version(self, version: str) -> "ReportBuilder":
        self.platform_version = version
        return self

    def add_outcome(self, outcome: CheckOutcome) -> "ReportBuilder":
        self._outcomes.append(outcome)
        return self

    def _digest_payload(self) -> Dict[str, Any]:
        # Никаких временных меток: одинаковые (chart, results) дают одинаковый дайджест
        return {
            "chart": {
                "name": self.chart_name,
                "version": self.chart_version,
                "digest": self.chart_digest,
            },
            "platform_version": self.platform_version,
            "results": [o.to_dict() for o in self._outcomes],
        }

    def build(self) -> Report:
        return Report(
            chart=ChartMetadata(uri=self.uri, name=self.chart_name, version=self.chart_version),
            tool_metadata=ToolMetadata(
                certified_platform_version=self.platform_version,
                digest=compute_digest(self._digest_payload()),
                chart_digest=self.chart_digest,
                package_digest=self.package_digest,
                verifier_version=self.verifier_version,
            ),
            results=tuple(self._outcomes),
        )
