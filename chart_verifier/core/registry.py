"""
Check registry: name -> CheckDescriptor.

Pure data, nothing executes here. Adding a descriptor under an existing
name replaces it in place (last write wins, original position kept).
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Union

from chart_verifier.core.models import CheckResult, CheckType
from chart_verifier.core.options import CheckOptions

CheckFunc = Callable[[CheckOptions], Union[CheckResult, Awaitable[CheckResult]]]


@dataclass(frozen=True)
class CheckDescriptor:
    """Описание проверки в реестре."""

    name: str
    classification: CheckType
    func: CheckFunc
    # Нижняя граница версии платформы, с которой проверка применима
    applicable_since: Optional[str] = None
    # Проверке нужна версия платформы, даже без нижней границы
    requires_platform_version: bool = False

    @property
    def version_gated(self) -> bool:
        return self.applicable_since is not None or self.requires_platform_version


class CheckRegistry:
    """
    Реестр проверок.

    Использование:
        registry = CheckRegistry().add(a).add(b)
    """

    def __init__(self):
        self._checks: Dict[str, CheckDescriptor] = {}

    def add(self, descriptor: CheckDescriptor) -> "CheckRegistry":
        self._checks[descriptor.name] = descriptor
        return self

    def get(self, name: str) -> Optional[CheckDescriptor]:
        return self._checks.get(name)

    def all_names(self) -> List[str]:
        """Имена в порядке добавления."""
        return list(self._checks)

    def __contains__(self, name: object) -> bool:
        return name in self._checks

    def __len__(self) -> int:
        return len(self._checks)
