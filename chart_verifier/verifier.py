"""
Verifier: runs the selected checks against one chart and builds a Report.

Flow:
- resolve the check set from the registry and the selection
- resolve the platform version (live query first, caller value as fallback)
- materialize the chart through the (caching) acquirer
- run checks sequentially, fold outcomes into the report in resolution order

Any check error, unknown check name, acquisition failure or unusable
platform version aborts the whole run. A check that reports a negative
result is a FAIL outcome, not an error.
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Tuple

from chart_verifier import __version__
from chart_verifier.chart.acquirer import ChartAcquirer
from chart_verifier.config import VerifierSettings
from chart_verifier.core.errors import CheckExecutionError, SelectionError, VersionResolutionError
from chart_verifier.core.models import (
    CheckOutcome,
    CheckResult,
    OutcomeType,
    Report,
    ReportBuilder,
)
from chart_verifier.core.options import CheckOptions, RunOptions
from chart_verifier.core.registry import CheckDescriptor, CheckRegistry
from chart_verifier.core.version import (
    OcVersionProbe,
    Unresolved,
    VersionProbe,
    is_applicable,
    resolve_platform_version,
)

logger = logging.getLogger(__name__)


class SelectionMode(Enum):
    ALL = "all"
    ENABLE = "enable"
    DISABLE = "disable"


@dataclass(frozen=True)
class Selection:
    """Какие проверки запускать."""

    mode: SelectionMode = SelectionMode.ALL
    names: Tuple[str, ...] = ()

    @classmethod
    def all_enabled(cls) -> "Selection":
        return cls()

    @classmethod
    def enable_only(cls, names: Iterable[str]) -> "Selection":
        return cls(SelectionMode.ENABLE, tuple(names))

    @classmethod
    def disable_only(cls, names: Iterable[str]) -> "Selection":
        return cls(SelectionMode.DISABLE, tuple(names))


def resolve_checks(registry: CheckRegistry, selection: Selection) -> List[CheckDescriptor]:
    """
    Разрешить набор проверок в порядке реестра.

    Raises:
        SelectionError: в enable/disable списке есть неизвестные имена
    """
    all_names = registry.all_names()

    if selection.mode != SelectionMode.ALL:
        unknown = [name for name in dict.fromkeys(selection.names) if name not in registry]
        if unknown:
            raise SelectionError(unknown)

    requested = set(selection.names)
    if selection.mode == SelectionMode.ENABLE:
        names = [name for name in all_names if name in requested]
    elif selection.mode == SelectionMode.DISABLE:
        names = [name for name in all_names if name not in requested]
    else:
        names = all_names

    return [registry.get(name) for name in names]


class Verifier:
    """
    Оркестратор проверки чарта.

    Использование:
        verifier = Verifier(default_registry(), version_probe=OcVersionProbe())
        report = await verifier.verify("./mychart-0.1.0.tgz")
    """

    def __init__(
        self,
        registry: CheckRegistry,
        acquirer: Optional[ChartAcquirer] = None,
        version_probe: Optional[VersionProbe] = None,
    ):
        """
        Args:
            registry: Реестр проверок
            acquirer: Источник чартов (по умолчанию свой ChartAcquirer)
            version_probe: Живой запрос версии платформы (None — не спрашивать)
        """
        self.registry = registry
        self.acquirer = acquirer or ChartAcquirer()
        self.version_probe = version_probe

    @classmethod
    def from_settings(cls, registry: CheckRegistry, settings: VerifierSettings) -> "Verifier":
        """Собрать Verifier с oc-пробой и таймаутами из настроек."""
        probe = OcVersionProbe(
            binary=settings.oc_binary,
            kubeconfig=settings.kubeconfig,
            kube_context=settings.kube_context,
            timeout_seconds=settings.oc_timeout_seconds,
        )
        return cls(
            registry,
            acquirer=ChartAcquirer(timeout=settings.http_timeout_seconds),
            version_probe=probe,
        )

    async def verify(
        self,
        locator: str,
        selection: Optional[Selection] = None,
        options: Optional[RunOptions] = None,
    ) -> Report:
        """
        Проверить чарт.

        Args:
            locator: Путь к архиву, каталог или http(s) URL
            selection: Какие проверки запускать (по умолчанию все)
            options: Параметры прогона (версия платформы, values и т.д.)

        Returns:
            Report

        Raises:
            VerificationError: прогон прерван, отчёта нет
        """
        selection = selection or Selection.all_enabled()
        options = options or RunOptions()

        descriptors = resolve_checks(self.registry, selection)
        logger.info(f"Verifying {locator} with {len(descriptors)} checks")
        logger.debug(f"Resolved checks: {[d.name for d in descriptors]}")

        platform_version = await self._resolve_platform_version(descriptors, options)

        chart = await self.acquirer.materialize(locator)

        builder = ReportBuilder(uri=locator, verifier_version=__version__)
        builder.set_chart(
            name=chart.name,
            version=chart.version,
            chart_digest=chart.content_digest,
            package_digest=chart.package_digest,
        )
        builder.set_platform_version(platform_version)

        check_options = CheckOptions(
            chart=chart,
            values=options.values,
            platform_version=platform_version,
            namespace=options.namespace,
            kubeconfig=options.kubeconfig,
            kube_context=options.kube_context,
            debug=options.debug,
        )

        for i, descriptor in enumerate(descriptors, 1):
            logger.info(f"[{i}/{len(descriptors)}] Running {descriptor.name}...")
            outcome = await self._run_check(descriptor, check_options)
            builder.add_outcome(outcome)

            status = {
                OutcomeType.PASS: "✅ PASSED",
                OutcomeType.FAIL: "❌ FAILED",
                OutcomeType.SKIPPED: "⏭️  SKIPPED",
            }[outcome.outcome]
            logger.info(f"  {status} {outcome.reason}".rstrip())

        report = builder.build()
        logger.info(
            f"Verification of {chart.name}-{chart.version} complete: "
            f"passed={report.is_fully_passing()}, digest={report.tool_metadata.digest}"
        )
        return report

    async def _resolve_platform_version(self, descriptors: List[CheckDescriptor],
                                        options: RunOptions) -> str:
        resolution = await resolve_platform_version(
            options.platform_version, self.version_probe, options.debug
        )

        if isinstance(resolution, Unresolved):
            gated = [d.name for d in descriptors if d.version_gated]
            if resolution.fatal or gated:
                if gated:
                    logger.error(f"Platform version required by {gated}: {resolution.reason}")
                raise VersionResolutionError(resolution.reason)
            logger.info("Platform version unknown; no selected check depends on it")
            return ""

        logger.debug(f"Platform version {resolution.version} (from {resolution.source})")
        return resolution.version

    async def _run_check(self, descriptor: CheckDescriptor, options: CheckOptions) -> CheckOutcome:
        if not is_applicable(options.platform_version, descriptor.applicable_since):
            return CheckOutcome(
                name=descriptor.name,
                classification=descriptor.classification,
                outcome=OutcomeType.SKIPPED,
                reason=(
                    f"Not applicable to platform version {options.platform_version}, "
                    f"requires {descriptor.applicable_since} or later"
                ),
            )

        try:
            result = descriptor.func(options)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Check {descriptor.name} failed with exception: {e}", exc_info=True)
            raise CheckExecutionError(descriptor.name, f"{type(e).__name__}: {e}") from e

        if not isinstance(result, CheckResult):
            raise CheckExecutionError(
                descriptor.name, f"expected CheckResult, got {type(result).__name__}"
            )
        if not isinstance(result.metadata, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in result.metadata.items()
        ):
            raise CheckExecutionError(descriptor.name, "CheckResult.metadata must map str to str")

        return CheckOutcome(
            name=descriptor.name,
            classification=descriptor.classification,
            outcome=OutcomeType.PASS if result.ok else OutcomeType.FAIL,
            reason=result.reason,
            metadata=result.metadata,
        )


async def verify_chart(
    locator: str,
    registry: CheckRegistry,
    selection: Optional[Selection] = None,
    options: Optional[RunOptions] = None,
    version_probe: Optional[VersionProbe] = None,
) -> Report:
    """
    Удобная функция: один прогон со своим ChartAcquirer.

    Acquirer закрывается после прогона.
    """
    async with ChartAcquirer() as acquirer:
        verifier = Verifier(registry, acquirer=acquirer, version_probe=version_probe)
        return await verifier.verify(locator, selection, options)
