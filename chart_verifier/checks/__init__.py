"""
Built-in checks and the default registry.

Contains:
- has-readme, is-helm-v3, contains-test, contains-values,
  contains-values-schema, has-kubeversion, not-contains-crds

None of the built-in checks depends on the platform version, so the
default registry runs without a cluster or --openshift-version. Gated
checks (applicable_since / requires_platform_version) come from registries
that extend this one:

    registry = build_default_registry().add(
        CheckDescriptor("chart-testing", CheckType.MANDATORY, chart_testing,
                        requires_platform_version=True)
    )
"""

from functools import lru_cache

from chart_verifier.checks import builtin
from chart_verifier.core.models import CheckType
from chart_verifier.core.registry import CheckDescriptor, CheckRegistry


def build_default_registry() -> CheckRegistry:
    """Собрать реестр встроенных проверок (новый экземпляр)."""
    return (
        CheckRegistry()
        .add(CheckDescriptor("has-readme", CheckType.MANDATORY, builtin.has_readme))
        .add(CheckDescriptor("is-helm-v3", CheckType.MANDATORY, builtin.is_helm_v3))
        .add(CheckDescriptor("contains-test", CheckType.MANDATORY, builtin.contains_test))
        .add(CheckDescriptor("contains-values", CheckType.MANDATORY, builtin.contains_values))
        .add(CheckDescriptor("contains-values-schema", CheckType.MANDATORY, builtin.contains_values_schema))
        .add(CheckDescriptor("has-kubeversion", CheckType.MANDATORY, builtin.has_kubeversion))
        .add(CheckDescriptor("not-contains-crds", CheckType.MANDATORY, builtin.not_contains_crds))
    )


@lru_cache
def default_registry() -> CheckRegistry:
    """Реестр процесса: строится один раз, дальше только чтение."""
    return build_default_registry()
