"""
Built-in static checks.

Each check only reads the ChartHandle from CheckOptions; none of them
needs a cluster or external binaries.
"""

from chart_verifier.core.models import CheckResult
from chart_verifier.core.options import CheckOptions

README_FILE = "README.md"
VALUES_FILE = "values.yaml"
VALUES_SCHEMA_FILE = "values.schema.json"
TESTS_DIR = "templates/tests/"


async def has_readme(options: CheckOptions) -> CheckResult:
    """Чарт содержит README.md."""
    if options.chart.has_file(README_FILE):
        return CheckResult.passed("Chart has a README")
    return CheckResult.failed("Chart does not have a README")


async def is_helm_v3(options: CheckOptions) -> CheckResult:
    """apiVersion v2 означает чарт для Helm 3."""
    api_version = options.chart.api_version
    if api_version == "v2":
        return CheckResult.passed("API version is V2, used in Helm 3")
    return CheckResult.failed(
        f"API version is {api_version or 'not set'}, not V2 used in Helm 3",
        api_version=api_version,
    )


async def contains_test(options: CheckOptions) -> CheckResult:
    tests = [p for p in options.chart.file_names() if p.startswith(TESTS_DIR)]
    if tests:
        return CheckResult.passed("Chart test files exist", count=str(len(tests)))
    return CheckResult.failed("Chart test files do not exist")


async def contains_values(options: CheckOptions) -> CheckResult:
    if options.chart.has_file(VALUES_FILE):
        return CheckResult.passed("Values file exist")
    return CheckResult.failed("Values file does not exist")


async def contains_values_schema(options: CheckOptions) -> CheckResult:
    if options.chart.has_file(VALUES_SCHEMA_FILE):
        return CheckResult.passed("Values schema file exist")
    return CheckResult.failed("Values schema file does not exist")


async def has_kubeversion(options: CheckOptions) -> CheckResult:
    """В Chart.yaml указан kubeVersion."""
    kube_version = options.chart.metadata.get("kubeVersion")
    if kube_version:
        return CheckResult.passed("Kubernetes version specified", kubeVersion=str(kube_version))
    return CheckResult.failed("Kubernetes version is not specified")


async def not_contains_crds(options: CheckOptions) -> CheckResult:
    crds = options.chart.crds()
    if crds:
        return CheckResult.failed(f"Chart contains CRDs: {', '.join(crds)}")
    return CheckResult.passed("Chart does not contain CRDs")
