"""
CLI interface for Chart Verifier.

Usage:
    chart-verifier verify ./mychart-0.1.0.tgz
    chart-verifier verify https://example.com/mychart-0.1.0.tgz -o yaml
    chart-verifier verify ./mychart -e has-readme,is-helm-v3
    chart-verifier verify ./mychart -x contains-values-schema --openshift-version 4.9.7
    chart-verifier checks

Exit codes: 0 all mandatory checks passed, 1 some mandatory check failed,
2 verification could not run.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from chart_verifier.checks import default_registry
from chart_verifier.config import get_settings
from chart_verifier.core.errors import VerificationError
from chart_verifier.core.options import RunOptions
from chart_verifier.core.registry import CheckRegistry
from chart_verifier.core.models import Report
from chart_verifier.reports.renderer import FORMATS, build_table, render
from chart_verifier.verifier import Selection, Verifier

app = typer.Typer(
    name="chart-verifier",
    help="Chart Verifier — проверка Helm чартов набором независимых проверок",
)
console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def setup_logging(verbose: bool = False, level: str = "INFO"):
    """Настроить логирование."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def split_names(values: Optional[List[str]]) -> List[str]:
    """-e a,b -e c -> [a, b, c]"""
    names = []
    for value in values or []:
        names.extend(n.strip() for n in value.split(",") if n.strip())
    return names


def parse_set_values(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """
    Разобрать --set key.sub=value в вложенный словарь.

    Raises:
        typer.BadParameter: пара без '='
    """
    values: Dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}", param_hint="--set")
        target = values
        parts = key.split(".")
        for part in parts[:-1]:
            target = target.setdefault(part, {})
            if not isinstance(target, dict):
                raise typer.BadParameter(f"conflicting keys in {pair!r}", param_hint="--set")
        target[parts[-1]] = value
    return values


def build_selection(enable: List[str], disable: List[str]) -> Selection:
    if enable and disable:
        raise typer.BadParameter("--enable and --disable cannot be used together")
    if enable:
        return Selection.enable_only(enable)
    if disable:
        return Selection.disable_only(disable)
    return Selection.all_enabled()


async def run_verification(verifier: Verifier, chart: str, selection: Selection,
                           options: RunOptions) -> Report:
    try:
        return await verifier.verify(chart, selection, options)
    finally:
        await verifier.acquirer.aclose()


@app.command()
def verify(
    chart: str = typer.Argument(..., help="Chart archive, chart directory or http(s) URL"),
    enable: Optional[List[str]] = typer.Option(None, "--enable", "-e", help="Only run these checks"),
    disable: Optional[List[str]] = typer.Option(None, "--disable", "-x", help="Skip these checks"),
    openshift_version: Optional[str] = typer.Option(
        None, "--openshift-version", help="Platform version if it cannot be queried"
    ),
    set_values: Optional[List[str]] = typer.Option(None, "--set", help="Values override key=value"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n"),
    kubeconfig: Optional[str] = typer.Option(None, "--kubeconfig"),
    kube_context: Optional[str] = typer.Option(None, "--kube-context"),
    output: str = typer.Option("table", "--output", "-o", help=f"table, {', '.join(FORMATS)}"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """🔍 Проверить чарт."""
    settings = get_settings()
    setup_logging(verbose or settings.debug, settings.log_level)

    if output != "table" and output not in FORMATS:
        raise typer.BadParameter(f"unknown format {output!r}", param_hint="--output")

    selection = build_selection(split_names(enable), split_names(disable))
    options = RunOptions(
        platform_version=openshift_version if openshift_version is not None else settings.openshift_version,
        values=parse_set_values(set_values),
        namespace=namespace or settings.namespace,
        kubeconfig=kubeconfig or settings.kubeconfig,
        kube_context=kube_context or settings.kube_context,
        debug=verbose or settings.debug,
    )
    settings = settings.model_copy(update={"kubeconfig": options.kubeconfig,
                                           "kube_context": options.kube_context})
    verifier = Verifier.from_settings(default_registry(), settings)

    try:
        report = asyncio.run(run_verification(verifier, chart, selection, options))
    except VerificationError as e:
        err_console.print(f"[red]❌ {escape(str(e))}[/]")
        raise typer.Exit(EXIT_ERROR)

    if output == "table":
        console.print(build_table(report))
        if report.is_fully_passing():
            console.print("[green]✅ All mandatory checks passed[/]")
        else:
            console.print(f"[red]❌ {len(report.get_failures())} check(s) failed[/]")
    else:
        typer.echo(render(report, output))

    raise typer.Exit(EXIT_OK if report.is_fully_passing() else EXIT_FAILED)


@app.command()
def checks():
    """📋 Список доступных проверок."""
    registry: CheckRegistry = default_registry()
    for name in registry.all_names():
        descriptor = registry.get(name)
        since = f" (since {descriptor.applicable_since})" if descriptor.applicable_since else ""
        console.print(f"[cyan]{name}[/] [dim]{descriptor.classification.value}{since}[/]")


if __name__ == "__main__":
    app()
