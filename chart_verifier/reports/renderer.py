"""
Report renderers.

Generates:
- JSON and YAML for machine processing
- Markdown for human reading
- a rich Table for the terminal

Renderers only read the Report.
"""

import json
from typing import List

import yaml
from rich.markup import escape
from rich.table import Table

from chart_verifier.core.models import OutcomeType, Report

FORMATS = ("json", "yaml", "markdown")

_STATUS = {
    OutcomeType.PASS: "✅ PASS",
    OutcomeType.FAIL: "❌ FAIL",
    OutcomeType.SKIPPED: "⏭️ SKIPPED",
}


def render_json(report: Report) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


def render_yaml(report: Report) -> str:
    return yaml.safe_dump(report.to_dict(), sort_keys=False, allow_unicode=True)


def render_markdown(report: Report) -> str:
    """Markdown отчёт: сводка и результаты по проверкам."""
    tool = report.tool_metadata
    lines: List[str] = []

    lines.append(f"# Chart Verification Report: {report.chart.name}-{report.chart.version}")
    lines.append("")
    lines.append(f"**Chart:** `{report.chart.uri}`")
    lines.append(f"**Platform version:** {tool.certified_platform_version or 'unknown'}")
    lines.append(f"**Digest:** `{tool.digest}`")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    overall = "✅ PASSED" if report.is_fully_passing() else "❌ FAILED"
    lines.append(f"- **Result:** {overall}")
    for outcome_type in OutcomeType:
        count = len([r for r in report.results if r.outcome == outcome_type])
        lines.append(f"- **{outcome_type.value.capitalize()}:** {count}")
    lines.append("")

    lines.append("## Checks")
    lines.append("")
    for result in report.results:
        lines.append(f"### {result.name} - {_STATUS[result.outcome]}")
        lines.append(f"Type: {result.classification.value}")
        if result.reason:
            lines.append(f"Reason: {result.reason}")
        lines.append("")

    return "\n".join(lines)


def render(report: Report, output_format: str) -> str:
    """
    Отрендерить отчёт.

    Args:
        report: Отчёт
        output_format: "json", "yaml" или "markdown"
    """
    if output_format == "json":
        return render_json(report)
    if output_format == "yaml":
        return render_yaml(report)
    if output_format == "markdown":
        return render_markdown(report)
    raise ValueError(f"unknown output format {output_format!r}, expected one of {FORMATS}")


def build_table(report: Report) -> Table:
    """Таблица результатов для rich Console."""
    table = Table(title=f"{report.chart.name} {report.chart.version}")
    table.add_column("Check", style="cyan")
    table.add_column("Type")
    table.add_column("Outcome")
    table.add_column("Reason", style="dim")

    styles = {OutcomeType.PASS: "green", OutcomeType.FAIL: "red", OutcomeType.SKIPPED: "yellow"}
    for result in report.results:
        table.add_row(
            result.name,
            result.classification.value,
            f"[{styles[result.outcome]}]{result.outcome.value}[/]",
            escape(result.reason),
        )
    return table
