"""Rich terminal formatter for Spec Scout."""

import io
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import ScoutConfig
from ..models import Action, Confidence, ExampleResult, ProfileRecord, Recommendation, Verdict
from ..safety import EnforcementReport
from .base import BaseFormatter

CONFIDENCE_SYMBOLS = {
    Confidence.HIGH: "✔",
    Confidence.MEDIUM: "⚠",
    Confidence.LOW: "?",
}

_CONFIDENCE_STYLES = {
    Confidence.HIGH: "green",
    Confidence.MEDIUM: "yellow",
    Confidence.LOW: "dim",
}

AGENT_LABELS = {
    "database": "Database Agent",
    "factory": "Factory Agent",
    "intent": "Intent Agent",
    "risk": "Risk Agent",
}


def _confidence_label(confidence: Confidence) -> str:
    style = _CONFIDENCE_STYLES[confidence]
    return f"[{style}]{CONFIDENCE_SYMBOLS[confidence]} {confidence.value.upper()}[/{style}]"


def agent_label(name: str) -> str:
    if name in AGENT_LABELS:
        return AGENT_LABELS[name]
    return " ".join(part.upper() if part == "llm" else part.capitalize() for part in name.split("_"))


def action_text(rec: Recommendation) -> str:
    if rec.action is Action.REPLACE_FACTORY_STRATEGY and rec.from_value and rec.to_value:
        return f"Replace `{rec.from_value}` with `{rec.to_value}`"
    if rec.action is Action.NO_ACTION:
        return "No optimization recommended"
    return rec.action.value.replace("_", " ").capitalize()


def profile_summary(profile: ProfileRecord) -> list[str]:
    lines = []
    for name, usage in profile.factories.items():
        count = f" ({usage.count}x)" if usage.count > 1 else ""
        lines.append(f"Factory :{name} used `{usage.strategy.value}`{count}")
    db = profile.db
    if db.total_queries or db.inserts or db.selects:
        lines.append(
            f"DB inserts: {db.inserts}, selects: {db.selects}, total queries: {db.total_queries}"
        )
    if profile.runtime_ms > 0:
        lines.append(f"Runtime: {profile.runtime_ms:g}ms")
    if profile.spec_type.value != "unknown":
        lines.append(f"Type: {profile.spec_type.value} spec")
    return lines


class RichFormatter(BaseFormatter):
    """One panel per example: profiling summary, agent signals, final recommendation."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render(
        self,
        results: List[ExampleResult],
        config: ScoutConfig,
        report: Optional[EnforcementReport] = None,
    ) -> None:
        self._print(self.console, results, config, report)

    def format(
        self,
        results: List[ExampleResult],
        config: ScoutConfig,
        report: Optional[EnforcementReport] = None,
    ) -> str:
        buffer = io.StringIO()
        console = Console(file=buffer, width=100, color_system=None, force_terminal=False)
        self._print(console, results, config, report)
        return buffer.getvalue()

    def _print(self, console: Console, results, config, report) -> None:
        if not results:
            console.print("[yellow]No examples to analyze.[/yellow]")
        for result in results:
            console.print(self._example_panel(result))

        self._print_totals(console, results)

        if report is not None:
            style = "red bold" if report.failed else "green"
            first, *rest = report.message.splitlines()
            console.print(f"[{style}]{escape(first)}[/{style}]")
            for line in rest:
                console.print(escape(line))

    def _example_panel(self, result: ExampleResult) -> Panel:
        rec = result.recommendation
        body: list[str] = []

        summary = profile_summary(result.profile)
        if summary:
            body.append("[bold]Summary:[/bold]")
            body.extend(f"- {escape(line)}" for line in summary)
            body.append("")

        body.append("[bold]Agent Signals:[/bold]")
        if rec.agent_results:
            body.extend(f"- {self._agent_line(v)}" for v in rec.agent_results)
        else:
            body.append("- No agent results available")
        body.append("")

        body.append("[bold]Final Recommendation:[/bold]")
        symbol = "—" if rec.action is Action.NO_ACTION else "✔"
        body.append(f"{symbol} {escape(action_text(rec))}")
        body.append(f"Confidence: {_confidence_label(rec.confidence)}")
        if rec.explanation:
            body.append("")
            body.append("[bold]Reasoning:[/bold]")
            body.extend(f"- {escape(line)}" for line in rec.explanation)

        title = f"{CONFIDENCE_SYMBOLS[rec.confidence]} Spec Scout Recommendation"
        return Panel(
            "\n".join(body),
            title=f"[bold]{title}[/bold]",
            subtitle=escape(rec.spec_location) if rec.spec_location else None,
            expand=False,
        )

    @staticmethod
    def _agent_line(verdict: Verdict) -> str:
        line = (
            f"{agent_label(verdict.agent_name)}: {verdict.verdict.value.replace('_', ' ')} "
            f"({_confidence_label(verdict.confidence)})"
        )
        if verdict.failed:
            line += " [red](failed)[/red]"
        return line

    @staticmethod
    def _print_totals(console: Console, results: List[ExampleResult]) -> None:
        if not results:
            return
        table = Table(title="Totals", show_header=True, header_style="bold")
        table.add_column("Examples", justify="right")
        table.add_column("Actionable", justify="right")
        table.add_column("High confidence", justify="right")
        actionable = [r for r in results if r.recommendation.is_actionable()]
        high = [r for r in actionable if r.recommendation.high_confidence]
        table.add_row(str(len(results)), str(len(actionable)), str(len(high)))
        console.print(table)
