"""GitHub Actions formatter: annotations plus a Markdown summary."""

from typing import List

from ..models import ExampleResult
from .base import BaseFormatter


def _file_and_line(location: str) -> tuple[str, str]:
    path, _, line = location.partition(":")
    return path, line if line.isdigit() else ""


def _escape(message: str) -> str:
    # Workflow commands treat these characters as syntax
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class GithubFormatter(BaseFormatter):
    """Output ``::warning`` / ``::notice`` annotations for actionable recommendations.

    High-confidence recommendations become warnings, the rest notices. A
    Markdown table follows for use as a PR comment body.
    """

    def render(self, results, config, report=None) -> None:
        print(self.format(results, config, report))

    def format(self, results: List[ExampleResult], config, report=None) -> str:
        lines: list[str] = []
        actionable = [r for r in results if r.recommendation.is_actionable()]

        for result in actionable:
            rec = result.recommendation
            level = "warning" if rec.high_confidence else "notice"
            path, line = _file_and_line(rec.spec_location)
            target = f"file={path}"
            if line:
                target += f",line={line}"
            summary = rec.explanation[-1] if rec.explanation else ""
            msg = f"Replace {rec.from_value} with {rec.to_value} ({rec.confidence.value} confidence). {summary}"
            lines.append(f"::{level} {target},title=Spec Scout::{_escape(msg.strip())}")

        if report is not None and report.failed:
            lines.append(f"::error title=Spec Scout enforcement::{_escape(report.message)}")

        lines.append("")
        lines.append("## Spec Scout")
        lines.append("")
        if not actionable:
            lines.append(f"No actionable recommendations across {len(results)} example(s).")
            return "\n".join(lines)

        lines.append("| Location | Change | Confidence |")
        lines.append("|----------|--------|------------|")
        for result in actionable:
            rec = result.recommendation
            lines.append(
                f"| `{rec.spec_location or '-'}` | `{rec.from_value}` → `{rec.to_value}` "
                f"| {rec.confidence.value} |"
            )
        lines.append("")
        lines.append(f"**Summary:** {len(actionable)} actionable of {len(results)} example(s)")
        return "\n".join(lines)
