"""JSON formatter for Spec Scout."""

import json
from typing import List, Optional

from .. import __version__
from ..config import ScoutConfig
from ..models import ExampleResult
from ..safety import EnforcementReport
from .base import BaseFormatter


class JsonFormatter(BaseFormatter):
    """Render results as a deterministic JSON document (sorted keys, no timestamps)."""

    def render(self, results, config, report=None) -> None:
        print(self.format(results, config, report))

    def format(
        self,
        results: List[ExampleResult],
        config: ScoutConfig,
        report: Optional[EnforcementReport] = None,
    ) -> str:
        data = {
            "version": __version__,
            "summary": {
                "examples": len(results),
                "actionable": sum(1 for r in results if r.recommendation.is_actionable()),
                "high_confidence": sum(
                    1
                    for r in results
                    if r.recommendation.is_actionable() and r.recommendation.high_confidence
                ),
            },
            "enforcement": {
                "enabled": config.enforcement_mode,
                "exit_code": report.exit_code if report else 0,
                "message": report.message if report else "",
            },
            "results": [
                {
                    "profile": r.profile.to_dict(),
                    "recommendation": r.recommendation.to_dict(),
                }
                for r in results
            ],
        }
        return json.dumps(data, indent=2, sort_keys=True, default=str)
