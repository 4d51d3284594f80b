"""RISK: could stubbing persistence change what the example observes?

Any one indicator is enough: a commit-dependent callback, a multi-step
callback chain, or an explicit side-effect flag in the profile metadata.
"""

from __future__ import annotations

import re

from ..models import Confidence, EventSample, ProfileRecord, Verdict, VerdictKind
from .base import BaseAgent

# Callback names may appear in event names, locations and backtraces
COMMIT_CALLBACK_RE = re.compile(r"after_\w*commit|after_rollback", re.IGNORECASE)
# A bare COMMIT only counts as a statement; "app/models/commit.rb" is not one
COMMIT_SQL_RE = re.compile(r"^\s*COMMIT\b", re.IGNORECASE)
TRANSACTION_COMMIT_RE = re.compile(r"transaction[._]commit|commit[._]transaction", re.IGNORECASE)
CALLBACK_RE = re.compile(r"^(?:before|after|around)_|callback", re.IGNORECASE)

# Only these metadata keys carry decision weight
RISK_METADATA_KEYS = (
    "after_commit",
    "commit_callbacks",
    "callbacks",
    "chained_callbacks",
    "nested_operations",
    "side_effects",
)


class RiskAgent(BaseAgent):
    """Vetoes optimization when persistence side effects are in play."""

    name = "risk"
    concern = "risk"

    def evaluate(self, profile: ProfileRecord) -> Verdict:
        indicators: list[str] = []

        commit_events = self._commit_events(profile)
        if commit_events:
            indicators.append(f"commit-dependent callbacks ({', '.join(commit_events)})")

        callbacks = sorted({name for name in profile.events if CALLBACK_RE.search(name)})
        if len(callbacks) >= self.thresholds.risk_callback_chain_min:
            indicators.append(f"callback chain of {len(callbacks)} steps ({', '.join(callbacks)})")

        flags = [key for key in RISK_METADATA_KEYS if profile.metadata.get(key)]
        if flags:
            indicators.append(f"flagged side effects ({', '.join(flags)})")

        if indicators:
            return self.verdict(
                VerdictKind.RISK_DETECTED,
                Confidence.HIGH,
                "Risk of behavior change: " + "; ".join(indicators),
                commit_events=commit_events,
                callback_events=callbacks,
                metadata_flags=flags,
            )

        return self.verdict(
            VerdictKind.SAFE_TO_OPTIMIZE,
            Confidence.HIGH,
            "No commit callbacks or side-effect indicators detected",
        )

    @staticmethod
    def _commit_events(profile: ProfileRecord) -> list[str]:
        found = []
        for name, stats in profile.events.items():
            if COMMIT_CALLBACK_RE.search(name) or TRANSACTION_COMMIT_RE.search(name):
                found.append(name)
            elif any(_commits(sample) for sample in stats.examples):
                found.append(name)
        return found


def _commits(sample: EventSample) -> bool:
    if sample.sql and COMMIT_SQL_RE.search(sample.sql):
        return True
    return bool(COMMIT_CALLBACK_RE.search(sample.text()))
