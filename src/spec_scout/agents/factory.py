"""FACTORY: could created fixtures be stubbed instead?

Candidates are factories built with ``create``. A candidate is dropped when
the example writes rows and reads that factory's table back.
"""

from __future__ import annotations

from ..models import Confidence, FactoryUsage, ProfileRecord, Verdict, VerdictKind
from .base import BaseAgent
from .helpers import keyed_reload_events, reload_events


class FactoryAgent(BaseAgent):
    """Recommends build_stubbed for factories whose records are never read back."""

    name = "factory"
    concern = "factory"

    def evaluate(self, profile: ProfileRecord) -> Verdict:
        creates = profile.create_factories()
        if not creates:
            return self.abstain("No factories use the create strategy")

        reloads = reload_events(profile)
        candidates: dict[str, FactoryUsage] = {}
        required: list[str] = []
        for factory, usage in creates.items():
            if profile.db.inserts > 0 and keyed_reload_events(profile, factory, reloads):
                required.append(factory)
            else:
                candidates[factory] = usage

        if not candidates:
            return self.abstain(
                f"Created records are read back for {', '.join(required)}; keep create",
                required_factories=required,
            )

        total_created = sum(usage.count for usage in creates.values())
        # Every insert is explained by factory creation and nothing is read back
        corroborated = profile.db.inserts <= total_created and not reloads
        confidence = Confidence.HIGH if corroborated else Confidence.MEDIUM

        # max() keeps the first of equal counts
        dominant = max(candidates, key=lambda name: candidates[name].count)
        reasoning = "; ".join(
            f"create(:{name}) used {usage.count}x can become build_stubbed(:{name})"
            for name, usage in candidates.items()
        )

        return self.verdict(
            VerdictKind.PREFER_BUILD_STUBBED,
            confidence,
            reasoning,
            from_value=f"create(:{dominant})",
            to_value=f"build_stubbed(:{dominant})",
            candidates=list(candidates),
            required_factories=required,
            total_created=total_created,
        )
