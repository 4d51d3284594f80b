"""INTENT: does the example test a unit or a whole request path?

The spec type decides when it is known. Cross-boundary events (requests,
controllers, rendering, browser drivers) always mean integration behavior.
Unknown spec types fall back to behavioral signal scoring.
"""

from __future__ import annotations

import re

from ..models import Confidence, ProfileRecord, SpecType, Verdict, VerdictKind
from .base import BaseAgent

# Whole name segments only: "track_event" must not match "rack"
CROSS_BOUNDARY_RE = re.compile(
    r"(?:^|[._])"
    r"(?:request|controller|action_controller|action_dispatch|process_action|action_view"
    r"|rack|http|capybara|render_template|render_partial)"
    r"(?=$|[._])",
    re.IGNORECASE,
)

_INTEGRATION_TYPES = frozenset(
    {SpecType.REQUEST, SpecType.FEATURE, SpecType.SYSTEM, SpecType.INTEGRATION}
)
_UNIT_TYPES = frozenset({SpecType.MODEL, SpecType.LIB})


def cross_boundary_events(profile: ProfileRecord) -> list[str]:
    return [name for name in profile.events if CROSS_BOUNDARY_RE.search(name)]


class IntentAgent(BaseAgent):
    """Classifies test intent as unit or integration behavior."""

    name = "intent"
    concern = "intent"

    def evaluate(self, profile: ProfileRecord) -> Verdict:
        spec_type = profile.spec_type
        boundary = cross_boundary_events(profile)

        if spec_type in _INTEGRATION_TYPES or boundary:
            if boundary:
                reason = f"Cross-boundary events observed ({', '.join(boundary)})"
            else:
                reason = f"{spec_type.value} specs exercise the full request stack"
            return self.verdict(
                VerdictKind.INTEGRATION_TEST_BEHAVIOR,
                Confidence.HIGH,
                reason,
                spec_type=spec_type.value,
                cross_boundary_events=boundary,
            )

        if spec_type in _UNIT_TYPES:
            return self.verdict(
                VerdictKind.UNIT_TEST_BEHAVIOR,
                Confidence.HIGH,
                f"{spec_type.value} spec with no cross-boundary events; isolated unit behavior",
                spec_type=spec_type.value,
            )

        if spec_type is SpecType.HELPER:
            return self.verdict(
                VerdictKind.UNIT_TEST_BEHAVIOR,
                Confidence.MEDIUM,
                "helper specs usually test isolated formatting logic",
                spec_type=spec_type.value,
            )

        if spec_type in (SpecType.CONTROLLER, SpecType.VIEW):
            return self.verdict(
                VerdictKind.INTEGRATION_TEST_BEHAVIOR,
                Confidence.MEDIUM,
                f"{spec_type.value} specs touch the framework layer",
                spec_type=spec_type.value,
            )

        return self._score_signals(profile)

    def _score_signals(self, profile: ProfileRecord) -> Verdict:
        """Weigh runtime, query load and factory usage against each other."""
        t = self.thresholds
        unit: list[str] = []
        integration: list[str] = []

        if profile.runtime_ms <= t.intent_fast_runtime_ms:
            unit.append(f"fast runtime ({profile.runtime_ms:.1f}ms)")
        elif profile.runtime_ms > t.intent_slow_runtime_ms:
            integration.append(f"slow runtime ({profile.runtime_ms:.1f}ms)")

        queries = profile.db.total_queries
        if queries <= t.intent_light_query_max:
            unit.append(f"light query load ({queries} queries)")
        elif queries > t.intent_heavy_query_min:
            integration.append(f"heavy query load ({queries} queries)")

        if profile.factories:
            instances = sum(usage.count for usage in profile.factories.values())
            created = len(profile.create_factories())
            if instances <= t.intent_light_factory_max and created == 0:
                unit.append("minimal factory usage")
            elif instances > t.intent_heavy_factory_min or created > t.intent_heavy_create_min:
                integration.append(f"heavy factory usage ({instances} instances)")

        meta = {
            "spec_type": profile.spec_type.value,
            "unit_signals": unit,
            "integration_signals": integration,
        }
        if len(unit) >= t.intent_min_signals and len(unit) > len(integration):
            return self.verdict(
                VerdictKind.UNIT_TEST_BEHAVIOR,
                Confidence.MEDIUM,
                f"Likely unit behavior: {', '.join(unit)}",
                **meta,
            )
        if len(integration) >= t.intent_min_signals and len(integration) > len(unit):
            return self.verdict(
                VerdictKind.INTEGRATION_TEST_BEHAVIOR,
                Confidence.MEDIUM,
                f"Likely integration behavior: {', '.join(integration)}",
                **meta,
            )
        return self.abstain(
            f"Intent unclear ({len(unit)} unit signals, {len(integration)} integration signals)",
            **meta,
        )
