"""Consensus engine: folds agent verdicts into one recommendation.

Rules, applied in order:
    1. Veto: any risk_detected verdict forces no_action.
    2. Mixed signals: supporters and opposers together force no_action.
    3. Quorum: at least two supporters and no opposers are needed to act.
    4. Confidence is the weakest supporter confidence.
    5. Action: replace_factory_strategy when a factory verdict names the
       strategy change; otherwise no_action.

Every no_action recommendation carries low confidence. Verdicts that abstain
(no_action, including failed agents) neither support nor oppose.
"""

from __future__ import annotations

from typing import Iterable

from .config import RULE_BASED_AGENTS
from .logging_config import get_logger
from .models import Action, Confidence, Recommendation, Verdict, VerdictKind

logger = get_logger(__name__)

MIN_SUPPORTERS = 2


def canonical_order(verdicts: Iterable[Verdict]) -> list[Verdict]:
    """Rule-based agents first in fixed order, others in the order given."""

    def key(verdict: Verdict) -> tuple[int, int]:
        if verdict.agent_name in RULE_BASED_AGENTS:
            return (0, RULE_BASED_AGENTS.index(verdict.agent_name))
        return (1, 0)

    return sorted(verdicts, key=key)


def aggregate_confidence(supporters: list[Verdict]) -> Confidence:
    if not supporters:
        return Confidence.LOW
    weakest = min(v.confidence.rank for v in supporters)
    if weakest == Confidence.HIGH.rank:
        return Confidence.HIGH
    if weakest == Confidence.MEDIUM.rank:
        return Confidence.MEDIUM
    return Confidence.LOW


def _names(verdicts: list[Verdict]) -> str:
    return ", ".join(v.agent_name for v in verdicts)


def _agree(verdicts: list[Verdict], verb: str) -> str:
    return f"{verb}s" if len(verdicts) == 1 else verb


class ConsensusEngine:
    """Stateless; one instance can serve any number of profiles."""

    def __init__(self, min_supporters: int = MIN_SUPPORTERS) -> None:
        if min_supporters < MIN_SUPPORTERS:
            raise ValueError(f"min_supporters must be at least {MIN_SUPPORTERS}")
        self.min_supporters = min_supporters

    def recommend(self, verdicts: Iterable[Verdict], location: str = "") -> Recommendation:
        results = canonical_order(verdicts)

        vetoes = [v for v in results if v.verdict is VerdictKind.RISK_DETECTED]
        if vetoes:
            logger.debug(f"{location or '<unknown>'}: vetoed by {_names(vetoes)}")
            return self._no_action(
                location,
                results,
                [v.reasoning for v in vetoes]
                + [f"Vetoed by {_names(vetoes)}: optimizing could change test behavior"],
            )

        supporters = [v for v in results if v.supports_optimization]
        opposers = [v for v in results if v.opposes_optimization]

        if supporters and opposers:
            logger.debug(f"{location or '<unknown>'}: mixed signals")
            return self._no_action(
                location,
                results,
                [v.reasoning for v in results if v.supports_optimization or v.opposes_optimization]
                + [
                    f"Mixed signals: {_names(supporters)} {_agree(supporters, 'support')} "
                    f"optimization but {_names(opposers)} {_agree(opposers, 'oppose')} it"
                ],
            )

        if opposers:
            return self._no_action(
                location,
                results,
                [v.reasoning for v in opposers]
                + [f"{len(opposers)} agent(s) oppose optimization: {_names(opposers)}"],
            )

        if len(supporters) < self.min_supporters:
            return self._no_action(
                location,
                results,
                [v.reasoning for v in supporters]
                + [
                    f"Only {len(supporters)} agent(s) support optimization; "
                    f"{self.min_supporters} required"
                ],
            )

        change = self._strategy_change(supporters)
        if change is None:
            return self._no_action(
                location,
                results,
                [v.reasoning for v in supporters]
                + [
                    f"{len(supporters)} agents agree optimization is safe "
                    "but none names a concrete change"
                ],
            )

        from_value, to_value = change
        confidence = aggregate_confidence(supporters)
        explanation = [v.reasoning for v in supporters]
        explanation.append(
            f"{len(supporters)} of {len(results)} agents agree: "
            f"replace {from_value} with {to_value}"
        )
        logger.debug(f"{location or '<unknown>'}: {from_value} -> {to_value} ({confidence.value})")
        return Recommendation(
            spec_location=location,
            action=Action.REPLACE_FACTORY_STRATEGY,
            from_value=from_value,
            to_value=to_value,
            confidence=confidence,
            explanation=tuple(explanation),
            agent_results=tuple(results),
        )

    @staticmethod
    def _strategy_change(supporters: list[Verdict]) -> tuple[str, str] | None:
        for verdict in supporters:
            if verdict.verdict is not VerdictKind.PREFER_BUILD_STUBBED:
                continue
            from_value = verdict.metadata.get("from_value")
            to_value = verdict.metadata.get("to_value")
            if from_value and to_value:
                return str(from_value), str(to_value)
        return None

    @staticmethod
    def _no_action(location: str, results: list[Verdict], explanation: list[str]) -> Recommendation:
        return Recommendation(
            spec_location=location,
            action=Action.NO_ACTION,
            confidence=Confidence.LOW,
            explanation=tuple(line for line in explanation if line),
            agent_results=tuple(results),
        )
