"""Agent contract shared by the rule-based and model-backed analyzers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..config import DEFAULT_THRESHOLDS, ThresholdConfig
from ..logging_config import get_logger
from ..models import Confidence, ProfileRecord, Verdict, VerdictKind

logger = get_logger(__name__)


class BaseAgent(ABC):
    """Scores one concern of a profile and returns a single verdict.

    Subclasses implement ``evaluate``. ``analyze`` wraps it so that an
    internal failure becomes a low-confidence ``no_action`` verdict flagged
    with ``metadata["error"]`` instead of an exception.
    """

    name: str = "base"
    concern: str = "base"

    def __init__(self, thresholds: Optional[ThresholdConfig] = None) -> None:
        self.thresholds = thresholds or DEFAULT_THRESHOLDS

    def analyze(self, profile: ProfileRecord) -> Verdict:
        try:
            return self.evaluate(profile)
        except Exception as e:
            logger.warning(f"Agent '{self.name}' failed on {profile.location or '<unknown>'}: {e}")
            return self.failure(str(e))

    @abstractmethod
    def evaluate(self, profile: ProfileRecord) -> Verdict:
        """Produce the verdict for ``profile``. May raise; ``analyze`` guards it."""

    def verdict(
        self,
        kind: VerdictKind,
        confidence: Confidence,
        reasoning: str,
        **metadata: Any,
    ) -> Verdict:
        return Verdict(
            agent_name=self.name,
            verdict=kind,
            confidence=confidence,
            reasoning=reasoning,
            metadata=metadata,
        )

    def abstain(self, reasoning: str, **metadata: Any) -> Verdict:
        return self.verdict(VerdictKind.NO_ACTION, Confidence.LOW, reasoning, **metadata)

    def failure(self, reason: str) -> Verdict:
        return self.abstain(
            f"{self.name} agent failed: {reason}",
            error=True,
            error_message=reason,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
