"""Model-backed agents: the same contract as the rule-based ones, answered by a
text-generation provider.

The provider reply must be a JSON object with ``verdict``, ``confidence`` and
``reasoning``. Legacy verdict names are accepted as aliases. A timeout, a
transport failure or an unparseable reply all yield a low-confidence
``no_action`` verdict.
"""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Optional

from ..config import ThresholdConfig
from ..exceptions import AgentError, ProviderError
from ..llm.providers import LLMProvider
from ..logging_config import get_logger
from ..models import Confidence, ProfileRecord, Verdict, VerdictKind
from .base import BaseAgent

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

CONCERN_VERDICTS: dict[str, frozenset[VerdictKind]] = {
    "database": frozenset(
        {VerdictKind.DB_UNNECESSARY, VerdictKind.DB_REQUIRED, VerdictKind.NO_ACTION}
    ),
    "factory": frozenset(
        {VerdictKind.PREFER_BUILD_STUBBED, VerdictKind.DB_REQUIRED, VerdictKind.NO_ACTION}
    ),
    "intent": frozenset(
        {
            VerdictKind.UNIT_TEST_BEHAVIOR,
            VerdictKind.INTEGRATION_TEST_BEHAVIOR,
            VerdictKind.NO_ACTION,
        }
    ),
    "risk": frozenset(
        {VerdictKind.SAFE_TO_OPTIMIZE, VerdictKind.RISK_DETECTED, VerdictKind.NO_ACTION}
    ),
}

VERDICT_ALIASES: dict[str, VerdictKind] = {
    "high_risk": VerdictKind.RISK_DETECTED,
    "potential_side_effects": VerdictKind.RISK_DETECTED,
    "create_required": VerdictKind.DB_REQUIRED,
    "db_unclear": VerdictKind.NO_ACTION,
    "intent_unclear": VerdictKind.NO_ACTION,
    "strategy_optimal": VerdictKind.NO_ACTION,
    "optimizer_failed": VerdictKind.NO_ACTION,
}

CONFIDENCE_ALIASES: dict[str, Confidence] = {"none": Confidence.LOW}

CONCERN_QUESTIONS = {
    "database": (
        "Does this test example need database writes? Answer db_unnecessary when "
        "nothing it asserts depends on persisted rows, db_required when created "
        "records are read back, otherwise no_action."
    ),
    "factory": (
        "Could create(...) factory calls be replaced with build_stubbed(...)? "
        "Answer prefer_build_stubbed and give from_value/to_value such as "
        '"create(:user)" / "build_stubbed(:user)", db_required when created '
        "records must persist, otherwise no_action."
    ),
    "intent": (
        "Is this an isolated unit test or an integration test crossing request, "
        "controller or browser boundaries? Answer unit_test_behavior, "
        "integration_test_behavior or no_action."
    ),
    "risk": (
        "Would removing persistence change observable behavior, for example "
        "through commit callbacks or chained side effects? Answer risk_detected "
        "or safe_to_optimize, or no_action if you cannot tell."
    ),
}

SYSTEM_PROMPT = (
    "You review RSpec test profiling data and judge whether fixture persistence "
    "can be reduced without changing test behavior. Be conservative: when the "
    "evidence is thin, answer no_action. Reply with a single JSON object with "
    'the keys "verdict", "confidence" (high, medium or low) and "reasoning".'
)


class LLMAgent(BaseAgent):
    """Agent for one concern whose verdict comes from a text-generation provider.

    Args:
        concern: database, factory, intent or risk
        provider: Object implementing ``generate(prompt, system_prompt)``
        timeout: Seconds to wait for the provider before abstaining
    """

    def __init__(
        self,
        concern: str,
        provider: LLMProvider,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        thresholds: Optional[ThresholdConfig] = None,
    ) -> None:
        if concern not in CONCERN_VERDICTS:
            raise ValueError(f"Unknown concern: {concern}")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        super().__init__(thresholds)
        self.concern = concern
        self.name = f"llm_{concern}"
        self.provider = provider
        self.timeout = timeout

    def evaluate(self, profile: ProfileRecord) -> Verdict:
        prompt = self.build_prompt(profile)
        try:
            reply = self._generate(prompt)
        except FutureTimeout:
            logger.warning(f"{self.name} timed out after {self.timeout:g}s")
            return self.failure(f"provider timed out after {self.timeout:g}s")
        except ProviderError as e:
            logger.warning(f"{self.name}: {e}")
            return self.failure(e.reason)
        return self.parse_reply(reply)

    def build_prompt(self, profile: ProfileRecord) -> str:
        data = json.dumps(profile.to_dict(), indent=2, sort_keys=True, default=str)
        return f"{CONCERN_QUESTIONS[self.concern]}\n\nPROFILE DATA:\n{data}\n"

    def _generate(self, prompt: str) -> str:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=self.name)
        try:
            future = executor.submit(self.provider.generate, prompt, SYSTEM_PROMPT)
            return future.result(timeout=self.timeout)
        finally:
            # A hung provider call must not hold the analysis up
            executor.shutdown(wait=False, cancel_futures=True)

    def parse_reply(self, reply: str) -> Verdict:
        """Map a provider reply onto a verdict of this agent's concern.

        Raises:
            AgentError: If the reply is not a usable JSON verdict
        """
        data = _load_json_object(reply, self.name)

        kind = _parse_verdict(data.get("verdict"), self.name)
        if kind not in CONCERN_VERDICTS[self.concern]:
            raise AgentError(self.name, f"verdict '{kind.value}' is not valid for {self.concern}")

        raw_confidence = str(data.get("confidence", "low")).strip().lower()
        confidence = CONFIDENCE_ALIASES.get(raw_confidence)
        if confidence is None:
            try:
                confidence = Confidence(raw_confidence)
            except ValueError:
                raise AgentError(self.name, f"unknown confidence '{raw_confidence}'")

        reasoning = str(data.get("reasoning") or "").strip()
        if kind is VerdictKind.NO_ACTION:
            return self.abstain(reasoning or "Model could not reach a verdict", provider=True)
        if not reasoning:
            raise AgentError(self.name, "actionable verdict without reasoning")

        metadata: dict[str, Any] = {"provider": True}
        extra = data.get("metadata")
        if isinstance(extra, dict):
            metadata["response_metadata"] = extra
        if self.concern == "factory":
            metadata.update(_strategy_change(data))
        return self.verdict(kind, confidence, reasoning, **metadata)


def _load_json_object(reply: str, agent_name: str) -> dict[str, Any]:
    text = (reply or "").strip()
    if text.startswith("```"):
        lines = text.splitlines()
        if lines[-1].strip() == "```":
            text = "\n".join(lines[1:-1])
        else:
            text = "\n".join(lines[1:])
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AgentError(agent_name, f"invalid JSON reply: {e}")
    if not isinstance(data, dict):
        raise AgentError(agent_name, "reply is not a JSON object")
    return data


def _parse_verdict(value: Any, agent_name: str) -> VerdictKind:
    name = str(value or "").strip().lower()
    if name in VERDICT_ALIASES:
        return VERDICT_ALIASES[name]
    try:
        return VerdictKind(name)
    except ValueError:
        raise AgentError(agent_name, f"unknown verdict '{value}'")


def _strategy_change(data: dict[str, Any]) -> dict[str, str]:
    """Pull from/to values from the reply or its first recommendation."""
    from_value = data.get("from_value")
    to_value = data.get("to_value")
    recommendations = data.get("recommendations")
    if not (from_value and to_value) and isinstance(recommendations, list) and recommendations:
        first = recommendations[0]
        if isinstance(first, dict):
            from_value = first.get("from")
            to_value = first.get("to")
    if from_value and to_value:
        return {"from_value": str(from_value), "to_value": str(to_value)}
    return {}
