"""Public API for Spec Scout.

Example:
    >>> from spec_scout import analyze_profile
    >>>
    >>> rec = analyze_profile({
    ...     "location": "spec/models/user_spec.rb:12",
    ...     "factories": {"user": {"strategy": "create", "count": 3}},
    ...     "db": {"inserts": 3, "selects": 5, "total_queries": 8},
    ... })
    >>> rec.action.value, rec.confidence.value
    ('replace_factory_strategy', 'high')
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, Mapping, Optional, Union

from .agents import RULE_BASED_AGENT_CLASSES, AgentRegistry, LLMAgent
from .config import ScoutConfig
from .consensus import ConsensusEngine
from .llm import LLMProvider
from .logging_config import get_logger
from .models import ExampleResult, ProfileRecord, Recommendation

logger = get_logger(__name__)

ProfileInput = Union[ProfileRecord, Mapping[str, Any]]


def build_registry(config: ScoutConfig, provider: Optional[LLMProvider] = None) -> AgentRegistry:
    """Register the enabled rule-based agents and, with a provider, the
    configured model-backed agents."""
    registry = AgentRegistry()
    for name in config.enabled_agents:
        registry.register(RULE_BASED_AGENT_CLASSES[name](config.thresholds))

    if config.llm_agents:
        if provider is None:
            logger.warning(
                f"llm_agents configured ({', '.join(config.llm_agents)}) but no provider given; skipping"
            )
        else:
            for concern in config.llm_agents:
                registry.register(
                    LLMAgent(
                        concern,
                        provider,
                        timeout=config.llm_timeout_seconds,
                        thresholds=config.thresholds,
                    )
                )
    return registry


def _as_record(profile: ProfileInput) -> ProfileRecord:
    if isinstance(profile, ProfileRecord):
        return profile
    return ProfileRecord.from_dict(profile)


def analyze_profile(
    profile: ProfileInput,
    config: Optional[ScoutConfig] = None,
    registry: Optional[AgentRegistry] = None,
) -> Recommendation:
    """Run every enabled agent over one profile and reach consensus.

    Args:
        profile: A ProfileRecord or a mapping in the normalized shape
        config: Run configuration (defaults apply when omitted)
        registry: Pre-built registry; built from ``config`` when omitted
    """
    config = config or ScoutConfig()
    registry = registry if registry is not None else build_registry(config)
    record = _as_record(profile)

    verdicts = registry.run(record, parallel=config.parallel_agents)
    return ConsensusEngine().recommend(verdicts, record.location)


def analyze_batch(
    profiles: Iterable[ProfileInput],
    config: Optional[ScoutConfig] = None,
    registry: Optional[AgentRegistry] = None,
    workers: int = 1,
) -> list[ExampleResult]:
    """Analyze many profiles; results keep the input order."""
    config = config or ScoutConfig()
    registry = registry if registry is not None else build_registry(config)
    records = [_as_record(p) for p in profiles]

    def run(record: ProfileRecord) -> ExampleResult:
        return ExampleResult(record, analyze_profile(record, config, registry))

    if workers > 1 and len(records) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(run, records))
    else:
        results = [run(record) for record in records]

    actionable = sum(1 for r in results if r.recommendation.is_actionable())
    logger.info(f"Analyzed {len(results)} example(s), {actionable} actionable")
    return results
