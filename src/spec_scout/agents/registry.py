"""Ordered set of enabled agents and the runner that applies them to a profile."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Iterator, Optional

from ..config import RULE_BASED_AGENTS
from ..logging_config import get_logger
from ..models import Confidence, ProfileRecord, Verdict, VerdictKind
from .base import BaseAgent

logger = get_logger(__name__)


class AgentRegistry:
    """Holds agent instances in registration order.

    ``run`` always returns verdicts in canonical order: the rule-based agents
    (database, factory, intent, risk) first, then every other agent in the
    order it was registered. A failure of one agent never affects the others.
    """

    def __init__(self, agents: Optional[Iterable[BaseAgent]] = None) -> None:
        self._agents: list[BaseAgent] = []
        for agent in agents or ():
            self.register(agent)

    def register(self, agent: BaseAgent) -> None:
        if any(existing.name == agent.name for existing in self._agents):
            raise ValueError(f"Agent already registered: {agent.name}")
        self._agents.append(agent)

    @property
    def agents(self) -> list[BaseAgent]:
        return sorted(self._agents, key=self._order_key)

    @property
    def names(self) -> list[str]:
        return [agent.name for agent in self.agents]

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator[BaseAgent]:
        return iter(self.agents)

    def run(self, profile: ProfileRecord, parallel: bool = False) -> list[Verdict]:
        agents = self.agents
        if not agents:
            return []

        if parallel and len(agents) > 1:
            with ThreadPoolExecutor(max_workers=len(agents)) as executor:
                futures = [executor.submit(self._run_one, agent, profile) for agent in agents]
                verdicts = [future.result() for future in futures]
        else:
            verdicts = [self._run_one(agent, profile) for agent in agents]

        for verdict in verdicts:
            logger.debug(
                f"{profile.location or '<unknown>'}: {verdict.agent_name} -> "
                f"{verdict.verdict.value} ({verdict.confidence.value})"
            )
        return verdicts

    @staticmethod
    def _run_one(agent: BaseAgent, profile: ProfileRecord) -> Verdict:
        try:
            verdict = agent.analyze(profile)
        except Exception as e:
            # analyze() already guards evaluate(); this covers broken subclasses
            logger.warning(f"Agent '{agent.name}' raised outside its guard: {e}")
            return agent.failure(str(e))

        if not isinstance(verdict, Verdict) or not verdict.is_valid():
            logger.warning(f"Agent '{agent.name}' returned a malformed verdict")
            return Verdict(
                agent_name=agent.name,
                verdict=VerdictKind.NO_ACTION,
                confidence=Confidence.LOW,
                reasoning=f"{agent.name} agent returned a malformed verdict",
                metadata={"error": True},
            )
        return verdict

    def _order_key(self, agent: BaseAgent) -> tuple[int, int]:
        if agent.name in RULE_BASED_AGENTS:
            return (0, RULE_BASED_AGENTS.index(agent.name))
        return (1, self._agents.index(agent))
