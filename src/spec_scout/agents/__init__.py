"""Agents: each scores one concern of a profile record.

Four rule-based agents (database, factory, intent, risk) plus the model-backed
``LLMAgent``, which answers the same concerns through a provider.
"""

from .base import BaseAgent
from .database import DatabaseAgent
from .factory import FactoryAgent
from .intent import IntentAgent
from .llm import LLMAgent
from .registry import AgentRegistry
from .risk import RiskAgent

# Rule-based agent classes by name, in canonical order
RULE_BASED_AGENT_CLASSES: dict[str, type[BaseAgent]] = {
    "database": DatabaseAgent,
    "factory": FactoryAgent,
    "intent": IntentAgent,
    "risk": RiskAgent,
}

__all__ = [
    "AgentRegistry",
    "BaseAgent",
    "DatabaseAgent",
    "FactoryAgent",
    "IntentAgent",
    "LLMAgent",
    "RULE_BASED_AGENT_CLASSES",
    "RiskAgent",
]
