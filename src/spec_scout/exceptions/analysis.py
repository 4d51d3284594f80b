"""Analysis-related exceptions: agents, raw input, model providers."""

from .base import SpecScoutError


class AnalysisError(SpecScoutError):
    """Base class for analysis-related errors."""
    pass


class AgentError(AnalysisError):
    """Raised inside an agent when a verdict cannot be computed.

    Never escapes the agent registry; it is converted into a low-confidence
    verdict carrying ``reason``.
    """

    def __init__(self, agent_name: str, reason: str):
        super().__init__(
            f"Agent {agent_name} failed",
            details={"agent": agent_name, "reason": reason},
        )
        self.agent_name = agent_name
        self.reason = reason


class NormalizationError(AnalysisError):
    """Raised when raw profiler output cannot be mapped to a profile record."""

    def __init__(self, reason: str, source: str = ""):
        details = {"reason": reason}
        if source:
            details["source"] = source
        super().__init__(f"Failed to normalize profile data: {reason}", details=details)
        self.reason = reason
        self.source = source


class ProviderError(AnalysisError):
    """Raised when a text-generation provider call fails."""

    def __init__(self, provider: str, reason: str):
        super().__init__(
            f"Provider {provider} request failed",
            details={"provider": provider, "reason": reason},
        )
        self.provider = provider
        self.reason = reason


class SafetyViolationError(AnalysisError):
    """Raised when a watched spec file changed while the analysis ran."""

    def __init__(self, paths: list):
        super().__init__(
            "Spec files were modified during analysis",
            details={"files": ", ".join(paths)},
        )
        self.paths = list(paths)
