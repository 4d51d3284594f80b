"""Exception hierarchy for Spec Scout."""

from .analysis import (
    AgentError,
    AnalysisError,
    NormalizationError,
    ProviderError,
    SafetyViolationError,
)
from .base import SpecScoutError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    UnsafeConfigurationError,
)

__all__ = [
    "SpecScoutError",
    "AnalysisError",
    "AgentError",
    "NormalizationError",
    "ProviderError",
    "SafetyViolationError",
    "ConfigurationError",
    "InvalidConfigError",
    "UnsafeConfigurationError",
]
