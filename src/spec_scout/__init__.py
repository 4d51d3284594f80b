"""
Spec Scout - Explainable test fixture optimization.

Reads per-example test profiles (timing, database queries, factory usage,
instrumented events), lets independent agents judge each concern, and folds
their verdicts into one conservative recommendation per example.
"""

__version__ = "0.1.0"

from .api import analyze_batch, analyze_profile, build_registry
from .config import ScoutConfig, ThresholdConfig, load_config
from .consensus import ConsensusEngine
from .models import (
    Action,
    Confidence,
    ExampleResult,
    ProfileRecord,
    Recommendation,
    Verdict,
    VerdictKind,
)
from .normalizer import ProfileNormalizer, load_profiles
from .safety import SafetyPolicy, evaluate_enforcement, validate_configuration

__all__ = [
    "analyze_profile",  # Main entry point
    "analyze_batch",
    "build_registry",
    "load_config",
    "load_profiles",
    "Action",
    "Confidence",
    "ConsensusEngine",
    "ExampleResult",
    "ProfileNormalizer",
    "ProfileRecord",
    "Recommendation",
    "SafetyPolicy",
    "ScoutConfig",
    "ThresholdConfig",
    "Verdict",
    "VerdictKind",
    "evaluate_enforcement",
    "validate_configuration",
]
