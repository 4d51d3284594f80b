"""Configuration loading and management for Spec Scout.

This module provides configuration discovery and validation. Configuration
sources are merged in priority order:
    1. Defaults (defined in ScoutConfig)
    2. Global config (~/.spec-scout.toml)
    3. Project config (./spec-scout.toml)
    4. Explicit config file
    5. Environment variables (SPEC_SCOUT_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(enforcement_mode=True)
    >>> config.enforcement_mode
    True
    >>> config.enabled_agents
    ('database', 'factory', 'intent', 'risk')
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import InvalidConfigError, SpecScoutError

# Type aliases for clarity
Verbosity = Literal["quiet", "normal", "verbose"]
OutputFormat = Literal["console", "json", "github"]

# Canonical agent order. Explanations and verdict lists follow it.
RULE_BASED_AGENTS: tuple[str, ...] = ("database", "factory", "intent", "risk")
OUTPUT_FORMATS: tuple[str, ...] = ("console", "json", "github")


@dataclass(frozen=True)
class ThresholdConfig:
    """Decision thresholds of the rule-based agents.

    Defaults are the policy; tune them only when a suite's profile data is
    systematically skewed (e.g. a slow CI box inflating runtimes).

    Attributes:
        Intent classification (used only when the spec type is unknown):
            intent_fast_runtime_ms: Runtime at or below this is a unit signal
            intent_slow_runtime_ms: Runtime above this is an integration signal
            intent_light_query_max: Total queries at or below this is a unit signal
            intent_heavy_query_min: Total queries above this is an integration signal
            intent_light_factory_max: Factory instances at or below this (with no
                create strategy) is a unit signal
            intent_heavy_factory_min: Factory instances above this is an
                integration signal
            intent_heavy_create_min: Create-strategy factories above this is an
                integration signal
            intent_min_signals: Signals needed before the dominant side wins

        Risk assessment:
            risk_callback_chain_min: Distinct callback events that make a chain
    """

    # === Intent (unknown spec type) ===
    intent_fast_runtime_ms: float = 10.0
    intent_slow_runtime_ms: float = 100.0
    intent_light_query_max: int = 2
    intent_heavy_query_min: int = 10
    intent_light_factory_max: int = 1
    intent_heavy_factory_min: int = 5
    intent_heavy_create_min: int = 3
    intent_min_signals: int = 2

    # === Risk ===
    risk_callback_chain_min: int = 2

    def __post_init__(self) -> None:
        """Validate threshold configuration."""
        if self.intent_fast_runtime_ms < 0:
            raise ValueError("intent_fast_runtime_ms must be non-negative")
        if self.intent_slow_runtime_ms < self.intent_fast_runtime_ms:
            raise ValueError("intent_slow_runtime_ms must be >= intent_fast_runtime_ms")
        if self.intent_heavy_query_min < self.intent_light_query_max:
            raise ValueError("intent_heavy_query_min must be >= intent_light_query_max")
        if self.intent_heavy_factory_min < self.intent_light_factory_max:
            raise ValueError("intent_heavy_factory_min must be >= intent_light_factory_max")
        if self.intent_min_signals < 1:
            raise ValueError("intent_min_signals must be at least 1")
        if self.risk_callback_chain_min < 2:
            raise ValueError("risk_callback_chain_min must be at least 2")


# Default threshold configuration (singleton)
DEFAULT_THRESHOLDS = ThresholdConfig()


@dataclass(frozen=True)
class ScoutConfig:
    """Configuration for one analysis run.

    Attributes:
        Agents:
            enabled_agents: Rule-based agents to run
            parallel_agents: Run the agents of one example on a thread pool

        Safety and enforcement:
            enforcement_mode: Fail the run (non-zero exit) on high-confidence
                actionable recommendations
            fail_on_high_confidence: CI request to fail on high confidence
            auto_apply_enabled: Request automatic source mutation; can never be
                combined with either failure flag
            blocking_mode_enabled: Allow the run to block the build

        Output:
            output_format: console | json | github
            verbosity: Logging verbosity level

        Model-backed agents:
            llm_agents: Concerns to analyze with a model-backed agent
            llm_model: Model name sent to the provider
            llm_base_url: OpenAI-compatible endpoint (None = provider default)
            llm_timeout_seconds: Per-call timeout; on expiry the agent abstains
    """

    enabled_agents: tuple[str, ...] = RULE_BASED_AGENTS
    parallel_agents: bool = False

    enforcement_mode: bool = False
    fail_on_high_confidence: bool = False
    auto_apply_enabled: bool = False
    blocking_mode_enabled: bool = False

    output_format: OutputFormat = "console"
    verbosity: Verbosity = "normal"

    llm_agents: tuple[str, ...] = ()
    llm_model: str = "gpt-4o-mini"
    llm_base_url: Optional[str] = None
    llm_timeout_seconds: float = 30.0

    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        # TOML and env sources hand over lists
        object.__setattr__(self, "enabled_agents", tuple(self.enabled_agents))
        object.__setattr__(self, "llm_agents", tuple(self.llm_agents))

        for name in self.enabled_agents:
            if name not in RULE_BASED_AGENTS:
                raise InvalidConfigError(
                    "enabled_agents", name, f"valid agents: {', '.join(RULE_BASED_AGENTS)}"
                )
        for name in self.llm_agents:
            if name not in RULE_BASED_AGENTS:
                raise InvalidConfigError(
                    "llm_agents", name, f"valid concerns: {', '.join(RULE_BASED_AGENTS)}"
                )
        if self.output_format not in OUTPUT_FORMATS:
            raise InvalidConfigError(
                "output_format", self.output_format, f"valid formats: {', '.join(OUTPUT_FORMATS)}"
            )
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "expected quiet/normal/verbose")
        if self.llm_timeout_seconds <= 0:
            raise InvalidConfigError(
                "llm_timeout_seconds", self.llm_timeout_seconds, "must be positive"
            )

        # Unsafe flag combinations are fatal before any analysis runs
        from .safety import validate_configuration

        validate_configuration(self)

    def agent_enabled(self, name: str) -> bool:
        return name in self.enabled_agents

    @property
    def enforcement_enabled(self) -> bool:
        return self.enforcement_mode


def load_config(config_file: Optional[Path] = None, **overrides) -> ScoutConfig:
    """Load configuration with auto-discovery and merging.

    Configuration sources are merged in priority order (lowest to highest):
        1. Defaults (ScoutConfig field defaults)
        2. Global config (~/.spec-scout.toml)
        3. Project config (./spec-scout.toml)
        4. Explicit config file (if config_file provided)
        5. Environment variables (SPEC_SCOUT_* prefix)
        6. CLI overrides (kwargs)

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated ScoutConfig instance

    Raises:
        SpecScoutError: If a config source is invalid or missing
        UnsafeConfigurationError: If the merged flags are an unsafe combination
    """
    merged: dict = {}

    global_config = Path.home() / ".spec-scout.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config, "global config"))

    project_config = Path.cwd() / "spec-scout.toml"
    if project_config.exists():
        merged.update(_load_toml_file(project_config, "project config"))

    if config_file is not None:
        if not config_file.exists():
            raise SpecScoutError(f"Config file not found: {config_file}")
        merged.update(_load_toml_file(config_file, "config file"))

    merged.update(_load_env_vars())

    # Convert verbosity boolean flags to string
    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    # Handle [thresholds] section from TOML
    thresholds_dict = merged.pop("thresholds", None)
    if thresholds_dict is not None:
        if isinstance(thresholds_dict, dict):
            try:
                merged["thresholds"] = ThresholdConfig(**thresholds_dict)
            except (TypeError, ValueError) as e:
                raise SpecScoutError(f"Invalid [thresholds] config: {e}")
        elif isinstance(thresholds_dict, ThresholdConfig):
            merged["thresholds"] = thresholds_dict

    try:
        return ScoutConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise SpecScoutError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from SPEC_SCOUT_* environment variables.

    Supported environment variables:
        SPEC_SCOUT_ENABLED_AGENTS: comma-separated agent names
        SPEC_SCOUT_PARALLEL_AGENTS: bool (true/false/1/0)
        SPEC_SCOUT_ENFORCEMENT_MODE: bool
        SPEC_SCOUT_FAIL_ON_HIGH_CONFIDENCE: bool
        SPEC_SCOUT_AUTO_APPLY_ENABLED: bool
        SPEC_SCOUT_BLOCKING_MODE_ENABLED: bool
        SPEC_SCOUT_OUTPUT_FORMAT: console/json/github
        SPEC_SCOUT_VERBOSITY: quiet/normal/verbose
        SPEC_SCOUT_LLM_AGENTS: comma-separated concerns
        SPEC_SCOUT_LLM_MODEL: str
        SPEC_SCOUT_LLM_BASE_URL: str
        SPEC_SCOUT_LLM_TIMEOUT_SECONDS: float

    Returns:
        Dict of field_name -> parsed_value for any SPEC_SCOUT_* vars found.
    """
    type_hints = get_type_hints(ScoutConfig)

    result: dict[str, Any] = {}

    for field_name in ScoutConfig.__dataclass_fields__:
        env_key = f"SPEC_SCOUT_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns:
        Parsed value or None if the field can't be set from the environment

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    # Tuples of names: comma-separated
    if origin is tuple:
        return tuple(part.strip() for part in value.split(",") if part.strip())

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    # String (including Literal types like Verbosity)
    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path, label: str) -> dict:
    """Load a TOML file, flattening an optional ``[spec_scout]`` table."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise SpecScoutError(f"Invalid {label} '{path}': {e}")

    section = data.get("spec_scout")
    if isinstance(section, dict):
        return section
    return data
