"""Shared CLI helpers."""

from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console

from ..config import ScoutConfig, load_config

console = Console()


def resolve_config(
    config: Optional[Path] = None,
    output: Optional[str] = None,
    enforce: bool = False,
    fail_on_high_confidence: bool = False,
    auto_apply: bool = False,
    enable_agents: Optional[List[str]] = None,
    disable_agents: Optional[List[str]] = None,
    parallel: bool = False,
    llm_agents: Optional[List[str]] = None,
    llm_model: Optional[str] = None,
    llm_base_url: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> ScoutConfig:
    """Build the run configuration from CLI options.

    Flags only ever switch things on; leaving one off keeps the value from
    config files and the environment.
    """
    overrides = {
        "output_format": output,
        "llm_model": llm_model,
        "llm_base_url": llm_base_url,
        "verbose": verbose,
        "quiet": quiet,
    }
    if enforce:
        overrides["enforcement_mode"] = True
    if fail_on_high_confidence:
        overrides["fail_on_high_confidence"] = True
    if auto_apply:
        overrides["auto_apply_enabled"] = True
    if parallel:
        overrides["parallel_agents"] = True
    if llm_agents:
        overrides["llm_agents"] = tuple(llm_agents)

    enabled = _without(enable_agents, disable_agents) if enable_agents else None
    if enabled is not None:
        overrides["enabled_agents"] = enabled
    elif disable_agents:
        # Disabling applies on top of whatever the config sources enable
        base = load_config(config_file=config, **dict(overrides))
        overrides["enabled_agents"] = _without(base.enabled_agents, disable_agents)

    return load_config(config_file=config, **overrides)


def _without(agents: Iterable[str], removed: Optional[Iterable[str]]) -> tuple:
    removed = set(removed or ())
    return tuple(dict.fromkeys(a for a in agents if a not in removed))
