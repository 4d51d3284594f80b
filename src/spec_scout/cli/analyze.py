"""Analyze command: profile file in, recommendations and exit status out."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape

from ..api import analyze_batch, build_registry
from ..exceptions import SpecScoutError
from ..formatters import RichFormatter, get_formatter
from ..llm import OpenAIProvider
from ..logging_config import setup_logging
from ..normalizer import load_profiles
from ..safety import SafetyPolicy
from . import app
from ._common import console, resolve_config


def _spec_paths(locations: List[str]) -> List[Path]:
    """Spec files named by example locations (``path:line``)."""
    return [Path(loc.partition(":")[0]) for loc in locations if loc]


@app.command()
def analyze(
    profile_file: Path = typer.Argument(
        ...,
        help="JSON file with per-example profiles (normalized or TestProf output)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="TOML configuration file",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: console | json | github",
    ),
    input_format: str = typer.Option(
        "auto",
        "--input-format",
        help="Input shape: auto | profile | testprof",
    ),
    enforce: bool = typer.Option(
        False,
        "--enforce",
        help="Exit 1 when any recommendation is high-confidence and actionable",
    ),
    fail_on_high_confidence: bool = typer.Option(
        False,
        "--fail-on-high-confidence",
        help="Ask CI to fail on high-confidence recommendations",
    ),
    auto_apply: bool = typer.Option(
        False,
        "--auto-apply",
        help="Request automatic application (refused together with enforcement)",
    ),
    enable_agent: Optional[List[str]] = typer.Option(
        None,
        "--enable-agent",
        help="Run only these rule-based agents (repeatable)",
    ),
    disable_agent: Optional[List[str]] = typer.Option(
        None,
        "--disable-agent",
        help="Skip a rule-based agent (repeatable)",
    ),
    parallel: bool = typer.Option(
        False,
        "--parallel",
        help="Run the agents of each example concurrently",
    ),
    llm_agent: Optional[List[str]] = typer.Option(
        None,
        "--llm-agent",
        help="Add a model-backed agent for a concern (repeatable)",
    ),
    llm_model: Optional[str] = typer.Option(None, "--llm-model", help="Model name"),
    llm_base_url: Optional[str] = typer.Option(
        None,
        "--llm-base-url",
        help="OpenAI-compatible endpoint",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Errors only"),
):
    """
    Analyze test profiles and recommend fixture optimizations.

    [bold cyan]Examples:[/bold cyan]

      spec-scout analyze profiles.json

      spec-scout analyze testprof.json --input-format testprof -o json

      spec-scout analyze profiles.json --enforce -o github
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        settings = resolve_config(
            config=config,
            output=output,
            enforce=enforce,
            fail_on_high_confidence=fail_on_high_confidence,
            auto_apply=auto_apply,
            enable_agents=enable_agent,
            disable_agents=disable_agent,
            parallel=parallel,
            llm_agents=llm_agent,
            llm_model=llm_model,
            llm_base_url=llm_base_url,
            verbose=verbose,
            quiet=quiet,
        )
        policy = SafetyPolicy(settings)

        profiles = load_profiles(profile_file, input_format)
        policy.watch(_spec_paths([p.location for p in profiles]))

        provider = None
        if settings.llm_agents:
            provider = OpenAIProvider(
                model=settings.llm_model,
                base_url=settings.llm_base_url,
                timeout=settings.llm_timeout_seconds,
            )
        registry = build_registry(settings, provider)

        results = analyze_batch(profiles, settings, registry)
        policy.verify_unmodified()
        report = policy.enforce(r.recommendation for r in results)

    except SpecScoutError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(130)

    formatter = get_formatter(settings.output_format)
    if isinstance(formatter, RichFormatter):
        formatter.console = console
    formatter.render(results, settings, report)

    logger.debug(f"Exit code {report.exit_code}")
    raise typer.Exit(report.exit_code)
