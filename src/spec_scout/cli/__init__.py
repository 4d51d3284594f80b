"""CLI entry point: registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="spec-scout",
    help="Spec Scout - explainable test fixture optimization from profile data",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.command()
def version():
    """Show the installed version."""
    console.print(f"spec-scout {__version__}")


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402


def main() -> None:
    app()
