"""Output formatters for Spec Scout."""

from .base import BaseFormatter
from .github_formatter import GithubFormatter
from .json_formatter import JsonFormatter
from .rich_formatter import RichFormatter


def get_formatter(name: str) -> BaseFormatter:
    """Get a formatter instance by name.

    Args:
        name: One of "console" (alias "rich"), "json", "github"

    Raises:
        ValueError: If name is not recognized
    """
    formatters = {
        "console": RichFormatter,
        "rich": RichFormatter,
        "json": JsonFormatter,
        "github": GithubFormatter,
    }
    cls = formatters.get(name)
    if cls is None:
        raise ValueError(f"Unknown formatter: {name!r}. Choose from: {', '.join(sorted(formatters))}")
    return cls()


__all__ = [
    "BaseFormatter",
    "RichFormatter",
    "JsonFormatter",
    "GithubFormatter",
    "get_formatter",
]
