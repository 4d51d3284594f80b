"""Base formatter interface for Spec Scout output rendering."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..config import ScoutConfig
from ..models import ExampleResult
from ..safety import EnforcementReport


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def render(
        self,
        results: List[ExampleResult],
        config: ScoutConfig,
        report: Optional[EnforcementReport] = None,
    ) -> None:
        """Write the formatted results to stdout."""

    @abstractmethod
    def format(
        self,
        results: List[ExampleResult],
        config: ScoutConfig,
        report: Optional[EnforcementReport] = None,
    ) -> str:
        """Return formatted string representation of results."""
