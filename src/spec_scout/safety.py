"""Safety policy: configuration guard, enforcement exit status, mutation watch.

The policy never alters recommendations. It decides whether a configuration
may run at all and whether a finished run should fail the build.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Optional

from .exceptions import SafetyViolationError, UnsafeConfigurationError
from .logging_config import get_logger
from .models import Recommendation

if TYPE_CHECKING:
    from .config import ScoutConfig

logger = get_logger(__name__)


def validate_configuration(config: Any) -> None:
    """Reject configurations that could mutate source while failing builds.

    Raises:
        UnsafeConfigurationError: auto-apply combined with enforcement_mode or
            fail_on_high_confidence
    """
    if not getattr(config, "auto_apply_enabled", False):
        return

    conflicts = tuple(
        flag
        for flag in ("enforcement_mode", "fail_on_high_confidence")
        if getattr(config, flag, False)
    )
    if conflicts:
        raise UnsafeConfigurationError(
            f"auto_apply_enabled cannot be combined with {' or '.join(conflicts)}",
            flags=("auto_apply_enabled",) + conflicts,
        )


def qualifies_for_enforcement(recommendation: Recommendation) -> bool:
    return recommendation.high_confidence and recommendation.is_actionable()


def evaluate_enforcement(recommendations: Iterable[Recommendation], enforcement_mode: bool) -> int:
    """Exit status for a finished run: 1 iff enforcing and something qualifies."""
    if not enforcement_mode:
        return 0
    return 1 if any(qualifies_for_enforcement(r) for r in recommendations) else 0


@dataclass(frozen=True)
class EnforcementReport:
    exit_code: int
    failing: tuple[Recommendation, ...]
    message: str

    @property
    def failed(self) -> bool:
        return self.exit_code != 0


@dataclass(frozen=True)
class _FileState:
    mtime: float
    size: int
    checksum: str


def _file_state(path: Path) -> _FileState:
    stat = path.stat()
    checksum = hashlib.sha256(path.read_bytes()).hexdigest()
    return _FileState(mtime=stat.st_mtime, size=stat.st_size, checksum=checksum)


class SafetyPolicy:
    """Applies the safety rules of one configuration.

    Construction re-validates the configuration so that a policy can never
    exist for an unsafe flag combination.
    """

    def __init__(self, config: ScoutConfig) -> None:
        validate_configuration(config)
        self.config = config
        self._watched: dict[Path, _FileState] = {}

    @property
    def enforcement_enabled(self) -> bool:
        return self.config.enforcement_mode

    def enforce(self, recommendations: Iterable[Recommendation]) -> EnforcementReport:
        recommendations = list(recommendations)
        exit_code = evaluate_enforcement(recommendations, self.enforcement_enabled)
        failing = tuple(r for r in recommendations if qualifies_for_enforcement(r))

        if not self.enforcement_enabled:
            message = "Enforcement disabled: recommendations are advisory"
        elif exit_code:
            lines = [
                f"Enforcement failed: {len(failing)} high-confidence recommendation(s) need action"
            ]
            lines.extend(
                f"  {r.spec_location or '<unknown>'}: {r.from_value} -> {r.to_value}"
                for r in failing
            )
            message = "\n".join(lines)
        else:
            message = "Enforcement passed: no high-confidence recommendations"

        if self.enforcement_enabled:
            logger.info(message.splitlines()[0])
        return EnforcementReport(
            exit_code=exit_code,
            failing=failing if self.enforcement_enabled else (),
            message=message,
        )

    # -- mutation watch ---------------------------------------------------

    def watch(self, paths: Iterable[Path]) -> int:
        """Record the state of existing files so later changes can be detected."""
        for path in paths:
            path = Path(path)
            if path.is_file() and path not in self._watched:
                self._watched[path] = _file_state(path)
        return len(self._watched)

    def mutations(self) -> list[Path]:
        changed = []
        for path, before in self._watched.items():
            if not path.exists():
                changed.append(path)
                continue
            after = _file_state(path)
            if after != before:
                changed.append(path)
        return changed

    def verify_unmodified(self) -> None:
        """Raises:
        SafetyViolationError: If a watched file changed during analysis
        """
        changed = self.mutations()
        if changed:
            raise SafetyViolationError([str(p) for p in changed])

    def status(self, include_mutations: Optional[bool] = None) -> dict[str, Any]:
        auto_apply_disabled = not self.config.auto_apply_enabled
        non_blocking = not self.config.blocking_mode_enabled
        status: dict[str, Any] = {
            "safe_mode": auto_apply_disabled and non_blocking,
            "auto_apply_disabled": auto_apply_disabled,
            "non_blocking_mode": non_blocking,
            "enforcement_mode": self.enforcement_enabled,
            "monitored_files": len(self._watched),
        }
        if include_mutations or (include_mutations is None and self._watched):
            status["mutations_detected"] = bool(self.mutations())
        return status
