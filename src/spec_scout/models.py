"""Data models: profile records, agent verdicts and recommendations.

All models are frozen dataclasses. A ``ProfileRecord`` is created once per test
example by the normalizer, every agent turns it into a ``Verdict``, and the
consensus engine folds the verdicts into a single ``Recommendation``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class SpecType(str, Enum):
    """Kind of spec, inferred from the example location."""

    MODEL = "model"
    CONTROLLER = "controller"
    REQUEST = "request"
    FEATURE = "feature"
    INTEGRATION = "integration"
    SYSTEM = "system"
    LIB = "lib"
    HELPER = "helper"
    VIEW = "view"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> SpecType:
        """Map a raw value onto a spec type, ``UNKNOWN`` when unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN

    @classmethod
    def from_location(cls, location: str) -> SpecType:
        """Infer the spec type from a ``spec/<dir>/`` path segment."""
        for pattern, spec_type in _LOCATION_PATTERNS:
            if pattern.search(location or ""):
                return spec_type
        return cls.UNKNOWN


_LOCATION_PATTERNS = [
    (re.compile(r"spec/models/"), SpecType.MODEL),
    (re.compile(r"spec/controllers/"), SpecType.CONTROLLER),
    (re.compile(r"spec/requests/"), SpecType.REQUEST),
    (re.compile(r"spec/features/"), SpecType.FEATURE),
    (re.compile(r"spec/integration/"), SpecType.INTEGRATION),
    (re.compile(r"spec/system/"), SpecType.SYSTEM),
    (re.compile(r"spec/lib/"), SpecType.LIB),
    (re.compile(r"spec/helpers/"), SpecType.HELPER),
    (re.compile(r"spec/views/"), SpecType.VIEW),
]


class FactoryStrategy(str, Enum):
    """Fixture construction mode of a factory."""

    CREATE = "create"
    BUILD = "build"
    BUILD_STUBBED = "build_stubbed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> FactoryStrategy:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """2 for high, 1 for medium, 0 for low."""
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {Confidence.HIGH: 2, Confidence.MEDIUM: 1, Confidence.LOW: 0}


class VerdictKind(str, Enum):
    """Outcome reported by an agent for one concern."""

    DB_UNNECESSARY = "db_unnecessary"
    DB_REQUIRED = "db_required"
    PREFER_BUILD_STUBBED = "prefer_build_stubbed"
    UNIT_TEST_BEHAVIOR = "unit_test_behavior"
    INTEGRATION_TEST_BEHAVIOR = "integration_test_behavior"
    SAFE_TO_OPTIMIZE = "safe_to_optimize"
    RISK_DETECTED = "risk_detected"
    NO_ACTION = "no_action"


# Verdicts pointing towards "optimize persistence".
SUPPORTING_VERDICTS = frozenset(
    {
        VerdictKind.DB_UNNECESSARY,
        VerdictKind.PREFER_BUILD_STUBBED,
        VerdictKind.UNIT_TEST_BEHAVIOR,
        VerdictKind.SAFE_TO_OPTIMIZE,
    }
)

# Verdicts pointing away from it. RISK_DETECTED is a veto, handled separately.
OPPOSING_VERDICTS = frozenset(
    {
        VerdictKind.DB_REQUIRED,
        VerdictKind.INTEGRATION_TEST_BEHAVIOR,
    }
)


class Action(str, Enum):
    """Recommended change for a test example."""

    NO_ACTION = "no_action"
    REPLACE_FACTORY_STRATEGY = "replace_factory_strategy"


def _non_negative_int(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _non_negative_float(value: Any) -> float:
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return 0.0


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _frozen_mapping(value: Any) -> Mapping[str, Any]:
    """Read-only copy of a mapping field."""
    return MappingProxyType(dict(value or {}))


# ---------------------------------------------------------------------------
# Profile record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FactoryUsage:
    strategy: FactoryStrategy = FactoryStrategy.UNKNOWN
    count: int = 0
    time: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FactoryUsage:
        return cls(
            strategy=FactoryStrategy.parse(data.get("strategy")),
            count=_non_negative_int(data.get("count", 0)),
            time=_non_negative_float(data.get("time", 0.0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"strategy": self.strategy.value, "count": self.count, "time": self.time}


@dataclass(frozen=True)
class DbCounts:
    """Database query counters.

    ``total_queries`` is reported by the driver and need not equal the sum of
    the per-statement counters; some drivers double-count.
    """

    total_queries: int = 0
    inserts: int = 0
    selects: int = 0
    updates: int = 0
    deletes: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DbCounts:
        return cls(
            total_queries=_non_negative_int(data.get("total_queries", 0)),
            inserts=_non_negative_int(data.get("inserts", 0)),
            selects=_non_negative_int(data.get("selects", 0)),
            updates=_non_negative_int(data.get("updates", 0)),
            deletes=_non_negative_int(data.get("deletes", 0)),
        )

    @property
    def writes(self) -> int:
        return self.inserts + self.updates + self.deletes

    def to_dict(self) -> dict[str, int]:
        return {
            "total_queries": self.total_queries,
            "inserts": self.inserts,
            "selects": self.selects,
            "updates": self.updates,
            "deletes": self.deletes,
        }


@dataclass(frozen=True)
class EventSample:
    """One captured occurrence of an instrumented event."""

    sql: Optional[str] = None
    time: Optional[float] = None
    location: Optional[str] = None
    backtrace: tuple[str, ...] = ()

    @classmethod
    def from_value(cls, value: Any) -> EventSample:
        if isinstance(value, str):
            return cls(sql=value)
        if not isinstance(value, Mapping):
            return cls()
        backtrace = value.get("backtrace") or ()
        if isinstance(backtrace, str):
            backtrace = (backtrace,)
        time = value.get("time")
        return cls(
            sql=_optional_str(value.get("sql")),
            time=_non_negative_float(time) if time is not None else None,
            location=_optional_str(value.get("location")),
            backtrace=tuple(str(line) for line in backtrace),
        )

    def text(self) -> str:
        """All textual evidence of this sample, joined for pattern scans."""
        parts = [self.sql or "", self.location or "", *self.backtrace]
        return " ".join(p for p in parts if p)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.sql is not None:
            data["sql"] = self.sql
        if self.time is not None:
            data["time"] = self.time
        if self.location is not None:
            data["location"] = self.location
        if self.backtrace:
            data["backtrace"] = list(self.backtrace)
        return data


@dataclass(frozen=True)
class EventStats:
    count: int = 0
    time: float = 0.0
    examples: tuple[EventSample, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EventStats:
        examples = data.get("examples") or ()
        if not isinstance(examples, (list, tuple)):
            examples = ()
        return cls(
            count=_non_negative_int(data.get("count", 0)),
            time=_non_negative_float(data.get("time", 0.0)),
            examples=tuple(EventSample.from_value(e) for e in examples),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "time": self.time,
            "examples": [e.to_dict() for e in self.examples],
        }


@dataclass(frozen=True)
class ProfileRecord:
    """Normalized performance snapshot of one test example."""

    location: str = ""
    spec_type: SpecType = SpecType.UNKNOWN
    runtime_ms: float = 0.0
    factories: Mapping[str, FactoryUsage] = field(default_factory=dict)
    db: DbCounts = field(default_factory=DbCounts)
    events: Mapping[str, EventStats] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.runtime_ms < 0:
            raise ValueError("runtime_ms must be non-negative")
        # Agents share one record, possibly across threads
        object.__setattr__(self, "factories", _frozen_mapping(self.factories))
        object.__setattr__(self, "events", _frozen_mapping(self.events))
        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProfileRecord:
        """Build a record from a mapping in the normalized shape.

        Missing fields default to empty values, negative numbers are clamped
        to zero and unrecognized enum strings become ``unknown``. When no spec
        type is given it is inferred from the location.
        """
        location = str(data.get("location") or data.get("example_location") or "")
        spec_type = SpecType.parse(data.get("spec_type"))
        if spec_type is SpecType.UNKNOWN:
            spec_type = SpecType.from_location(location)

        factories_raw = data.get("factories") or {}
        events_raw = data.get("events") or {}
        db_raw = data.get("db") or {}
        metadata = data.get("metadata") or {}

        return cls(
            location=location,
            spec_type=spec_type,
            runtime_ms=_non_negative_float(data.get("runtime_ms", 0.0)),
            factories={
                str(name): FactoryUsage.from_dict(info)
                for name, info in factories_raw.items()
                if isinstance(info, Mapping)
            },
            db=DbCounts.from_dict(db_raw) if isinstance(db_raw, Mapping) else DbCounts(),
            events={
                str(name): EventStats.from_dict(info)
                for name, info in events_raw.items()
                if isinstance(info, Mapping)
            },
            metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
        )

    def create_factories(self) -> dict[str, FactoryUsage]:
        """Factories built with the ``create`` strategy at least once."""
        return {
            name: usage
            for name, usage in self.factories.items()
            if usage.strategy is FactoryStrategy.CREATE and usage.count > 0
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.location,
            "spec_type": self.spec_type.value,
            "runtime_ms": self.runtime_ms,
            "factories": {name: f.to_dict() for name, f in self.factories.items()},
            "db": self.db.to_dict(),
            "events": {name: e.to_dict() for name, e in self.events.items()},
            "metadata": dict(self.metadata),
        }


# ---------------------------------------------------------------------------
# Agent output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Verdict:
    """Output of one agent for one profile."""

    agent_name: str
    verdict: VerdictKind = VerdictKind.NO_ACTION
    confidence: Confidence = Confidence.LOW
    reasoning: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))

    @property
    def actionable(self) -> bool:
        return self.verdict is not VerdictKind.NO_ACTION

    @property
    def supports_optimization(self) -> bool:
        return self.verdict in SUPPORTING_VERDICTS

    @property
    def opposes_optimization(self) -> bool:
        return self.verdict in OPPOSING_VERDICTS

    @property
    def failed(self) -> bool:
        return bool(self.metadata.get("error"))

    def is_valid(self) -> bool:
        if not isinstance(self.agent_name, str) or not self.agent_name:
            return False
        if not isinstance(self.verdict, VerdictKind):
            return False
        if not isinstance(self.confidence, Confidence):
            return False
        if not isinstance(self.reasoning, str) or not isinstance(self.metadata, Mapping):
            return False
        if self.actionable and not self.reasoning.strip():
            return False
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_name": self.agent_name,
            "verdict": self.verdict.value,
            "confidence": self.confidence.value,
            "reasoning": self.reasoning,
            "metadata": dict(self.metadata),
        }


# Name used by the profiling integrations for the same record.
AgentResult = Verdict


# ---------------------------------------------------------------------------
# Consensus output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Recommendation:
    """Final, explainable suggestion for one test example."""

    spec_location: str = ""
    action: Action = Action.NO_ACTION
    from_value: str = ""
    to_value: str = ""
    confidence: Confidence = Confidence.LOW
    explanation: tuple[str, ...] = ()
    agent_results: tuple[Verdict, ...] = ()

    def is_actionable(self) -> bool:
        return self.action is not Action.NO_ACTION

    def is_valid(self) -> bool:
        if not isinstance(self.action, Action):
            return False
        return all(isinstance(r, Verdict) and r.is_valid() for r in self.agent_results)

    @property
    def high_confidence(self) -> bool:
        return self.confidence is Confidence.HIGH

    def to_dict(self) -> dict[str, Any]:
        return {
            "spec_location": self.spec_location,
            "action": self.action.value,
            "from_value": self.from_value,
            "to_value": self.to_value,
            "confidence": self.confidence.value,
            "explanation": list(self.explanation),
            "agent_results": [r.to_dict() for r in self.agent_results],
        }


@dataclass(frozen=True)
class ExampleResult:
    """One analyzed example, as handed to the formatters."""

    profile: ProfileRecord
    recommendation: Recommendation
