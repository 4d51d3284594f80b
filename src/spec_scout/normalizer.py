"""Convert raw TestProf-style profiler output into ``ProfileRecord`` objects.

Raw shape (every key optional)::

    {
      "factory_prof": {"stats": {...}, "factories": {...}, "error": "..."},
      "db_queries": {"total_queries": 8, "inserts": 3, ...},
      "event_prof": {"events": {"sql.active_record": {"count": 2, "examples": [...]}}},
      "metadata": {...}
    }

The example context supplies what the profiler does not know: location,
runtime and descriptive tags.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional

from .exceptions import NormalizationError
from .logging_config import get_logger
from .models import (
    DbCounts,
    EventSample,
    EventStats,
    FactoryStrategy,
    FactoryUsage,
    ProfileRecord,
    SpecType,
    _non_negative_float,
    _non_negative_int,
)

logger = get_logger(__name__)

INPUT_FORMATS = ("auto", "profile", "testprof")

_RAW_KEYS = ("factory_prof", "db_queries", "event_prof")
_ERROR_SOURCES = ("factory_prof", "event_prof", "db_queries")
_CONTEXT_KEYS = ("example_group", "tags", "description")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _positive(value: Any) -> bool:
    return _is_number(value) and value > 0


def detect_strategy(info: Mapping[str, Any]) -> FactoryStrategy:
    """Resolve a factory's strategy, first match wins.

    Order: explicit ``strategy``, ``create_count`` > 0, ``build_count`` > 0,
    ``build_stubbed_count`` > 0, explicit ``method``, unknown.
    """
    if info.get("strategy"):
        return FactoryStrategy.parse(info["strategy"])
    if _positive(info.get("create_count")):
        return FactoryStrategy.CREATE
    if _positive(info.get("build_count")):
        return FactoryStrategy.BUILD
    if _positive(info.get("build_stubbed_count")):
        return FactoryStrategy.BUILD_STUBBED
    if info.get("method"):
        return FactoryStrategy.parse(info["method"])
    return FactoryStrategy.UNKNOWN


class ProfileNormalizer:
    """Stateless converter from raw profiler output to profile records."""

    def normalize(
        self, raw: Any, context: Optional[Mapping[str, Any]] = None
    ) -> ProfileRecord:
        """Normalize one example.

        Raises:
            NormalizationError: If ``raw`` is not a mapping or a section has
                an unusable shape
        """
        if not isinstance(raw, Mapping):
            raise NormalizationError(f"profile data must be a mapping, got {type(raw).__name__}")
        context = context or {}
        if not isinstance(context, Mapping):
            raise NormalizationError(f"example context must be a mapping, got {type(context).__name__}")

        location = str(context.get("location") or context.get("file_path") or "")
        try:
            return ProfileRecord(
                location=location,
                spec_type=SpecType.from_location(location),
                runtime_ms=self._runtime(raw, context),
                factories=self._factories(raw.get("factory_prof")),
                db=self._db(raw.get("db_queries")),
                events=self._events(raw.get("event_prof")),
                metadata=self._metadata(raw, context),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise NormalizationError(str(e), source=location)

    @staticmethod
    def _runtime(raw: Mapping[str, Any], context: Mapping[str, Any]) -> float:
        metadata = raw.get("metadata") if isinstance(raw.get("metadata"), Mapping) else {}
        runtime = context.get("runtime")
        if runtime is None:
            runtime = context.get("duration")
        if runtime is None:
            runtime = metadata.get("runtime", 0)
        if not _is_number(runtime) or runtime < 0:
            return 0.0
        # Sub-1 values come from timers reporting seconds
        if runtime < 1:
            return round(runtime * 1000, 2)
        return round(float(runtime), 2)

    @staticmethod
    def _factories(section: Any) -> dict[str, FactoryUsage]:
        if not isinstance(section, Mapping):
            return {}

        factories: dict[str, FactoryUsage] = {}

        stats = section.get("stats") or {}
        for name, info in stats.items():
            if not isinstance(info, Mapping):
                continue
            factories[str(name)] = FactoryUsage(
                strategy=FactoryStrategy.parse(info.get("strategy") or "unknown"),
                count=_non_negative_int(info.get("count", 0)),
                time=_non_negative_float(info.get("time", 0.0)),
            )

        detailed = section.get("factories") or {}
        for name, info in detailed.items():
            factories[str(name)] = _single_factory(info)

        return factories

    @staticmethod
    def _db(section: Any) -> DbCounts:
        if not isinstance(section, Mapping):
            return DbCounts()
        return DbCounts.from_dict(
            {key: value for key, value in section.items() if _is_number(value)}
        )

    @staticmethod
    def _events(section: Any) -> dict[str, EventStats]:
        if not isinstance(section, Mapping):
            return {}
        events = section.get("events")
        if not isinstance(events, Mapping):
            return {}

        normalized: dict[str, EventStats] = {}
        for name, info in events.items():
            if not isinstance(info, Mapping):
                continue
            examples = info.get("examples")
            if not isinstance(examples, list):
                examples = []
            normalized[str(name)] = EventStats(
                count=_non_negative_int(info.get("count", 0)),
                time=_non_negative_float(info.get("time", 0.0)),
                examples=tuple(EventSample.from_value(e) for e in examples),
            )
        return normalized

    @staticmethod
    def _metadata(raw: Mapping[str, Any], context: Mapping[str, Any]) -> dict[str, Any]:
        metadata: dict[str, Any] = {}
        if isinstance(raw.get("metadata"), Mapping):
            metadata.update(raw["metadata"])

        for key in _CONTEXT_KEYS:
            if context.get(key):
                metadata[key] = context[key]

        for source in _ERROR_SOURCES:
            section = raw.get(source)
            if isinstance(section, Mapping) and section.get("error"):
                metadata[f"{source}_error"] = section["error"]
                logger.warning(f"{source} reported an error: {section['error']}")

        return metadata


def _single_factory(info: Any) -> FactoryUsage:
    if isinstance(info, Mapping):
        count = info.get("count")
        if count is None:
            count = info.get("total", 1)
        time = info.get("time")
        if time is None:
            time = info.get("duration", 0.0)
        return FactoryUsage(
            strategy=detect_strategy(info),
            count=_non_negative_int(count),
            time=_non_negative_float(time),
        )
    if _is_number(info):
        return FactoryUsage(strategy=FactoryStrategy.UNKNOWN, count=_non_negative_int(info))
    return FactoryUsage(strategy=FactoryStrategy.UNKNOWN, count=1)


def is_raw_profile(entry: Mapping[str, Any]) -> bool:
    return any(key in entry for key in _RAW_KEYS)


def load_profiles(path: Path, input_format: str = "auto") -> list[ProfileRecord]:
    """Read profile records from a JSON file.

    The file holds either a list of entries or ``{"examples": [...]}``. In
    ``profile`` format each entry is a normalized record. In ``testprof``
    format each entry is raw profiler output, with the example context under
    ``"context"`` or as top-level ``location``/``runtime`` keys. ``auto``
    decides per entry.

    Raises:
        NormalizationError: If the file is missing, not JSON, or has the wrong shape
    """
    if input_format not in INPUT_FORMATS:
        raise NormalizationError(
            f"unknown input format '{input_format}' (expected {', '.join(INPUT_FORMATS)})"
        )

    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise NormalizationError("file not found", source=str(path))
    except (OSError, json.JSONDecodeError) as e:
        raise NormalizationError(f"cannot read JSON: {e}", source=str(path))

    if isinstance(data, Mapping) and "examples" in data:
        data = data["examples"]
    if not isinstance(data, list):
        raise NormalizationError("expected a list of examples", source=str(path))

    normalizer = ProfileNormalizer()
    records: list[ProfileRecord] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, Mapping):
            raise NormalizationError(
                f"example {index} must be an object, got {type(entry).__name__}",
                source=str(path),
            )
        raw_entry = input_format == "testprof" or (
            input_format == "auto" and is_raw_profile(entry)
        )
        if raw_entry:
            context = entry.get("context")
            if context is None:
                context = {
                    key: entry[key]
                    for key in ("location", "file_path", "runtime", "duration", *_CONTEXT_KEYS)
                    if key in entry
                }
            records.append(normalizer.normalize(entry, context))
        else:
            try:
                records.append(ProfileRecord.from_dict(entry))
            except (AttributeError, TypeError, ValueError) as e:
                raise NormalizationError(f"example {index}: {e}", source=str(path))

    logger.debug(f"Loaded {len(records)} profile(s) from {path}")
    return records
