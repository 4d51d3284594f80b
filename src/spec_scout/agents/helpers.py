"""Shared evidence scans over profile events.

A "reload" event is one showing that a persisted record is read back: its name
or sample text mentions ``reload``, or one of its SQL samples is a ``SELECT``
filtered by ``id``. A reload event is keyed to a factory when its samples
reference one of the factory's table names.
"""

from __future__ import annotations

import re

from ..models import EventStats, ProfileRecord

_RELOAD_RE = re.compile(r"reload", re.IGNORECASE)
_SELECT_BY_ID_RE = re.compile(
    r"\bSELECT\b.*\bWHERE\b.*\bid\b[\"'`\]]?\s*(?:=|\bIN\b)",
    re.IGNORECASE | re.DOTALL,
)


def is_select_by_id(sql: str) -> bool:
    return bool(_SELECT_BY_ID_RE.search(sql or ""))


def indicates_reload(name: str, stats: EventStats) -> bool:
    """True when the event shows a record being reloaded or re-selected."""
    if _RELOAD_RE.search(name):
        return True
    for sample in stats.examples:
        if _RELOAD_RE.search(sample.text()):
            return True
        if sample.sql and is_select_by_id(sample.sql):
            return True
    return False


def reload_events(profile: ProfileRecord) -> dict[str, EventStats]:
    return {name: stats for name, stats in profile.events.items() if indicates_reload(name, stats)}


def table_names(factory_name: str) -> tuple[str, ...]:
    """Candidate table names for a factory: the name and its simple plurals."""
    base = factory_name.strip().lower()
    if not base:
        return ()
    names = [base, f"{base}s", f"{base}es"]
    if base.endswith("y") and len(base) > 1:
        names.append(f"{base[:-1]}ies")
    return tuple(dict.fromkeys(names))


def _mentions(text: str, table: str) -> bool:
    pattern = rf"(?<![A-Za-z0-9_]){re.escape(table)}(?![A-Za-z0-9_])"
    return re.search(pattern, text, re.IGNORECASE) is not None


def references_factory(stats: EventStats, factory_name: str) -> bool:
    tables = table_names(factory_name)
    for sample in stats.examples:
        text = sample.text()
        if text and any(_mentions(text, table) for table in tables):
            return True
    return False


def keyed_reload_events(
    profile: ProfileRecord,
    factory_name: str,
    reloads: dict[str, EventStats] | None = None,
) -> list[str]:
    """Names of reload events whose samples reference ``factory_name``."""
    if reloads is None:
        reloads = reload_events(profile)
    return [name for name, stats in reloads.items() if references_factory(stats, factory_name)]
