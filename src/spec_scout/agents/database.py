"""DATABASE: is persistence actually exercised by the example?

db_unnecessary (high): no INSERTs and no reload/re-select evidence.
db_required (high): a created factory is read back from its table.
"""

from __future__ import annotations

from ..models import Confidence, ProfileRecord, Verdict, VerdictKind
from .base import BaseAgent
from .helpers import keyed_reload_events, reload_events


class DatabaseAgent(BaseAgent):
    """Decides whether an example needs database writes at all."""

    name = "database"
    concern = "database"

    def evaluate(self, profile: ProfileRecord) -> Verdict:
        db = profile.db
        reloads = reload_events(profile)
        counts = {
            "inserts": db.inserts,
            "selects": db.selects,
            "total_queries": db.total_queries,
        }

        for factory, usage in profile.create_factories().items():
            keyed = keyed_reload_events(profile, factory, reloads)
            if keyed:
                return self.verdict(
                    VerdictKind.DB_REQUIRED,
                    Confidence.HIGH,
                    f"create(:{factory}) is read back from the database "
                    f"({', '.join(keyed)}); persistence is required",
                    factory=factory,
                    matched_events=keyed,
                    **counts,
                )

        if db.inserts == 0 and not reloads:
            return self.verdict(
                VerdictKind.DB_UNNECESSARY,
                Confidence.HIGH,
                f"No INSERT statements and no reloads ({db.selects} selects); "
                "the example does not depend on persisted records",
                matched_events=[],
                **counts,
            )

        if reloads:
            reason = f"Reload events present ({', '.join(reloads)}) but not tied to a created factory"
        else:
            reason = f"{db.inserts} INSERT statements without read-back evidence; persistence need is unclear"
        return self.abstain(reason, matched_events=list(reloads), **counts)
