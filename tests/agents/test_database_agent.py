"""Tests for the database agent."""

from spec_scout.agents import DatabaseAgent
from spec_scout.models import Confidence, VerdictKind


class TestDbUnnecessary:
    def test_no_inserts_no_reloads(self, make_profile):
        """Reads only, nothing read back by id: persistence is unnecessary."""
        profile = make_profile(
            factories={"user": {"strategy": "build_stubbed", "count": 1}},
            db={"inserts": 0, "selects": 2, "total_queries": 2},
        )
        verdict = DatabaseAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.DB_UNNECESSARY
        assert verdict.confidence is Confidence.HIGH
        assert verdict.reasoning
        assert verdict.metadata["inserts"] == 0

    def test_empty_profile(self, make_profile):
        verdict = DatabaseAgent().analyze(make_profile())
        assert verdict.verdict is VerdictKind.DB_UNNECESSARY

    def test_commit_events_do_not_block_verdict(self, make_profile, commit_events):
        """Commit callbacks are the risk agent's concern, not a read-back."""
        profile = make_profile(db={"inserts": 0}, events=commit_events)
        verdict = DatabaseAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.DB_UNNECESSARY

    def test_reload_event_prevents_unnecessary(self, make_profile):
        profile = make_profile(
            db={"inserts": 0, "selects": 1},
            events={"record.reload": {"count": 1}},
        )
        verdict = DatabaseAgent().analyze(profile)
        assert verdict.verdict is not VerdictKind.DB_UNNECESSARY


class TestDbRequired:
    def test_created_record_selected_by_id(self, make_profile, reload_events):
        profile = make_profile(
            factories={"user": {"strategy": "create", "count": 1}},
            db={"inserts": 1, "selects": 2, "total_queries": 3},
            events=reload_events,
        )
        verdict = DatabaseAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.DB_REQUIRED
        assert verdict.confidence is Confidence.HIGH
        assert verdict.metadata["factory"] == "user"
        assert verdict.metadata["matched_events"] == ["sql.active_record"]

    def test_reload_of_other_table_is_not_keyed(self, make_profile):
        profile = make_profile(
            factories={"user": {"strategy": "create", "count": 1}},
            db={"inserts": 1},
            events={
                "sql.active_record": {
                    "examples": ['SELECT * FROM "accounts" WHERE "accounts"."id" = 7'],
                }
            },
        )
        verdict = DatabaseAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.NO_ACTION
        assert verdict.confidence is Confidence.LOW

    def test_plural_table_names(self, make_profile):
        """Factory :company maps onto the companies table."""
        profile = make_profile(
            factories={"company": {"strategy": "create", "count": 2}},
            db={"inserts": 2},
            events={
                "sql.active_record": {
                    "examples": ["SELECT companies.* FROM companies WHERE companies.id IN (1, 2)"],
                }
            },
        )
        verdict = DatabaseAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.DB_REQUIRED

    def test_reload_named_in_backtrace(self, make_profile):
        profile = make_profile(
            factories={"post": {"strategy": "create", "count": 1}},
            db={"inserts": 1},
            events={
                "instance.reload": {
                    "examples": [{"backtrace": ["app/models/post.rb:12:in `refresh'"]}],
                }
            },
        )
        verdict = DatabaseAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.DB_REQUIRED


class TestAbstain:
    def test_inserts_without_read_back(self, model_profile):
        verdict = DatabaseAgent().analyze(model_profile)
        assert verdict.verdict is VerdictKind.NO_ACTION
        assert verdict.confidence is Confidence.LOW
        assert not verdict.failed

    def test_internal_error_becomes_failed_verdict(self, model_profile, monkeypatch):
        agent = DatabaseAgent()

        def boom(profile):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(agent, "evaluate", boom)
        verdict = agent.analyze(model_profile)
        assert verdict.verdict is VerdictKind.NO_ACTION
        assert verdict.confidence is Confidence.LOW
        assert verdict.failed
        assert "kaboom" in verdict.reasoning
