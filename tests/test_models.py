"""Tests for the data models."""

import pytest

from spec_scout.models import (
    Action,
    AgentResult,
    Confidence,
    DbCounts,
    EventSample,
    FactoryStrategy,
    ProfileRecord,
    Recommendation,
    SpecType,
    Verdict,
    VerdictKind,
)


class TestSpecType:
    @pytest.mark.parametrize(
        "location,expected",
        [
            ("spec/models/user_spec.rb:12", SpecType.MODEL),
            ("./spec/controllers/users_controller_spec.rb", SpecType.CONTROLLER),
            ("spec/requests/api/v1/users_spec.rb", SpecType.REQUEST),
            ("spec/features/signup_spec.rb", SpecType.FEATURE),
            ("spec/system/checkout_spec.rb", SpecType.SYSTEM),
            ("spec/lib/parser_spec.rb", SpecType.LIB),
            ("spec/helpers/dates_helper_spec.rb", SpecType.HELPER),
            ("spec/views/users/show_spec.rb", SpecType.VIEW),
            ("spec/services/billing_spec.rb", SpecType.UNKNOWN),
            ("", SpecType.UNKNOWN),
        ],
    )
    def test_from_location(self, location, expected):
        assert SpecType.from_location(location) is expected

    def test_parse(self):
        assert SpecType.parse(" Model ") is SpecType.MODEL
        assert SpecType.parse("widget") is SpecType.UNKNOWN
        assert SpecType.parse(None) is SpecType.UNKNOWN


class TestConfidence:
    def test_rank_order(self):
        assert Confidence.HIGH.rank > Confidence.MEDIUM.rank > Confidence.LOW.rank


class TestProfileRecord:
    def test_from_dict_clamps_and_infers(self):
        record = ProfileRecord.from_dict(
            {
                "location": "spec/models/user_spec.rb:3",
                "runtime_ms": -4,
                "factories": {"user": {"strategy": "CREATE", "count": -1}, "bad": 3},
                "db": {"inserts": "2", "selects": None},
                "events": {"sql.active_record": {"count": 1, "examples": "oops"}},
            }
        )
        assert record.spec_type is SpecType.MODEL
        assert record.runtime_ms == 0.0
        assert record.factories["user"].strategy is FactoryStrategy.CREATE
        assert record.factories["user"].count == 0
        assert "bad" not in record.factories
        assert record.db.inserts == 2
        assert record.db.selects == 0
        assert record.events["sql.active_record"].examples == ()

    def test_explicit_spec_type_wins(self):
        record = ProfileRecord.from_dict({"location": "spec/models/a_spec.rb", "spec_type": "request"})
        assert record.spec_type is SpecType.REQUEST

    def test_unknown_strategy(self):
        record = ProfileRecord.from_dict({"factories": {"user": {"strategy": "attributes_for", "count": 2}}})
        assert record.factories["user"].strategy is FactoryStrategy.UNKNOWN

    def test_create_factories(self, make_profile):
        record = make_profile(
            factories={
                "user": {"strategy": "create", "count": 2},
                "post": {"strategy": "build", "count": 4},
                "tag": {"strategy": "create", "count": 0},
            }
        )
        assert list(record.create_factories()) == ["user"]

    def test_negative_runtime_rejected(self):
        with pytest.raises(ValueError):
            ProfileRecord(runtime_ms=-1.0)

    def test_to_dict_reloads(self, model_profile):
        assert ProfileRecord.from_dict(model_profile.to_dict()) == model_profile

    def test_mapping_fields_are_read_only(self, model_profile):
        with pytest.raises(TypeError):
            model_profile.factories["post"] = model_profile.factories["user"]
        with pytest.raises(TypeError):
            model_profile.metadata["side_effects"] = True
        with pytest.raises(TypeError):
            model_profile.events["after_commit.active_record"] = None

    def test_source_dict_is_copied(self):
        metadata = {"seed": 1}
        record = ProfileRecord(metadata=metadata)
        metadata["side_effects"] = True
        assert "side_effects" not in record.metadata

    def test_total_queries_may_disagree(self):
        db = DbCounts.from_dict({"total_queries": 2, "inserts": 3, "selects": 4})
        assert db.total_queries == 2
        assert db.writes == 3


class TestEventSample:
    def test_text_joins_evidence(self):
        sample = EventSample.from_value(
            {"sql": "SELECT 1", "location": "app/models/user.rb:3", "backtrace": ["a.rb:1", "b.rb:2"]}
        )
        assert sample.text() == "SELECT 1 app/models/user.rb:3 a.rb:1 b.rb:2"

    def test_non_mapping(self):
        assert EventSample.from_value(42) == EventSample()


class TestVerdict:
    def test_actionable_requires_reasoning(self):
        assert not Verdict("risk", VerdictKind.RISK_DETECTED, Confidence.HIGH).is_valid()
        assert Verdict("risk", VerdictKind.RISK_DETECTED, Confidence.HIGH, "commit hook").is_valid()

    def test_no_action_may_be_silent(self):
        assert Verdict("risk").is_valid()

    def test_empty_name_invalid(self):
        assert not Verdict("").is_valid()

    def test_support_and_opposition(self):
        assert Verdict("factory", VerdictKind.PREFER_BUILD_STUBBED).supports_optimization
        assert Verdict("database", VerdictKind.DB_REQUIRED).opposes_optimization
        risk = Verdict("risk", VerdictKind.RISK_DETECTED)
        assert not risk.supports_optimization and not risk.opposes_optimization

    def test_failed_flag(self):
        assert Verdict("x", metadata={"error": True}).failed
        assert not Verdict("x").failed

    def test_metadata_is_read_only(self):
        verdict = Verdict("risk", metadata={"commit_events": []})
        with pytest.raises(TypeError):
            verdict.metadata["error"] = True
        assert verdict.metadata == {"commit_events": []}
        assert verdict.to_dict()["metadata"] == {"commit_events": []}

    def test_agent_result_alias(self):
        assert AgentResult is Verdict


class TestRecommendation:
    def test_only_produced_actions_exist(self):
        assert {a.value for a in Action} == {"no_action", "replace_factory_strategy"}

    def test_defaults(self):
        rec = Recommendation()
        assert not rec.is_actionable()
        assert rec.confidence is Confidence.LOW
        assert rec.is_valid()

    def test_invalid_agent_result(self):
        rec = Recommendation(agent_results=(Verdict("risk", VerdictKind.RISK_DETECTED),))
        assert not rec.is_valid()

    def test_to_dict(self):
        rec = Recommendation(
            spec_location="spec/models/user_spec.rb:1",
            action=Action.REPLACE_FACTORY_STRATEGY,
            from_value="create(:user)",
            to_value="build_stubbed(:user)",
            confidence=Confidence.HIGH,
            explanation=("a", "b"),
        )
        data = rec.to_dict()
        assert data["action"] == "replace_factory_strategy"
        assert data["confidence"] == "high"
        assert data["explanation"] == ["a", "b"]
        assert rec.high_confidence
