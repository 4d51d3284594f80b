"""Tests for the intent agent."""

import pytest

from spec_scout.agents import IntentAgent
from spec_scout.config import ThresholdConfig
from spec_scout.models import Confidence, VerdictKind


class TestKnownSpecTypes:
    @pytest.mark.parametrize("spec_type", ["request", "feature", "system", "integration"])
    def test_integration_types(self, make_profile, spec_type):
        verdict = IntentAgent().analyze(make_profile(spec_type=spec_type))
        assert verdict.verdict is VerdictKind.INTEGRATION_TEST_BEHAVIOR
        assert verdict.confidence is Confidence.HIGH

    @pytest.mark.parametrize("spec_type", ["model", "lib"])
    def test_unit_types(self, make_profile, spec_type):
        verdict = IntentAgent().analyze(make_profile(spec_type=spec_type))
        assert verdict.verdict is VerdictKind.UNIT_TEST_BEHAVIOR
        assert verdict.confidence is Confidence.HIGH

    def test_model_spec_with_request_events_is_integration(self, make_profile, request_events):
        profile = make_profile(spec_type="model", events=request_events)
        verdict = IntentAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.INTEGRATION_TEST_BEHAVIOR
        assert verdict.confidence is Confidence.HIGH
        assert "process_action.action_controller" in verdict.metadata["cross_boundary_events"]

    @pytest.mark.parametrize(
        "name", ["track_event.analytics", "unrequested_retry.jobs", "httpclient_pool.stats"]
    )
    def test_lookalike_event_names_stay_unit(self, make_profile, name):
        profile = make_profile(spec_type="model", events={name: {"count": 1}})
        verdict = IntentAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.UNIT_TEST_BEHAVIOR
        assert verdict.confidence is Confidence.HIGH

    @pytest.mark.parametrize(
        "name", ["request.action_dispatch", "call.rack", "visit.capybara", "render_partial.action_view"]
    )
    def test_boundary_segments_are_integration(self, make_profile, name):
        profile = make_profile(spec_type="model", events={name: {"count": 1}})
        verdict = IntentAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.INTEGRATION_TEST_BEHAVIOR

    def test_helper_is_medium_unit(self, make_profile):
        verdict = IntentAgent().analyze(make_profile(spec_type="helper"))
        assert verdict.verdict is VerdictKind.UNIT_TEST_BEHAVIOR
        assert verdict.confidence is Confidence.MEDIUM

    @pytest.mark.parametrize("spec_type", ["controller", "view"])
    def test_controller_and_view_are_medium_integration(self, make_profile, spec_type):
        verdict = IntentAgent().analyze(make_profile(spec_type=spec_type))
        assert verdict.verdict is VerdictKind.INTEGRATION_TEST_BEHAVIOR
        assert verdict.confidence is Confidence.MEDIUM

    def test_spec_type_inferred_from_location(self, make_profile):
        verdict = IntentAgent().analyze(make_profile(location="spec/lib/parser_spec.rb:4"))
        assert verdict.verdict is VerdictKind.UNIT_TEST_BEHAVIOR


class TestSignalScoring:
    def test_fast_light_example_is_unit(self, make_profile):
        profile = make_profile(
            runtime_ms=4.0,
            db={"total_queries": 1},
            factories={"user": {"strategy": "build", "count": 1}},
        )
        verdict = IntentAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.UNIT_TEST_BEHAVIOR
        assert verdict.confidence is Confidence.MEDIUM
        assert len(verdict.metadata["unit_signals"]) == 3

    def test_slow_heavy_example_is_integration(self, make_profile):
        profile = make_profile(
            runtime_ms=450.0,
            db={"total_queries": 40},
            factories={"user": {"strategy": "create", "count": 8}},
        )
        verdict = IntentAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.INTEGRATION_TEST_BEHAVIOR
        assert verdict.confidence is Confidence.MEDIUM

    def test_mixed_signals_abstain(self, make_profile):
        profile = make_profile(runtime_ms=450.0, db={"total_queries": 1})
        verdict = IntentAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.NO_ACTION
        assert verdict.confidence is Confidence.LOW

    def test_single_signal_is_not_enough(self, make_profile):
        profile = make_profile(runtime_ms=50.0, db={"total_queries": 1})
        verdict = IntentAgent().analyze(profile)
        assert verdict.verdict is VerdictKind.NO_ACTION

    def test_thresholds_are_configurable(self, make_profile):
        profile = make_profile(runtime_ms=50.0, db={"total_queries": 1})
        agent = IntentAgent(ThresholdConfig(intent_fast_runtime_ms=60.0, intent_slow_runtime_ms=200.0))
        verdict = agent.analyze(profile)
        assert verdict.verdict is VerdictKind.UNIT_TEST_BEHAVIOR
