"""Tests for the console, JSON and GitHub formatters."""

import json

import pytest

from spec_scout import __version__
from spec_scout.api import analyze_batch
from spec_scout.config import ScoutConfig
from spec_scout.formatters import (
    GithubFormatter,
    JsonFormatter,
    RichFormatter,
    get_formatter,
)
from spec_scout.formatters.rich_formatter import action_text, agent_label, profile_summary
from spec_scout.models import Action, Recommendation
from spec_scout.safety import SafetyPolicy


@pytest.fixture
def results(model_profile, make_profile, commit_events):
    risky = make_profile(
        location="spec/models/order_spec.rb:8",
        factories={"order": {"strategy": "create", "count": 1}},
        db={"inserts": 1, "total_queries": 1},
        events=commit_events,
    )
    return analyze_batch([model_profile, risky])


class TestGetFormatter:
    def test_known_names(self):
        assert isinstance(get_formatter("console"), RichFormatter)
        assert isinstance(get_formatter("rich"), RichFormatter)
        assert isinstance(get_formatter("json"), JsonFormatter)
        assert isinstance(get_formatter("github"), GithubFormatter)

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown formatter"):
            get_formatter("xml")


class TestJsonFormatter:
    def test_document(self, results):
        config = ScoutConfig(enforcement_mode=True)
        report = SafetyPolicy(config).enforce(r.recommendation for r in results)
        data = json.loads(JsonFormatter().format(results, config, report))

        assert data["version"] == __version__
        assert data["summary"] == {"examples": 2, "actionable": 1, "high_confidence": 1}
        assert data["enforcement"]["enabled"] is True
        assert data["enforcement"]["exit_code"] == 1
        first = data["results"][0]["recommendation"]
        assert first["action"] == "replace_factory_strategy"
        assert first["to_value"] == "build_stubbed(:user)"
        assert data["results"][1]["recommendation"]["action"] == "no_action"

    def test_deterministic(self, results):
        config = ScoutConfig()
        assert JsonFormatter().format(results, config) == JsonFormatter().format(results, config)


class TestGithubFormatter:
    def test_annotations_and_table(self, results):
        output = GithubFormatter().format(results, ScoutConfig())
        lines = output.splitlines()
        assert lines[0].startswith("::warning file=spec/models/user_spec.rb,line=12,title=Spec Scout::")
        assert "build_stubbed(:user)" in lines[0]
        assert "## Spec Scout" in output
        assert "| `spec/models/user_spec.rb:12` |" in output
        assert "order_spec" not in output

    def test_failed_enforcement_adds_error(self, results):
        config = ScoutConfig(enforcement_mode=True)
        report = SafetyPolicy(config).enforce(r.recommendation for r in results)
        output = GithubFormatter().format(results, config, report)
        assert "::error title=Spec Scout enforcement::Enforcement failed" in output
        assert "%0A" in output

    def test_nothing_actionable(self, make_profile):
        results = analyze_batch([make_profile(location="spec/lib/a_spec.rb")])
        output = GithubFormatter().format(results, ScoutConfig())
        assert "::warning" not in output
        assert "No actionable recommendations across 1 example(s)." in output


class TestRichFormatter:
    def test_panel_sections(self, results):
        output = RichFormatter().format(results, ScoutConfig())
        assert "Spec Scout Recommendation" in output
        assert "Summary:" in output
        assert "Factory :user used `create` (3x)" in output
        assert "Agent Signals:" in output
        assert "Factory Agent: prefer build stubbed" in output
        assert "Replace `create(:user)` with `build_stubbed(:user)`" in output
        assert "No optimization recommended" in output
        assert "Totals" in output

    def test_enforcement_message(self, results):
        report = SafetyPolicy(ScoutConfig()).enforce(r.recommendation for r in results)
        output = RichFormatter().format(results, ScoutConfig(), report)
        assert "recommendations are advisory" in output

    def test_empty(self):
        assert "No examples to analyze." in RichFormatter().format([], ScoutConfig())


class TestHelpers:
    def test_agent_label(self):
        assert agent_label("risk") == "Risk Agent"
        assert agent_label("llm_factory") == "LLM Factory"

    def test_action_text(self):
        assert action_text(Recommendation()) == "No optimization recommended"
        bare = Recommendation(action=Action.REPLACE_FACTORY_STRATEGY)
        assert action_text(bare) == "Replace factory strategy"

    def test_profile_summary(self, model_profile):
        lines = profile_summary(model_profile)
        assert "DB inserts: 3, selects: 5, total queries: 8" in lines
        assert "Runtime: 45ms" in lines
        assert "Type: model spec" in lines
