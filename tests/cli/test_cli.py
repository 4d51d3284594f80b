"""CLI tests using typer's CliRunner."""

import json
import os

import pytest
from typer.testing import CliRunner

from spec_scout import __version__
from spec_scout.cli import app

runner = CliRunner()

OPTIMIZABLE = {
    "location": "spec/models/user_spec.rb:12",
    "runtime_ms": 45.0,
    "factories": {"user": {"strategy": "create", "count": 3}},
    "db": {"inserts": 3, "selects": 5, "total_queries": 8},
}

RISKY = {
    "location": "spec/models/order_spec.rb:4",
    "factories": {"order": {"strategy": "create", "count": 1}},
    "db": {"inserts": 1, "total_queries": 1},
    "events": {"after_commit.active_record": {"count": 1}},
}


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("SPEC_SCOUT_"):
            monkeypatch.delenv(key)


@pytest.fixture
def profile_file(tmp_path):
    path = tmp_path / "profiles.json"
    path.write_text(json.dumps([OPTIMIZABLE, RISKY]))
    return path


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestAnalyze:
    def test_json_output(self, profile_file):
        result = runner.invoke(app, ["analyze", str(profile_file), "-o", "json", "-q"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        actions = [r["recommendation"]["action"] for r in data["results"]]
        assert actions == ["replace_factory_strategy", "no_action"]
        assert data["enforcement"]["enabled"] is False

    def test_console_output(self, profile_file):
        result = runner.invoke(app, ["analyze", str(profile_file)])
        assert result.exit_code == 0
        assert "Spec Scout Recommendation" in result.output

    def test_enforce_fails_on_high_confidence(self, profile_file):
        result = runner.invoke(app, ["analyze", str(profile_file), "--enforce", "-o", "github", "-q"])
        assert result.exit_code == 1
        assert "::error" in result.output

    def test_enforce_passes_without_actionable(self, tmp_path):
        path = tmp_path / "risky.json"
        path.write_text(json.dumps([RISKY]))
        result = runner.invoke(app, ["analyze", str(path), "--enforce", "-o", "json", "-q"])
        assert result.exit_code == 0

    def test_unsafe_flags_refused(self, profile_file):
        result = runner.invoke(app, ["analyze", str(profile_file), "--auto-apply", "--enforce"])
        assert result.exit_code == 1
        assert "Unsafe configuration" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "absent.json")])
        assert result.exit_code == 1
        assert "file not found" in result.output

    def test_disable_agent(self, profile_file):
        result = runner.invoke(
            app, ["analyze", str(profile_file), "--disable-agent", "risk", "-o", "json", "-q"]
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        names = [v["agent_name"] for v in data["results"][0]["recommendation"]["agent_results"]]
        assert names == ["database", "factory", "intent"]

    def test_enable_agent_subset(self, profile_file):
        result = runner.invoke(
            app,
            ["analyze", str(profile_file), "--enable-agent", "factory", "-o", "json", "-q"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        first = data["results"][0]["recommendation"]
        assert [v["agent_name"] for v in first["agent_results"]] == ["factory"]
        assert first["action"] == "no_action"

    def test_config_file_sets_format(self, profile_file, tmp_path):
        (tmp_path / "spec-scout.toml").write_text('output_format = "json"\n')
        result = runner.invoke(app, ["analyze", str(profile_file), "-q"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["summary"]["examples"] == 2
