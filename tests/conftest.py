"""Shared test fixtures for Spec Scout tests."""

import pytest

from spec_scout.models import ProfileRecord


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def make_profile():
    """Build a ProfileRecord from keyword fields in the normalized shape."""

    def _make(**fields):
        return ProfileRecord.from_dict(fields)

    return _make


@pytest.fixture
def model_profile(make_profile):
    """Model spec creating 3 users: every insert comes from the factory."""
    return make_profile(
        location="spec/models/user_spec.rb:12",
        spec_type="model",
        runtime_ms=45.0,
        factories={"user": {"strategy": "create", "count": 3, "time": 0.02}},
        db={"inserts": 3, "selects": 5, "total_queries": 8},
    )


@pytest.fixture
def commit_events():
    """An after_commit callback firing on the user model."""
    return {
        "after_commit.active_record": {
            "count": 1,
            "time": 0.4,
            "examples": [{"location": "app/models/user.rb:30"}],
        }
    }


@pytest.fixture
def reload_events():
    """A re-select of a created user by primary key."""
    return {
        "sql.active_record": {
            "count": 2,
            "time": 1.2,
            "examples": [
                {"sql": 'SELECT "users".* FROM "users" WHERE "users"."id" = $1 LIMIT $2'},
            ],
        }
    }


@pytest.fixture
def request_events():
    """Events of a request passing through the controller stack."""
    return {
        "process_action.action_controller": {"count": 1, "time": 35.0},
        "render_template.action_view": {"count": 1, "time": 12.0},
    }
