"""Tests for agent name normalization."""

from time_tracking.lib import agent_matcher


def test_normalize():
    assert agent_matcher.normalize("developer") == "@developer"
    assert agent_matcher.normalize("@developer") == "@developer"


def test_matches_any():
    assert agent_matcher.matches_any("build", ["@build"])
    assert agent_matcher.matches_any("@build", frozenset({"build"}))
    assert not agent_matcher.matches_any("plan", ["@build"])
    assert not agent_matcher.matches_any(None, ["@build"])


def test_lookup():
    table = {"@dev": 1, "ops": 2}
    assert agent_matcher.lookup("dev", table) == 1
    assert agent_matcher.lookup("@ops", table) == 2
    assert agent_matcher.lookup("qa", table) is None
    assert agent_matcher.lookup("", table) is None
