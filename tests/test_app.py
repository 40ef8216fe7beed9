"""Tests for the skill entry point and CLI helpers."""

from unittest.mock import MagicMock

import pytest

from agents.base import AgentStatus
from clients.errors import NetworkError
from config import AppConfig, ConfigError
from db.memory import InMemoryBackend
from run_skill import check_health, main, parse_params
from skill.app import ZigmaSkill, build_skill
from skill.base import SkillContext


@pytest.fixture
def oracle():
    return MagicMock()


@pytest.fixture
def skill(oracle):
    moltbook = MagicMock()
    moltbook.enabled = False
    return ZigmaSkill(AppConfig(environment="test"), oracle=oracle, moltbook=moltbook)


@pytest.fixture
def ctx():
    return SkillContext(user_id="u1", memory=InMemoryBackend().for_user("u1"),
                        notify=MagicMock())


class TestZigmaSkill:
    def test_commands(self, skill):
        assert len(skill.commands) == 11
        assert "parameters" in skill.commands["alpha"]

    def test_heartbeat_descriptor(self, skill):
        assert skill.heartbeat["interval"] == "*/15 * * * *"
        assert skill.heartbeat["handler"] == skill.run_heartbeat

    def test_handle(self, skill, oracle, ctx):
        oracle.get_leaderboard.return_value = []
        assert "No agents competing yet" in skill.handle("leaderboard", ctx)

    def test_heartbeat_runs_all_steps(self, skill, oracle, ctx):
        oracle.get_signals.return_value = []
        results = skill.run_heartbeat(ctx)
        assert [r.agent_name for r in results] == [
            "tracked_markets", "strong_signal", "daily_post", "comment_replies",
        ]
        assert [r.status for r in results] == [
            AgentStatus.SUCCESS, AgentStatus.SUCCESS, AgentStatus.SKIPPED, AgentStatus.SKIPPED,
        ]
        assert all(r.user_id == "u1" for r in results)

    def test_heartbeat_never_raises(self, skill, oracle, ctx):
        oracle.get_signals.side_effect = NetworkError("down")
        results = skill.run_heartbeat(ctx)
        statuses = {r.agent_name: r.status for r in results}
        assert statuses["strong_signal"] == AgentStatus.ERROR
        assert statuses["tracked_markets"] == AgentStatus.SUCCESS


class TestBuildSkill:
    def test_requires_api_key(self):
        with pytest.raises(ConfigError):
            build_skill(AppConfig())

    def test_test_mode(self):
        assert isinstance(build_skill(AppConfig(environment="test")), ZigmaSkill)


class TestCli:
    def test_parse_params(self):
        assert parse_params(["limit=3", "minEdge=5"]) == {"limit": "3", "minEdge": "5"}

    def test_parse_params_rejects_bare_words(self):
        with pytest.raises(ValueError):
            parse_params(["limit"])

    def test_check_health(self, capsys):
        oracle = MagicMock(base_url="https://api.zigma.pro")
        oracle.health_check.return_value = True
        assert check_health(oracle) == 0
        oracle.health_check.return_value = False
        assert check_health(oracle) == 1
        assert "unreachable at https://api.zigma.pro" in capsys.readouterr().out

    def test_bad_heartbeat_interval_exits(self, monkeypatch, capsys):
        monkeypatch.setenv("HEARTBEAT_INTERVAL_MINUTES", "90")
        assert main(["commands"]) == 1
        assert "HEARTBEAT_INTERVAL_MINUTES must be between 1 and 59" in capsys.readouterr().out
