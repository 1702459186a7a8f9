"""CLI command tests using Click CliRunner.

Strategy: point the CLI at a temp config whose paths live under tmp_path, so
each test drives the real wiring (SQLite store, JSON events, engine chain)
without touching the home directory or the network.
"""

import json
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from cli.config import ENV_CONFIG_PATH
from cli.config_models import AppConfig
from cli.main import cli
from cli.utils import build_backend, build_manager, build_oracle_strategy
from insights.dispatcher import RequestDispatcher


@pytest.fixture
def runner():
    return CliRunner()


def _config_data(tmp_path, backend=False):
    return {
        "llm": {"provider": "none"},
        "paths": {
            "db_path": str(tmp_path / "insights.db"),
            "events_file": str(tmp_path / "events.json"),
        },
        "remote": {"backend_min_interval": 0},
        "backend": {
            "enabled": backend,
            "sync_latency": [0, 0],
            "generate_latency": [0, 0],
            "feedback_latency": 0,
            "sync_failure_rate": 0,
            "generate_failure_rate": 0,
        },
        "logging": {"level": "ERROR"},
    }


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    def _setup(backend=False):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(_config_data(tmp_path, backend)))
        monkeypatch.setenv(ENV_CONFIG_PATH, str(path))
        return tmp_path

    return _setup


def _stored(tmp_path):
    config = AppConfig.from_dict(_config_data(tmp_path))
    return build_manager(config)


def _log_sample_events(runner):
    for start in ("2024-01-01", "2024-01-31", "2024-03-02", "2024-04-01"):
        assert runner.invoke(cli, ["log-period", "--start", start]).exit_code == 0
    for day in ("2024-03-30", "2024-03-31", "2024-04-01"):
        assert runner.invoke(cli, ["log-symptom", "Cramps", "--date", day, "-i", "moderate"]).exit_code == 0
    assert runner.invoke(cli, ["log-mood", "calm", "--date", "2024-04-01", "-i", "4"]).exit_code == 0


class TestEventCommands:
    def test_log_and_summary(self, runner, config_env):
        tmp_path = config_env()
        _log_sample_events(runner)

        data = json.loads((tmp_path / "events.json").read_text())
        assert len(data["periods"]) == 4
        assert data["symptoms"][0]["name"] == "cramps"

        result = runner.invoke(cli, ["summary"])
        assert result.exit_code == 0
        assert "Average cycle:" in result.output
        assert "cramps" in result.output

    def test_bad_date(self, runner, config_env):
        config_env()
        result = runner.invoke(cli, ["log-period", "--start", "yesterday"])
        assert result.exit_code != 0
        assert "YYYY-MM-DD" in result.output

    def test_mood_intensity_range(self, runner, config_env):
        config_env()
        assert runner.invoke(cli, ["log-mood", "calm", "-i", "7"]).exit_code != 0


class TestInsightCommands:
    def test_generate_and_list(self, runner, config_env):
        tmp_path = config_env()
        _log_sample_events(runner)

        result = runner.invoke(cli, ["generate"])
        assert result.exit_code == 0
        assert "Recurring Cramp Pattern" in result.output

        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "Healthy Cycle Pattern" in result.output

        # Unchanged data: nothing new
        result = runner.invoke(cli, ["generate"])
        assert "No new insights" in result.output
        assert len(_stored(tmp_path).insights()) == 2

    def test_lifecycle_commands(self, runner, config_env):
        tmp_path = config_env()
        runner.invoke(cli, ["generate"])
        insight_id = _stored(tmp_path).insights()[0].id

        assert runner.invoke(cli, ["show", insight_id]).exit_code == 0
        assert runner.invoke(cli, ["read", insight_id]).exit_code == 0
        assert runner.invoke(cli, ["act", insight_id]).exit_code == 0
        assert _stored(tmp_path).get(insight_id).action_taken

        result = runner.invoke(cli, ["dismiss", insight_id])
        assert "Dismissed" in result.output
        assert _stored(tmp_path).insights() == []

        result = runner.invoke(cli, ["purge", "--yes"])
        assert "1 dismissed" in result.output

    def test_unknown_id(self, runner, config_env):
        config_env()
        result = runner.invoke(cli, ["read", "insight-missing"])
        assert result.exit_code == 1
        assert "Not found" in result.output

    def test_feedback_with_backend_sink(self, runner, config_env):
        tmp_path = config_env(backend=True)
        _log_sample_events(runner)
        assert runner.invoke(cli, ["generate"]).exit_code == 0
        insight = _stored(tmp_path).insights()[0]

        result = runner.invoke(cli, ["feedback", insight.id, "very_helpful", "--score", "5"])
        assert result.exit_code == 0
        assert "Feedback recorded" in result.output

        result = runner.invoke(cli, ["feedback", insight.id, "not_helpful"])
        assert "Not recorded" in result.output
        assert _stored(tmp_path).get(insight.id).feedback.type == "very_helpful"

    def test_local_only_skips_backend(self, runner, config_env):
        tmp_path = config_env(backend=True)
        _log_sample_events(runner)

        assert runner.invoke(cli, ["generate", "--local-only"]).exit_code == 0
        assert {str(i.source) for i in _stored(tmp_path).insights()} == {"rule_based"}

    def test_analytics(self, runner, config_env):
        config_env()
        runner.invoke(cli, ["generate"])
        result = runner.invoke(cli, ["analytics"])
        assert result.exit_code == 0
        assert "Active insights:" in result.output
        assert "wellness" in result.output

    def test_list_generates_when_stale(self, runner, config_env):
        tmp_path = config_env()
        _log_sample_events(runner)
        assert _stored(tmp_path).insights() == []

        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "Generated 2 insight(s)" in result.output
        assert "Healthy Cycle Pattern" in result.output
        assert _stored(tmp_path).last_sync_at is not None

        # Fresh sync: a second read does not regenerate
        result = runner.invoke(cli, ["analytics"])
        assert "Generated" not in result.output
        assert len(_stored(tmp_path).insights()) == 2

    def test_list_empty(self, runner, config_env):
        config_env()
        result = runner.invoke(cli, ["list", "--priority", "urgent"])
        assert "No insights found" in result.output


class TestWiring:
    def test_no_provider_means_no_oracle(self, tmp_path):
        config = AppConfig.from_dict(_config_data(tmp_path))
        assert build_oracle_strategy(config, RequestDispatcher()) is None

    def test_http_provider(self, tmp_path):
        data = _config_data(tmp_path)
        data["llm"] = {"provider": "http", "base_url": "https://oracle.test/v1/complete", "api_key": "k"}
        strategy = build_oracle_strategy(AppConfig.from_dict(data), RequestDispatcher())

        assert strategy.oracle.url == "https://oracle.test/v1/complete"
        assert strategy.oracle.headers == {"Authorization": "Bearer k"}
        assert strategy.gate.min_interval == 0.5
        assert strategy.timeout == 30.0

    def test_missing_key_falls_back_to_local(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        data = _config_data(tmp_path)
        data["llm"] = {"provider": "auto"}

        manager = build_manager(AppConfig.from_dict(data))
        assert manager.engine.remote_strategies == []

    def test_backend_disabled(self, tmp_path):
        config = AppConfig.from_dict(_config_data(tmp_path, backend=False))
        assert build_backend(config, RequestDispatcher()) is None

    def test_claude_provider(self, tmp_path):
        data = _config_data(tmp_path)
        data["llm"] = {"provider": "claude", "api_key": "sk-ant-test", "max_tokens": 900}
        with patch("anthropic.Anthropic"):
            strategy = build_oracle_strategy(AppConfig.from_dict(data), RequestDispatcher())
        assert strategy.oracle.provider.provider_name == "claude"
        assert strategy.oracle.max_tokens == 900


def test_version(runner, config_env):
    config_env()
    result = runner.invoke(cli, ["--version"])
    assert "0.1.0" in result.output


def test_init_with_samples(runner, config_env, monkeypatch):
    tmp_path = config_env()
    monkeypatch.setenv("HOME", str(tmp_path / "home"))

    result = runner.invoke(cli, ["init", "--samples"])
    assert result.exit_code == 0
    assert (tmp_path / "home" / ".cycle-insights" / "config.yaml").exists()

    data = json.loads((tmp_path / "events.json").read_text())
    assert len(data["periods"]) == 3
    assert len(data["symptoms"]) == 4
    assert len(data["moods"]) == 3
