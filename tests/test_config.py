"""Tests for credential loading, validation, and settings resolution."""

from __future__ import annotations

from itertools import combinations
from pathlib import Path

import pytest
from pydantic import ValidationError

from cnai_demo.config import (
    Credentials,
    InstallerConfig,
    PollPolicy,
    load_credentials,
    resolve_config,
    validate_credentials,
)
from cnai_demo.constants import REQUIRED_ENV_VARS
from cnai_demo.errors import ConfigurationError

MISSING_SUBSETS = [
    subset
    for size in range(1, len(REQUIRED_ENV_VARS) + 1)
    for subset in combinations(REQUIRED_ENV_VARS, size)
]


def _credentials(missing: tuple[str, ...] = ()) -> Credentials:
    values = {"token": "ghp_test", "repo_user": "octocat", "openai_api_key": "sk-test"}
    for var in missing:
        values[var.lower()] = ""
    return Credentials(**values)


class TestValidateCredentials:
    def test_all_set_passes_and_reports_each(self, capsys):
        validate_credentials(_credentials())

        err = capsys.readouterr().err
        for var in REQUIRED_ENV_VARS:
            assert f"variable {var} is set" in err
        assert "All env vars checks passed" in err

    @pytest.mark.parametrize("missing", MISSING_SUBSETS, ids=lambda s: "+".join(s))
    def test_reports_every_missing_variable(self, missing, capsys):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_credentials(_credentials(missing))

        expected = [var for var in REQUIRED_ENV_VARS if var in missing]
        assert exc_info.value.missing == expected
        assert exc_info.value.exit_code == 1
        err = capsys.readouterr().err
        for var in expected:
            assert f"variable {var} is not set" in err

    def test_openai_key_empty_scenario(self, capsys):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_credentials(_credentials(("OPENAI_API_KEY",)))

        assert exc_info.value.missing == ["OPENAI_API_KEY"]
        err = capsys.readouterr().err
        assert "variable TOKEN is set" in err
        assert "variable REPO_USER is set" in err
        assert "variable OPENAI_API_KEY is not set" in err
        assert "Exiting" in err

    def test_whitespace_only_counts_as_missing(self):
        creds = Credentials(token="   ", repo_user="octocat", openai_api_key="sk-test")
        with pytest.raises(ConfigurationError) as exc_info:
            validate_credentials(creds)
        assert exc_info.value.missing == ["TOKEN"]

    def test_secret_values_are_not_printed(self, capsys):
        validate_credentials(_credentials())
        err = capsys.readouterr().err
        assert "ghp_test" not in err
        assert "sk-test" not in err


class TestLoadCredentials:
    def test_reads_env_file(self, write_env):
        creds = load_credentials(write_env(token="t0k", repo_user="alice", openai="sk-1"))

        assert creds.token.get_secret_value() == "t0k"
        assert creds.repo_user == "alice"
        assert creds.openai_api_key.get_secret_value() == "sk-1"

    def test_missing_file_is_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError, match="file not found"):
            load_credentials(tmp_path / "nope.env")

    def test_empty_value_in_file_is_loaded_as_empty(self, write_env):
        creds = load_credentials(write_env(openai=""))
        assert creds.value_of("OPENAI_API_KEY") == ""

    def test_env_file_wins_over_process_env(self, write_env, monkeypatch):
        env_file = write_env(repo_user="from-file")
        monkeypatch.setenv("REPO_USER", "from-env")
        assert load_credentials(env_file).repo_user == "from-file"

    def test_empty_key_in_file_is_not_filled_from_process_env(self, write_env, monkeypatch, capsys):
        env_file = write_env(openai="")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-shell")

        creds = load_credentials(env_file)

        assert creds.value_of("OPENAI_API_KEY") == ""
        with pytest.raises(ConfigurationError) as exc_info:
            validate_credentials(creds)
        assert exc_info.value.missing == ["OPENAI_API_KEY"]
        assert "All env vars checks passed." not in capsys.readouterr().err

    def test_process_env_fills_keys_absent_from_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / "partial.env"
        env_file.write_text("TOKEN=ghp_file\nREPO_USER=octocat\n", encoding="utf-8")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-shell")

        creds = load_credentials(env_file)

        assert creds.value_of("TOKEN") == "ghp_file"
        assert creds.value_of("OPENAI_API_KEY") == "sk-from-shell"

    def test_credentials_are_immutable(self, write_env):
        creds = load_credentials(write_env())
        with pytest.raises(ValidationError):
            creds.repo_user = "mallory"


class TestResolveConfig:
    def test_defaults(self):
        cfg = resolve_config()

        assert cfg.cluster_name == "agent-platform"
        assert cfg.namespace == "default"
        assert cfg.env_file == Path(".env")
        assert cfg.poll_interval == 2.0
        assert cfg.image_preload_workers == 1

    def test_env_overrides_default(self, monkeypatch):
        monkeypatch.setenv("CNAI_POLL_INTERVAL", "5")
        monkeypatch.setenv("CNAI_CLUSTER_NAME", "other")

        cfg = resolve_config()

        assert cfg.poll_interval == 5.0
        assert cfg.cluster_name == "other"

    def test_cli_overrides_env(self, monkeypatch):
        monkeypatch.setenv("CNAI_NAMESPACE", "from-env")
        cfg = resolve_config(namespace="from-cli", poll_max_attempts=0)

        assert cfg.namespace == "from-cli"
        assert cfg.poll_max_attempts == 0

    def test_cli_values_are_validated(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_config(poll_interval=0)
        assert exc_info.value.missing == ["poll_interval"]
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_invalid_env_value_is_configuration_error(self, monkeypatch):
        monkeypatch.setenv("CNAI_IMAGE_PRELOAD_WORKERS", "99")
        with pytest.raises(ConfigurationError, match="image_preload_workers"):
            resolve_config()

    @pytest.mark.parametrize("timeout", ["ten minutes", "10x", "m5", "1m30", ""])
    def test_invalid_rollout_timeout_rejected(self, timeout):
        with pytest.raises(ValidationError):
            InstallerConfig(rollout_timeout=timeout)

    @pytest.mark.parametrize("timeout", ["600", "90s", "10m", "1h", "1m30s", "1h15m30s"])
    def test_kubectl_durations_accepted(self, timeout):
        assert resolve_config(rollout_timeout=timeout).rollout_timeout == timeout


class TestPollPolicy:
    def test_from_config(self):
        cfg = resolve_config(poll_interval=0.5, poll_max_attempts=7, poll_timeout=30)
        policy = PollPolicy.from_config(cfg)

        assert policy == PollPolicy(interval=0.5, max_attempts=7, max_duration=30)
        assert not policy.unbounded

    def test_zero_bounds_are_unbounded(self):
        assert PollPolicy(max_attempts=0, max_duration=0).unbounded
