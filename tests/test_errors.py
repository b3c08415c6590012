"""Tests for exit code resolution."""

from __future__ import annotations

import sh

from cnai_demo.errors import (
    ConfigurationError,
    ReadinessTimeout,
    StepError,
    exit_code_for,
)


def test_configuration_error_exits_1():
    assert exit_code_for(ConfigurationError("missing TOKEN", missing=["TOKEN"])) == 1


def test_readiness_timeout_exits_2():
    assert exit_code_for(ReadinessTimeout("default", "mcp-web-fetch", attempts=150)) == 2


def test_failing_command_exit_code_is_preserved():
    err = sh.ErrorReturnCode_3("helm upgrade --install istiod", b"", b"timed out")
    assert exit_code_for(err) == 3


def test_step_error_delegates_to_cause():
    timeout = ReadinessTimeout("default", "mcp-web-fetch", attempts=5)
    assert exit_code_for(StepError("deploy-workloads", timeout)) == 2
    assert StepError("deploy-workloads", timeout).exit_code == 2

    failed = sh.ErrorReturnCode_3("kind load docker-image alpine:latest", b"", b"")
    assert exit_code_for(StepError("load-images", failed)) == 3


def test_unexpected_errors_exit_1():
    assert exit_code_for(OSError("kubectl vanished")) == 1
    assert exit_code_for(StepError("install-routes", KeyError("routes"))) == 1
