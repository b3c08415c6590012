# /*
# Copyright 2026 The CNAI Demo Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Deployment readiness polling: wait for existence, then for rollout."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import sh
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    stop_any,
    stop_never,
    wait_fixed,
)

from cnai_demo import console, logger
from cnai_demo.config import PollPolicy
from cnai_demo.constants import DEFAULT_ROLLOUT_TIMEOUT
from cnai_demo.errors import ReadinessFailed, ReadinessTimeout
from cnai_demo.utils import deployment_exists


class ReadinessState(str, Enum):
    """Observed lifecycle of a polled deployment."""

    ABSENT = "absent"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass
class ReadinessResult:
    """Outcome of a readiness wait.

    Attributes:
        namespace: Namespace of the deployment.
        name: Deployment name.
        checks: Number of existence checks issued.
        history: States observed, in order, without consecutive repeats.
    """

    namespace: str
    name: str
    checks: int = 0
    history: list[ReadinessState] = field(default_factory=list)

    @property
    def state(self) -> ReadinessState | None:
        return self.history[-1] if self.history else None

    def observe(self, state: ReadinessState) -> None:
        if self.state is not state:
            self.history.append(state)


def wait_for_rollout(resource: str, namespace: str, timeout: str = DEFAULT_ROLLOUT_TIMEOUT) -> None:
    """Block until ``kubectl rollout status`` reports success.

    Args:
        resource: ``<kind>/<name>`` reference (e.g. ``daemonset/ztunnel``).
        namespace: Namespace of the resource.
        timeout: kubectl duration string.

    Raises:
        sh.ErrorReturnCode: If the rollout fails or times out.
    """
    console.print(f"[yellow]\u2139\ufe0f  Waiting for {resource} rollout in '{namespace}'...[/yellow]")
    sh.kubectl("rollout", "status", "-n", namespace, resource, f"--timeout={timeout}")
    console.print(f"[green]\u2705 {resource} is ready[/green]")


def _stop_condition(policy: PollPolicy):
    stops = []
    if policy.max_attempts:
        stops.append(stop_after_attempt(policy.max_attempts))
    if policy.max_duration:
        stops.append(stop_after_delay(policy.max_duration))
    if not stops:
        return stop_never
    return stop_any(*stops)


def wait_until_exists(
    namespace: str,
    name: str,
    policy: PollPolicy,
    result: ReadinessResult,
    *,
    exists: Callable[[str, str], bool] | None = None,
    sleep: Callable[[float], None] | None = None,
) -> None:
    """Poll for the deployment at a fixed interval until it exists.

    Args:
        namespace: Namespace of the deployment.
        name: Deployment name.
        policy: Interval and bounds for polling.
        result: Result updated with every check and state change.
        exists: Existence probe, defaults to ``kubectl get deployment``.
        sleep: Sleep function, defaults to ``time.sleep``.

    Raises:
        ReadinessTimeout: If the policy bounds are exhausted first.
    """
    probe = exists or deployment_exists

    def _check() -> bool:
        result.checks += 1
        found = probe(namespace, name)
        result.observe(ReadinessState.PENDING if found else ReadinessState.ABSENT)
        return found

    def _log_retry(retry_state: RetryCallState) -> None:
        logger.debug("deployment/%s not found in '%s' (check %d), retrying in %ss",
                     name, namespace, retry_state.attempt_number, policy.interval)

    retrying = Retrying(
        stop=_stop_condition(policy),
        wait=wait_fixed(policy.interval),
        retry=retry_if_result(lambda found: not found),
        before_sleep=_log_retry,
        sleep=sleep or time.sleep,
    )
    try:
        retrying(_check)
    except RetryError as err:
        raise ReadinessTimeout(namespace, name, result.checks) from err


def wait_for_deployment(
    namespace: str,
    name: str,
    policy: PollPolicy | None = None,
    *,
    rollout_timeout: str = DEFAULT_ROLLOUT_TIMEOUT,
    exists: Callable[[str, str], bool] | None = None,
    rollout: Callable[[str, str, str], None] | None = None,
    sleep: Callable[[float], None] | None = None,
) -> ReadinessResult:
    """Wait for a deployment to be created and then to finish rolling out.

    The deployment may be created asynchronously (e.g. by an operator
    reconciling a custom resource), so existence is polled first. Once it
    exists, the rollout wait is issued exactly once.

    Args:
        namespace: Namespace of the deployment.
        name: Deployment name.
        policy: Polling policy, defaults to ``PollPolicy()``.
        rollout_timeout: Timeout passed to ``kubectl rollout status``.
        exists: Existence probe ``(namespace, name) -> bool``.
        rollout: Rollout wait ``(resource, namespace, timeout) -> None``.
        sleep: Sleep function used between checks.

    Returns:
        The readiness result with the observed state history.

    Raises:
        ReadinessTimeout: If the deployment never appeared within the policy bounds.
        ReadinessFailed: If the rollout wait failed.
    """
    policy = policy or PollPolicy()
    result = ReadinessResult(namespace=namespace, name=name)
    console.print(f"[yellow]\u2139\ufe0f  Waiting for deployment/{name} to be created in '{namespace}'...[/yellow]")
    wait_until_exists(namespace, name, policy, result, exists=exists, sleep=sleep)
    logger.info("deployment/%s exists after %d check(s)", name, result.checks)

    wait_rollout = rollout or wait_for_rollout
    try:
        wait_rollout(f"deployment/{name}", namespace, rollout_timeout)
    except sh.ErrorReturnCode as err:
        result.observe(ReadinessState.FAILED)
        stderr = err.stderr.decode(errors="replace").strip() if err.stderr else ""
        failed = ReadinessFailed(namespace, name, f"rollout of deployment/{name} failed: {stderr[:200]}")
        failed.exit_code = err.exit_code or 1
        raise failed from err
    result.observe(ReadinessState.READY)
    return result
