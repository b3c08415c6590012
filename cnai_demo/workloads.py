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

"""Example agent and tool workloads: render, apply, and wait for readiness."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

import sh
from rich.panel import Panel

from cnai_demo import console
from cnai_demo.config import PollPolicy
from cnai_demo.constants import DEFAULT_ROLLOUT_TIMEOUT
from cnai_demo.errors import ConfigurationError
from cnai_demo.readiness import ReadinessResult, wait_for_deployment
from cnai_demo.utils import render_template


@dataclass(frozen=True)
class Workload:
    """An example workload deployed from a manifest template.

    Attributes:
        name: Name of the Deployment the manifest ends up creating.
        template: Template path relative to the templates directory.
        title: Human readable description for step banners.
    """

    name: str
    template: str
    title: str


WORKLOADS: tuple[Workload, ...] = (
    Workload("a2a-currency-agent", "a2a/a2a-currency-agent.yaml",
             "a2a langgraph currency agent"),
    Workload("a2a-contact-extractor-agent", "a2a/a2a-contact-extractor-agent.yaml",
             "a2a contact extractor agent"),
    Workload("acp-ollama-researcher", "acp/acp-ollama-researcher.yaml",
             "acp ollama researcher agent"),
    Workload("mcp-web-fetch", "mcp/mcp-web-fetch.yaml",
             "mcp web fetch tool"),
    Workload("mcp-get-weather", "mcp/mcp-get-weather.yaml",
             "mcp get weather tool"),
    Workload("acp-weather-service", "acp/acp-ollama-weather-service.yaml",
             "acp ollama weather service agent"),
)


def select_workloads(names: Iterable[str] | None = None) -> list[Workload]:
    """Return workloads in deployment order, optionally restricted by name.

    Raises:
        ConfigurationError: If a requested name is not a known workload.
    """
    if not names:
        return list(WORKLOADS)
    wanted = set(names)
    unknown = sorted(wanted - {w.name for w in WORKLOADS})
    if unknown:
        raise ConfigurationError(f"Unknown workloads: {', '.join(unknown)}", missing=unknown)
    return [w for w in WORKLOADS if w.name in wanted]


def deploy_workload(
    workload: Workload,
    templates_dir: Path,
    repo_user: str,
    namespace: str,
    policy: PollPolicy,
    rollout_timeout: str = DEFAULT_ROLLOUT_TIMEOUT,
    sleep: Callable[[float], None] | None = None,
) -> ReadinessResult:
    """Render a workload template, apply it, and wait until it is ready.

    Args:
        workload: Workload descriptor.
        templates_dir: Directory holding the templates.
        repo_user: Value substituted for ``${REPO_USER}``.
        namespace: Namespace the deployment is expected in.
        policy: Existence polling policy.
        rollout_timeout: Timeout passed to ``kubectl rollout status``.
        sleep: Sleep function used between existence checks.

    Returns:
        The readiness result for the workload's deployment.
    """
    console.print(Panel.fit(f"Building and deploying the {workload.title}", style="bold blue"))
    manifest = render_template(templates_dir / workload.template, repo_user)
    sh.kubectl("apply", "-n", namespace, "-f", "-", _in=manifest)
    return wait_for_deployment(
        namespace, workload.name, policy,
        rollout_timeout=rollout_timeout, sleep=sleep,
    )


def deploy_workloads(
    workloads: Iterable[Workload],
    templates_dir: Path,
    repo_user: str,
    namespace: str,
    policy: PollPolicy,
    rollout_timeout: str = DEFAULT_ROLLOUT_TIMEOUT,
    sleep: Callable[[float], None] | None = None,
) -> list[ReadinessResult]:
    """Deploy workloads one at a time; each must be ready before the next."""
    results = []
    for workload in workloads:
        results.append(deploy_workload(
            workload, templates_dir, repo_user, namespace, policy, rollout_timeout, sleep))
    console.print(f"[green]\u2705 {len(results)} workloads deployed[/green]")
    return results
