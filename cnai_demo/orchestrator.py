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

"""Orchestration: the install pipeline as an ordered list of named steps."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from rich.panel import Panel

from cnai_demo import console, logger
from cnai_demo.cluster import bootstrap_cluster, preload_images
from cnai_demo.config import (
    InstallContext,
    InstallerConfig,
    build_context,
    load_credentials,
    validate_credentials,
)
from cnai_demo.constants import dep_value
from cnai_demo.errors import StepError
from cnai_demo.gateway import install_gateway, install_routes
from cnai_demo.kube_secrets import create_credential_secrets
from cnai_demo.mesh import install_addons, install_istio_ambient
from cnai_demo.utils import require_command
from cnai_demo.workloads import deploy_workloads, select_workloads


class StepName(str, Enum):
    """Pipeline steps, in execution order."""

    PROVISION_INFRA = "provision-infra"
    LOAD_IMAGES = "load-images"
    INSTALL_MESH = "install-mesh"
    CREATE_SECRETS = "create-secrets"
    DEPLOY_WORKLOADS = "deploy-workloads"
    INSTALL_ROUTES = "install-routes"


@dataclass(frozen=True)
class Step:
    """A named pipeline step and the callable that performs it."""

    name: StepName
    run: Callable[[InstallContext], None]
    tools: tuple[str, ...] = ()


@dataclass(frozen=True)
class StepOptions:
    """Which steps to skip, and optional workload selection.

    Attributes:
        skip: Step names the operator opted out of.
        workloads: Workload names to deploy, or None for all.
        images: Image references to preload, or None for dependencies.yaml.
    """

    skip: frozenset[StepName] = frozenset()
    workloads: tuple[str, ...] | None = None
    images: tuple[str, ...] | None = None


# ============================================================================
# Step implementations
# ============================================================================

def _provision_infra(ctx: InstallContext) -> None:
    bootstrap_cluster(ctx.dependencies["kagenti_operator"]["install_script"])


def _load_images(ctx: InstallContext, images: tuple[str, ...] | None = None) -> None:
    to_load = list(images) if images is not None else dep_value("preload_images", default=[])
    preload_images(to_load, ctx.config.cluster_name, ctx.config.image_preload_workers)


def _install_mesh(ctx: InstallContext) -> None:
    install_istio_ambient(ctx.config, ctx.dependencies["istio"], ctx.dependencies["gateway_api"])
    install_addons(ctx.config, ctx.dependencies["istio"])
    install_gateway(ctx.config)


def _create_secrets(ctx: InstallContext) -> None:
    create_credential_secrets(ctx.credentials, ctx.config.namespace)


def _deploy_workloads(ctx: InstallContext, names: tuple[str, ...] | None = None) -> None:
    deploy_workloads(
        select_workloads(names),
        ctx.config.templates_dir,
        ctx.credentials.repo_user,
        ctx.config.namespace,
        ctx.poll,
        ctx.config.rollout_timeout,
    )


def _install_routes(ctx: InstallContext) -> None:
    install_routes(ctx.config)


def build_steps(options: StepOptions | None = None) -> list[Step]:
    """Return the enabled pipeline steps in execution order."""
    options = options or StepOptions()
    steps = [
        Step(StepName.PROVISION_INFRA, _provision_infra, ("curl", "bash")),
        Step(StepName.LOAD_IMAGES, lambda ctx: _load_images(ctx, options.images), ("docker", "kind")),
        Step(StepName.INSTALL_MESH, _install_mesh, ("helm",)),
        Step(StepName.CREATE_SECRETS, _create_secrets),
        Step(StepName.DEPLOY_WORKLOADS, lambda ctx: _deploy_workloads(ctx, options.workloads)),
        Step(StepName.INSTALL_ROUTES, _install_routes),
    ]
    return [step for step in steps if step.name not in options.skip]


# ============================================================================
# Public API
# ============================================================================

def check_prerequisites(steps: list[Step]) -> None:
    """Check that every CLI tool needed by the enabled steps is on PATH.

    Raises:
        ConfigurationError: If a tool is missing.
    """
    console.print(Panel.fit("Checking prerequisites", style="bold blue"))
    prereqs = ["kubectl"]
    for step in steps:
        prereqs.extend(tool for tool in step.tools if tool not in prereqs)
    for cmd in prereqs:
        require_command(cmd)
    console.print("[green]\u2705 All required tools are available[/green]")


def validate(cfg: InstallerConfig, steps: list[Step]) -> InstallContext:
    """Load and validate credentials and tools; nothing is mutated.

    Args:
        cfg: Resolved installer settings.
        steps: Steps that will run afterwards.

    Returns:
        The immutable context passed to every step.

    Raises:
        ConfigurationError: If credentials, the env file, or tools are missing.
    """
    console.print(Panel.fit("Checking env variables are all set", style="bold blue"))
    credentials = load_credentials(cfg.env_file)
    validate_credentials(credentials)
    check_prerequisites(steps)
    return build_context(cfg, credentials)


def run_steps(ctx: InstallContext, steps: list[Step]) -> list[StepName]:
    """Run steps in order, stopping at the first failure.

    Args:
        ctx: Validated install context.
        steps: Steps to run.

    Returns:
        Names of the steps that completed.

    Raises:
        StepError: Naming the step that failed, wrapping the cause.
    """
    completed: list[StepName] = []
    for step in steps:
        logger.info("Starting step %s", step.name.value)
        try:
            step.run(ctx)
        except Exception as err:
            logger.error("Step %s failed: %s", step.name.value, err)
            raise StepError(step.name.value, err) from err
        completed.append(step.name)
        logger.info("Finished step %s", step.name.value)
    return completed


def run_demo_setup(cfg: InstallerConfig, options: StepOptions | None = None) -> list[StepName]:
    """Validate, then run every enabled step of the demo setup.

    Args:
        cfg: Resolved installer settings.
        options: Step skips and selections.

    Returns:
        Names of the steps that completed.

    Raises:
        ConfigurationError: If validation fails (no step runs).
        StepError: If a step fails.
    """
    steps = build_steps(options)
    ctx = validate(cfg, steps)
    completed = run_steps(ctx, steps)
    console.print(Panel.fit("Demo environment ready", style="bold green"))
    return completed
