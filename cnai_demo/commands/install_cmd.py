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

"""Install subcommands, one per pipeline step."""

from __future__ import annotations

from pathlib import Path

import typer

from cnai_demo.commands import exit_on_error
from cnai_demo.config import resolve_config
from cnai_demo.orchestrator import StepName, StepOptions, build_steps, run_steps, validate

app = typer.Typer(help="Install individual components.")

ENV_FILE_OPTION = typer.Option(None, "--env-file", help="Credentials file")
RESOURCES_OPTION = typer.Option(None, "--resources-dir", help="Gateway and route manifests directory")
NAMESPACE_OPTION = typer.Option(None, "--namespace", help="Namespace for secrets and workloads")


def _run_step(step_name: StepName, options: StepOptions | None = None, **overrides) -> None:
    """Validate credentials and tools, then run a single step."""
    with exit_on_error():
        cfg = resolve_config(**overrides)
        steps = [step for step in build_steps(options) if step.name is step_name]
        ctx = validate(cfg, steps)
        run_steps(ctx, steps)


@app.command()
def cluster(
    env_file: Path | None = ENV_FILE_OPTION,
) -> None:
    """Create the kind cluster with the kagenti operator."""
    _run_step(StepName.PROVISION_INFRA, env_file=env_file)


@app.command()
def images(
    image: list[str] | None = typer.Option(None, "--image", help="Image to preload (repeatable)"),
    cluster_name: str | None = typer.Option(None, "--cluster-name", help="kind cluster name"),
    workers: int | None = typer.Option(None, "--workers", help="Images preloaded concurrently"),
    env_file: Path | None = ENV_FILE_OPTION,
) -> None:
    """Pull images and load them into the kind cluster."""
    options = StepOptions(images=tuple(image) if image else None)
    _run_step(StepName.LOAD_IMAGES, options, env_file=env_file,
              cluster_name=cluster_name, image_preload_workers=workers)


@app.command()
def mesh(
    resources_dir: Path | None = RESOURCES_OPTION,
    namespace: str | None = NAMESPACE_OPTION,
    env_file: Path | None = ENV_FILE_OPTION,
) -> None:
    """Install Istio ambient, Prometheus, Kiali, and the shared gateway."""
    _run_step(StepName.INSTALL_MESH, env_file=env_file,
              resources_dir=resources_dir, namespace=namespace)


@app.command()
def secrets(
    namespace: str | None = NAMESPACE_OPTION,
    env_file: Path | None = ENV_FILE_OPTION,
) -> None:
    """Create the credential secrets if they do not exist."""
    _run_step(StepName.CREATE_SECRETS, env_file=env_file, namespace=namespace)


@app.command()
def workloads(
    workload: list[str] | None = typer.Option(None, "--workload", help="Deploy only this workload (repeatable)"),
    templates_dir: Path | None = typer.Option(None, "--templates-dir", help="Workload templates directory"),
    namespace: str | None = NAMESPACE_OPTION,
    poll_interval: float | None = typer.Option(None, "--poll-interval", help="Seconds between checks"),
    poll_max_attempts: int | None = typer.Option(None, "--poll-max-attempts", help="0 = unbounded"),
    env_file: Path | None = ENV_FILE_OPTION,
) -> None:
    """Deploy the example agents and tools, waiting for each one."""
    options = StepOptions(workloads=tuple(workload) if workload else None)
    _run_step(StepName.DEPLOY_WORKLOADS, options, env_file=env_file,
              templates_dir=templates_dir, namespace=namespace,
              poll_interval=poll_interval, poll_max_attempts=poll_max_attempts)


@app.command()
def routes(
    resources_dir: Path | None = RESOURCES_OPTION,
    namespace: str | None = NAMESPACE_OPTION,
    env_file: Path | None = ENV_FILE_OPTION,
) -> None:
    """Install routes and service entries, and add the namespace to the mesh."""
    _run_step(StepName.INSTALL_ROUTES, env_file=env_file,
              resources_dir=resources_dir, namespace=namespace)
