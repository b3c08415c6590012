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

"""Composite setup subcommands (demo)."""

from __future__ import annotations

from pathlib import Path

import typer

from cnai_demo.commands import exit_on_error
from cnai_demo.config import display_config, resolve_config
from cnai_demo.orchestrator import StepName, StepOptions, run_demo_setup

app = typer.Typer(help="Composite setup workflows.")


@app.command()
def demo(
    # Opt-out flags (on by default)
    skip_cluster_creation: bool = typer.Option(
        False, "--skip-cluster-creation", help="Skip kind cluster and kagenti operator bootstrap"),
    skip_preload: bool = typer.Option(
        False, "--skip-preload", help="Skip preloading images into kind"),
    skip_mesh: bool = typer.Option(
        False, "--skip-mesh", help="Skip Istio, add-ons, and gateway installation"),
    skip_secrets: bool = typer.Option(
        False, "--skip-secrets", help="Skip credential secret creation"),
    skip_workloads: bool = typer.Option(
        False, "--skip-workloads", help="Skip example workload deployment"),
    skip_routes: bool = typer.Option(
        False, "--skip-routes", help="Skip routes, service entries, and mesh labels"),
    # Selection
    workload: list[str] | None = typer.Option(
        None, "--workload", help="Deploy only this workload (repeatable)"),
    image: list[str] | None = typer.Option(
        None, "--image", help="Preload this image instead of the defaults (repeatable)"),
    # Paths and names
    env_file: Path | None = typer.Option(
        None, "--env-file", help="Credentials file (overrides CNAI_ENV_FILE)"),
    resources_dir: Path | None = typer.Option(
        None, "--resources-dir", help="Gateway and route manifests directory"),
    templates_dir: Path | None = typer.Option(
        None, "--templates-dir", help="Workload templates directory"),
    cluster_name: str | None = typer.Option(
        None, "--cluster-name", help="kind cluster name"),
    namespace: str | None = typer.Option(
        None, "--namespace", help="Namespace for secrets and workloads"),
    # Readiness
    poll_interval: float | None = typer.Option(
        None, "--poll-interval", help="Seconds between deployment existence checks"),
    poll_max_attempts: int | None = typer.Option(
        None, "--poll-max-attempts", help="Maximum existence checks (0 = unbounded)"),
    poll_timeout: float | None = typer.Option(
        None, "--poll-timeout", help="Maximum seconds spent polling (0 = unbounded)"),
    rollout_timeout: str | None = typer.Option(
        None, "--rollout-timeout", help="kubectl rollout status timeout (e.g. 10m)"),
    preload_workers: int | None = typer.Option(
        None, "--preload-workers", help="Images preloaded concurrently"),
) -> None:
    """Full demo setup: cluster + images + mesh + secrets + workloads + routes.

    Use --skip-* flags to opt out of individual steps. Credentials are always
    validated first.
    """
    skip_flags = {
        StepName.PROVISION_INFRA: skip_cluster_creation,
        StepName.LOAD_IMAGES: skip_preload,
        StepName.INSTALL_MESH: skip_mesh,
        StepName.CREATE_SECRETS: skip_secrets,
        StepName.DEPLOY_WORKLOADS: skip_workloads,
        StepName.INSTALL_ROUTES: skip_routes,
    }
    options = StepOptions(
        skip=frozenset(name for name, skipped in skip_flags.items() if skipped),
        workloads=tuple(workload) if workload else None,
        images=tuple(image) if image else None,
    )

    with exit_on_error():
        cfg = resolve_config(
            env_file=env_file,
            resources_dir=resources_dir,
            templates_dir=templates_dir,
            cluster_name=cluster_name,
            namespace=namespace,
            poll_interval=poll_interval,
            poll_max_attempts=poll_max_attempts,
            poll_timeout=poll_timeout,
            rollout_timeout=rollout_timeout,
            image_preload_workers=preload_workers,
        )
        display_config(cfg)
        run_demo_setup(cfg, options)
