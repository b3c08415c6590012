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

"""Non-mutating check subcommands (env, wait)."""

from __future__ import annotations

from pathlib import Path

import typer

from cnai_demo import console
from cnai_demo.commands import exit_on_error
from cnai_demo.config import PollPolicy, load_credentials, resolve_config, validate_credentials
from cnai_demo.readiness import wait_for_deployment

app = typer.Typer(help="Checks that never modify the cluster.")


@app.command()
def env(
    env_file: Path | None = typer.Option(None, "--env-file", help="Credentials file"),
) -> None:
    """Report which required credentials are set."""
    with exit_on_error():
        cfg = resolve_config(env_file=env_file)
        validate_credentials(load_credentials(cfg.env_file))


@app.command()
def wait(
    name: str = typer.Argument(..., help="Deployment name"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Deployment namespace"),
    poll_interval: float | None = typer.Option(None, "--poll-interval", help="Seconds between checks"),
    poll_max_attempts: int | None = typer.Option(None, "--poll-max-attempts", help="0 = unbounded"),
    poll_timeout: float | None = typer.Option(None, "--poll-timeout", help="0 = unbounded"),
    rollout_timeout: str | None = typer.Option(None, "--rollout-timeout", help="e.g. 10m"),
) -> None:
    """Wait for a deployment to exist and finish rolling out."""
    with exit_on_error():
        cfg = resolve_config(
            namespace=namespace,
            poll_interval=poll_interval,
            poll_max_attempts=poll_max_attempts,
            poll_timeout=poll_timeout,
            rollout_timeout=rollout_timeout,
        )
        result = wait_for_deployment(
            cfg.namespace, name, PollPolicy.from_config(cfg),
            rollout_timeout=cfg.rollout_timeout,
        )
        console.print(f"[green]deployment/{name} ready after {result.checks} check(s)[/green]")
