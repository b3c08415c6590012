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

"""
cli.py - CLI for the local cloud-native AI agent demo environment.

Subcommands:
    setup    Composite workflows (demo)
    install  Single steps (cluster, images, mesh, secrets, workloads, routes)
    check    Non-mutating checks (env, wait)

Environment Variables:
    Credentials are read from the .env file (TOKEN, REPO_USER, OPENAI_API_KEY).
    Installer settings can be overridden via CNAI_* environment variables:
    - CNAI_CLUSTER_NAME (default: agent-platform)
    - CNAI_NAMESPACE (default: default)
    - CNAI_ENV_FILE (default: .env)
    - CNAI_POLL_INTERVAL (default: 2)
    - CNAI_POLL_MAX_ATTEMPTS (default: 150, 0 = unbounded)
    - And more (see InstallerConfig for the full list)

Examples:
    # Full demo setup
    cnai-demo setup demo

    # Reuse an existing cluster, only redeploy workloads and routes
    cnai-demo setup demo --skip-cluster-creation --skip-preload --skip-mesh

    # Check credentials without touching the cluster
    cnai-demo check env

    # Wait for a single deployment, polling forever
    cnai-demo check wait mcp-web-fetch --poll-max-attempts 0
"""

from __future__ import annotations

import logging
import sys

import typer

from cnai_demo import console
from cnai_demo.commands import check_cmd, install_cmd, setup_cmd
from cnai_demo.errors import exit_code_for

app = typer.Typer(
    help="Provision the local cloud-native AI agent demo environment.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    # sh logs full command lines, which include secret literals.
    logging.getLogger("sh").setLevel(logging.WARNING)


app.add_typer(setup_cmd.app, name="setup")
app.add_typer(install_cmd.app, name="install")
app.add_typer(check_cmd.app, name="check")


def main() -> None:
    """Console script entry point."""
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(exit_code_for(e))


if __name__ == "__main__":
    main()
