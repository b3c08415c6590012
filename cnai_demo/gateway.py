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

"""Shared gateway, egress waypoint, HTTP routes, and namespace labels."""

from __future__ import annotations

from pathlib import Path

import sh
from rich.panel import Panel

from cnai_demo import console
from cnai_demo.config import InstallerConfig
from cnai_demo.constants import (
    ANNOTATION_SERVICE_TYPE,
    GATEWAY_NAME,
    LABEL_AMBIENT,
    LABEL_SHARED_GATEWAY,
    LABEL_USE_WAYPOINT,
    REL_GATEWAY_NODEPORT,
    REL_GATEWAY_WAYPOINT,
    REL_HTTP_GATEWAY,
    REL_KIALI_ROUTE,
    REL_ROUTES_DIR,
    REL_SERVICE_ENTRIES_DIR,
    WAYPOINT_DEPLOYMENT,
)
from cnai_demo.readiness import wait_for_rollout
from cnai_demo.utils import require_path


def apply_manifest(path: Path) -> None:
    """``kubectl apply -f`` a manifest file or a directory of manifests.

    Raises:
        ConfigurationError: If the path does not exist.
    """
    sh.kubectl("apply", "-f", str(require_path(path)))
    console.print(f"[green]  \u2713 applied {path.name}[/green]")


def label_namespace(namespace: str, *labels: str) -> None:
    """Set labels on a namespace, overwriting existing values."""
    sh.kubectl("label", "namespace", namespace, *labels, "--overwrite")


def install_gateway(cfg: InstallerConfig) -> None:
    """Create the HTTP gateway, its NodePort service, and the egress waypoint.

    Args:
        cfg: Installer settings with resource paths and namespaces.
    """
    resources = cfg.resources_dir
    # Fail before mutating anything if a manifest is missing.
    for rel in (REL_HTTP_GATEWAY, REL_GATEWAY_NODEPORT, REL_GATEWAY_WAYPOINT, REL_KIALI_ROUTE):
        require_path(resources / rel)

    console.print(Panel.fit("Creating gateway and nodeport service for external access", style="bold blue"))
    apply_manifest(resources / REL_HTTP_GATEWAY)
    apply_manifest(resources / REL_GATEWAY_NODEPORT)
    sh.kubectl(
        "annotate", "gateway", GATEWAY_NAME, ANNOTATION_SERVICE_TYPE,
        f"--namespace={cfg.gateway_namespace}", "--overwrite",
    )

    console.print(Panel.fit(f"Adding waypoint gateway for egress to '{cfg.namespace}'", style="bold blue"))
    apply_manifest(resources / REL_GATEWAY_WAYPOINT)
    wait_for_rollout(f"deployment/{WAYPOINT_DEPLOYMENT}", cfg.namespace, cfg.rollout_timeout)

    console.print(Panel.fit("Adding HTTP routing for kiali", style="bold blue"))
    apply_manifest(resources / REL_KIALI_ROUTE)
    label_namespace(cfg.istio_namespace, LABEL_SHARED_GATEWAY)
    console.print("[green]\u2705 Gateway configured[/green]")


def install_routes(cfg: InstallerConfig) -> None:
    """Add routes for agents and tools, egress service entries, and mesh labels.

    Assumes the workloads have already been deployed.

    Args:
        cfg: Installer settings with resource paths and namespaces.
    """
    resources = cfg.resources_dir
    for rel in (REL_ROUTES_DIR, REL_SERVICE_ENTRIES_DIR):
        require_path(resources / rel)

    console.print(Panel.fit("Adding HTTP routing for all agents and tools", style="bold blue"))
    apply_manifest(resources / REL_ROUTES_DIR)

    console.print(Panel.fit("Adding service entries for egress", style="bold blue"))
    apply_manifest(resources / REL_SERVICE_ENTRIES_DIR)

    console.print(Panel.fit(f"Adding '{cfg.namespace}' to the ambient mesh", style="bold blue"))
    label_namespace(cfg.namespace, LABEL_SHARED_GATEWAY)
    label_namespace(cfg.namespace, LABEL_USE_WAYPOINT)
    label_namespace(cfg.namespace, LABEL_AMBIENT)
    console.print("[green]\u2705 Routes installed[/green]")
