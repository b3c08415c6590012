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

"""Istio ambient mesh and observability add-on installation."""

from __future__ import annotations

import sh
from rich.panel import Panel

from cnai_demo import console
from cnai_demo.config import InstallerConfig
from cnai_demo.constants import (
    ADDON_ROLLOUTS,
    DEFAULT_HELM_TIMEOUT,
    GATEWAY_API_RELEASE_URL,
    HELM_RELEASE_ISTIO_BASE,
    HELM_RELEASE_ISTIO_CNI,
    HELM_RELEASE_ISTIOD,
    HELM_RELEASE_ZTUNNEL,
    ISTIO_ADDONS_URL,
    ISTIO_AMBIENT_PROFILE,
    ISTIO_ROLLOUTS,
)
from cnai_demo.readiness import wait_for_rollout
from cnai_demo.utils import resource_exists


def gateway_api_manifest_url(version: str) -> str:
    """Build the Gateway API standard-install manifest URL for a release."""
    return f"{GATEWAY_API_RELEASE_URL}/{version}/standard-install.yaml"


def addon_manifest_urls(release: str, addons: list[str]) -> list[str]:
    """Build the Istio sample add-on manifest URLs for a release branch."""
    base_url = ISTIO_ADDONS_URL.format(release=release)
    return [f"{base_url}/{addon}" for addon in addons]


def _helm_install(
    release: str,
    chart: str,
    namespace: str,
    version: str = "",
    set_values: list[str] | None = None,
    create_namespace: bool = False,
) -> None:
    """Install or upgrade a chart and wait for its resources."""
    helm_args = ["upgrade", "--install", release, chart, "-n", namespace]
    if create_namespace:
        helm_args.append("--create-namespace")
    if version:
        helm_args += ["--version", version]
    for value in set_values or []:
        helm_args += ["--set", value]
    helm_args += ["--wait", "--timeout", DEFAULT_HELM_TIMEOUT]
    sh.helm(*helm_args)
    console.print(f"[green]  \u2713 {release}[/green]")


def install_gateway_api_crds(crd: str, version: str) -> bool:
    """Apply the Gateway API CRDs unless the gateway CRD is already present.

    Returns:
        True if the CRDs were applied.
    """
    if resource_exists("crd", crd):
        console.print("[yellow]   Gateway API CRDs already installed[/yellow]")
        return False
    sh.kubectl("apply", "-f", gateway_api_manifest_url(version))
    console.print(f"[green]  \u2713 Gateway API CRDs ({version})[/green]")
    return True


def install_istio_ambient(cfg: InstallerConfig, istio_deps: dict, gateway_api_deps: dict) -> None:
    """Install Istio in ambient mode using Helm and wait for its rollouts.

    Args:
        cfg: Installer settings with the Istio namespace and rollout timeout.
        istio_deps: ``istio`` section of dependencies.yaml.
        gateway_api_deps: ``gateway_api`` section of dependencies.yaml.
    """
    console.print(Panel.fit("Installing Istio ambient using Helm", style="bold blue"))
    repo = istio_deps["helm_repo"]
    version = istio_deps.get("version") or ""
    namespace = cfg.istio_namespace
    ambient = [f"profile={ISTIO_AMBIENT_PROFILE}"]

    sh.helm("repo", "add", repo, istio_deps["helm_repo_url"], "--force-update")
    sh.helm("repo", "update", repo)

    _helm_install(HELM_RELEASE_ISTIO_BASE, f"{repo}/base", namespace, version, create_namespace=True)
    install_gateway_api_crds(gateway_api_deps["crd"], gateway_api_deps["version"])
    _helm_install(HELM_RELEASE_ISTIOD, f"{repo}/istiod", namespace, version, set_values=ambient)
    _helm_install(HELM_RELEASE_ISTIO_CNI, f"{repo}/cni", namespace, version, set_values=ambient)
    _helm_install(HELM_RELEASE_ZTUNNEL, f"{repo}/ztunnel", namespace, version)

    for resource in ISTIO_ROLLOUTS:
        wait_for_rollout(resource, namespace, cfg.rollout_timeout)
    console.print("[green]\u2705 Istio ambient installed[/green]")


def install_addons(cfg: InstallerConfig, istio_deps: dict) -> None:
    """Install the Prometheus and Kiali sample add-ons and wait for them.

    Args:
        cfg: Installer settings with the Istio namespace and rollout timeout.
        istio_deps: ``istio`` section of dependencies.yaml.
    """
    console.print(Panel.fit("Installing Prometheus and Kiali", style="bold blue"))
    for url in addon_manifest_urls(istio_deps["addons_release"], istio_deps["addons"]):
        sh.kubectl("apply", "-f", url)
    for resource in ADDON_ROLLOUTS:
        wait_for_rollout(resource, cfg.istio_namespace, cfg.rollout_timeout)
    console.print("[green]\u2705 Observability add-ons installed[/green]")
