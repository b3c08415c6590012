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

"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load component versions, images, and URLs from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Credentials (order is the reporting order) --
REQUIRED_ENV_VARS = ("TOKEN", "REPO_USER", "OPENAI_API_KEY")
REPO_USER_PLACEHOLDER = "${REPO_USER}"

# -- Namespaces --
NS_DEFAULT = "default"
NS_ISTIO_SYSTEM = "istio-system"
NS_KAGENTI_SYSTEM = "kagenti-system"

# -- Secrets --
SECRET_GITHUB_TOKEN = "github-token-secret"
SECRET_GITHUB_TOKEN_KEY = "token"
SECRET_OPENAI = "openai-secret"
SECRET_OPENAI_KEY = "apikey"

# -- Helm releases (istio-system) --
HELM_RELEASE_ISTIO_BASE = "istio-base"
HELM_RELEASE_ISTIOD = "istiod"
HELM_RELEASE_ISTIO_CNI = "istio-cni"
HELM_RELEASE_ZTUNNEL = "ztunnel"
ISTIO_AMBIENT_PROFILE = "ambient"

# -- Mesh rollouts --
ISTIO_ROLLOUTS = (
    "daemonset/ztunnel",
    "daemonset/istio-cni-node",
    "deployment/istiod",
)
ADDON_ROLLOUTS = (
    "deployment/kiali",
    "deployment/prometheus",
)

# -- Gateway --
GATEWAY_NAME = "http"
WAYPOINT_DEPLOYMENT = "waypoint"
ANNOTATION_SERVICE_TYPE = "networking.istio.io/service-type=ClusterIP"
LABEL_SHARED_GATEWAY = "shared-gateway-access=true"
LABEL_USE_WAYPOINT = "istio.io/use-waypoint=waypoint"
LABEL_AMBIENT = "istio.io/dataplane-mode=ambient"

# -- Relative paths (under the resources directory) --
REL_HTTP_GATEWAY = "http-gateway.yaml"
REL_GATEWAY_NODEPORT = "gateway-nodeport.yaml"
REL_GATEWAY_WAYPOINT = "gateway-waypoint.yaml"
REL_KIALI_ROUTE = "kiali-route.yaml"
REL_ROUTES_DIR = "routes"
REL_SERVICE_ENTRIES_DIR = "service-entries"

# -- Upstream URLs --
GATEWAY_API_RELEASE_URL = "https://github.com/kubernetes-sigs/gateway-api/releases/download"
ISTIO_ADDONS_URL = "https://raw.githubusercontent.com/istio/istio/{release}/samples/addons"

# -- Installer defaults --
DEFAULT_CLUSTER_NAME = "agent-platform"
DEFAULT_ENV_FILE = ".env"
DEFAULT_RESOURCES_DIR = "resources"
DEFAULT_TEMPLATES_DIR = "templates"
DEFAULT_ROLLOUT_TIMEOUT = "10m"
DEFAULT_HELM_TIMEOUT = "10m"

# -- Readiness polling --
DEFAULT_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_POLL_MAX_ATTEMPTS = 150
DEFAULT_POLL_TIMEOUT_SECONDS = 0.0

# -- Parallelism & limits --
DEFAULT_IMAGE_PRELOAD_MAX_WORKERS = 1
MAX_IMAGE_PRELOAD_WORKERS = 8
KUBECTL_PROBE_TIMEOUT_SECONDS = 30

# -- Exit codes --
EXIT_CONFIG_ERROR = 1
EXIT_READINESS_TIMEOUT = 2
