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

"""Utility functions for kubectl probes, templates, and command checks."""

from __future__ import annotations

import subprocess
from pathlib import Path

import sh

from cnai_demo.constants import KUBECTL_PROBE_TIMEOUT_SECONDS, REPO_USER_PLACEHOLDER
from cnai_demo.errors import ConfigurationError


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        ConfigurationError: If the command is not found.
    """
    # sh 2.x returns None for a missing command, older releases raise.
    try:
        found = sh.which(cmd)
    except sh.ErrorReturnCode:
        found = None
    if not found:
        raise ConfigurationError(
            f"Required command '{cmd}' not found. Please install it first.", missing=[cmd])


def run_kubectl(args: list[str], timeout: int = KUBECTL_PROBE_TIMEOUT_SECONDS) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Used for probes where a non-zero exit status is an answer rather than a
    failure (e.g. ``kubectl get`` on a resource that may not exist yet).

    Args:
        args: kubectl arguments (e.g. ``["get", "pods", "-n", "default"]``).
        timeout: Maximum seconds to wait for the command to complete.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            ["kubectl", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def resource_exists(kind: str, name: str, namespace: str | None = None) -> bool:
    """Return True if ``kubectl get <kind> <name>`` succeeds.

    Args:
        kind: Resource kind (``deployment``, ``secret``, ``crd``...).
        name: Resource name.
        namespace: Namespace, or None for cluster-scoped resources.
    """
    args = ["get", kind, name]
    if namespace:
        args += ["-n", namespace]
    ok, _, _ = run_kubectl(args)
    return ok


def deployment_exists(namespace: str, name: str) -> bool:
    """Return True if the named deployment exists in the namespace."""
    return resource_exists("deployment", name, namespace)


def require_path(path: Path) -> Path:
    """Return *path* if it exists.

    Raises:
        ConfigurationError: If the file or directory is missing.
    """
    if not path.exists():
        raise ConfigurationError(f"{path} not found", missing=[str(path)])
    return path


def render_template(template: Path, repo_user: str) -> str:
    """Read a manifest template and substitute every ``${REPO_USER}``.

    Args:
        template: Path of the template file.
        repo_user: Value substituted for the placeholder.

    Returns:
        The rendered manifest text.

    Raises:
        ConfigurationError: If the template file does not exist.
    """
    text = require_path(template).read_text(encoding="utf-8")
    return text.replace(REPO_USER_PLACEHOLDER, repo_user)
