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

"""Create-if-absent Kubernetes secrets backed by credentials."""

from __future__ import annotations

import sh
from rich.panel import Panel

from cnai_demo import console, logger
from cnai_demo.config import Credentials
from cnai_demo.constants import (
    SECRET_GITHUB_TOKEN,
    SECRET_GITHUB_TOKEN_KEY,
    SECRET_OPENAI,
    SECRET_OPENAI_KEY,
)
from cnai_demo.errors import InstallerError
from cnai_demo.utils import resource_exists


class SecretCreationError(InstallerError):
    """``kubectl create secret`` failed (message never contains the value)."""


def ensure_secret(name: str, key: str, value: str, namespace: str) -> bool:
    """Create a generic secret holding one literal value, unless it exists.

    An existing secret is never overwritten; rotating a value requires
    deleting the secret first.

    Args:
        name: Secret name.
        key: Data key inside the secret.
        value: Literal secret value.
        namespace: Namespace of the secret.

    Returns:
        True if the secret was created, False if it already existed.

    Raises:
        SecretCreationError: If the create command fails.
    """
    if resource_exists("secret", name, namespace):
        console.print(f"[yellow]   secret {name} already exists[/yellow]")
        return False

    try:
        sh.kubectl(
            "create", "secret", "generic", name,
            "-n", namespace,
            f"--from-literal={key}={value}",
        )
    except sh.ErrorReturnCode as err:
        stderr = err.stderr.decode(errors="replace").strip() if err.stderr else ""
        failed = SecretCreationError(f"Failed to create secret {name}: {stderr[:200]}")
        failed.exit_code = err.exit_code or 1
        raise failed from None
    logger.info("Created secret %s in namespace %s", name, namespace)
    console.print(f"[green]\u2705 Secret {name} created[/green]")
    return True


def create_credential_secrets(credentials: Credentials, namespace: str) -> dict[str, bool]:
    """Create the git token and OpenAI secrets if they are missing.

    Args:
        credentials: Validated credentials.
        namespace: Namespace for both secrets.

    Returns:
        Mapping of secret name to whether it was created in this run.
    """
    console.print(Panel.fit("Creating credential secrets", style="bold blue"))
    return {
        SECRET_GITHUB_TOKEN: ensure_secret(
            SECRET_GITHUB_TOKEN, SECRET_GITHUB_TOKEN_KEY,
            credentials.token.get_secret_value(), namespace),
        SECRET_OPENAI: ensure_secret(
            SECRET_OPENAI, SECRET_OPENAI_KEY,
            credentials.openai_api_key.get_secret_value(), namespace),
    }
