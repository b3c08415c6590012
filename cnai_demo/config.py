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

"""Credentials, installer settings, and credential validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict
from rich.panel import Panel

from cnai_demo import console, logger
from cnai_demo.constants import (
    DEFAULT_CLUSTER_NAME,
    DEFAULT_ENV_FILE,
    DEFAULT_IMAGE_PRELOAD_MAX_WORKERS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    DEFAULT_RESOURCES_DIR,
    DEFAULT_ROLLOUT_TIMEOUT,
    DEFAULT_TEMPLATES_DIR,
    DEPENDENCIES,
    MAX_IMAGE_PRELOAD_WORKERS,
    NS_DEFAULT,
    NS_ISTIO_SYSTEM,
    NS_KAGENTI_SYSTEM,
    REQUIRED_ENV_VARS,
)
from cnai_demo.errors import ConfigurationError


# ============================================================================
# Configuration classes
# ============================================================================

class Credentials(BaseSettings):
    """Secrets sourced once from the local .env file.

    Values in the file take precedence over process environment variables of
    the same name, which only fill in keys the file does not set. Values default to empty so that validation can report every missing
    variable at once instead of failing on the first.

    Attributes:
        token: Git hosting token stored in the github token secret.
        repo_user: Identity substituted into workload templates.
        openai_api_key: API key stored in the openai secret.
    """

    model_config = SettingsConfigDict(extra="ignore", frozen=True)

    token: SecretStr = SecretStr("")
    repo_user: str = ""
    openai_api_key: SecretStr = SecretStr("")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # The .env file is sourced over the shell, so it wins for every key it sets.
        return init_settings, dotenv_settings, env_settings

    def value_of(self, var_name: str) -> str:
        """Return the plain value for a required variable name."""
        value = getattr(self, var_name.lower())
        if isinstance(value, SecretStr):
            return value.get_secret_value()
        return value


class InstallerConfig(BaseSettings):
    """Installer settings, auto-loaded from CNAI_* env vars.

    Attributes:
        cluster_name: Name of the kind cluster created by the kagenti installer.
        namespace: Namespace for secrets, workloads, and the egress waypoint.
        istio_namespace: Namespace for the Istio control plane and add-ons.
        gateway_namespace: Namespace holding the shared HTTP gateway.
        env_file: Path of the key=value credentials file.
        resources_dir: Directory with gateway, route, and service entry manifests.
        templates_dir: Directory with workload manifest templates.
        rollout_timeout: Timeout passed to ``kubectl rollout status``.
        poll_interval: Seconds between deployment existence checks.
        poll_max_attempts: Maximum existence checks, 0 for unbounded.
        poll_timeout: Maximum seconds spent polling, 0 for unbounded.
        image_preload_workers: Images preloaded concurrently.
    """

    model_config = SettingsConfigDict(env_prefix="CNAI_", extra="ignore", frozen=True)

    cluster_name: str = DEFAULT_CLUSTER_NAME
    namespace: str = NS_DEFAULT
    istio_namespace: str = NS_ISTIO_SYSTEM
    gateway_namespace: str = NS_KAGENTI_SYSTEM
    env_file: Path = Path(DEFAULT_ENV_FILE)
    resources_dir: Path = Path(DEFAULT_RESOURCES_DIR)
    templates_dir: Path = Path(DEFAULT_TEMPLATES_DIR)
    rollout_timeout: str = Field(default=DEFAULT_ROLLOUT_TIMEOUT, pattern=r"^(\d+[hms])+$|^\d+$")
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    poll_max_attempts: int = Field(default=DEFAULT_POLL_MAX_ATTEMPTS, ge=0)
    poll_timeout: float = Field(default=DEFAULT_POLL_TIMEOUT_SECONDS, ge=0)
    image_preload_workers: int = Field(
        default=DEFAULT_IMAGE_PRELOAD_MAX_WORKERS, ge=1, le=MAX_IMAGE_PRELOAD_WORKERS)


@dataclass(frozen=True)
class PollPolicy:
    """Existence polling bounds for the readiness poller.

    Attributes:
        interval: Fixed seconds between checks.
        max_attempts: Maximum number of checks, 0 for unbounded.
        max_duration: Maximum seconds spent polling, 0 for unbounded.
    """

    interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS
    max_duration: float = DEFAULT_POLL_TIMEOUT_SECONDS

    @property
    def unbounded(self) -> bool:
        return self.max_attempts == 0 and self.max_duration == 0

    @classmethod
    def from_config(cls, cfg: InstallerConfig) -> PollPolicy:
        return cls(
            interval=cfg.poll_interval,
            max_attempts=cfg.poll_max_attempts,
            max_duration=cfg.poll_timeout,
        )


@dataclass(frozen=True)
class InstallContext:
    """Everything a pipeline step needs, resolved once at startup.

    Attributes:
        config: Resolved installer settings.
        credentials: Validated credentials.
        poll: Readiness polling policy.
        dependencies: Parsed dependencies.yaml content.
    """

    config: InstallerConfig
    credentials: Credentials
    poll: PollPolicy
    dependencies: dict


# ============================================================================
# Credential loading and validation
# ============================================================================

def load_credentials(env_file: Path) -> Credentials:
    """Load credentials from a key=value env file.

    Args:
        env_file: Path of the credentials file.

    Returns:
        Loaded (not yet validated) credentials.

    Raises:
        ConfigurationError: If the env file does not exist.
    """
    if not env_file.is_file():
        console.print(f"[red]Error:[/red] {env_file} file not found.")
        raise ConfigurationError(f"{env_file} file not found", missing=[str(env_file)])
    logger.debug("Loading credentials from %s", env_file)
    return Credentials(_env_file=env_file)


def validate_credentials(
    credentials: Credentials,
    required: tuple[str, ...] = REQUIRED_ENV_VARS,
) -> None:
    """Check every required variable and report each one.

    All variables are checked before failing so the operator sees the full
    list of missing values in a single run.

    Args:
        credentials: Loaded credentials.
        required: Ordered variable names to check.

    Raises:
        ConfigurationError: If one or more variables are unset or empty.
    """
    missing: list[str] = []
    for var_name in required:
        if credentials.value_of(var_name).strip():
            console.print(f"[green]Success:[/green] The environment variable [bold yellow]{var_name}[/bold yellow] is set.")
        else:
            console.print(f"[red]Error:[/red] The environment variable [bold yellow]{var_name}[/bold yellow] is not set.")
            missing.append(var_name)

    if missing:
        console.print("[red]Exiting:[/red] One or more required environment variables are not set.")
        raise ConfigurationError(
            f"missing required environment variables: {', '.join(missing)}", missing=missing)
    console.print("[green]All env vars checks passed.[/green]")


def resolve_config(
    *,
    env_file: Path | None = None,
    resources_dir: Path | None = None,
    templates_dir: Path | None = None,
    cluster_name: str | None = None,
    namespace: str | None = None,
    poll_interval: float | None = None,
    poll_max_attempts: int | None = None,
    poll_timeout: float | None = None,
    rollout_timeout: str | None = None,
    image_preload_workers: int | None = None,
) -> InstallerConfig:
    """Merge CLI overrides, environment variables, and defaults.

    Resolution priority: CLI arguments > CNAI_* environment variables > defaults.

    Returns:
        Resolved installer settings.

    Raises:
        ConfigurationError: If a CLI or CNAI_* value fails validation.
    """
    overrides = {
        "env_file": env_file,
        "resources_dir": resources_dir,
        "templates_dir": templates_dir,
        "cluster_name": cluster_name,
        "namespace": namespace,
        "poll_interval": poll_interval,
        "poll_max_attempts": poll_max_attempts,
        "poll_timeout": poll_timeout,
        "rollout_timeout": rollout_timeout,
        "image_preload_workers": image_preload_workers,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    try:
        cfg = InstallerConfig()
        if overrides:
            # Re-validate so CLI values get the same Field constraints as env values.
            cfg = InstallerConfig.model_validate({**cfg.model_dump(), **overrides})
    except ValidationError as err:
        fields = sorted({str(e["loc"][0]) for e in err.errors() if e["loc"]})
        console.print(f"[red]Error:[/red] invalid value for {', '.join(fields)}")
        raise ConfigurationError(f"invalid installer settings: {', '.join(fields)}", missing=fields) from err
    return cfg


def build_context(cfg: InstallerConfig, credentials: Credentials) -> InstallContext:
    """Bundle settings and validated credentials for the pipeline."""
    return InstallContext(
        config=cfg,
        credentials=credentials,
        poll=PollPolicy.from_config(cfg),
        dependencies=DEPENDENCIES,
    )


# ============================================================================
# Display
# ============================================================================

def display_config(cfg: InstallerConfig) -> None:
    """Print the resolved settings (never the credentials)."""
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print(f"  cluster_name      : {cfg.cluster_name}")
    console.print(f"  namespace         : {cfg.namespace}")
    console.print(f"  istio_namespace   : {cfg.istio_namespace}")
    console.print(f"  gateway_namespace : {cfg.gateway_namespace}")
    console.print(f"  env_file          : {cfg.env_file}")
    console.print(f"  resources_dir     : {cfg.resources_dir}")
    console.print(f"  templates_dir     : {cfg.templates_dir}")
    console.print(f"  rollout_timeout   : {cfg.rollout_timeout}")
    attempts = cfg.poll_max_attempts or "unbounded"
    console.print(f"  poll              : every {cfg.poll_interval}s, max attempts {attempts}")
    if cfg.poll_timeout:
        console.print(f"  poll_timeout      : {cfg.poll_timeout}s")
    console.print(f"  preload_workers   : {cfg.image_preload_workers}")
