"""
Shared pytest fixtures for cnai-demo tests.

This module provides:
- FakeCluster: in-memory stand-in for kubectl/helm/kind/curl/bash/docker that
  records every call and models deployment and secret existence
- Credential and manifest directory fixtures
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import sh as real_sh
import yaml

from cnai_demo import cluster as cluster_mod
from cnai_demo import gateway, kube_secrets, mesh, readiness, utils, workloads
from cnai_demo.constants import (
    REL_GATEWAY_NODEPORT,
    REL_GATEWAY_WAYPOINT,
    REL_HTTP_GATEWAY,
    REL_KIALI_ROUTE,
    REL_ROUTES_DIR,
    REL_SERVICE_ENTRIES_DIR,
)
from cnai_demo.workloads import WORKLOADS

SH_MODULES = (cluster_mod, gateway, kube_secrets, mesh, readiness, utils, workloads)
MUTATING_TOOLS = {"kubectl", "helm", "kind", "bash", "docker"}


@dataclass
class Call:
    """One recorded command invocation."""

    tool: str
    args: tuple[str, ...]
    stdin: str | None = None

    @property
    def line(self) -> str:
        return " ".join((self.tool, *self.args))


@dataclass
class FakeCluster:
    """Records commands and answers existence probes from in-memory state.

    Attributes:
        calls: Every mutating or probing call, in order.
        deployments: Deployments that exist, as (namespace, name).
        pending: Applied-but-not-yet-visible deployments and the number of
            existence checks that still report absent.
        secrets: Secret data keyed by (namespace, name).
        crds: Installed CRD names.
        creation_delay: Absent checks reported for newly applied workloads.
        fail_on: Command line prefixes that fail with exit code 1.
        missing_tools: Commands ``which`` does not find.
    """

    calls: list[Call] = field(default_factory=list)
    deployments: set[tuple[str, str]] = field(default_factory=set)
    pending: dict[tuple[str, str], int] = field(default_factory=dict)
    secrets: dict[tuple[str, str], dict[str, str]] = field(default_factory=dict)
    crds: set[str] = field(default_factory=set)
    creation_delay: int = 1
    fail_on: list[str] = field(default_factory=list)
    missing_tools: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.docker_client = MagicMock()
        self.docker_client.images.pull.side_effect = self._docker_pull

    # -- Inspection helpers --

    def lines(self, tool: str | None = None) -> list[str]:
        return [c.line for c in self.calls if tool is None or c.tool == tool]

    def mutating_calls(self) -> list[Call]:
        return [c for c in self.calls if c.tool in MUTATING_TOOLS]

    # -- Command handlers --

    def _fail(self, line: str) -> None:
        for prefix in self.fail_on:
            if line.startswith(prefix):
                raise real_sh.ErrorReturnCode_1(line, b"", f"forced failure: {prefix}".encode())

    def _docker_pull(self, image: str):
        call = Call("docker", ("pull", image))
        self.calls.append(call)
        self._fail(call.line)
        return MagicMock()

    def handle(self, tool: str, *args, **kwargs) -> str:
        args = tuple(str(a) for a in args)
        if tool == "which":
            if args[0] in self.missing_tools:
                raise real_sh.ErrorReturnCode_1(f"which {args[0]}", b"", b"")
            return f"/usr/bin/{args[0]}"
        stdin = kwargs.get("_in")
        call = Call(tool, args, stdin)
        self.calls.append(call)
        self._fail(call.line)
        if tool == "curl":
            return "#!/usr/bin/env bash\necho bootstrap\n"
        if tool == "kubectl":
            self._kubectl(args, stdin)
        return ""

    def _kubectl(self, args: tuple[str, ...], stdin: str | None) -> None:
        namespace = _flag_value(args, "-n") or "default"
        if args[:3] == ("create", "secret", "generic"):
            name = args[3]
            if (namespace, name) in self.secrets:
                raise real_sh.ErrorReturnCode_1(
                    "kubectl create secret", b"", b"AlreadyExists")
            key, _, value = next(a for a in args if a.startswith("--from-literal=")) \
                .removeprefix("--from-literal=").partition("=")
            self.secrets[(namespace, name)] = {key: value}
        elif args[0] == "apply" and stdin is not None:
            for doc in yaml.safe_load_all(stdin):
                if doc:
                    self.pending[(namespace, doc["metadata"]["name"])] = self.creation_delay

    def run_kubectl(self, args: list[str], timeout: int = 30) -> tuple[bool, str, str]:
        self.calls.append(Call("kubectl-probe", tuple(args)))
        kind, name = args[1], args[2]
        namespace = _flag_value(tuple(args), "-n") or "default"
        if kind == "deployment":
            key = (namespace, name)
            if key in self.pending:
                if self.pending[key] == 0:
                    del self.pending[key]
                    self.deployments.add(key)
                else:
                    self.pending[key] -= 1
            found = key in self.deployments
        elif kind == "secret":
            found = (namespace, name) in self.secrets
        elif kind == "crd":
            found = name in self.crds
        else:
            found = False
        if found:
            return True, f"{kind}/{name}", ""
        return False, "", f'Error from server (NotFound): {kind} "{name}" not found'


class FakeSh:
    """Replacement for the ``sh`` module routing commands to a FakeCluster."""

    ErrorReturnCode = real_sh.ErrorReturnCode
    ErrorReturnCode_1 = real_sh.ErrorReturnCode_1

    def __init__(self, cluster: FakeCluster) -> None:
        self._cluster = cluster

    def __getattr__(self, tool: str):
        def _command(*args, **kwargs):
            return self._cluster.handle(tool, *args, **kwargs)
        return _command


def _flag_value(args: tuple[str, ...], flag: str) -> str | None:
    for i, arg in enumerate(args[:-1]):
        if arg == flag:
            return args[i + 1]
    return None


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep host credentials and CNAI_* settings out of every test."""
    for var in ("TOKEN", "REPO_USER", "OPENAI_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    for var in list(os.environ):
        if var.startswith("CNAI_"):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def fake_cluster(monkeypatch) -> FakeCluster:
    """Route every external command to an in-memory FakeCluster."""
    fake = FakeCluster()
    fake_sh = FakeSh(fake)
    for module in SH_MODULES:
        monkeypatch.setattr(module, "sh", fake_sh)
    monkeypatch.setattr(utils, "run_kubectl", fake.run_kubectl)
    monkeypatch.setattr(cluster_mod.docker, "from_env", lambda: fake.docker_client)
    return fake


@pytest.fixture
def write_env(tmp_path):
    """Write a .env file and return its path."""
    def _write(token: str = "ghp_test", repo_user: str = "octocat", openai: str = "sk-test") -> Path:
        env_file = tmp_path / ".env"
        env_file.write_text(
            f"TOKEN={token}\nREPO_USER={repo_user}\nOPENAI_API_KEY={openai}\n",
            encoding="utf-8",
        )
        return env_file
    return _write


@pytest.fixture
def templates_dir(tmp_path) -> Path:
    """Workload templates for every known workload."""
    root = tmp_path / "templates"
    for workload in WORKLOADS:
        path = root / workload.template
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            "apiVersion: agent.kagenti.dev/v1alpha1\n"
            "kind: Component\n"
            "metadata:\n"
            f"  name: {workload.name}\n"
            "spec:\n"
            "  source:\n"
            "    repository: https://github.com/${REPO_USER}/agent-examples\n"
            "  image: ghcr.io/${REPO_USER}/" + workload.name + ":latest\n",
            encoding="utf-8",
        )
    return root


@pytest.fixture
def resources_dir(tmp_path) -> Path:
    """Gateway, route, and service entry manifests."""
    root = tmp_path / "resources"
    root.mkdir()
    for rel in (REL_HTTP_GATEWAY, REL_GATEWAY_NODEPORT, REL_GATEWAY_WAYPOINT, REL_KIALI_ROUTE):
        (root / rel).write_text("apiVersion: v1\nkind: List\nitems: []\n", encoding="utf-8")
    for rel in (REL_ROUTES_DIR, REL_SERVICE_ENTRIES_DIR):
        (root / rel).mkdir()
        (root / rel / "example.yaml").write_text("apiVersion: v1\nkind: List\nitems: []\n",
                                                 encoding="utf-8")
    return root
