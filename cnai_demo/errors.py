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

"""Installer error types and exit code resolution."""

from __future__ import annotations

import sh

from cnai_demo.constants import EXIT_CONFIG_ERROR, EXIT_READINESS_TIMEOUT


class InstallerError(RuntimeError):
    """Base class for failures that end an installer run."""

    exit_code = 1


class ConfigurationError(InstallerError):
    """Raised before any mutating call when inputs are incomplete.

    Attributes:
        missing: Names of the missing variables, tools, or files.
    """

    exit_code = EXIT_CONFIG_ERROR

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class ReadinessError(InstallerError):
    """A polled deployment did not become ready."""

    def __init__(self, namespace: str, name: str, message: str) -> None:
        super().__init__(message)
        self.namespace = namespace
        self.name = name


class ReadinessTimeout(ReadinessError):
    """Existence polling gave up before the deployment appeared."""

    exit_code = EXIT_READINESS_TIMEOUT

    def __init__(self, namespace: str, name: str, attempts: int) -> None:
        super().__init__(
            namespace, name,
            f"deployment/{name} in namespace '{namespace}' did not appear after {attempts} checks",
        )
        self.attempts = attempts


class ReadinessFailed(ReadinessError):
    """The platform rollout wait reported failure or timed out."""


class StepError(InstallerError):
    """Failure of a named pipeline step.

    Attributes:
        step: Name of the step that failed.
        cause: The underlying exception.
    """

    def __init__(self, step: str, cause: BaseException) -> None:
        super().__init__(f"step '{step}' failed: {cause}")
        self.step = step
        self.cause = cause

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return exit_code_for(self.cause)


def exit_code_for(err: BaseException) -> int:
    """Map an exception to the process exit code.

    Args:
        err: Exception raised by a step or command.

    Returns:
        The failing command's exit code for ``sh`` failures, the error's own
        code for installer errors, and 1 otherwise.
    """
    if isinstance(err, InstallerError):
        return err.exit_code
    if isinstance(err, sh.ErrorReturnCode):
        return err.exit_code or 1
    return 1
