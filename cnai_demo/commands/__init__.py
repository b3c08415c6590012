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

"""Typer command groups and shared error handling."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from cnai_demo import console
from cnai_demo.errors import InstallerError, StepError, exit_code_for


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Turn installer errors into a red message and the matching exit code."""
    try:
        yield
    except InstallerError as err:
        if isinstance(err, StepError):
            console.print(f"[red]\u274c Step '{err.step}' failed: {err.cause}[/red]")
        else:
            console.print(f"[red]\u274c {err}[/red]")
        raise typer.Exit(code=exit_code_for(err)) from err
