# Copyright 2026 Google LLC
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
#
# SPDX-License-Identifier: Apache-2.0

"""VCS backend for workspacekit.

workspacekit only ever needs one git operation from the engine itself:
clone a repository that is declared but missing. The :class:`VCS`
protocol keeps that seam narrow so the resolver can be tested with a fake
that records calls instead of touching the network.

All methods are async; blocking subprocess calls are dispatched to
``asyncio.to_thread()``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol, runtime_checkable

from workspacekit.backends._run import CommandResult, run_command
from workspacekit.logging import get_logger

log = get_logger('workspacekit.backends.git')


@runtime_checkable
class VCS(Protocol):
    """Protocol for the version-control operations the resolver needs."""

    async def clone(
        self,
        uri: str,
        directory: str,
        *,
        branch: str | None = None,
        dry_run: bool = False,
    ) -> CommandResult:
        """Clone ``uri`` into ``directory`` (relative to the backend root)."""
        ...


def clone_command(uri: str, directory: str, *, branch: str | None = None) -> list[str]:
    """Build the ``git clone [-b <branch>] <uri> <directory>`` argv."""
    cmd = ['git', 'clone']
    if branch:
        cmd.extend(['-b', branch])
    cmd.extend([uri, directory])
    return cmd


class GitCLIBackend:
    """Default :class:`VCS` implementation using the ``git`` CLI.

    Args:
        root: Directory the clones are created in (the workspace root).
    """

    def __init__(self, root: Path) -> None:
        """Initialize with the directory clones are created in."""
        self._root = root

    async def clone(
        self,
        uri: str,
        directory: str,
        *,
        branch: str | None = None,
        dry_run: bool = False,
    ) -> CommandResult:
        """Run ``git clone``. Never raises on a non-zero exit; check ``.ok``."""
        cmd = clone_command(uri, directory, branch=branch)
        log.info('git_clone', uri=uri, directory=directory, branch=branch)
        return await asyncio.to_thread(run_command, cmd, cwd=self._root, dry_run=dry_run)


__all__ = [
    'VCS',
    'GitCLIBackend',
    'clone_command',
]
