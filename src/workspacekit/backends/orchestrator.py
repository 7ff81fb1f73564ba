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

"""Build orchestrator backend (lerna).

workspacekit does not install dependencies or run package scripts itself.
It writes ``lerna.json`` and hands every such operation to lerna, run from
the directory that holds that manifest::

    workspacekit setup
        └── lerna bootstrap --nohoist --loglevel=info   (cwd = manifest dir)

The lerna executable is looked up in ``node_modules/.bin`` of each search
root and its ancestors, then on ``PATH``.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Sequence
from pathlib import Path

from workspacekit.backends._run import CommandResult, run_command
from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import get_logger, lerna_log_level

log = get_logger('workspacekit.backends.orchestrator')

LERNA_BIN = Path('node_modules') / '.bin' / 'lerna'


def find_lerna(search_roots: Sequence[Path]) -> Path | None:
    """Return the first lerna executable found, or ``None``.

    Each root is walked up to the filesystem root before the next one is
    tried. ``PATH`` is consulted last.
    """
    for root in search_roots:
        current = root.resolve()
        while True:
            candidate = current / LERNA_BIN
            if candidate.is_file():
                return candidate
            if current.parent == current:
                break
            current = current.parent

    on_path = shutil.which('lerna')
    return Path(on_path) if on_path else None


class LernaOrchestrator:
    """Runs lerna against the generated manifest.

    Args:
        manifest_dir: Directory holding the generated ``lerna.json``.
        search_roots: Extra directories to look for a local lerna in,
            after ``manifest_dir``. Usually the workspace root.
    """

    def __init__(self, manifest_dir: Path, *, search_roots: Sequence[Path] = ()) -> None:
        """Initialize with the manifest directory and lerna search roots."""
        self._manifest_dir = manifest_dir
        self._search_roots = [manifest_dir, *search_roots]

    @property
    def manifest_dir(self) -> Path:
        """Directory lerna runs in."""
        return self._manifest_dir

    def executable(self) -> Path:
        """Locate lerna.

        Raises:
            WorkspaceKitError: ``WK-ORCHESTRATOR-NOT-FOUND`` if lerna is
                neither installed locally nor on ``PATH``.
        """
        lerna = find_lerna(self._search_roots)
        if lerna is None:
            raise WorkspaceKitError(
                code=E.ORCHESTRATOR_NOT_FOUND,
                message='Cannot find the lerna executable',
                hint='Install it with "npm install --global lerna@2" or add it to the workspace devDependencies.',
            )
        return lerna

    def command(self, args: Sequence[str], *, log_level: str | None = None) -> list[str]:
        """Build the full lerna argv for ``args``."""
        level = log_level or lerna_log_level()
        return [str(self.executable()), *args, f'--loglevel={level}']

    async def run(
        self,
        args: Sequence[str],
        *,
        log_level: str | None = None,
        dry_run: bool = False,
    ) -> CommandResult:
        """Run ``lerna <args>`` with output streamed to the terminal.

        Args:
            args: lerna sub-command and its arguments, e.g.
                ``['bootstrap', '--nohoist']``.
            log_level: npmlog level. Defaults to one matching the
                workspacekit log level.
            dry_run: Log the command without running it.

        Raises:
            WorkspaceKitError: ``WK-ORCHESTRATOR-NOT-FOUND`` or
                ``WK-ORCHESTRATOR-FAILED`` on a non-zero exit.
        """
        cmd = self.command(args, log_level=log_level)
        log.info('lerna', args=list(args), cwd=str(self._manifest_dir))
        result = await asyncio.to_thread(
            run_command,
            cmd,
            cwd=self._manifest_dir,
            dry_run=dry_run,
            capture=False,
        )
        if not result.ok:
            raise WorkspaceKitError(
                code=E.ORCHESTRATOR_FAILED,
                message=f"'lerna {' '.join(args)}' exited with code {result.return_code}",
                hint='Re-run with --verbose to get lerna\'s full log.',
            )
        return result


__all__ = [
    'LERNA_BIN',
    'LernaOrchestrator',
    'find_lerna',
]
