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

"""The resolve-and-synthesize pipeline, and the workspace it produces.

Every workspacekit command starts here::

    load_descriptor(start_directory)       workspacekit.toml, upward search
            │
            ▼
    check_version_compat                   halts before any clone
            │
            ▼
    resolve_repositories                   clone missing, discover packages
            │
            ▼
    build_manifest + write_manifest        <manifest_dir>/lerna.json
            │
            ▼
        Workspace                          handed to the command

Either every step succeeds or the first :class:`WorkspaceKitError`
propagates and no manifest is written.

Usage::

    from workspacekit.workspace import load_workspace

    ws = await load_workspace(Path.cwd())
    for repo in ws.repositories:
        print(repo.name, repo.path)
    await ws.run_orchestrator_command(['bootstrap', '--nohoist'])
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from workspacekit import __version__
from workspacekit.backends._run import CommandResult, run_shell_command
from workspacekit.backends.orchestrator import LernaOrchestrator
from workspacekit.backends.vcs import VCS
from workspacekit.backends.workspace._types import ResolvedRepository
from workspacekit.compat import check_version_compat
from workspacekit.descriptor import WorkspaceDescriptor, load_descriptor, update_descriptor
from workspacekit.logging import get_logger
from workspacekit.manifest import DEFAULT_MANIFEST_DIR, build_manifest, write_manifest
from workspacekit.resolver import resolve_repositories

logger = get_logger(__name__)


@dataclass(frozen=True)
class Workspace:
    """A fully resolved workspace.

    Attributes:
        descriptor: The descriptor this workspace was resolved from.
        repositories: Resolved repositories, in declaration order.
        manifest_path: Where the generated ``lerna.json`` was written.
    """

    descriptor: WorkspaceDescriptor
    repositories: tuple[ResolvedRepository, ...]
    manifest_path: Path

    @property
    def root_path(self) -> Path:
        """Directory holding ``workspacekit.toml``."""
        return self.descriptor.root_path

    @property
    def manifest_dir(self) -> Path:
        """Directory holding the generated ``lerna.json``."""
        return self.manifest_path.parent

    @property
    def mono_repos(self) -> list[ResolvedRepository]:
        """Repositories that hold a ``lerna.json``."""
        return [repo for repo in self.repositories if repo.is_mono_repo]

    def get_config_value(self, dotted_path: str) -> Any | None:  # noqa: ANN401 - values are user data
        """Look up ``commands.<dotted_path>``; ``None`` if absent."""
        return self.descriptor.get_config_value(dotted_path)

    def update_config(self, partial: Mapping[str, Any]) -> Workspace:  # noqa: ANN401
        """Persist ``partial`` into ``workspacekit.toml``.

        Returns:
            A new :class:`Workspace` carrying the updated descriptor. This
            instance is unchanged.
        """
        return replace(self, descriptor=update_descriptor(self.descriptor, partial))

    async def run_shell_command(self, command: str, *, silent: bool = False) -> str:
        """Run a shell command in the workspace root and return its stdout."""
        return await run_shell_command(command, silent=silent, cwd=self.root_path)

    def orchestrator(self) -> LernaOrchestrator:
        """Return a lerna runner bound to this workspace's manifest."""
        return LernaOrchestrator(self.manifest_dir, search_roots=[self.root_path])

    async def run_orchestrator_command(
        self,
        args: Sequence[str],
        *,
        log_level: str | None = None,
        dry_run: bool = False,
    ) -> CommandResult:
        """Run ``lerna <args>`` against the generated manifest."""
        return await self.orchestrator().run(args, log_level=log_level, dry_run=dry_run)


async def load_workspace(
    start_directory: Path,
    *,
    engine_version: str = __version__,
    manifest_dir: Path | None = None,
    vcs: VCS | None = None,
    clone: bool = True,
) -> Workspace:
    """Run the full pipeline and return the resolved :class:`Workspace`.

    Args:
        start_directory: Where the upward search for ``workspacekit.toml``
            begins.
        engine_version: Version checked against the descriptor's
            ``version``. Defaults to the installed workspacekit.
        manifest_dir: Where ``lerna.json`` is written. Defaults to the
            installed package directory.
        vcs: Clone backend. Defaults to the ``git`` CLI.
        clone: Clone GitHub repositories that are missing locally.

    Raises:
        WorkspaceKitError: From whichever step fails first.
    """
    descriptor = load_descriptor(start_directory)
    check_version_compat(engine_version, descriptor.version)

    repositories = await resolve_repositories(descriptor, vcs=vcs, clone=clone)
    manifest = build_manifest(repositories)
    manifest_path = write_manifest(manifest, manifest_dir or DEFAULT_MANIFEST_DIR)

    logger.info(
        'workspace_loaded',
        root=str(descriptor.root_path),
        repositories=len(repositories),
        packages=len(manifest.packages),
    )
    return Workspace(
        descriptor=descriptor,
        repositories=tuple(repositories),
        manifest_path=manifest_path,
    )


__all__ = [
    'Workspace',
    'load_workspace',
]
