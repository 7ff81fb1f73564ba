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

"""Repository resolution: declared entries to on-disk repositories.

Two phases::

    descriptor.repositories
            │
            ▼
    ┌──────────────────────────────┐   one task per entry, asyncio.gather
    │ 1. locate / clone            │   FsRepo     → <root>/<path>, must exist
    │    read package.json         │   GithubRepo → <root>/<name>, cloned if
    └──────────────┬───────────────┘                absent, reused otherwise
                   │  (declaration order preserved)
                   ▼
    ┌──────────────────────────────┐   sequential
    │ 2. lerna.json? discover      │
    │    nested packages           │
    └──────────────┬───────────────┘
                   ▼
        list[ResolvedRepository]

Every task works in its own target directory and only reads the
descriptor. Two entries that would land in the same directory are
rejected before any task starts, and two repositories whose
``package.json`` share a name are rejected after phase 1. The first
failure aborts the whole resolution; nothing is rolled back.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from workspacekit.backends.vcs import VCS, GitCLIBackend
from workspacekit.backends.workspace._io import read_json_object
from workspacekit.backends.workspace._types import ResolvedRepository
from workspacekit.backends.workspace.lerna import PACKAGE_JSON, LernaMonoRepo, is_mono_repo
from workspacekit.descriptor import FsRepo, GithubRepo, RepositoryEntry, WorkspaceDescriptor
from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import get_logger

logger = get_logger(__name__)


def target_path(entry: RepositoryEntry, root_path: Path) -> Path:
    """Return the absolute local directory an entry resolves to."""
    if isinstance(entry, GithubRepo):
        return (root_path / entry.name).resolve()
    return (root_path / entry.path).resolve()


def _check_disjoint_targets(entries: tuple[RepositoryEntry, ...], root_path: Path) -> None:
    seen: dict[Path, RepositoryEntry] = {}
    for entry in entries:
        path = target_path(entry, root_path)
        if path in seen:
            raise WorkspaceKitError(
                code=E.DUPLICATE_REPOSITORY,
                message=f'Repository entries {seen[path]!r} and {entry!r} both resolve to {path}',
                hint='Remove the duplicate entry from repositories.',
            )
        seen[path] = entry


async def _ensure_local(entry: RepositoryEntry, root_path: Path, vcs: VCS, *, clone: bool) -> Path:
    """Return the entry's directory, cloning it first if needed."""
    path = target_path(entry, root_path)

    if isinstance(entry, FsRepo):
        if not path.is_dir():
            raise WorkspaceKitError(
                code=E.REPOSITORY_NOT_FOUND,
                message=f"Repository path '{entry.path}' does not exist ({path})",
                hint='Fix the path in workspacekit.toml or check the repository out there.',
            )
        return path

    if path.exists():
        logger.info('repository_reused', name=entry.name, path=str(path))
        return path
    if not clone:
        raise WorkspaceKitError(
            code=E.REPOSITORY_NOT_FOUND,
            message=f"Repository '{entry.name}' is not checked out at {path} and cloning is disabled",
            hint=f'Run without --no-clone, or clone {entry.uri} there yourself.',
        )

    logger.info('repository_cloning', name=entry.name, uri=entry.uri, ref=entry.ref)
    result = await vcs.clone(entry.uri, entry.name, branch=entry.ref)
    if not result.ok:
        raise WorkspaceKitError(
            code=E.CLONE_FAILED,
            message=f"git clone of '{entry.uri}' failed with code {result.return_code}: {result.stderr.strip()}",
            hint=f'Delete {path} if a partial checkout was left behind, then retry.',
        )
    if not path.is_dir():
        raise WorkspaceKitError(
            code=E.REPOSITORY_NOT_FOUND,
            message=f"Cloning '{entry.uri}' did not create {path}",
        )
    return path


async def _locate(
    entry: RepositoryEntry,
    root_path: Path,
    vcs: VCS,
    *,
    clone: bool,
) -> tuple[Path, dict[str, Any]]:  # noqa: ANN401
    """Phase 1 for a single entry: local path plus parsed package.json."""
    path = await _ensure_local(entry, root_path, vcs, clone=clone)
    package_json = path / PACKAGE_JSON
    descriptor = await read_json_object(package_json, code=E.PACKAGE_DESCRIPTOR_ERROR)
    name = descriptor.get('name')
    if not isinstance(name, str) or not name:
        raise WorkspaceKitError(
            code=E.PACKAGE_DESCRIPTOR_ERROR,
            message=f'{package_json} has no "name" field',
            hint='Every repository root needs a package.json with a name.',
        )
    return path, descriptor


def _check_unique_names(located: list[tuple[Path, dict[str, Any]]]) -> None:  # noqa: ANN401
    by_name: dict[str, Path] = {}
    for path, descriptor in located:
        name = descriptor['name']
        if name in by_name:
            raise WorkspaceKitError(
                code=E.DUPLICATE_REPOSITORY,
                message=f"Repositories {by_name[name]} and {path} both declare the package name '{name}'",
                hint='Each repository must have a distinct package.json name.',
            )
        by_name[name] = path


async def resolve_repositories(
    descriptor: WorkspaceDescriptor,
    *,
    vcs: VCS | None = None,
    clone: bool = True,
) -> list[ResolvedRepository]:
    """Resolve every declared repository, in declaration order.

    Args:
        descriptor: The loaded workspace descriptor.
        vcs: Backend used to clone missing GitHub repositories. Defaults
            to :class:`GitCLIBackend` rooted at the workspace root.
        clone: Clone absent GitHub repositories. When False a missing
            checkout is reported as ``WK-REPO-NOT-FOUND``.

    Returns:
        One :class:`ResolvedRepository` per declared entry.

    Raises:
        WorkspaceKitError: On the first entry that cannot be resolved.
    """
    root_path = descriptor.root_path
    backend = vcs if vcs is not None else GitCLIBackend(root_path)
    entries = descriptor.repositories

    _check_disjoint_targets(entries, root_path)
    located = list(await asyncio.gather(*(_locate(entry, root_path, backend, clone=clone) for entry in entries)))
    _check_unique_names(located)

    repositories: list[ResolvedRepository] = []
    for path, pkg_data in located:
        mono = is_mono_repo(path)
        packages = tuple(await LernaMonoRepo(path).discover()) if mono else ()
        repositories.append(
            ResolvedRepository(
                name=pkg_data['name'],
                path=path,
                package_descriptor=pkg_data,
                is_mono_repo=mono,
                packages=packages,
            )
        )
        logger.debug('repository_resolved', name=pkg_data['name'], mono_repo=mono, packages=len(packages))

    logger.info('resolved_repositories', count=len(repositories))
    return repositories


__all__ = [
    'resolve_repositories',
    'target_path',
]
