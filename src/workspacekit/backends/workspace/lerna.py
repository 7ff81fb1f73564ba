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

"""Lerna mono-repo backend for workspacekit.

A repository is a mono-repo when its root holds a ``lerna.json``. The
``packages`` globs in that file name the directories that are packages::

    widgets/
    ├── lerna.json              # {"packages": ["packages/*", "tools/*"]}
    ├── package.json            # root manifest, never listed itself
    ├── node_modules/           # always ignored, whatever the globs say
    ├── packages/
    │   ├── core/
    │   │   └── package.json
    │   └── ui/
    │       └── package.json
    └── tools/
        └── cli/
            └── package.json

Discovery order is part of the contract because it ends up in the
generated manifest:

1. Patterns are expanded in the order ``lerna.json`` declares them.
2. Matches of one pattern are ordered by their ``/``-separated relative
   path, so the result does not depend on the filesystem's directory
   order or on the platform's path separator.
3. A directory matched by an earlier pattern is not repeated.

All reads are async and go through ``aiofiles``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from workspacekit.backends.workspace._io import read_json_object
from workspacekit.backends.workspace._types import ResolvedPackage
from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import get_logger

log = get_logger('workspacekit.backends.workspace.lerna')

LERNA_JSON = 'lerna.json'
PACKAGE_JSON = 'package.json'

# lerna's own default when lerna.json has no "packages" key.
DEFAULT_PACKAGE_GLOBS: tuple[str, ...] = ('packages/*',)

_NODE_MODULES = 'node_modules'


def is_mono_repo(repo_root: Path) -> bool:
    """Return True if ``repo_root`` holds a ``lerna.json``."""
    return (repo_root / LERNA_JSON).is_file()


def _normalize_pattern(pattern: str) -> str:
    """Turn a lerna glob into a pattern :meth:`Path.glob` accepts.

    Backslashes are folded to ``/`` so Windows-authored globs behave the
    same everywhere, and leading ``./`` / trailing ``/`` are dropped.
    """
    pattern = pattern.replace('\\', '/').strip()
    while pattern.startswith('./'):
        pattern = pattern[2:]
    pattern = pattern.rstrip('/')
    return '' if pattern == '.' else pattern


def parse_package_globs(data: dict[str, Any], path: Path) -> list[str]:  # noqa: ANN401
    """Validate and return the ``packages`` globs of a parsed lerna.json."""
    globs = data.get('packages')
    if globs is None:
        return list(DEFAULT_PACKAGE_GLOBS)
    if not isinstance(globs, list) or not all(isinstance(g, str) for g in globs):
        raise WorkspaceKitError(
            code=E.MONO_REPO_PARSE_ERROR,
            message=f"'packages' in {path} must be a list of glob strings, got {globs!r}",
            hint='Example: "packages": ["packages/*"]',
        )
    for glob in globs:
        if Path(glob).is_absolute() or glob.startswith('/'):
            raise WorkspaceKitError(
                code=E.MONO_REPO_PARSE_ERROR,
                message=f"Package glob '{glob}' in {path} is absolute",
                hint='Package globs are relative to the directory holding lerna.json.',
            )
    return list(globs)


class LernaMonoRepo:
    """Package discovery for one lerna mono-repo.

    Args:
        root: Absolute path to the repository root (containing ``lerna.json``).
    """

    def __init__(self, root: Path) -> None:
        """Initialize with the repository root path."""
        self._root = root.resolve()

    @property
    def root(self) -> Path:
        """The repository root."""
        return self._root

    async def package_globs(self) -> list[str]:
        """Read the ``packages`` globs from ``lerna.json``."""
        lerna_json = self._root / LERNA_JSON
        data = await read_json_object(lerna_json, code=E.MONO_REPO_PARSE_ERROR)
        return parse_package_globs(data, lerna_json)

    def expand_glob(self, pattern: str) -> list[Path]:
        """Expand one glob into package directories, in deterministic order.

        Only directories holding a ``package.json`` count, and the
        repository root never does. Matches under ``node_modules`` or
        resolving outside the repository root are dropped.
        """
        normalized = _normalize_pattern(pattern)
        manifest_glob = f'{normalized}/{PACKAGE_JSON}' if normalized else PACKAGE_JSON

        matches: dict[str, Path] = {}
        for candidate in self._root.glob(manifest_glob):
            if not candidate.is_file():
                continue
            pkg_dir = candidate.parent.resolve()
            try:
                rel = pkg_dir.relative_to(self._root)
            except ValueError:
                log.debug('skipped_outside_repository', path=str(pkg_dir), pattern=pattern)
                continue
            if not rel.parts or _NODE_MODULES in rel.parts:
                continue
            matches.setdefault(rel.as_posix(), pkg_dir)

        return [matches[key] for key in sorted(matches)]

    async def discover(self) -> list[ResolvedPackage]:
        """Discover every package declared by ``lerna.json``.

        Returns:
            Packages in pattern order, then match order (see module docs).

        Raises:
            WorkspaceKitError: If ``lerna.json`` or any matched
                ``package.json`` is unreadable or malformed.
        """
        globs = await self.package_globs()
        log.debug('lerna_package_globs', root=str(self._root), globs=globs)

        seen: set[Path] = set()
        packages: list[ResolvedPackage] = []
        for pattern in globs:
            for pkg_dir in self.expand_glob(pattern):
                if pkg_dir in seen:
                    continue
                seen.add(pkg_dir)
                descriptor = await read_json_object(pkg_dir / PACKAGE_JSON, code=E.PACKAGE_DESCRIPTOR_ERROR)
                packages.append(
                    ResolvedPackage(
                        name=pkg_dir.relative_to(self._root).as_posix(),
                        path=pkg_dir,
                        package_descriptor=descriptor,
                    )
                )

        log.debug('discovered_mono_repo_packages', root=str(self._root), count=len(packages))
        return packages


__all__ = [
    'DEFAULT_PACKAGE_GLOBS',
    'LERNA_JSON',
    'PACKAGE_JSON',
    'LernaMonoRepo',
    'is_mono_repo',
    'parse_package_globs',
]
