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

"""Build manifest synthesis.

lerna only ever sees the workspace through one generated ``lerna.json``
that lives next to the installed workspacekit package, not in the user's
workspace::

    ResolvedRepository(app)                   ──▶  /ws/app
    ResolvedRepository(widgets, mono-repo)
        ├── ResolvedPackage(packages/core)    ──▶  /ws/widgets/packages/core
        └── ResolvedPackage(packages/ui)      ──▶  /ws/widgets/packages/ui

Mono-repo roots are never listed, only their packages. The file is
rewritten on every invocation and written atomically (temp file plus
``os.replace``), so an interrupted write leaves the previous manifest in
place.

Usage::

    from workspacekit.manifest import build_manifest, write_manifest

    manifest = build_manifest(repositories)
    path = write_manifest(manifest, DEFAULT_MANIFEST_DIR)
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from workspacekit.backends.workspace._types import ResolvedRepository
from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import get_logger

logger = get_logger(__name__)

MANIFEST_FILENAME = 'lerna.json'

# The installed package directory.
DEFAULT_MANIFEST_DIR = Path(__file__).resolve().parent

NOTICE = (
    'This file is generated by workspacekit. '
    "Do not run lerna against it directly; use 'workspacekit' commands instead."
)
LERNA_VERSION = '2.0.0'
NPM_CLIENT = 'yarn'


@dataclass(frozen=True)
class BuildManifest:
    """The generated lerna manifest.

    Attributes:
        packages: Absolute package directories, in workspace order.
    """

    packages: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        """Return the manifest as a dict in its on-disk key order."""
        return {
            'NOTICE': NOTICE,
            'lerna': LERNA_VERSION,
            'commands': {},
            'npmClient': NPM_CLIENT,
            'packages': list(self.packages),
        }

    def render(self) -> str:
        """Serialize to the exact bytes written to disk."""
        return json.dumps(self.to_dict(), indent=2) + '\n'


def build_manifest(repositories: Sequence[ResolvedRepository]) -> BuildManifest:
    """Flatten resolved repositories into a :class:`BuildManifest`."""
    packages: list[str] = []
    for repo in repositories:
        packages.extend(str(path) for path in repo.package_paths)
    return BuildManifest(packages=tuple(packages))


def write_manifest(manifest: BuildManifest, manifest_dir: Path) -> Path:
    """Write ``lerna.json`` into ``manifest_dir``, replacing any previous one.

    Args:
        manifest: The manifest to write.
        manifest_dir: Target directory. Created if missing.

    Returns:
        Path of the written ``lerna.json``.

    Raises:
        WorkspaceKitError: ``WK-MANIFEST-WRITE-FAILED`` if the directory
            cannot be created or the file cannot be written.
    """
    path = manifest_dir / MANIFEST_FILENAME
    content = manifest.render()

    try:
        manifest_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=manifest_dir, prefix='.lerna-', suffix='.tmp')
        closed = False
        try:
            os.write(fd, content.encode('utf-8'))
            os.close(fd)
            closed = True
            os.replace(tmp_path, path)
        except BaseException:
            if not closed:
                os.close(fd)
            Path(tmp_path).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise WorkspaceKitError(
            code=E.MANIFEST_WRITE_FAILED,
            message=f'Cannot write {path}: {exc}',
            hint='Pass --manifest-dir with a writable directory.',
        ) from exc

    logger.info('manifest_written', path=str(path), packages=len(manifest.packages))
    return path


__all__ = [
    'DEFAULT_MANIFEST_DIR',
    'MANIFEST_FILENAME',
    'BuildManifest',
    'build_manifest',
    'write_manifest',
]
