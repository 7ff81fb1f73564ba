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

"""Tests for workspacekit.manifest module."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from workspacekit.backends.workspace import ResolvedPackage, ResolvedRepository
from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import configure_logging
from workspacekit.manifest import (
    DEFAULT_MANIFEST_DIR,
    MANIFEST_FILENAME,
    BuildManifest,
    build_manifest,
    write_manifest,
)

configure_logging(quiet=True)


def _plain(path: str) -> ResolvedRepository:
    return ResolvedRepository(name=Path(path).name, path=Path(path))


def _mono(path: str, *subdirs: str) -> ResolvedRepository:
    root = Path(path)
    return ResolvedRepository(
        name=root.name,
        path=root,
        is_mono_repo=True,
        packages=tuple(ResolvedPackage(name=s, path=root / s) for s in subdirs),
    )


class TestBuildManifest:
    """Tests for build_manifest()."""

    def test_plain_repositories(self) -> None:
        """Each plain repository contributes its own path."""
        manifest = build_manifest([_plain('/ws/app'), _plain('/ws/lib')])
        assert manifest.packages == ('/ws/app', '/ws/lib')

    def test_mono_repo_root_never_listed(self) -> None:
        """A mono-repo contributes its packages only."""
        manifest = build_manifest([_mono('/ws/widgets', 'packages/core', 'packages/ui')])
        assert manifest.packages == ('/ws/widgets/packages/core', '/ws/widgets/packages/ui')
        assert '/ws/widgets' not in manifest.packages

    def test_mixed_order(self) -> None:
        """Repository order first, then package order."""
        manifest = build_manifest([
            _plain('/ws/app'),
            _mono('/ws/widgets', 'packages/core', 'packages/ui'),
            _plain('/ws/lib'),
        ])
        assert manifest.packages == (
            '/ws/app',
            '/ws/widgets/packages/core',
            '/ws/widgets/packages/ui',
            '/ws/lib',
        )

    def test_empty_mono_repo(self) -> None:
        """A mono-repo without packages contributes nothing."""
        assert build_manifest([_mono('/ws/empty')]).packages == ()


class TestRender:
    """Tests for BuildManifest.render()."""

    def test_key_order_and_constants(self) -> None:
        """The on-disk layout has fixed keys in a fixed order."""
        data = json.loads(BuildManifest(packages=('/ws/app',)).render())
        assert list(data) == ['NOTICE', 'lerna', 'commands', 'npmClient', 'packages']
        assert data['lerna'] == '2.0.0'
        assert data['npmClient'] == 'yarn'
        assert data['commands'] == {}
        assert data['packages'] == ['/ws/app']
        assert 'generated by workspacekit' in data['NOTICE']

    def test_trailing_newline_and_indent(self) -> None:
        """Output is two-space indented and newline terminated."""
        text = BuildManifest(packages=('/ws/app',)).render()
        assert text.endswith('}\n')
        assert '\n  "lerna": "2.0.0",\n' in text

    def test_deterministic(self) -> None:
        """Equal manifests render to equal text."""
        repos = [_plain('/ws/app'), _mono('/ws/widgets', 'packages/core')]
        assert build_manifest(repos).render() == build_manifest(list(repos)).render()


class TestWriteManifest:
    """Tests for write_manifest()."""

    def test_writes_lerna_json(self, tmp_path: Path) -> None:
        """The manifest lands at <dir>/lerna.json."""
        path = write_manifest(BuildManifest(packages=('/ws/app',)), tmp_path)
        assert path == tmp_path / MANIFEST_FILENAME
        assert json.loads(path.read_text())['packages'] == ['/ws/app']

    def test_creates_directory(self, tmp_path: Path) -> None:
        """A missing manifest directory is created."""
        path = write_manifest(BuildManifest(), tmp_path / 'nested' / 'dir')
        assert path.is_file()

    def test_overwrites_and_is_idempotent(self, tmp_path: Path) -> None:
        """Writing twice yields byte-identical content, replacing the old file."""
        (tmp_path / MANIFEST_FILENAME).write_text('stale')
        manifest = BuildManifest(packages=('/ws/app', '/ws/lib'))
        first = write_manifest(manifest, tmp_path).read_bytes()
        second = write_manifest(manifest, tmp_path).read_bytes()
        assert first == second
        assert first == manifest.render().encode('utf-8')

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """Only lerna.json remains after a write."""
        write_manifest(BuildManifest(), tmp_path)
        assert sorted(p.name for p in tmp_path.iterdir()) == [MANIFEST_FILENAME]

    @pytest.mark.skipif(hasattr(os, 'geteuid') and os.geteuid() == 0, reason='root ignores permissions')
    def test_unwritable_directory(self, tmp_path: Path) -> None:
        """Write errors surface as WK-MANIFEST-WRITE-FAILED."""
        locked = tmp_path / 'locked'
        locked.mkdir()
        locked.chmod(0o500)
        try:
            with pytest.raises(WorkspaceKitError) as exc_info:
                write_manifest(BuildManifest(), locked)
            assert exc_info.value.code is E.MANIFEST_WRITE_FAILED
        finally:
            locked.chmod(0o700)

    def test_path_is_a_file(self, tmp_path: Path) -> None:
        """A manifest dir that is a regular file fails cleanly."""
        blocker = tmp_path / 'blocker'
        blocker.write_text('')
        with pytest.raises(WorkspaceKitError) as exc_info:
            write_manifest(BuildManifest(), blocker)
        assert exc_info.value.code is E.MANIFEST_WRITE_FAILED

    def test_default_dir_is_package_dir(self) -> None:
        """By default the manifest sits next to the workspacekit package."""
        assert (DEFAULT_MANIFEST_DIR / '__init__.py').is_file()
