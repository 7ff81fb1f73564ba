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

"""Tests for workspacekit.resolver module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from workspacekit.descriptor import DESCRIPTOR_FILENAME, WorkspaceDescriptor, load_descriptor
from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import configure_logging
from workspacekit.resolver import resolve_repositories

from tests._fakes import FakeVCS

configure_logging(quiet=True)

_WIDGETS = 'https://github.com/acme/widgets.git'


def _descriptor(root: Path, repositories: str | None = None) -> WorkspaceDescriptor:
    """Write workspacekit.toml with the given TOML repositories array and load it."""
    lines = ['version = "1.0.0"']
    if repositories is not None:
        lines.append(f'repositories = {repositories}')
    (root / DESCRIPTOR_FILENAME).write_text('\n'.join(lines) + '\n')
    return load_descriptor(root)


def _write_package_json(root: Path, subdir: str, name: str) -> Path:
    """Write a minimal package.json under root/subdir."""
    pkg_dir = root / subdir
    pkg_dir.mkdir(parents=True, exist_ok=True)
    (pkg_dir / 'package.json').write_text(json.dumps({'name': name}))
    return pkg_dir


class TestFilesystemRepositories:
    """Tests for origin = fs entries."""

    @pytest.mark.asyncio
    async def test_default_is_root(self, tmp_path: Path) -> None:
        """Without repositories the workspace root is the only repository."""
        _write_package_json(tmp_path, '.', 'solo')
        repos = await resolve_repositories(_descriptor(tmp_path), vcs=FakeVCS(tmp_path))
        assert len(repos) == 1
        assert repos[0].name == 'solo'
        assert repos[0].path == tmp_path.resolve()
        assert repos[0].is_mono_repo is False
        assert repos[0].packages == ()

    @pytest.mark.asyncio
    async def test_declaration_order(self, tmp_path: Path) -> None:
        """Results follow declaration order, not name order."""
        _write_package_json(tmp_path, 'zz', 'zz')
        _write_package_json(tmp_path, 'aa', 'aa')
        desc = _descriptor(tmp_path, '["./zz", { origin = "fs", path = "aa" }]')
        repos = await resolve_repositories(desc, vcs=FakeVCS(tmp_path))
        assert [r.name for r in repos] == ['zz', 'aa']

    @pytest.mark.asyncio
    async def test_name_from_package_json(self, tmp_path: Path) -> None:
        """The name comes from package.json, not the directory."""
        _write_package_json(tmp_path, 'dir-name', '@acme/real-name')
        repos = await resolve_repositories(_descriptor(tmp_path, '["dir-name"]'), vcs=FakeVCS(tmp_path))
        assert repos[0].name == '@acme/real-name'

    @pytest.mark.asyncio
    async def test_missing_path(self, tmp_path: Path) -> None:
        """A path that does not exist raises WK-REPO-NOT-FOUND."""
        with pytest.raises(WorkspaceKitError) as exc_info:
            await resolve_repositories(_descriptor(tmp_path, '["./ghost"]'), vcs=FakeVCS(tmp_path))
        assert exc_info.value.code is E.REPOSITORY_NOT_FOUND
        assert 'ghost' in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_package_json(self, tmp_path: Path) -> None:
        """A repository without package.json raises WK-PACKAGE-DESCRIPTOR-ERROR."""
        (tmp_path / 'bare').mkdir()
        with pytest.raises(WorkspaceKitError) as exc_info:
            await resolve_repositories(_descriptor(tmp_path, '["bare"]'), vcs=FakeVCS(tmp_path))
        assert exc_info.value.code is E.PACKAGE_DESCRIPTOR_ERROR

    @pytest.mark.asyncio
    async def test_package_json_without_name(self, tmp_path: Path) -> None:
        """package.json must carry a name."""
        (tmp_path / 'anon').mkdir()
        (tmp_path / 'anon' / 'package.json').write_text('{"version": "1.0.0"}')
        with pytest.raises(WorkspaceKitError) as exc_info:
            await resolve_repositories(_descriptor(tmp_path, '["anon"]'), vcs=FakeVCS(tmp_path))
        assert exc_info.value.code is E.PACKAGE_DESCRIPTOR_ERROR

    @pytest.mark.asyncio
    async def test_package_json_not_utf8(self, tmp_path: Path) -> None:
        """A package.json that is not UTF-8 raises WK-PACKAGE-DESCRIPTOR-ERROR."""
        (tmp_path / 'latin').mkdir()
        (tmp_path / 'latin' / 'package.json').write_bytes(b'{"name": "\xff\xfe"}')
        with pytest.raises(WorkspaceKitError) as exc_info:
            await resolve_repositories(_descriptor(tmp_path, '["latin"]'), vcs=FakeVCS(tmp_path))
        assert exc_info.value.code is E.PACKAGE_DESCRIPTOR_ERROR

    @pytest.mark.asyncio
    async def test_mono_repo_packages(self, tmp_path: Path) -> None:
        """A repository with lerna.json gets its nested packages."""
        repo = _write_package_json(tmp_path, 'widgets', 'widgets')
        (repo / 'lerna.json').write_text('{"packages": ["packages/*"]}')
        _write_package_json(repo, 'packages/core', 'core')
        _write_package_json(repo, 'packages/ui', 'ui')

        repos = await resolve_repositories(_descriptor(tmp_path, '["widgets"]'), vcs=FakeVCS(tmp_path))

        assert repos[0].is_mono_repo is True
        assert [p.name for p in repos[0].packages] == ['packages/core', 'packages/ui']


class TestGithubRepositories:
    """Tests for origin = github entries."""

    @pytest.mark.asyncio
    async def test_clones_when_absent(self, tmp_path: Path) -> None:
        """A missing checkout is cloned exactly once with the ref as branch."""
        vcs = FakeVCS(tmp_path, package_names={'widgets': '@acme/widgets'})
        desc = _descriptor(tmp_path, f'[{{ origin = "github", uri = "{_WIDGETS}#develop" }}]')

        repos = await resolve_repositories(desc, vcs=vcs)

        assert vcs.clones == [(_WIDGETS, 'widgets', 'develop')]
        assert vcs.commands == [['git', 'clone', '-b', 'develop', _WIDGETS, 'widgets']]
        assert repos[0].name == '@acme/widgets'
        assert repos[0].path == (tmp_path / 'widgets').resolve()

    @pytest.mark.asyncio
    async def test_no_branch_flag_without_ref(self, tmp_path: Path) -> None:
        """Without a #ref no -b flag is passed."""
        vcs = FakeVCS(tmp_path)
        await resolve_repositories(_descriptor(tmp_path, f'[{{ origin = "github", uri = "{_WIDGETS}" }}]'), vcs=vcs)
        assert vcs.commands == [['git', 'clone', _WIDGETS, 'widgets']]

    @pytest.mark.asyncio
    async def test_reuses_existing_checkout(self, tmp_path: Path) -> None:
        """An existing directory is reused and no clone is issued."""
        _write_package_json(tmp_path, 'widgets', 'widgets')
        vcs = FakeVCS(tmp_path)
        desc = _descriptor(tmp_path, f'[{{ origin = "github", uri = "{_WIDGETS}#develop" }}]')

        repos = await resolve_repositories(desc, vcs=vcs)

        assert vcs.clones == []
        assert repos[0].name == 'widgets'

    @pytest.mark.asyncio
    async def test_clone_failure(self, tmp_path: Path) -> None:
        """A failed clone raises WK-REPO-CLONE-FAILED with git's stderr."""
        desc = _descriptor(tmp_path, f'[{{ origin = "github", uri = "{_WIDGETS}" }}]')
        with pytest.raises(WorkspaceKitError) as exc_info:
            await resolve_repositories(desc, vcs=FakeVCS(tmp_path, fail=True))
        assert exc_info.value.code is E.CLONE_FAILED
        assert 'not found' in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_clone_leaves_nothing(self, tmp_path: Path) -> None:
        """A clone that creates no directory raises WK-REPO-NOT-FOUND."""
        desc = _descriptor(tmp_path, f'[{{ origin = "github", uri = "{_WIDGETS}" }}]')
        with pytest.raises(WorkspaceKitError) as exc_info:
            await resolve_repositories(desc, vcs=FakeVCS(tmp_path, create=False))
        assert exc_info.value.code is E.REPOSITORY_NOT_FOUND

    @pytest.mark.asyncio
    async def test_clone_disabled(self, tmp_path: Path) -> None:
        """With clone=False a missing checkout is an error and git is not run."""
        vcs = FakeVCS(tmp_path)
        desc = _descriptor(tmp_path, f'[{{ origin = "github", uri = "{_WIDGETS}" }}]')
        with pytest.raises(WorkspaceKitError) as exc_info:
            await resolve_repositories(desc, vcs=vcs, clone=False)
        assert exc_info.value.code is E.REPOSITORY_NOT_FOUND
        assert vcs.clones == []

    @pytest.mark.asyncio
    async def test_mixed_entries(self, tmp_path: Path) -> None:
        """fs and github entries resolve side by side in declaration order."""
        _write_package_json(tmp_path, 'app', 'app')
        vcs = FakeVCS(tmp_path)
        desc = _descriptor(tmp_path, f'[{{ origin = "github", uri = "{_WIDGETS}" }}, "./app"]')
        repos = await resolve_repositories(desc, vcs=vcs)
        assert [r.name for r in repos] == ['widgets', 'app']


class TestCollisions:
    """Tests for duplicate repositories."""

    @pytest.mark.asyncio
    async def test_same_directory_twice(self, tmp_path: Path) -> None:
        """Two entries resolving to one directory are rejected before cloning."""
        vcs = FakeVCS(tmp_path)
        desc = _descriptor(
            tmp_path,
            f'[{{ origin = "github", uri = "{_WIDGETS}" }}, {{ origin = "github", uri = "{_WIDGETS}#develop" }}]',
        )
        with pytest.raises(WorkspaceKitError) as exc_info:
            await resolve_repositories(desc, vcs=vcs)
        assert exc_info.value.code is E.DUPLICATE_REPOSITORY
        assert vcs.clones == []

    @pytest.mark.asyncio
    async def test_same_package_name(self, tmp_path: Path) -> None:
        """Two repositories with one package.json name are rejected."""
        _write_package_json(tmp_path, 'one', 'shared-name')
        _write_package_json(tmp_path, 'two', 'shared-name')
        with pytest.raises(WorkspaceKitError) as exc_info:
            await resolve_repositories(_descriptor(tmp_path, '["one", "two"]'), vcs=FakeVCS(tmp_path))
        assert exc_info.value.code is E.DUPLICATE_REPOSITORY
        assert 'shared-name' in str(exc_info.value)
