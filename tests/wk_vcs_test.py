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

"""Tests for workspacekit.backends.vcs module."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest
from workspacekit.backends import vcs
from workspacekit.backends._run import CommandResult, run_command
from workspacekit.backends.vcs import VCS, GitCLIBackend, clone_command
from workspacekit.descriptor import DESCRIPTOR_FILENAME, load_descriptor
from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import configure_logging
from workspacekit.resolver import resolve_repositories

configure_logging(quiet=True)

_WIDGETS = 'https://github.com/acme/widgets.git'

requires_git = pytest.mark.skipif(shutil.which('git') is None, reason='git is not installed')


class RecordingRun:
    """Stands in for run_command inside the git backend."""

    def __init__(self, result: CommandResult | None = None) -> None:
        """Initialize with the result every call returns."""
        self.result = result
        self.calls: list[tuple[list[str], Path | str | None]] = []

    def __call__(self, cmd: list[str], *, cwd: Path | str | None = None, dry_run: bool = False) -> CommandResult:
        """Record the call and return the canned result."""
        self.calls.append((cmd, cwd))
        return self.result or CommandResult(command=cmd, return_code=0)


def _init_repo(path: Path) -> None:
    """Create a git repo with one commit on a 'develop' branch."""
    path.mkdir(parents=True)
    ident = ['-c', 'user.email=test@example.com', '-c', 'user.name=Test User']
    assert run_command(['git', 'init'], cwd=path).ok
    (path / 'package.json').write_text('{"name": "widgets"}')
    assert run_command(['git', 'add', '.'], cwd=path).ok
    assert run_command(['git', *ident, 'commit', '-m', 'Initial commit'], cwd=path).ok
    assert run_command(['git', 'checkout', '-b', 'develop'], cwd=path).ok


class TestCloneCommand:
    """Tests for clone_command()."""

    def test_with_branch(self) -> None:
        """A ref becomes -b <ref> before the uri."""
        assert clone_command(_WIDGETS, 'widgets', branch='develop') == [
            'git',
            'clone',
            '-b',
            'develop',
            _WIDGETS,
            'widgets',
        ]

    def test_without_branch(self) -> None:
        """No ref means no -b flag."""
        assert clone_command(_WIDGETS, 'widgets') == ['git', 'clone', _WIDGETS, 'widgets']


class TestGitCLIBackend:
    """Tests for GitCLIBackend.clone()."""

    def test_implements_vcs(self, tmp_path: Path) -> None:
        """GitCLIBackend should be a runtime-checkable VCS."""
        assert isinstance(GitCLIBackend(tmp_path), VCS)

    @pytest.mark.asyncio
    async def test_dry_run(self, tmp_path: Path) -> None:
        """dry_run reports the argv without cloning."""
        result = await GitCLIBackend(tmp_path).clone(_WIDGETS, 'widgets', branch='develop', dry_run=True)
        assert result.ok
        assert result.dry_run
        assert result.command == ['git', 'clone', '-b', 'develop', _WIDGETS, 'widgets']
        assert not (tmp_path / 'widgets').exists()

    @pytest.mark.asyncio
    async def test_runs_in_root(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """git clone runs with the backend root as cwd."""
        recorder = RecordingRun()
        monkeypatch.setattr(vcs, 'run_command', recorder)

        await GitCLIBackend(tmp_path).clone(_WIDGETS, 'widgets', branch='develop')

        assert recorder.calls == [(['git', 'clone', '-b', 'develop', _WIDGETS, 'widgets'], tmp_path)]

    @pytest.mark.asyncio
    @requires_git
    async def test_real_clone(self, tmp_path: Path) -> None:
        """A real git clone of a local repository checks out the branch."""
        source = tmp_path / 'source'
        _init_repo(source)
        workspace = tmp_path / 'ws'
        workspace.mkdir()

        result = await GitCLIBackend(workspace).clone(str(source), 'widgets', branch='develop')

        assert result.ok, result.stderr
        assert (workspace / 'widgets' / 'package.json').is_file()
        head = run_command(['git', 'rev-parse', '--abbrev-ref', 'HEAD'], cwd=workspace / 'widgets')
        assert head.stdout.strip() == 'develop'


class TestResolverWithGitBackend:
    """resolve_repositories() driving the default git backend."""

    @pytest.mark.asyncio
    async def test_default_backend_clones_into_root(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without an explicit vcs the git CLI is used from the workspace root."""
        (tmp_path / DESCRIPTOR_FILENAME).write_text(
            f'version = "1.0.0"\nrepositories = [{{ origin = "github", uri = "{_WIDGETS}#develop" }}]\n'
        )
        root = tmp_path.resolve()
        recorder = RecordingRun()

        def fake_clone(cmd: list[str], *, cwd: Path | str | None = None, dry_run: bool = False) -> CommandResult:
            recorder.calls.append((cmd, cwd))
            checkout = Path(cwd) / cmd[-1]
            checkout.mkdir()
            (checkout / 'package.json').write_text('{"name": "widgets"}')
            return CommandResult(command=cmd, return_code=0)

        monkeypatch.setattr(vcs, 'run_command', fake_clone)

        repos = await resolve_repositories(load_descriptor(tmp_path))

        assert recorder.calls == [(['git', 'clone', '-b', 'develop', _WIDGETS, 'widgets'], root)]
        assert repos[0].path == root / 'widgets'

    @pytest.mark.asyncio
    async def test_failed_clone(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A non-zero git exit becomes WK-REPO-CLONE-FAILED carrying stderr."""
        (tmp_path / DESCRIPTOR_FILENAME).write_text(
            f'version = "1.0.0"\nrepositories = [{{ origin = "github", uri = "{_WIDGETS}" }}]\n'
        )
        recorder = RecordingRun(
            CommandResult(
                command=['git', 'clone'],
                return_code=128,
                stderr=f"fatal: repository '{_WIDGETS}' not found\n",
            )
        )
        monkeypatch.setattr(vcs, 'run_command', recorder)

        with pytest.raises(WorkspaceKitError) as exc_info:
            await resolve_repositories(load_descriptor(tmp_path))

        assert exc_info.value.code is E.CLONE_FAILED
        assert 'not found' in str(exc_info.value)
        assert recorder.calls[0][0] == ['git', 'clone', _WIDGETS, 'widgets']
