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

"""Structured error system for workspacekit.

Every error has a unique ``WK-NAMED-KEY`` code, a human-readable message,
and an optional hint with a suggested fix. Library code only ever raises
:class:`WorkspaceKitError`; the CLI is the single place that renders the
error and turns it into a non-zero exit status.

Code categories::

    WK-CONFIG-*         Workspace descriptor errors
    WK-VERSION-*        Version compatibility gate errors
    WK-REPO-*           Repository resolution errors
    WK-PACKAGE-*        package.json errors
    WK-MONOREPO-*       Nested lerna.json errors
    WK-MANIFEST-*       Generated manifest errors
    WK-SHELL-*          Shell command errors
    WK-ORCHESTRATOR-*   lerna invocation errors
    WK-BOOKMARK-*       Bookmark command errors
    WK-CLEAN-*          Clean command errors

Usage::

    from workspacekit.errors import E, WorkspaceKitError

    raise WorkspaceKitError(
        code=E.CONFIG_NOT_FOUND,
        message='No workspacekit.toml found',
        hint='Create a workspacekit.toml at the root of your workspace.',
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """Enumeration of all workspacekit diagnostic codes."""

    # Workspace descriptor
    CONFIG_NOT_FOUND = 'WK-CONFIG-NOT-FOUND'
    CONFIG_PARSE_ERROR = 'WK-CONFIG-PARSE-ERROR'
    CONFIG_INVALID_KEY = 'WK-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'WK-CONFIG-INVALID-VALUE'
    CONFIG_MISSING_VERSION = 'WK-CONFIG-MISSING-VERSION'
    CONFIG_INVALID_REPOSITORY = 'WK-CONFIG-INVALID-REPOSITORY'
    CONFIG_WRITE_FAILED = 'WK-CONFIG-WRITE-FAILED'

    # Version gate
    VERSION_INVALID = 'WK-VERSION-INVALID'
    VERSION_INCOMPATIBLE = 'WK-VERSION-INCOMPATIBLE'

    # Repository resolution
    INVALID_REPOSITORY_URI = 'WK-REPO-INVALID-URI'
    REPOSITORY_NOT_FOUND = 'WK-REPO-NOT-FOUND'
    CLONE_FAILED = 'WK-REPO-CLONE-FAILED'
    DUPLICATE_REPOSITORY = 'WK-REPO-DUPLICATE-NAME'

    # Package / mono-repo discovery
    PACKAGE_DESCRIPTOR_ERROR = 'WK-PACKAGE-DESCRIPTOR-ERROR'
    MONO_REPO_PARSE_ERROR = 'WK-MONOREPO-PARSE-ERROR'

    # Manifest synthesis
    MANIFEST_WRITE_FAILED = 'WK-MANIFEST-WRITE-FAILED'

    # External commands
    SHELL_COMMAND_FAILED = 'WK-SHELL-COMMAND-FAILED'
    ORCHESTRATOR_NOT_FOUND = 'WK-ORCHESTRATOR-NOT-FOUND'
    ORCHESTRATOR_FAILED = 'WK-ORCHESTRATOR-FAILED'

    # Commands
    BOOKMARK_NOT_FOUND = 'WK-BOOKMARK-NOT-FOUND'
    CLEAN_FAILED = 'WK-CLEAN-FAILED'
    UNCOMMITTED_CHANGES = 'WK-UNCOMMITTED-CHANGES'


# Convenience alias for shorter imports.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``WK-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class WorkspaceKitError(Exception):
    """Base exception for all workspacekit errors.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


class WorkspaceKitWarning(UserWarning):
    """Base warning for all workspacekit warnings.

    Same structure as :class:`WorkspaceKitError` but emitted via
    :func:`warnings.warn` instead of being raised.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for addressing this warning, or empty string."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.CONFIG_NOT_FOUND: ErrorInfo(
        code=E.CONFIG_NOT_FOUND,
        message='No workspacekit.toml found in the current directory or any parent directory.',
        hint='Run workspacekit from inside a workspace, or pass --cwd pointing at one.',
    ),
    E.CONFIG_MISSING_VERSION: ErrorInfo(
        code=E.CONFIG_MISSING_VERSION,
        message="workspacekit.toml has no 'version' key.",
        hint='Add version = "<workspacekit version>" at the top of workspacekit.toml.',
    ),
    E.CONFIG_INVALID_REPOSITORY: ErrorInfo(
        code=E.CONFIG_INVALID_REPOSITORY,
        message='An entry in repositories is neither a path string nor an {origin = "fs"|"github"} table.',
        hint='Use "./path", { origin = "fs", path = "..." } or { origin = "github", uri = "..." }.',
    ),
    E.VERSION_INCOMPATIBLE: ErrorInfo(
        code=E.VERSION_INCOMPATIBLE,
        message='The installed workspacekit does not satisfy the version declared in workspacekit.toml.',
        hint='Install a matching workspacekit release, or pin version in workspacekit.toml to the installed one.',
    ),
    E.INVALID_REPOSITORY_URI: ErrorInfo(
        code=E.INVALID_REPOSITORY_URI,
        message='A github repository uri does not match https://github.com/<owner>/<name>.git[#<ref>].',
        hint='Use the HTTPS clone URL of the repository, optionally followed by #<branch>.',
    ),
    E.CLONE_FAILED: ErrorInfo(
        code=E.CLONE_FAILED,
        message='git clone exited with a non-zero status.',
        hint='Check network access and credentials, then delete any partial checkout and retry.',
    ),
    E.DUPLICATE_REPOSITORY: ErrorInfo(
        code=E.DUPLICATE_REPOSITORY,
        message='Two repositories declare the same package.json name.',
        hint='Remove one of the entries or rename one of the packages.',
    ),
    E.ORCHESTRATOR_NOT_FOUND: ErrorInfo(
        code=E.ORCHESTRATOR_NOT_FOUND,
        message='Could not find a lerna installation.',
        hint="Install lerna next to workspacekit ('npm install lerna') or globally.",
    ),
    E.MANIFEST_WRITE_FAILED: ErrorInfo(
        code=E.MANIFEST_WRITE_FAILED,
        message='The generated lerna.json could not be written.',
        hint='Pass --manifest-dir with a directory you can write to.',
    ),
    E.BOOKMARK_NOT_FOUND: ErrorInfo(
        code=E.BOOKMARK_NOT_FOUND,
        message='No commit is recorded under commands.bookmark.<name> in workspacekit.toml.',
        hint="Record one with 'workspacekit bookmark <name> --update'.",
    ),
    E.CLEAN_FAILED: ErrorInfo(
        code=E.CLEAN_FAILED,
        message='A node_modules directory could not be removed during clean.',
        hint='Check file permissions and that no process holds files open inside it.',
    ),
    E.UNCOMMITTED_CHANGES: ErrorInfo(
        code=E.UNCOMMITTED_CHANGES,
        message='The workspace root has uncommitted changes, so a bookmark was not checked out.',
        hint='Commit, stash or reset the changes first.',
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"WK-CONFIG-NOT-FOUND"``.

    Returns:
        A formatted explanation string, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def _render(kind: str, color: str, info: ErrorInfo, out: TextIO) -> None:
    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(info.message)
        console.print(f'[bold {color}]{kind}[/bold {color}][bold {color}]\\[{info.code.value}][/bold {color}][bold]: {msg}[/bold]')
        if info.hint:
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {rich_escape(info.hint)}')
        console.print()
    else:
        print(f'{kind}[{info.code.value}]: {info.message}', file=out)  # noqa: T201 - CLI output
        if info.hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {info.hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


def render_error(exc: WorkspaceKitError, *, file: TextIO | None = None) -> None:
    """Render an error in Rust-compiler style.

    Output format::

        error[WK-CONFIG-NOT-FOUND]: No workspacekit.toml found.
          |
          = hint: Run workspacekit from inside a workspace.

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    _render('error', 'red', exc.info, file or sys.stderr)


def render_warning(exc: WorkspaceKitWarning, *, file: TextIO | None = None) -> None:
    """Render a warning in the same style as :func:`render_error`."""
    _render('warning', 'yellow', exc.info, file or sys.stderr)


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'WorkspaceKitError',
    'WorkspaceKitWarning',
    'explain',
    'render_error',
    'render_warning',
]
