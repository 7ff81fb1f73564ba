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

"""Workspace descriptor reader for workspacekit.

Finds ``workspacekit.toml`` by walking up from a start directory, parses it
with ``tomlkit`` and returns a validated, frozen
:class:`WorkspaceDescriptor`. The directory holding the file is the
workspace root; every relative repository path is resolved against it.

Supported keys in ``workspacekit.toml``::

    version      = "1.2.0"                       # required, see compat.py
    repositories = [                             # default: ["."]
      "./repoA",                                 # shorthand for origin = "fs"
      { origin = "fs", path = "../shared" },
      { origin = "github", uri = "https://github.com/acme/widgets.git#develop" },
    ]

    [licenses]                                   # opaque, for the licenses report
    ignoreList = ["left-pad"]

    [commands.bookmark]                          # opaque, for downstream commands
    stable = "4f1c2e..."

Repository entries are decoded exactly once, here, into :class:`FsRepo` or
:class:`GithubRepo`. Nothing downstream inspects raw entries.

The descriptor is never mutated in place. :func:`update_descriptor`
deep-merges a partial mapping into a copy of the TOML document, writes it
back (comments and layout survive, courtesy of ``tomlkit``) and returns a
new snapshot.

Usage::

    from workspacekit.descriptor import load_descriptor

    desc = load_descriptor(Path.cwd())
    desc.get_config_value('release.appConfig.path')
"""

from __future__ import annotations

import difflib
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import get_logger

logger = get_logger(__name__)

# The descriptor file name, searched upward from the start directory.
DESCRIPTOR_FILENAME = 'workspacekit.toml'

# All recognized top-level keys in workspacekit.toml.
VALID_KEYS: frozenset[str] = frozenset({
    'commands',
    'licenses',
    'repositories',
    'version',
})

ALLOWED_ORIGINS: frozenset[str] = frozenset({'fs', 'github'})

_GITHUB_URI_RE = re.compile(
    r'^(?P<uri>https://github\.com/[^/#]+/(?P<name>[^/#]+?)\.git)(?:#(?P<ref>.+))?$',
    re.IGNORECASE,
)


@dataclass(frozen=True)
class FsRepo:
    """A repository that already lives on the local filesystem.

    Attributes:
        path: Path relative to the workspace root (or absolute).
    """

    path: str


@dataclass(frozen=True)
class GithubRepo:
    """A repository cloned from GitHub when it is missing locally.

    Attributes:
        uri: The clone URI without the ``#ref`` fragment.
        name: Repository name taken from the URI; also the local
            directory name under the workspace root.
        ref: Optional branch or tag passed to ``git clone -b``.
    """

    uri: str
    name: str
    ref: str | None = None


RepositoryEntry = FsRepo | GithubRepo


@dataclass(frozen=True)
class WorkspaceDescriptor:
    """Validated contents of ``workspacekit.toml``.

    Attributes:
        version: Minimum workspacekit version the workspace expects.
        repositories: Decoded repository entries, in declaration order.
        licenses: The ``[licenses]`` table, or ``None``.
        commands: The ``[commands]`` tree, as plain Python data.
        path: Absolute path of the descriptor file.
    """

    version: str
    repositories: tuple[RepositoryEntry, ...]
    licenses: dict[str, Any] | None = None  # noqa: ANN401
    commands: dict[str, Any] = field(default_factory=dict)  # noqa: ANN401
    path: Path = Path(DESCRIPTOR_FILENAME)
    document: tomlkit.TOMLDocument = field(default_factory=tomlkit.document, compare=False, repr=False)

    @property
    def root_path(self) -> Path:
        """The workspace root: the directory holding the descriptor."""
        return self.path.parent

    def get_config_value(self, dotted_path: str) -> Any | None:  # noqa: ANN401 - values are user data
        """Look up ``dotted_path`` in the ``[commands]`` tree.

        ``get_config_value('release.appConfig.path')`` returns
        ``commands['release']['appConfig']['path']``. Returns ``None`` as soon
        as a level is missing or is not a table; never raises.
        """
        node: Any = self.commands  # noqa: ANN401
        for key in dotted_path.split('.'):
            if not isinstance(node, Mapping) or key not in node:
                return None
            node = node[key]
        return node


def find_descriptor(start_directory: Path) -> Path:
    """Return the nearest ``workspacekit.toml`` at or above ``start_directory``.

    Raises:
        WorkspaceKitError: ``WK-CONFIG-NOT-FOUND`` if no ancestor has one.
    """
    start = start_directory.resolve()
    for parent in [start, *start.parents]:
        candidate = parent / DESCRIPTOR_FILENAME
        if candidate.is_file():
            return candidate
    raise WorkspaceKitError(
        code=E.CONFIG_NOT_FOUND,
        message=f'No {DESCRIPTOR_FILENAME} found in {start} or any parent directory.',
        hint=f'Create {DESCRIPTOR_FILENAME} at the workspace root, or run from inside the workspace.',
    )


def parse_github_uri(uri: str) -> GithubRepo:
    """Split ``https://github.com/<owner>/<name>.git[#<ref>]`` into its parts.

    Raises:
        WorkspaceKitError: ``WK-REPO-INVALID-URI`` if ``uri`` does not match.
    """
    match = _GITHUB_URI_RE.match(uri.strip())
    if match is None:
        raise WorkspaceKitError(
            code=E.INVALID_REPOSITORY_URI,
            message=f"repository with origin 'github' has invalid uri {uri!r}",
            hint="Expected 'https://github.com/<owner>/<name>.git', optionally followed by '#<branch>'.",
        )
    return GithubRepo(uri=match.group('uri'), name=match.group('name'), ref=match.group('ref') or None)


def decode_repository_entry(raw: Any) -> RepositoryEntry:  # noqa: ANN401 - raw TOML value
    """Decode one element of ``repositories`` into a tagged entry."""
    if isinstance(raw, str):
        return FsRepo(path=raw)

    if isinstance(raw, Mapping):
        origin = raw.get('origin')
        if origin == 'fs' and isinstance(raw.get('path'), str):
            return FsRepo(path=raw['path'])
        if origin == 'github' and isinstance(raw.get('uri'), str):
            return parse_github_uri(raw['uri'])

    raise WorkspaceKitError(
        code=E.CONFIG_INVALID_REPOSITORY,
        message=f'repository list contains invalid value: {_plain(raw)!r}',
        hint=(
            f'Use a path string, {{ origin = "fs", path = "..." }} or '
            f'{{ origin = "github", uri = "..." }}. Allowed origins: {sorted(ALLOWED_ORIGINS)}.'
        ),
    )


def _plain(value: Any) -> Any:  # noqa: ANN401
    """Convert tomlkit containers to plain Python data."""
    unwrap = getattr(value, 'unwrap', None)
    return unwrap() if callable(unwrap) else value


def _suggest_key(unknown: str) -> str | None:
    """Return the closest valid key for a typo, or None."""
    matches = difflib.get_close_matches(unknown, VALID_KEYS, n=1, cutoff=0.6)
    return matches[0] if matches else None


def _descriptor_from_document(doc: tomlkit.TOMLDocument, path: Path) -> WorkspaceDescriptor:
    """Validate a parsed document and build the descriptor snapshot."""
    raw: dict[str, Any] = _plain(doc)  # noqa: ANN401

    for key in raw:
        if key not in VALID_KEYS:
            suggestion = _suggest_key(key)
            raise WorkspaceKitError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {path}",
                hint=f"Did you mean '{suggestion}'?" if suggestion else f'Valid keys: {sorted(VALID_KEYS)}.',
            )

    version = raw.get('version')
    if version is None or version == '':
        raise WorkspaceKitError(
            code=E.CONFIG_MISSING_VERSION,
            message=f"{path} has no 'version' key",
            hint='Add version = "<workspacekit version>" at the top of the file.',
        )
    if not isinstance(version, str):
        raise WorkspaceKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'version' must be str, got {type(version).__name__}",
            hint=f'Quote the version in {path}, e.g. version = "1.2.0".',
        )

    raw_repos = raw.get('repositories', ['.'])
    if not isinstance(raw_repos, list):
        raise WorkspaceKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'repositories' must be list, got {type(raw_repos).__name__}",
            hint=f'Check the value of repositories in {path}.',
        )

    for table_key in ('licenses', 'commands'):
        if table_key in raw and not isinstance(raw[table_key], dict):
            raise WorkspaceKitError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'{table_key}' must be a table, got {type(raw[table_key]).__name__}",
                hint=f'Use a [{table_key}] section in {path}.',
            )

    return WorkspaceDescriptor(
        version=version,
        repositories=tuple(decode_repository_entry(entry) for entry in raw_repos),
        licenses=raw.get('licenses'),
        commands=raw.get('commands', {}),
        path=path,
        document=doc,
    )


def _parse_document(text: str, path: Path) -> tomlkit.TOMLDocument:
    try:
        return tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise WorkspaceKitError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Failed to parse {path}: {exc}',
            hint=f'Check that {path} contains valid TOML.',
        ) from exc


def load_descriptor(start_directory: Path) -> WorkspaceDescriptor:
    """Find, read and validate the workspace descriptor.

    Args:
        start_directory: Where to start the upward search. Never read from
            the process working directory implicitly.

    Returns:
        A validated :class:`WorkspaceDescriptor`.

    Raises:
        WorkspaceKitError: If the file is missing, unreadable, malformed,
            lacks ``version`` or has an invalid repository entry.
    """
    path = find_descriptor(start_directory)
    logger.debug('descriptor_found', path=str(path))

    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as exc:
        raise WorkspaceKitError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Failed to read {path}: {exc}',
            hint=f'Check that {path} is readable.',
        ) from exc

    descriptor = _descriptor_from_document(_parse_document(text, path), path)
    logger.debug(
        'descriptor_loaded',
        root=str(descriptor.root_path),
        version=descriptor.version,
        repositories=len(descriptor.repositories),
    )
    return descriptor


def _deep_merge(target: Any, partial: Mapping[str, Any]) -> None:  # noqa: ANN401
    """Merge ``partial`` into ``target``; nested tables merge, values replace."""
    for key, value in partial.items():
        existing = target.get(key)
        if isinstance(value, Mapping) and isinstance(existing, Mapping):
            _deep_merge(existing, value)
        else:
            target[key] = value


def update_descriptor(descriptor: WorkspaceDescriptor, partial: Mapping[str, Any]) -> WorkspaceDescriptor:  # noqa: ANN401
    """Deep-merge ``partial`` into the descriptor and persist it.

    Used by commands that record derived state, e.g.
    ``{'commands': {'bookmark': {'stable': '<sha>'}}}``.

    Returns:
        A new descriptor snapshot read from the merged document. The
        ``descriptor`` argument is left untouched.

    Raises:
        WorkspaceKitError: If the merged document is invalid or cannot be
            written.
    """
    doc = _parse_document(descriptor.document.as_string(), descriptor.path)
    _deep_merge(doc, partial)
    updated = _descriptor_from_document(doc, descriptor.path)

    try:
        descriptor.path.write_text(tomlkit.dumps(doc), encoding='utf-8')
    except OSError as exc:
        raise WorkspaceKitError(
            code=E.CONFIG_WRITE_FAILED,
            message=f'Failed to write {descriptor.path}: {exc}',
            hint=f'Check file permissions for {descriptor.path}.',
        ) from exc

    logger.info('descriptor_updated', path=str(descriptor.path), keys=sorted(partial))
    return updated


__all__ = [
    'ALLOWED_ORIGINS',
    'DESCRIPTOR_FILENAME',
    'VALID_KEYS',
    'FsRepo',
    'GithubRepo',
    'RepositoryEntry',
    'WorkspaceDescriptor',
    'decode_repository_entry',
    'find_descriptor',
    'load_descriptor',
    'parse_github_uri',
    'update_descriptor',
]
