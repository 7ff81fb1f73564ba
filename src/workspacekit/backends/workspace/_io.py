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

"""Async JSON file helpers shared by the resolver and the lerna backend.

Reads go through ``aiofiles`` so that resolving many repositories
concurrently never blocks the event loop on disk I/O.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiofiles

from workspacekit.errors import ErrorCode, WorkspaceKitError


async def read_file(path: Path, *, code: ErrorCode) -> str:
    """Read a UTF-8 text file, raising ``code`` if it cannot be read."""
    try:
        async with aiofiles.open(path, encoding='utf-8') as f:
            return await f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise WorkspaceKitError(
            code=code,
            message=f'Failed to read {path}: {exc}',
            hint=f'Check that {path} exists and is readable.',
        ) from exc


def parse_json_object(text: str, path: Path, *, code: ErrorCode) -> dict[str, Any]:  # noqa: ANN401 - JSON values are untyped
    """Parse JSON text that must hold an object at the top level."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise WorkspaceKitError(
            code=code,
            message=f'Failed to parse {path}: {exc}',
            hint=f'Check that {path} contains valid JSON.',
        ) from exc
    if not isinstance(data, dict):
        raise WorkspaceKitError(
            code=code,
            message=f'{path} is not a JSON object',
            hint=f'Expected a JSON object at the top level of {path}.',
        )
    return data


async def read_json_object(path: Path, *, code: ErrorCode) -> dict[str, Any]:  # noqa: ANN401
    """Read and parse a JSON object file."""
    return parse_json_object(await read_file(path, code=code), path, code=code)
