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

"""Mono-repo protocol for workspacekit.

The :class:`MonoRepo` protocol is the async interface for listing the
packages nested inside one repository. Implementations:

- :class:`~workspacekit.backends.workspace.lerna.LernaMonoRepo` - ``lerna.json`` + ``package.json``
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from workspacekit.backends.workspace._types import ResolvedPackage as ResolvedPackage
from workspacekit.backends.workspace._types import ResolvedRepository as ResolvedRepository
from workspacekit.backends.workspace.lerna import LernaMonoRepo as LernaMonoRepo

__all__ = [
    'LernaMonoRepo',
    'MonoRepo',
    'ResolvedPackage',
    'ResolvedRepository',
]


@runtime_checkable
class MonoRepo(Protocol):
    """Protocol for discovering the packages of a mono-repo."""

    @property
    def root(self) -> Path:
        """The repository root."""
        ...

    async def discover(self) -> list[ResolvedPackage]:
        """Discover all packages, in deterministic order.

        Returns:
            Packages whose directories lie inside :attr:`root` and
            outside any ``node_modules`` directory.
        """
        ...
