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

"""Shared types for the workspace subpackage."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

__all__ = [
    'ResolvedPackage',
    'ResolvedRepository',
]


@dataclass(frozen=True)
class ResolvedPackage:
    """A package nested inside a mono-repo.

    Attributes:
        name: Path of the package relative to the owning repository root,
            always with ``/`` separators (e.g. ``"packages/core"``).
        path: Absolute path to the package directory.
        package_descriptor: Parsed ``package.json``, not normalized.
    """

    name: str
    path: Path
    package_descriptor: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)  # noqa: ANN401


@dataclass(frozen=True)
class ResolvedRepository:
    """A declared repository that exists on disk.

    Attributes:
        name: The ``name`` field of the repository's ``package.json``.
        path: Absolute path to the repository root.
        package_descriptor: Parsed ``package.json``, not normalized.
        is_mono_repo: Whether the root holds a ``lerna.json``.
        packages: Nested packages, in discovery order. Empty unless
            :attr:`is_mono_repo`.
    """

    name: str
    path: Path
    package_descriptor: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)  # noqa: ANN401
    is_mono_repo: bool = False
    packages: tuple[ResolvedPackage, ...] = ()

    @property
    def package_paths(self) -> list[Path]:
        """Directories the build orchestrator should treat as packages.

        A plain repository is its own package. A mono-repo contributes
        its nested packages only, never its root.
        """
        if self.is_mono_repo:
            return [pkg.path for pkg in self.packages]
        return [self.path]
