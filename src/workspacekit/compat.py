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

"""Version compatibility gate.

``workspacekit.toml`` declares the oldest workspacekit release it was
written for. The running workspacekit must satisfy the caret range
``^<declared version>`` before anything touches the filesystem, because the
generated ``lerna.json`` layout is tied to the major version.

Versions are `Semantic Versions <https://semver.org/>`_
(``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]``), and caret ranges follow npm
semantics: the left-most non-zero component is fixed::

    ^1.2.3   :=  >=1.2.3  <2.0.0
    ^0.2.3   :=  >=0.2.3  <0.3.0
    ^0.0.3   :=  >=0.0.3  <0.0.4

A pre-release engine (``1.3.0-beta.1``) only satisfies a range whose lower
bound is a pre-release of the same ``major.minor.patch``. Build metadata
is ignored.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field

from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import get_logger

logger = get_logger(__name__)

_NUM = r'0|[1-9]\d*'
_PRE_IDENT = rf'(?:{_NUM}|\d*[A-Za-z-][0-9A-Za-z-]*)'
_SEMVER_RE = re.compile(
    rf'^v?(?P<major>{_NUM})\.(?P<minor>{_NUM})\.(?P<patch>{_NUM})'
    rf'(?:-(?P<pre>{_PRE_IDENT}(?:\.{_PRE_IDENT})*))?'
    r'(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$'
)


@functools.total_ordering
@dataclass(frozen=True)
class SemVer:
    """A parsed semantic version.

    Ordering follows semver precedence::

        1.0.0-alpha < 1.0.0-alpha.1 < 1.0.0-alpha.beta < 1.0.0-beta
                    < 1.0.0-beta.2 < 1.0.0-beta.11 < 1.0.0-rc.1 < 1.0.0
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[int | str, ...] = ()
    build: str = field(default='', compare=False)

    @property
    def release(self) -> tuple[int, int, int]:
        """``(major, minor, patch)``."""
        return (self.major, self.minor, self.patch)

    @property
    def is_prerelease(self) -> bool:
        """Whether the version carries a ``-PRERELEASE`` part."""
        return bool(self.prerelease)

    def _key(self) -> tuple[object, ...]:
        idents = tuple((0, i, '') if isinstance(i, int) else (1, 0, i) for i in self.prerelease)
        # No pre-release sorts after any pre-release of the same release.
        return (*self.release, not self.prerelease, idents)

    def __lt__(self, other: object) -> bool:
        """Compare by semver precedence."""
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        """Render as ``MAJOR.MINOR.PATCH[-PRERELEASE]``."""
        text = f'{self.major}.{self.minor}.{self.patch}'
        if self.prerelease:
            text += '-' + '.'.join(str(i) for i in self.prerelease)
        return text


def parse_version(version: str, *, source: str) -> SemVer:
    """Parse a semantic version string.

    Args:
        version: The version text, e.g. ``"1.2.0"`` or ``"2.0.0-next.1"``.
        source: Where the version came from, for the error message.

    Raises:
        WorkspaceKitError: ``WK-VERSION-INVALID`` if it is not a semver.
    """
    m = _SEMVER_RE.match(version.strip())
    if m is None:
        raise WorkspaceKitError(
            code=E.VERSION_INVALID,
            message=f'{source} version {version!r} is not a valid version',
            hint='Use a semantic version like "1.2.3" or "2.0.0-rc.1" (MAJOR.MINOR.PATCH[-PRERELEASE]).',
        )
    pre = m.group('pre')
    prerelease = tuple(int(i) if i.isdigit() else i for i in pre.split('.')) if pre else ()
    return SemVer(
        major=int(m.group('major')),
        minor=int(m.group('minor')),
        patch=int(m.group('patch')),
        prerelease=prerelease,
        build=m.group('build') or '',
    )


def caret_upper_bound(version: SemVer) -> SemVer:
    """Return the exclusive upper bound of ``^version``."""
    major, minor, patch = version.release
    if major:
        return SemVer(major + 1, 0, 0)
    if minor:
        return SemVer(0, minor + 1, 0)
    return SemVer(0, 0, patch + 1)


def satisfies_caret(candidate: str, base: str) -> bool:
    """Return True if ``candidate`` satisfies ``^base``."""
    cand = parse_version(candidate, source='candidate')
    low = parse_version(base, source='range')

    if cand.is_prerelease and not (low.is_prerelease and cand.release == low.release):
        return False
    return low <= cand < caret_upper_bound(low)


def check_version_compat(engine_version: str, config_version: str) -> None:
    """Halt the pipeline unless the engine satisfies ``^config_version``.

    Args:
        engine_version: The installed workspacekit version.
        config_version: The ``version`` declared in ``workspacekit.toml``.

    Raises:
        WorkspaceKitError: ``WK-VERSION-INCOMPATIBLE`` on mismatch, or
            ``WK-VERSION-INVALID`` if either version cannot be parsed.
    """
    engine = parse_version(engine_version, source='workspacekit')
    declared = parse_version(config_version, source='workspacekit.toml')
    logger.debug('version_gate', engine=str(engine), declared=str(declared))

    if not satisfies_caret(engine_version, config_version):
        raise WorkspaceKitError(
            code=E.VERSION_INCOMPATIBLE,
            message=(
                f"workspacekit {engine_version} does not satisfy '^{config_version}' "
                f'declared in workspacekit.toml'
            ),
            hint=(
                f'Either install workspacekit >={config_version} <{caret_upper_bound(declared)}, '
                f'or set version = "{engine_version}" in workspacekit.toml.'
            ),
        )


__all__ = [
    'SemVer',
    'caret_upper_bound',
    'check_version_compat',
    'parse_version',
    'satisfies_caret',
]
