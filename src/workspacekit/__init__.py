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

"""workspacekit: multi-repository workspace manager.

Resolves the repositories declared in ``workspacekit.toml``, clones the
missing ones, discovers the packages of nested lerna mono-repos and writes
the ``lerna.json`` that drives bootstrap/build/run across all of them.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version('workspacekit')
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = '1.2.0'
