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

"""Shared test fakes for workspacekit.

Usage::

    from tests._fakes import OK, FakeVCS

    vcs = FakeVCS(tmp_path)
    ws = await load_workspace(tmp_path, vcs=vcs)
    assert vcs.clones == [('https://github.com/acme/widgets.git', 'widgets', 'develop')]
"""

from tests._fakes._vcs import OK as OK, FakeVCS as FakeVCS

__all__ = [
    'OK',
    'FakeVCS',
]
