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

"""Backend shim layer for workspacekit.

Every external tool workspacekit talks to sits behind a small seam here,
so tests can swap in fakes:

- :class:`VCS` clones missing repositories (default: :class:`GitCLIBackend`)
- :class:`MonoRepo` discovers nested packages (default: :class:`LernaMonoRepo`)
- :class:`LernaOrchestrator` runs lerna against the generated manifest
"""

from workspacekit.backends._run import CommandResult, run_command, run_shell_command
from workspacekit.backends.orchestrator import LernaOrchestrator
from workspacekit.backends.vcs import VCS, GitCLIBackend
from workspacekit.backends.workspace import LernaMonoRepo, MonoRepo, ResolvedPackage, ResolvedRepository

__all__ = [
    'VCS',
    'CommandResult',
    'GitCLIBackend',
    'LernaMonoRepo',
    'LernaOrchestrator',
    'MonoRepo',
    'ResolvedPackage',
    'ResolvedRepository',
    'run_command',
    'run_shell_command',
]
