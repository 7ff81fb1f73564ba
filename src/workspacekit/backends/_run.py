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

"""Central subprocess abstraction for workspacekit.

Two entry points:

- :func:`run_command` runs an argv list (``git clone ...``, ``lerna ...``)
  synchronously and returns a :class:`CommandResult`. Async callers wrap
  it in :func:`asyncio.to_thread`.
- :func:`run_shell_command` runs a single shell command string for the
  workspace commands (``git status -s``, ``npm install``). It streams the
  child's output unless ``silent`` is set, always captures it, returns
  stdout on success and raises ``WK-SHELL-COMMAND-FAILED`` otherwise.

Neither retries. Callers decide what a failure means.
"""

from __future__ import annotations

import asyncio
import subprocess  # noqa: S404 - subprocess is the core purpose of this module
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import get_logger

log = get_logger('workspacekit.backends.run')


@dataclass(frozen=True)
class CommandResult:
    """Result of a subprocess invocation.

    Attributes:
        command: The command that was executed (as a list of strings).
        return_code: Process exit code (0 = success).
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration: Wall-clock duration in milliseconds.
        dry_run: Whether this was a dry-run (command was not actually executed).
    """

    command: list[str]
    return_code: int
    stdout: str = ''
    stderr: str = ''
    duration: float = 0.0
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        """Whether the command succeeded (return_code == 0 or dry-run)."""
        return self.return_code == 0

    @property
    def command_str(self) -> str:
        """The command as a single shell-style string."""
        return ' '.join(self.command)


def run_command(
    cmd: list[str],
    *,
    cwd: Path | str | None = None,
    dry_run: bool = False,
    capture: bool = True,
) -> CommandResult:
    """Execute a subprocess command with logging and dry-run support.

    Args:
        cmd: Command and arguments as a list of strings.
        cwd: Working directory for the command.
        dry_run: If ``True``, log the command but don't execute it.
        capture: If ``True``, capture stdout and stderr. If ``False`` the
            child inherits the terminal.

    Returns:
        A :class:`CommandResult` with the command output and metadata. A
        non-zero exit is reported through ``return_code``, never raised.
    """
    cmd_str = ' '.join(cmd)
    log.debug('run_command', cmd=cmd_str, cwd=str(cwd or '.'), dry_run=dry_run)

    if dry_run:
        log.info('dry_run', cmd=cmd_str)
        return CommandResult(command=cmd, return_code=0, dry_run=True)

    start = time.monotonic()
    result = subprocess.run(  # noqa: S603 -- argv built by workspacekit
        cmd,
        cwd=cwd,
        capture_output=capture,
        text=True,
    )

    duration = (time.monotonic() - start) * 1000
    cmd_result = CommandResult(
        command=cmd,
        return_code=result.returncode,
        stdout=result.stdout if capture else '',
        stderr=result.stderr if capture else '',
        duration=duration,
    )

    if result.returncode != 0:
        log.warning(
            'command_failed',
            cmd=cmd_str,
            return_code=result.returncode,
            stderr=result.stderr[:500] if capture else '',
            duration=duration,
        )
    else:
        log.debug('command_ok', cmd=cmd_str, duration=duration)

    return cmd_result


async def _pump(stream: asyncio.StreamReader, sink: list[str], echo: TextIO | None) -> None:
    """Copy lines from a child stream into ``sink``, echoing if asked."""
    while True:
        line = await stream.readline()
        if not line:
            return
        text = line.decode(errors='replace')
        sink.append(text)
        if echo is not None:
            echo.write(text)
            echo.flush()


async def run_shell_command(
    command: str,
    *,
    silent: bool = False,
    cwd: Path | str | None = None,
) -> str:
    """Run one shell command string and return its standard output.

    Args:
        command: The command line, interpreted by the system shell.
        silent: Capture output without echoing it to the terminal.
        cwd: Working directory for the command.

    Returns:
        Everything the command wrote to stdout.

    Raises:
        WorkspaceKitError: ``WK-SHELL-COMMAND-FAILED`` if the command exits
            with a non-zero code. The message carries the captured stderr.
    """
    log.debug('run_shell_command', cmd=command, cwd=str(cwd or '.'), silent=silent)
    start = time.monotonic()
    proc = await asyncio.create_subprocess_shell(
        command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
    )
    out: list[str] = []
    err: list[str] = []
    assert proc.stdout is not None and proc.stderr is not None  # noqa: S101 - PIPE was requested
    await asyncio.gather(
        _pump(proc.stdout, out, None if silent else sys.stdout),
        _pump(proc.stderr, err, None if silent else sys.stderr),
    )
    return_code = await proc.wait()
    duration = (time.monotonic() - start) * 1000
    stdout = ''.join(out)
    stderr = ''.join(err)

    if return_code != 0:
        log.warning('shell_command_failed', cmd=command, return_code=return_code, duration=duration)
        raise WorkspaceKitError(
            code=E.SHELL_COMMAND_FAILED,
            message=f"'{command}' exited with code {return_code}: {stderr.strip()}",
            hint='Run the command by hand in the same directory to see the full output.',
        )

    log.debug('shell_command_ok', cmd=command, duration=duration)
    return stdout


__all__ = [
    'CommandResult',
    'run_command',
    'run_shell_command',
]
