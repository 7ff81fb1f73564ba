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

"""Command-line interface for workspacekit.

Commands::

    workspacekit sync                      resolve + write lerna.json
    workspacekit discover [--format json]  list repositories and packages
    workspacekit setup [--clean] [--no-build]
    workspacekit clean
    workspacekit run <script> [args...]
    workspacekit npm-link
    workspacekit bookmark <name> [--update]
    workspacekit explain <code>

Every command except ``explain`` runs the resolve-and-synthesize pipeline
first (see :mod:`workspacekit.workspace`). :func:`main` is the only place
that turns a :class:`WorkspaceKitError` into an exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import re
import shutil
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from rich_argparse import RichHelpFormatter

from workspacekit import __version__
from workspacekit.backends._run import run_shell_command
from workspacekit.errors import E, WorkspaceKitError, WorkspaceKitWarning, explain, render_error, render_warning
from workspacekit.logging import configure_logging, get_logger
from workspacekit.workspace import Workspace, load_workspace

logger = get_logger(__name__)

_COMMIT_ID_RE = re.compile(r'^[a-f0-9]{7,40}')


async def _load(args: argparse.Namespace) -> Workspace:
    """Run the pipeline using the global options."""
    return await load_workspace(
        Path(args.cwd).resolve(),
        manifest_dir=Path(args.manifest_dir).resolve() if args.manifest_dir else None,
        clone=not args.no_clone,
    )


async def _cmd_sync(args: argparse.Namespace) -> int:
    """Handle the ``sync`` subcommand."""
    ws = await _load(args)
    print(ws.manifest_path)  # noqa: T201 - CLI output
    return 0


async def _cmd_discover(args: argparse.Namespace) -> int:
    """Handle the ``discover`` subcommand."""
    ws = await _load(args)

    if args.format == 'json':
        data = [
            {
                'name': repo.name,
                'path': str(repo.path),
                'mono_repo': repo.is_mono_repo,
                'packages': [{'name': pkg.name, 'path': str(pkg.path)} for pkg in repo.packages],
            }
            for repo in ws.repositories
        ]
        print(json.dumps(data, indent=2))  # noqa: T201 - CLI output
        return 0

    for repo in ws.repositories:
        kind = ' [mono-repo]' if repo.is_mono_repo else ''
        print(f'  {repo.name} ({repo.path}){kind}')  # noqa: T201 - CLI output
        for pkg in repo.packages:
            print(f'    {pkg.name} ({pkg.path})')  # noqa: T201 - CLI output
    return 0


async def _cmd_setup(args: argparse.Namespace) -> int:
    """Handle the ``setup`` subcommand.

    Optionally cleans every package's ``node_modules``, bootstraps all
    packages without hoisting and finally builds them.
    """
    ws = await _load(args)
    if args.clean:
        logger.info('setup_clean')
        await ws.run_orchestrator_command(['clean', '--yes'])

    logger.info('setup_bootstrap', hint='this might take several minutes')
    await ws.run_orchestrator_command(['bootstrap', '--nohoist'])

    if args.build:
        await ws.run_orchestrator_command(['run', 'build'])
    return 0


async def _cmd_clean(args: argparse.Namespace) -> int:
    """Handle the ``clean`` subcommand."""
    ws = await _load(args)
    await ws.run_orchestrator_command(['clean', '--yes'])

    for repo in ws.mono_repos:
        modules = repo.path / 'node_modules'
        if modules.exists():
            logger.info('removing', path=str(modules))
            try:
                shutil.rmtree(modules)
            except OSError as exc:
                raise WorkspaceKitError(
                    code=E.CLEAN_FAILED,
                    message=f'Cannot remove {modules}: {exc}',
                    hint='Check the permissions of the directory, or remove it by hand.',
                ) from exc
    return 0


async def _cmd_run(args: argparse.Namespace) -> int:
    """Handle the ``run`` subcommand."""
    ws = await _load(args)
    await ws.run_orchestrator_command(['run', args.script, *args.script_args])
    return 0


async def _cmd_npm_link(args: argparse.Namespace) -> int:
    """Handle the ``npm-link`` subcommand.

    Installs each mono-repo's root dependencies with npm, then bootstraps
    every package so workspace libraries are linked to each other.
    """
    ws = await _load(args)
    for repo in ws.mono_repos:
        logger.info('npm_install', repository=repo.name, path=str(repo.path))
        await run_shell_command('npm install', cwd=repo.path)

    logger.info('setup_bootstrap', hint='this might take several minutes')
    await ws.run_orchestrator_command(['bootstrap', '--nohoist'])
    return 0


async def _cmd_bookmark(args: argparse.Namespace) -> int:
    """Handle the ``bookmark`` subcommand.

    With ``--update``, records the workspace root's HEAD commit under
    ``commands.bookmark.<name>`` in ``workspacekit.toml``. Otherwise checks
    out the recorded commit, refusing to do so over uncommitted changes.
    """
    ws = await _load(args)
    name = args.name

    if args.update:
        output = await ws.run_shell_command('git log --format="%H" -n 1', silent=True)
        match = _COMMIT_ID_RE.match(output.strip())
        if match is None:
            raise WorkspaceKitError(
                code=E.SHELL_COMMAND_FAILED,
                message=f'Cannot read the latest commit id from git log output {output.strip()!r}',
                hint=f'Make sure {ws.root_path} is a git repository with at least one commit.',
            )
        commit = match.group(0)
        ws.update_config({'commands': {'bookmark': {name: commit}}})
        logger.info('bookmark_updated', name=name, commit=commit)
        return 0

    bookmarks = ws.get_config_value('bookmark')
    commit = bookmarks.get(name) if isinstance(bookmarks, Mapping) else None
    if not commit:
        raise WorkspaceKitError(
            code=E.BOOKMARK_NOT_FOUND,
            message=f"No bookmark named '{name}' in workspacekit.toml",
            hint=f"Create it with 'workspacekit bookmark {name} --update'.",
        )

    if (await ws.run_shell_command('git status -s', silent=True)).strip():
        render_warning(
            WorkspaceKitWarning(
                code=E.UNCOMMITTED_CHANGES,
                message=f"Not checking out bookmark '{name}': {ws.root_path} has uncommitted changes",
                hint='Commit or reset your changes, then run the command again.',
            )
        )
        return 1

    logger.info('bookmark_checkout', name=name, commit=commit)
    await ws.run_shell_command(f'git checkout {commit}')
    return 0


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the ``explain`` subcommand."""
    result = explain(args.code)
    if result is None:
        print(f'Unknown error code: {args.code}')  # noqa: T201 - CLI output
        return 1
    print(result)  # noqa: T201 - CLI output
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured :class:`argparse.ArgumentParser`.
    """
    RichHelpFormatter.styles['argparse.groups'] = 'bold yellow'
    parser = argparse.ArgumentParser(
        prog='workspacekit',
        description='Multi-repository workspace manager on top of lerna.',
        formatter_class=RichHelpFormatter,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    parser.add_argument(
        '--cwd',
        metavar='DIR',
        default='.',
        help='Directory to start looking for workspacekit.toml in (default: current directory).',
    )
    parser.add_argument(
        '--manifest-dir',
        metavar='DIR',
        default=None,
        help='Where to write the generated lerna.json (default: the workspacekit package directory).',
    )
    parser.add_argument(
        '--no-clone',
        action='store_true',
        help='Fail instead of cloning GitHub repositories that are missing locally.',
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Enable debug logging (also passed to lerna as --loglevel=silly).',
    )
    parser.add_argument(
        '--quiet',
        '-q',
        action='store_true',
        help='Only log warnings and errors.',
    )
    parser.add_argument(
        '--json-log',
        action='store_true',
        help='Emit log lines as JSON.',
    )

    subparsers = parser.add_subparsers(dest='command')

    subparsers.add_parser(
        'sync',
        help='Resolve the workspace, clone missing repositories and write lerna.json.',
    )

    discover_parser = subparsers.add_parser(
        'discover',
        help='List resolved repositories and mono-repo packages.',
    )
    discover_parser.add_argument(
        '--format',
        choices=['table', 'json'],
        default='table',
        help='Output format (default: table).',
    )

    setup_parser = subparsers.add_parser(
        'setup',
        help='Bootstrap and build every package in the workspace.',
    )
    setup_parser.add_argument(
        '--clean',
        action='store_true',
        help="Delete the packages' node_modules before bootstrapping.",
    )
    setup_parser.add_argument(
        '--no-build',
        dest='build',
        action='store_false',
        help='Skip "lerna run build" after bootstrapping.',
    )

    subparsers.add_parser(
        'clean',
        help='Remove node_modules from all packages and mono-repo roots.',
    )

    run_parser = subparsers.add_parser(
        'run',
        help='Run an npm script in each package that defines it.',
    )
    run_parser.add_argument('script', help='The npm script to run.')
    run_parser.add_argument(
        'script_args',
        nargs=argparse.REMAINDER,
        help='Arguments passed through to the script.',
    )

    subparsers.add_parser(
        'npm-link',
        help='Install mono-repo root dependencies and link workspace libraries.',
    )

    bookmark_parser = subparsers.add_parser(
        'bookmark',
        help='Check out (or record) a named commit of the workspace root.',
    )
    bookmark_parser.add_argument('name', help='Bookmark name.')
    bookmark_parser.add_argument(
        '--update',
        action='store_true',
        help='Record the latest local commit under this name instead of checking it out.',
    )

    explain_parser = subparsers.add_parser(
        'explain',
        help='Explain an error code (e.g. WK-CONFIG-NOT-FOUND).',
    )
    explain_parser.add_argument('code', help='The error code to explain.')

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Arguments without the program name. Defaults to
            ``sys.argv[1:]``.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)

    try:
        command = args.command
        if command == 'sync':
            return asyncio.run(_cmd_sync(args))
        if command == 'discover':
            return asyncio.run(_cmd_discover(args))
        if command == 'setup':
            return asyncio.run(_cmd_setup(args))
        if command == 'clean':
            return asyncio.run(_cmd_clean(args))
        if command == 'run':
            return asyncio.run(_cmd_run(args))
        if command == 'npm-link':
            return asyncio.run(_cmd_npm_link(args))
        if command == 'bookmark':
            return asyncio.run(_cmd_bookmark(args))
        if command == 'explain':
            return _cmd_explain(args)

        parser.print_help()  # noqa: T201 - CLI output
        print(  # noqa: T201 - CLI output
            f'\n{parser.prog}: error: please provide a command',
            file=sys.stderr,
        )
        return 2

    except WorkspaceKitError as exc:
        render_error(exc)
        return 1
    except KeyboardInterrupt:
        logger.info('interrupted')
        return 130


def _main() -> None:
    """Wrapper for pyproject.toml [project.scripts] entry point."""
    sys.exit(main())


__all__ = [
    'build_parser',
    'main',
]
