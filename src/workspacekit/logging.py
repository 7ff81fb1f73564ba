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

"""Structured logging for workspacekit.

Configures `structlog <https://www.structlog.org/>`_ with two output modes:

- **Console** (default): colored when stderr is a TTY.
- **JSON** (``--json-log``): one JSON object per line.

Both modes write to stderr so stdout stays clean for ``discover --format
json`` and for the output of the commands workspacekit runs.

Usage::

    from workspacekit.logging import configure_logging, get_logger

    configure_logging(verbose=True)
    log = get_logger()
    log.info('resolved_repositories', count=3)
"""

from __future__ import annotations

import logging
import sys

import structlog

# lerna understands npmlog levels, not stdlib ones.
_LERNA_LOG_LEVELS: dict[int, str] = {
    logging.DEBUG: 'silly',
    logging.INFO: 'info',
    logging.WARNING: 'warn',
}


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Configure structlog for workspacekit.

    Should be called once at startup, before any logging calls.

    Args:
        verbose: Enable debug-level output.
        quiet: Suppress info-level output (only warnings and errors).
        json_log: Use JSON output instead of colored console output.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=level,
        force=True,
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_log:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
        )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def lerna_log_level() -> str:
    """Return the npmlog level matching the current root log level."""
    level = logging.root.getEffectiveLevel()
    for threshold in sorted(_LERNA_LOG_LEVELS):
        if level <= threshold:
            return _LERNA_LOG_LEVELS[threshold]
    return 'error'


def get_logger(name: str = 'workspacekit') -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger.

    Args:
        name: Logger name, used for filtering and identification.
    """
    return structlog.get_logger(name)


__all__ = [
    'configure_logging',
    'get_logger',
    'lerna_log_level',
]
