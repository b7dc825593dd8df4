# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge. Terminal: ConsoleRenderer, pipelines: JSONRenderer.

Leaf module, no domsnap imports. Safe to call early in CLI startup.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


def _shared_processors() -> list:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(json_output: bool, stream: TextIO):
    if json_output:
        return structlog.processors.JSONRenderer()
    isatty = getattr(stream, "isatty", None)
    return structlog.dev.ConsoleRenderer(colors=bool(isatty and isatty()))


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.WARNING


def configure(
    *,
    json_output: bool = False,
    level: str | int = "WARNING",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Route all logging through one structlog-formatted stream handler.

    Library modules log through ``logging.getLogger(__name__)``; this sends
    those records to stderr by default so stdout stays reserved for the
    snapshot itself. Calling it again replaces the previous handler.

    Args:
        json_output: True for JSON lines, False for human-readable output.
        level: Root logger level name or number (default WARNING; unknown
            names fall back to WARNING).
        stream: Destination stream (default sys.stderr).

    Returns:
        The installed handler.
    """
    target = stream if stream is not None else sys.stderr
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(target)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_output, target),
            ],
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_parse_level(level))
    return handler
