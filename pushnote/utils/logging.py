"""Structured logging setup using structlog.

Hooks run inside ``git push``; everything written to stderr is relayed to the
pusher's terminal, so logs go there and stdout stays free for ``--dry-run``.
"""

from __future__ import annotations

import logging
import re
import sys

import structlog


# Event fields whose whole value is a credential
_SENSITIVE_KEYS = frozenset({"webhook", "webhook_url"})

_SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(r"(token|key|secret|password|authorization)[\"']?\s*[:=]\s*[\"']?[\w\-\.]+", re.IGNORECASE),
        r"\1=***REDACTED***",
    ),
    (
        re.compile(r"(webhook[_-]?url)[\"']?\s*[:=]\s*[\"']?\S+", re.IGNORECASE),
        r"\1=***REDACTED***",
    ),
    # Slack incoming-webhook URLs carry their credential in the path
    (
        re.compile(r"(https://hooks\.slack\.com/services)/[\w/]+", re.IGNORECASE),
        r"\1/***REDACTED***",
    ),
]


def _filter_sensitive(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if not isinstance(value, str):
            continue
        if key in _SENSITIVE_KEYS and value:
            event_dict[key] = "***REDACTED***"
            continue
        for pattern, replacement in _SENSITIVE_PATTERNS:
            if pattern.search(value):
                value = pattern.sub(replacement, value)
        event_dict[key] = value
    return event_dict


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog with optional JSON output."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _filter_sensitive,
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # Quiet noisy libraries
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
