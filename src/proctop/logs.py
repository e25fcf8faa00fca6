"""Structured logging configuration using structlog."""

import sys
from typing import TextIO

import structlog

from proctop.config import ProctopSettings, settings as default_settings

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "warn": 30, "error": 40, "critical": 50}

# Level and file handle of the current configuration
_level = _LEVELS["info"]
_log_stream: TextIO | None = None


def setup_logging(config: ProctopSettings | None = None) -> None:
    """Configure structlog for proctop.

    Uses console renderer for development, JSON for production. Output goes to
    stderr unless ``log_file`` is set, which keeps the terminal UI clean.
    """
    global _level, _log_stream
    config = config or default_settings

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if config.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=config.log_file is None)

    if _log_stream is not None:
        _log_stream.close()
        _log_stream = None
    if config.log_file is not None:
        _log_stream = open(config.log_file, "a", encoding="utf-8")  # noqa: SIM115
        stream: TextIO = _log_stream
    else:
        stream = sys.stderr
    _level = _LEVELS.get(config.log_level.lower(), _LEVELS["info"])

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def debug_enabled() -> bool:
    """Whether the configured level lets debug events through."""
    return _level <= _LEVELS["debug"]


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a structlog logger, optionally bound to a component name."""
    if name:
        return structlog.get_logger(component=name)
    return structlog.get_logger()
