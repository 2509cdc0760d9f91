"""
Structured diagnostic logging for logstream, built on structlog.

Diagnostics go to stderr so they never mix with the log data a CLI pipes
through stdout. The library never configures logging by itself; the
``logstream`` CLI (or the embedding application) calls
``configure_logging`` once at startup.

Stream context (group/stream) can be bound once per thread of work with
``bind_stream_context`` and is merged into every entry after that.
"""

import logging
import sys
from typing import Any, List

import structlog
from structlog.types import EventDict, Processor

# Libraries whose DEBUG output drowns ours unless explicitly asked for.
NOISY_LOGGERS = ("botocore", "boto3", "urllib3")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag entries with the emitting package."""
    event_dict.setdefault("app", "logstream")
    return event_dict


def _build_processors(log_format: str, colors: bool) -> List[Processor]:
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))

    return processors


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_output: str = "stderr",
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_output: stderr (default) or stdout
    """
    level = getattr(logging, log_level.upper())
    stream = sys.stdout if log_output == "stdout" else sys.stderr

    logging.basicConfig(format="%(message)s", stream=stream, level=level)

    # AWS SDK chatter only shows up when we are debugging ourselves.
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    structlog.configure(
        processors=_build_processors(log_format, colors=stream.isatty()),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_stream_context(group: str, stream: str) -> None:
    """Attach group/stream to every following entry in this context."""
    structlog.contextvars.bind_contextvars(group=group, stream=stream)


def clear_stream_context() -> None:
    """Drop context bound by ``bind_stream_context``."""
    structlog.contextvars.unbind_contextvars("group", "stream")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        structlog logger
    """
    return structlog.get_logger(name)
