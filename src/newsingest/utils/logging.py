"""Structured logging for ingestion runs."""

import logging
import sys
from contextlib import contextmanager
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Iterator, List, Literal, Optional

import structlog

LOG_FILE_NAME = "newsingest.log"
LOG_RETENTION_DAYS = 30

# Libraries that log every request at INFO
NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "openai": logging.INFO,
}


def _shared_processors() -> List[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _formatter(
    renderer: structlog.types.Processor,
    pre_chain: List[structlog.types.Processor],
) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)


def _file_handler(log_dir: Path, pre_chain: List[structlog.types.Processor]) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=log_dir / LOG_FILE_NAME,
        when="midnight",
        backupCount=LOG_RETENTION_DAYS,
        encoding="utf-8",
    )
    handler.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=False), pre_chain))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_format: Literal["json", "console"] = "json",
    log_dir: Optional[Path] = None,
) -> None:
    """Configure structlog on top of the standard library root logger.

    Both structlog loggers and plain ``logging`` records from libraries go
    through the same processor chain, so run context bound with
    :func:`run_context` shows up on every line.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format for stdout ("json" or "console")
        log_dir: Optional directory for a plain-text log file, rotated
            daily and kept for 30 days.
    """
    pre_chain = _shared_processors()

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(_formatter(renderer, pre_chain))

    root_logger = logging.getLogger()
    # setup_logging may run more than once per process (CLI tests)
    root_logger.handlers.clear()
    root_logger.addHandler(stdout_handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    if log_dir:
        root_logger.addHandler(_file_handler(Path(log_dir), pre_chain))

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


@contextmanager
def run_context(run_id: str) -> Iterator[None]:
    """Bind ``run_id`` to every log event emitted inside the block."""
    structlog.contextvars.bind_contextvars(run_id=run_id)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars("run_id")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)
