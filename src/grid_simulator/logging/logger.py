"""
Structured logging for simulation runs.

Uses structlog on top of the stdlib handlers so that every engine event
(run start, trade, rejection, liquidation, reconciliation) is emitted as a
key-value record. Console output is human readable by default; JSON output
is available for log shipping.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog
from structlog.types import Processor

LOG_FILE_NAME = "grid_simulator.log"
ERROR_LOG_FILE_NAME = "grid_simulator.error.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def _rotating_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _handlers(
    level: int,
    log_dir: Path | None,
    log_to_console: bool,
    log_to_file: bool,
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if log_to_console:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(level)
        handlers.append(console)
    if log_to_file:
        log_dir = log_dir or Path("logs")
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_handler(log_dir / LOG_FILE_NAME, level))
        handlers.append(_rotating_handler(log_dir / ERROR_LOG_FILE_NAME, logging.ERROR))
    return handlers


def _processors(json_logs: bool, colors: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        chain.append(structlog.processors.JSONRenderer())
    else:
        chain.append(
            structlog.dev.ConsoleRenderer(
                colors=colors,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return chain


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    log_to_console: bool = True,
    log_to_file: bool = False,
    json_logs: bool = False,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Engine modules log through ``get_logger`` only; call this once from the
    application or test harness that drives the simulations.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Per-trade events are logged at DEBUG.
        log_dir: Directory for log files (default: ./logs), only used with log_to_file
        log_to_console: Whether to log to stdout
        log_to_file: Whether to write rotating log files
        json_logs: Render events as JSON instead of the console format
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=_processors(json_logs, colors=log_to_console and not log_to_file),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=_handlers(level, log_dir, log_to_console, log_to_file),
        force=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance for a module."""
    return structlog.get_logger(name)


class log_context:
    """Bind key-value pairs (run id, symbol) to every log event inside the block."""

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs

    def __enter__(self) -> None:
        structlog.contextvars.bind_contextvars(**self.context)

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())
