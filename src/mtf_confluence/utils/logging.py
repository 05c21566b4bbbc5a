"""
Logging configuration for the Multi-Timeframe Confluence Engine.

Every log line emitted while a decision is being generated carries the
decision number and, when known, the symbol being evaluated.
"""
import logging
import sys
from typing import Any, ContextManager, Optional

import structlog

VERBOSITY_LEVELS = {0: "WARNING", 1: "INFO", 2: "DEBUG"}


def configure_logging(level: str = "INFO", json_output: Optional[bool] = None) -> None:
    """
    Configure structured logging for the engine.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Force JSON rendering; when None, JSON is used only
            if stderr is not a terminal
    """
    # Decisions go to stdout, logs to stderr
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    if json_output is None:
        json_output = not sys.stderr.isatty()

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_verbosity(verbosity: int) -> None:
    """Map a CLI verbosity count (0-2) onto a logging level."""
    configure_logging(VERBOSITY_LEVELS.get(min(max(verbosity, 0), 2), "WARNING"))


def decision_context(decision: int, symbol: Optional[str] = None) -> ContextManager:
    """
    Bind the decision number and symbol to every log line inside the block.

    Args:
        decision: Sequence number of the decision being generated
        symbol: Symbol being evaluated, omitted from the context when None

    Returns:
        Context manager that unbinds both keys on exit
    """
    context = {"decision": decision}
    if symbol:
        context["symbol"] = symbol
    return structlog.contextvars.bound_contextvars(**context)


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return structlog.get_logger(name)
