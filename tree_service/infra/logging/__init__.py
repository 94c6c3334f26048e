"""Logging infrastructure.

Basic usage:
    from tree_service.infra.logging import setup_logging, log_context
    import logging

    setup_logging()
    logger = logging.getLogger(__name__)

    with log_context(tenant="acme"):
        logger.info("Rebuilding tree")  # record carries tenant="acme"

    # Lazy evaluation for expensive debug output
    from tree_service.infra.logging import get_lazy_logger

    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug(lambda: f"Subtree: {expensive_dump()}")
"""

from tree_service.infra.logging.config import configure_logging, setup_logging
from tree_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    log_context,
    set_log_context,
)
from tree_service.infra.logging.formatters import JSONFormatter
from tree_service.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "clear_log_context",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "log_context",
    "set_log_context",
    "setup_logging",
]
