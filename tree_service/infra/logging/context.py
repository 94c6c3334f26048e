"""Context management for structured logging.

Context fields live in a ContextVar so every record emitted inside a cascade
(including records from per-node hooks owned by the application) carries the
same ``cascade_root`` without passing it around explicitly. Each asyncio task
sees its own copy.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        ```python
        set_log_context(tree="catalog")
        logger.info("rearranged")  # record.tree == "catalog"
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Drop every field from the logging context (mostly for tests)."""
    _log_context.set({})


@contextmanager
def log_context(**kwargs: Any) -> Iterator[dict[str, Any]]:
    """Temporarily extend the logging context.

    The previous context is restored on exit, even when the block raises.

    Example:
        ```python
        with log_context(cascade_root=node.id):
            await propagate(...)
        ```
    """
    token = _log_context.set({**_log_context.get(), **kwargs})
    try:
        yield _log_context.get()
    finally:
        _log_context.reset(token)


class ContextInjectingFilter(logging.Filter):
    """Logging filter that copies the current log context onto each record.

    Attach it to a handler (configure_logging does this when
    ``include_context`` is enabled) so formatters can render the fields.
    Existing record attributes are never overwritten.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
