"""Logging configuration setup.

Builds a dictConfig with console and optional file handlers on the root
logger; library loggers propagate up. The context filter sits on every
handler so fields bound with log_context() reach the formatter.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tree_service.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from tree_service.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    configure_logging(**{**settings_obj.to_logging_kwargs(), **configure_kwargs})
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
) -> dict[str, Any]:
    """Configure logging with dictConfig.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file_path: Path to a JSONL log file. None disables file logging.
        json_logs: Use JSONFormatter instead of a plain text format.
        console_enabled: Enable the stderr handler.
        include_context: Attach ContextInjectingFilter to every handler.
        capture_warnings: Forward Python warnings to logging.

    Returns:
        The dictConfig mapping that was applied.

    Example:
        from tree_service.core.settings import get_logging_settings
        configure_logging(**get_logging_settings().to_logging_kwargs())
    """
    if capture_warnings:
        logging.captureWarnings(True)

    filters: dict[str, Any] = {}
    handler_filters: list[str] = []
    if include_context:
        filters["context"] = {"()": "tree_service.infra.logging.context.ContextInjectingFilter"}
        handler_filters.append("context")

    formatter_name = "json" if json_logs else "plain"
    handlers: dict[str, Any] = {}
    if console_enabled:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": formatter_name,
            "filters": handler_filters,
            "stream": "ext://sys.stderr",
        }
    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "json",
            "filters": handler_filters,
            "filename": str(path),
            "encoding": "utf-8",
        }

    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "tree_service.infra.logging.formatters.JSONFormatter"},
            "plain": {"format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s"},
        },
        "filters": filters,
        "handlers": handlers,
        "root": {"level": log_level.upper(), "handlers": list(handlers)},
    }
    logging.config.dictConfig(config)
    logger.debug("Logging configured", extra={"handlers": sorted(handlers)})
    return config
