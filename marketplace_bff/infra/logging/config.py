"""Logging configuration setup.

Uses dictConfig to attach a single stream handler to the root logger, with
the JSON Lines formatter and the contextvars injecting filter. Application
loggers propagate to the root.
"""

from __future__ import annotations

import logging
import logging.config
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from marketplace_bff.core.settings.logs import LoggingSettings

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
        from marketplace_bff.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    configure_logging(**{**settings_obj.to_logging_kwargs(), **configure_kwargs})
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    service_name: str = "marketplace-bff",
) -> None:
    """Configure logging with dictConfig.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Enable JSONL structured logging, else a plain text format.
        include_context: Enable ContextInjectingFilter for auto context.
        capture_warnings: Forward Python warnings to logging system.
        service_name: Static ``service`` field added to JSON records.
    """
    if capture_warnings:
        logging.captureWarnings(True)

    if json_logs:
        formatter: dict[str, Any] = {
            "()": "marketplace_bff.infra.logging.formatters.JSONFormatter",
            "static": {"service": service_name},
        }
    else:
        formatter = {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"}

    filters: dict[str, Any] = {}
    handler_filters: list[str] = []
    if include_context:
        filters["context"] = {
            "()": "marketplace_bff.infra.logging.context.ContextInjectingFilter",
        }
        handler_filters.append("context")

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "filters": filters,
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": handler_filters,
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                # uvicorn installs its own handlers; route them through ours
                "uvicorn": {"handlers": [], "propagate": True},
                "uvicorn.access": {"handlers": [], "propagate": True},
                "uvicorn.error": {"handlers": [], "propagate": True},
            },
            "root": {"level": log_level.upper(), "handlers": ["console"]},
        },
    )
    logger.debug("Logging configured", extra={"json_logs": json_logs, "level": log_level})
