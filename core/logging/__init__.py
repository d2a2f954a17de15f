# Structured logging for the appraisal engine
import sys
import logging
import logging.handlers
from typing import Optional

import structlog

from core.config.settings import Settings
from core.utils.exceptions import ConfigurationError
from .correlation import CorrelationIdManager, add_correlation_context

# Global flag to prevent duplicate logging configuration
_logging_configured = False


def configure_logging(settings: Settings, force: bool = False) -> None:
    """Configure stdlib logging and structlog from settings."""
    global _logging_configured

    # Prevent duplicate configuration
    if _logging_configured and not force:
        return

    log_settings = settings.logging
    level = getattr(logging, log_settings.level.upper(), logging.INFO)

    handlers: list[logging.Handler] = []
    if log_settings.console_enabled:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_settings.file_enabled:
        logs_dir = settings.logs_dir
        try:
            logs_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot create log directory {logs_dir}: {e}",
                config_field="logging.logs_dir",
                config_value=log_settings.logs_dir,
            ) from e
        handlers.append(
            logging.handlers.RotatingFileHandler(
                logs_dir / "appraisal.log",
                maxBytes=log_settings.file_max_bytes,
                backupCount=log_settings.file_backup_count,
                encoding="utf-8",
            )
        )
    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=handlers,
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if log_settings.json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            add_correlation_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _logging_configured = True


def get_logger(name: str, component: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a structured logger, optionally bound to a component.

    Binding is deferred to the first log call so loggers created before
    ``configure_logging`` still pick up the configured pipeline.
    """
    if component:
        return structlog.get_logger(name, component=component)
    return structlog.get_logger(name)


__all__ = [
    "configure_logging",
    "get_logger",
    "CorrelationIdManager",
]
