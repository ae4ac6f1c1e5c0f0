"""Utilities package."""

from .config import Settings, settings
from .error_handler import (
    CardIdError,
    CardNotIdentifiedError,
    CatalogError,
    ConfigurationError,
    ErrorContext,
    OracleError,
    handle_error,
)
from .log import LoggerMixin, configure_logging, get_logger

__all__ = [
    "Settings",
    "settings",
    "get_logger",
    "LoggerMixin",
    "configure_logging",
    "CardIdError",
    "CardNotIdentifiedError",
    "CatalogError",
    "ConfigurationError",
    "ErrorContext",
    "OracleError",
    "handle_error",
]
