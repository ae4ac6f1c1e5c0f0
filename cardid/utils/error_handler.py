"""
Error types and error handling helpers for card identification.

Unmatched or ambiguous cards are never errors here: verifiers return
unverified identities instead. Exceptions are reserved for configuration
problems, catalog transport failures (which clients catch and log) and the
vision oracle failing to read an image at all.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class CardIdError(Exception):
    """Base exception class for all card identification errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CardIdError):
    """Raised when settings or environment variables are unusable."""
    pass


class CatalogError(CardIdError):
    """Raised inside catalog clients on transport or payload failures."""

    def __init__(self, message: str, status: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.status = status


class OracleError(CardIdError):
    """Raised when the vision oracle fails or returns an unusable guess."""
    pass


class CardNotIdentifiedError(OracleError):
    """Raised to callers when a scan could not be identified at all."""
    pass


@dataclass
class ErrorContext:
    """Context information for error reporting."""
    operation: str
    module: str
    function: str
    input_data: Optional[Dict[str, Any]] = None


def handle_error(
    error: Exception,
    context: ErrorContext,
    logger: Any,
    reraise: bool = True,
    default_return: Any = None,
    level: str = "error",
) -> Any:
    """
    Log an error with its context, then re-raise it or return a default.

    Args:
        error: The exception that occurred
        context: Where the error occurred
        logger: A structlog (or structlog-compatible) logger
        reraise: Whether to re-raise the exception after logging
        default_return: Value to return if not re-raising
        level: Log method to use ("error", "warning", ...)

    Returns:
        default_return when not re-raising
    """
    message = f"Error in {context.module}.{context.function} during {context.operation}"

    log = getattr(logger, level, logger.error)
    log(
        message,
        error=error.message if isinstance(error, CardIdError) else str(error),
        error_type=type(error).__name__,
        details=getattr(error, "details", None) or None,
        operation=context.operation,
        error_module=context.module,
        error_function=context.function,
        input_data=context.input_data,
    )

    if reraise:
        raise error

    return default_return
