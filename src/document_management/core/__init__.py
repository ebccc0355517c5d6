"""Core utilities for document management."""

from document_management.core.logging import get_logger, configure_logging, request_context
from document_management.core.errors import (
    DocumentManagementError,
    NotFoundError,
    GeneralError,
    InvalidIdentifierError,
    InvalidCursorError,
)
from document_management.core.config import DocumentManagementConfig

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "request_context",
    # Errors
    "DocumentManagementError",
    "NotFoundError",
    "GeneralError",
    "InvalidIdentifierError",
    "InvalidCursorError",
    # Config
    "DocumentManagementConfig",
]
