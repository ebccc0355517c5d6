"""API layer for document management."""

from document_management.api.rest import (
    BadRequestError,
    DocumentCreateRequest,
    DocumentManagementRoutes,
    DocumentSetRequest,
    DocumentUpdateRequest,
    create_memory_routes,
)

__all__ = [
    "BadRequestError",
    "DocumentCreateRequest",
    "DocumentManagementRoutes",
    "DocumentSetRequest",
    "DocumentUpdateRequest",
    "create_memory_routes",
]
