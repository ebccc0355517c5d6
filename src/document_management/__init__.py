"""Document lifecycle management over graph, blob storage and attestation services."""

__version__ = "0.1.0"

from document_management.service import DocumentManagementService

__all__ = ["DocumentManagementService", "__version__"]
