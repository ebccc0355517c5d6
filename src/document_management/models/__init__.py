"""Data models for document management."""

from document_management.models.codes import (
    DocumentCode,
    DOCUMENT_CODE_PREFIX,
)
from document_management.models.contexts import (
    DocumentContexts,
    DocumentTypes,
    DEFAULT_CONTEXTS,
    add_context,
)
from document_management.models.document import (
    AttestationInformation,
    BlobStorageEntry,
    Document,
    DocumentAttestation,
    DocumentGetOptions,
    DocumentList,
)
from document_management.models.vertex import (
    EdgeRelationship,
    EdgeRequest,
    Vertex,
    VertexAlias,
    VertexEdge,
    VertexIdMode,
    VertexList,
    VertexQuery,
    VertexResource,
)

__all__ = [
    "DocumentCode",
    "DOCUMENT_CODE_PREFIX",
    "DocumentContexts",
    "DocumentTypes",
    "DEFAULT_CONTEXTS",
    "add_context",
    "AttestationInformation",
    "BlobStorageEntry",
    "Document",
    "DocumentAttestation",
    "DocumentGetOptions",
    "DocumentList",
    "EdgeRelationship",
    "EdgeRequest",
    "Vertex",
    "VertexAlias",
    "VertexEdge",
    "VertexIdMode",
    "VertexList",
    "VertexQuery",
    "VertexResource",
]
