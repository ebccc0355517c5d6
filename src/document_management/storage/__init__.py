"""Storage components for document management."""

from document_management.storage.components import (
    AttestationComponent,
    BlobStorageComponent,
    DataExtractionComponent,
    GraphComponent,
)
from document_management.storage.edges import (
    EdgeDelta,
    EdgePlan,
    EdgeSynchronizer,
    diff_edges,
    document_edge_ids,
)
from document_management.storage.memory import (
    MemoryAttestationComponent,
    MemoryBlobStorageComponent,
    MemoryDataExtractionComponent,
    MemoryGraphComponent,
)

__all__ = [
    "AttestationComponent",
    "BlobStorageComponent",
    "DataExtractionComponent",
    "GraphComponent",
    "EdgeDelta",
    "EdgePlan",
    "EdgeSynchronizer",
    "diff_edges",
    "document_edge_ids",
    "MemoryAttestationComponent",
    "MemoryBlobStorageComponent",
    "MemoryDataExtractionComponent",
    "MemoryGraphComponent",
]
