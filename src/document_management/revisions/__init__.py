"""Revision logic: identifiers, hashing, reconciliation and list assembly."""

from document_management.revisions.identifiers import (
    DocumentIdentifier,
    decode_identifier,
    encode_identifier,
    format_document_code,
    is_container_id,
    parse_document_code,
)
from document_management.revisions.hashing import HASH_PREFIX, hash_blob
from document_management.revisions.reconciler import (
    ReconcileAction,
    ReconcileResult,
    RevisionReconciler,
    annotations_equal,
    current_revision,
    sort_revisions,
)
from document_management.revisions.assembler import (
    DocumentListAssembler,
    RevisionSelection,
    parse_cursor,
)
from document_management.revisions.grouper import GroupPage, QueryGrouper

__all__ = [
    # Identifiers
    "DocumentIdentifier",
    "decode_identifier",
    "encode_identifier",
    "format_document_code",
    "is_container_id",
    "parse_document_code",
    # Hashing
    "HASH_PREFIX",
    "hash_blob",
    # Reconciliation
    "ReconcileAction",
    "ReconcileResult",
    "RevisionReconciler",
    "annotations_equal",
    "current_revision",
    "sort_revisions",
    # Assembly
    "DocumentListAssembler",
    "RevisionSelection",
    "parse_cursor",
    "GroupPage",
    "QueryGrouper",
]
