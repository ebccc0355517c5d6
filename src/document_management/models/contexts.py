"""JSON-LD context markers and type names for document management objects."""

from enum import Enum


class DocumentContexts(str, Enum):
    """Context roots attached to document payloads."""

    CONTEXT_ROOT = "https://schema.twindev.org/documents/"
    CONTEXT_ROOT_COMMON = "https://schema.twindev.org/common/"
    SCHEMA_ORG = "https://schema.org"
    BLOB_STORAGE = "https://schema.twindev.org/blob-storage/"
    ATTESTATION = "https://schema.twindev.org/attestation/"


class DocumentTypes(str, Enum):
    """Type discriminators for document management objects."""

    DOCUMENT = "Document"
    DOCUMENT_ATTESTATION = "DocumentAttestation"
    DOCUMENT_LIST = "DocumentList"


DEFAULT_CONTEXTS = [
    DocumentContexts.CONTEXT_ROOT.value,
    DocumentContexts.CONTEXT_ROOT_COMMON.value,
    DocumentContexts.SCHEMA_ORG.value,
]


def add_context(contexts: list[str], marker: str) -> list[str]:
    """Append a context marker if it is not already present.

    Args:
        contexts: Ordered context list, modified in place.
        marker: Context root to add.

    Returns:
        The same list, for chaining.
    """
    if marker not in contexts:
        contexts.append(marker)
    return contexts
