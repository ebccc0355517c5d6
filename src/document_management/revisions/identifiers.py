"""Composite document identifiers.

A composite identifier addresses one document (optionally one revision of it)
inside a container vertex:

    <container-id>:<code-number>:<document-id>[:<revision>]

e.g. ``aig:5858...58:705:test-doc-id-1:0``. The container id is itself a
two part URN (``aig:<hex>``) and the document code is stored in its compact
numeric form; decoding re-prepends the ``unece:DocumentCodeList#`` prefix.
Revisions use a plain ``:N`` suffix.
"""

import re
from dataclasses import dataclass
from typing import Optional

from document_management.core.errors import InvalidIdentifierError
from document_management.models.codes import DOCUMENT_CODE_PREFIX

SEPARATOR = ":"

CONTAINER_ID_PATTERN = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9-]{0,31}:[^:\s]+")
# Canonical decimal numbers only, so decode then encode gives back the input.
DIGITS_PATTERN = re.compile(r"0|[1-9][0-9]*")


@dataclass(frozen=True)
class DocumentIdentifier:
    """Decoded form of a composite document identifier."""

    container_id: str
    document_code: str
    document_id: str
    revision: Optional[int] = None

    def encode(self) -> str:
        return encode_identifier(
            self.container_id, self.document_code, self.document_id, self.revision
        )

    def with_revision(self, revision: Optional[int]) -> "DocumentIdentifier":
        return DocumentIdentifier(
            self.container_id, self.document_code, self.document_id, revision
        )


def is_container_id(value: Optional[str]) -> bool:
    """Check that a value is a well formed two part URN such as ``aig:abc``."""
    return isinstance(value, str) and bool(CONTAINER_ID_PATTERN.fullmatch(value))


def parse_document_code(document_code: str) -> int:
    """Extract the numeric part of a code such as ``unece:DocumentCodeList#705``.

    Raises:
        InvalidIdentifierError: If the code is not in the supported code list form.
    """
    if not isinstance(document_code, str):
        raise InvalidIdentifierError("invalidDocumentCode", value=document_code)

    parts = document_code.split("#")
    if len(parts) != 2 or f"{parts[0]}#" != DOCUMENT_CODE_PREFIX:
        raise InvalidIdentifierError("invalidDocumentCode", value=document_code)
    if not DIGITS_PATTERN.fullmatch(parts[1]):
        raise InvalidIdentifierError("invalidDocumentCode", value=document_code)

    return int(parts[1])


def format_document_code(number: int) -> str:
    """Rebuild the full code string from its numeric part."""
    return f"{DOCUMENT_CODE_PREFIX}{number}"


def encode_identifier(
    container_id: str,
    document_code: str,
    document_id: str,
    revision: Optional[int] = None,
) -> str:
    """Encode the parts of a document address into a composite identifier.

    Args:
        container_id: Container vertex id (two part URN).
        document_code: Full document code string.
        document_id: Logical document id, must not contain ``:``.
        revision: Optional 0 based revision.

    Returns:
        The composite identifier.

    Raises:
        InvalidIdentifierError: If any part cannot be represented.
    """
    if not is_container_id(container_id):
        raise InvalidIdentifierError("invalidDocumentId", value=container_id)
    if not document_id or SEPARATOR in document_id:
        raise InvalidIdentifierError("invalidDocumentId", value=document_id)
    if revision is not None and (
        isinstance(revision, bool) or not isinstance(revision, int) or revision < 0
    ):
        raise InvalidIdentifierError("invalidDocumentId", value=str(revision))

    parts = [container_id, str(parse_document_code(document_code)), document_id]
    if revision is not None:
        parts.append(str(revision))
    return SEPARATOR.join(parts)


def decode_identifier(identifier: str) -> DocumentIdentifier:
    """Decode a composite identifier.

    Raises:
        InvalidIdentifierError: ``invalidDocumentId`` when the identifier is
            malformed, ``invalidDocumentCode`` when the code segment is not an
            integer.
    """
    if not isinstance(identifier, str) or not identifier:
        raise InvalidIdentifierError("invalidDocumentId", value=identifier)

    parts = identifier.split(SEPARATOR)
    if len(parts) < 4 or len(parts) > 5:
        raise InvalidIdentifierError("invalidDocumentId", value=identifier)

    container_id = SEPARATOR.join(parts[:2])
    if not is_container_id(container_id):
        raise InvalidIdentifierError("invalidDocumentId", value=identifier)

    code_part = parts[2]
    if not DIGITS_PATTERN.fullmatch(code_part):
        raise InvalidIdentifierError("invalidDocumentCode", value=identifier)

    document_id = parts[3]
    if not document_id:
        raise InvalidIdentifierError("invalidDocumentId", value=identifier)

    revision = None
    if len(parts) == 5:
        if not DIGITS_PATTERN.fullmatch(parts[4]):
            raise InvalidIdentifierError("invalidDocumentId", value=identifier)
        revision = int(parts[4])

    return DocumentIdentifier(
        container_id=container_id,
        document_code=format_document_code(int(code_part)),
        document_id=document_id,
        revision=revision,
    )
