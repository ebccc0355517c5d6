"""Assembles document lists from the revisions of one document."""

import base64
from dataclasses import dataclass, field
from typing import Optional

from document_management.core.errors import (
    GeneralError,
    InvalidCursorError,
    NotFoundError,
)
from document_management.core.logging import get_logger
from document_management.models.contexts import DocumentContexts
from document_management.models.document import (
    Document,
    DocumentGetOptions,
    DocumentList,
)
from document_management.revisions.reconciler import sort_revisions
from document_management.storage.components import (
    AttestationComponent,
    BlobStorageComponent,
    DataExtractionComponent,
)

logger = get_logger(__name__)


def parse_cursor(cursor: Optional[str]) -> int:
    """Parse an offset cursor, None or empty meaning the start.

    Raises:
        InvalidCursorError: If the cursor is not a non-negative integer.
    """
    if cursor is None or cursor == "":
        return 0
    if isinstance(cursor, int) and not isinstance(cursor, bool):
        value = cursor
    elif isinstance(cursor, str) and cursor.isdigit():
        value = int(cursor)
    else:
        raise InvalidCursorError(cursor)
    if value < 0:
        raise InvalidCursorError(str(cursor))
    return value


@dataclass
class RevisionSelection:
    """The current revision, the history slice and the cursor for more."""

    current: Document
    history: list[Document] = field(default_factory=list)
    next_cursor: Optional[str] = None


class DocumentListAssembler:
    """Builds DocumentList responses for reads.

    Selection is pure. Enrichment calls the blob storage, attestation and
    data extraction services for the current revision only, never for the
    historical revisions.
    """

    def __init__(
        self,
        blob_storage: BlobStorageComponent,
        attestation: AttestationComponent,
        data_extraction: Optional[DataExtractionComponent] = None,
    ):
        self.blob_storage = blob_storage
        self.attestation = attestation
        self.data_extraction = data_extraction

    @staticmethod
    def select(
        revisions: list[Document],
        options: DocumentGetOptions,
        cursor: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> RevisionSelection:
        """Pick the current revision and slice the history after it.

        Args:
            revisions: Every revision of one document, in any order.
            options: Read options, ``include_removed`` and ``max_revision_count``
                are used here.
            cursor: Offset into the history.
            resource_id: Identifier reported when nothing is left.

        Returns:
            The selection.

        Raises:
            NotFoundError: If no revision remains after filtering.
            InvalidCursorError: If the cursor is malformed.
        """
        start = parse_cursor(cursor)

        candidates = sort_revisions(revisions)
        if not options.include_removed:
            candidates = [r for r in candidates if not r.is_removed]

        if not candidates:
            raise NotFoundError(
                f"Document not found: {resource_id}", resource_id=resource_id
            )

        current, older = candidates[0], candidates[1:]
        selection = RevisionSelection(current=current)

        count = options.max_revision_count
        if count > 0:
            end = start + count
            selection.history = older[start:end]
            if end < len(older):
                selection.next_cursor = str(end)

        return selection

    async def assemble(
        self,
        revisions: list[Document],
        options: DocumentGetOptions,
        cursor: Optional[str] = None,
        resource_id: Optional[str] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> DocumentList:
        """Build a single document list with the history cursor set."""
        document_list = DocumentList()
        selection = await self.append(
            document_list,
            revisions,
            options,
            cursor=cursor,
            resource_id=resource_id,
            user_identity=user_identity,
            node_identity=node_identity,
        )
        document_list.cursor = selection.next_cursor
        return document_list

    async def append(
        self,
        document_list: DocumentList,
        revisions: list[Document],
        options: DocumentGetOptions,
        cursor: Optional[str] = None,
        resource_id: Optional[str] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> RevisionSelection:
        """Add one document, with its history, to an existing list.

        The list cursor is left alone so callers paging over several
        documents can manage it themselves.
        """
        selection = self.select(revisions, options, cursor, resource_id)

        document = selection.current.model_copy(
            update={"revisions": selection.history}
        )
        await self.enrich(
            document,
            options,
            document_list,
            user_identity=user_identity,
            node_identity=node_identity,
        )
        document_list.documents.append(document)
        return selection

    async def enrich(
        self,
        document: Document,
        options: DocumentGetOptions,
        document_list: DocumentList,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> Document:
        """Attach blob, attestation and extracted data to a document.

        The blob is fetched at most once, with content when either the
        content or an extraction was asked for.
        """
        extract = bool(options.extract_rule_group_id)

        if options.include_blob or extract:
            entry = await self.blob_storage.get(
                document.blob_storage_id,
                include_content=options.include_blob_storage_data or extract,
                user_identity=user_identity,
                node_identity=node_identity,
            )

            if extract:
                document.extracted_data = await self._extract(
                    options, entry.blob, document
                )

            if options.include_blob:
                if not options.include_blob_storage_data:
                    entry = entry.model_copy(update={"blob": None})
                document.blob_storage_entry = entry
                document_list.add_context(DocumentContexts.BLOB_STORAGE.value)

        if options.include_attestation and document.attestation_id:
            document.attestation_information = await self.attestation.get(
                document.attestation_id
            )
            document_list.add_context(DocumentContexts.ATTESTATION.value)

        return document

    async def _extract(
        self,
        options: DocumentGetOptions,
        blob_base64: Optional[str],
        document: Document,
    ):
        if self.data_extraction is None:
            raise GeneralError(
                "dataExtractionNotConfigured",
                message="No data extraction component is configured",
            )
        if blob_base64 is None:
            raise GeneralError(
                "blobContentMissing",
                message=f"Blob content missing for {document.blob_storage_id}",
                details={"blob_storage_id": document.blob_storage_id},
            )

        logger.debug(
            "extracting_document_data",
            document_id=document.document_id,
            rule_group_id=options.extract_rule_group_id,
        )
        return await self.data_extraction.extract(
            options.extract_rule_group_id,
            base64.b64decode(blob_base64),
            mime_type=options.extract_mime_type,
        )
