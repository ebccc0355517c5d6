"""
Document management service.

Documents are stored as typed resources on vertices of an auditable graph,
their content lives in blob storage and revisions can be attested. The
service composes the three components, which are injected rather than
looked up.
"""

import base64
from typing import Any, Optional

from pydantic import ValidationError

from document_management.core.config import DocumentManagementConfig
from document_management.core.errors import (
    GeneralError,
    InvalidIdentifierError,
    NotFoundError,
)
from document_management.core.logging import get_logger
from document_management.models.contexts import DocumentTypes
from document_management.models.document import (
    Document,
    DocumentGetOptions,
    DocumentList,
    utc_now,
)
from document_management.models.vertex import (
    EdgeRequest,
    Vertex,
    VertexAlias,
    VertexIdMode,
    VertexList,
    VertexQuery,
    VertexResource,
)
from document_management.revisions.assembler import (
    DocumentListAssembler,
    parse_cursor,
)
from document_management.revisions.grouper import QueryGrouper
from document_management.revisions.identifiers import (
    SEPARATOR,
    DocumentIdentifier,
    decode_identifier,
    encode_identifier,
    is_container_id,
    parse_document_code,
)
from document_management.revisions.reconciler import (
    ReconcileResult,
    RevisionReconciler,
    current_revision,
    sort_revisions,
)
from document_management.storage.components import (
    AttestationComponent,
    BlobStorageComponent,
    DataExtractionComponent,
    GraphComponent,
)
from document_management.storage.edges import EdgeSynchronizer

logger = get_logger(__name__)


def documents_from_vertex(vertex: Vertex) -> list[Document]:
    """Read every document revision stored on a vertex.

    Raises:
        GeneralError: ``reconcileFailed`` when a stored revision is malformed,
            for example a revision number that is not an integer.
    """
    documents = []
    for resource in vertex.resources:
        stored = resource.resource_object
        if stored.get("type") != DocumentTypes.DOCUMENT.value:
            continue
        try:
            documents.append(Document.model_validate(stored))
        except ValidationError as e:
            raise GeneralError(
                "reconcileFailed",
                message=f"Malformed document revision on vertex {vertex.id}",
                details={
                    "vertex_id": vertex.id,
                    "document_id": stored.get("id"),
                    "document_revision": stored.get("documentRevision"),
                },
            ) from e
    return documents


def find_matching_documents(
    vertex: Vertex, document_id: str, document_code: str
) -> list[Document]:
    """All revisions of one document on a vertex, newest first."""
    return sort_revisions(
        [
            document
            for document in documents_from_vertex(vertex)
            if document.group_key == (document_id, document_code)
        ]
    )


def store_document(vertex: Vertex, document: Document) -> None:
    """Write a revision onto the vertex, replacing the stored copy if any."""
    resource_object = document.to_resource_object()
    now = utc_now()

    for resource in vertex.resources:
        stored = resource.resource_object
        if (
            stored.get("type") == DocumentTypes.DOCUMENT.value
            and stored.get("id") == document.document_id
            and stored.get("documentCode") == document.document_code
            and stored.get("documentRevision") == document.document_revision
        ):
            resource.resource_object = resource_object
            resource.date_modified = now
            return

    vertex.resources.append(
        VertexResource(resource_object=resource_object, date_created=now)
    )


def _check_document_id(document_id: str) -> None:
    if not isinstance(document_id, str) or not document_id or SEPARATOR in document_id:
        raise InvalidIdentifierError("invalidDocumentId", value=document_id)


def _check_container_id(container_id: str) -> None:
    if not is_container_id(container_id):
        raise InvalidIdentifierError("invalidDocumentId", value=container_id)


def _check_edges(container_id: str, edges: Optional[list[EdgeRequest]]) -> None:
    for edge in edges or []:
        if edge.id == container_id:
            raise InvalidIdentifierError("invalidDocumentId", value=edge.id)


class DocumentManagementService:
    """
    Manages revisions of documents attached to graph vertices.

    Every operation validates its identifiers before touching any component,
    lets NotFoundError through unchanged and wraps any other failure in a
    GeneralError named after the operation (``createFailed``, ``getFailed``,
    ...), chained to the original error.

    There is no locking around the read, modify, write cycle on a vertex;
    concurrent writers to the same vertex are serialised by the graph with
    the last write winning.
    """

    def __init__(
        self,
        graph: GraphComponent,
        blob_storage: BlobStorageComponent,
        attestation: AttestationComponent,
        data_extraction: Optional[DataExtractionComponent] = None,
        config: Optional[DocumentManagementConfig] = None,
    ):
        """
        Initialize the service.

        Args:
            graph: Graph holding the container vertices.
            blob_storage: Storage for document content.
            attestation: Attestation service for revisions.
            data_extraction: Optional extractor used by reads that ask for it.
            config: Service settings, defaults when not given.
        """
        self.config = config or DocumentManagementConfig()
        self.graph = graph
        self.blob_storage = blob_storage
        self.attestation = attestation
        self.data_extraction = data_extraction

        self.reconciler = RevisionReconciler(
            inherit_attestation=self.config.inherit_attestation
        )
        self.assembler = DocumentListAssembler(
            blob_storage, attestation, data_extraction
        )
        self.grouper = QueryGrouper(page_size=self.config.query_page_size)
        self.edges = EdgeSynchronizer(graph)

    # ==================== Writes ====================

    async def create(
        self,
        document_id: str,
        document_id_format: Optional[str],
        document_code: str,
        blob: bytes,
        annotation_object: Optional[dict[str, Any]] = None,
        edges: Optional[list[EdgeRequest]] = None,
        create_attestation: bool = False,
        add_alias: bool = True,
        alias_annotation_object: Optional[dict[str, Any]] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> str:
        """
        Create a container vertex holding revision 0 of a new document.

        Args:
            document_id: Logical document id.
            document_id_format: Format of the document id.
            document_code: Code from the document code list.
            blob: Document content.
            annotation_object: Additional information for the document.
            edges: Vertices to connect the new vertex to.
            create_attestation: Attest revision 0.
            add_alias: Add the document id as an alias of the new vertex.
            alias_annotation_object: Annotation for that alias.
            user_identity: Identity of the user performing the write.
            node_identity: Identity of the node performing the write.

        Returns:
            The composite identifier of revision 0.

        Raises:
            InvalidIdentifierError: If the document id or code is malformed.
            NotFoundError: If a vertex to connect to does not exist.
            GeneralError: ``createFailed`` for any other failure.
        """
        _check_document_id(document_id)
        parse_document_code(document_code)

        try:
            vertex = Vertex()
            if add_alias:
                vertex.aliases.append(
                    VertexAlias(
                        id=document_id,
                        alias_format=document_id_format,
                        annotation_object=alias_annotation_object,
                    )
                )

            plan = await self.edges.prepare(vertex, edges)
            self.edges.apply_to_document_vertex(vertex, plan.delta)

            result = self.reconciler.reconcile(
                [], blob, annotation_object, create_attestation
            )
            document = await self._create_revision(
                result,
                document_id,
                document_id_format,
                document_code,
                blob,
                annotation_object,
                user_identity,
                node_identity,
            )
            store_document(vertex, document)

            vertex_id = await self.graph.create(
                vertex, user_identity=user_identity, node_identity=node_identity
            )
            await self.edges.commit(
                plan,
                vertex_id,
                document_id,
                document_id_format,
                user_identity=user_identity,
                node_identity=node_identity,
            )

            identifier = encode_identifier(
                vertex_id, document_code, document_id, result.revision_number
            )
            logger.info(
                "document_revision_created",
                identifier=identifier,
                document_revision=result.revision_number,
                attested=document.attestation_id is not None,
            )
            return identifier
        except NotFoundError as e:
            self._log_not_found("create", e)
            raise
        except Exception as e:
            raise self._failed("create", e, document_id=document_id) from e

    async def set(
        self,
        container_id: str,
        document_id: str,
        document_id_format: Optional[str],
        document_code: str,
        blob: bytes,
        annotation_object: Optional[dict[str, Any]] = None,
        create_attestation: Optional[bool] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> str:
        """
        Attach a document to an existing vertex, or revise it.

        Identical content updates the current revision in place, and only
        writes when the annotation changed or an attestation was newly
        requested. Different content appends a revision.

        Returns:
            The composite identifier of the resulting revision.

        Raises:
            InvalidIdentifierError: If an identifier or the code is malformed.
            NotFoundError: If the vertex does not exist.
            GeneralError: ``setFailed`` for any other failure.
        """
        _check_container_id(container_id)
        _check_document_id(document_id)
        parse_document_code(document_code)

        try:
            vertex = await self.graph.get(container_id)
            revisions = find_matching_documents(vertex, document_id, document_code)

            result = self.reconciler.reconcile(
                revisions, blob, annotation_object, create_attestation
            )
            changed = await self._apply(
                vertex,
                result,
                document_id,
                document_id_format,
                document_code,
                blob,
                annotation_object,
                user_identity,
                node_identity,
            )
            if changed:
                await self.graph.update(
                    vertex, user_identity=user_identity, node_identity=node_identity
                )

            return encode_identifier(
                container_id, document_code, document_id, result.revision_number
            )
        except NotFoundError as e:
            self._log_not_found("set", e)
            raise
        except Exception as e:
            raise self._failed("set", e, container_id=container_id) from e

    async def update(
        self,
        identifier: str,
        blob: Optional[bytes] = None,
        annotation_object: Optional[dict[str, Any]] = None,
        edges: Optional[list[EdgeRequest]] = None,
        create_attestation: Optional[bool] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> None:
        """
        Update the current revision of a document.

        Args:
            identifier: Composite identifier, any revision part is ignored.
            blob: New content, None keeps the current content.
            annotation_object: New annotation, None keeps the current one.
            edges: Requested connections, None keeps them, [] removes all.
            create_attestation: Attestation request, None if unspecified.
            user_identity: Identity of the user performing the write.
            node_identity: Identity of the node performing the write.

        Raises:
            InvalidIdentifierError: If the identifier is malformed or an edge
                points at the document's own vertex.
            NotFoundError: If the document, or a vertex to connect to, does
                not exist.
            GeneralError: ``updateFailed`` for any other failure.
        """
        decoded = decode_identifier(identifier)
        _check_edges(decoded.container_id, edges)

        try:
            vertex = await self.graph.get(decoded.container_id)
            revisions = find_matching_documents(
                vertex, decoded.document_id, decoded.document_code
            )
            current = current_revision(revisions)
            if current is None:
                raise NotFoundError(
                    f"Document not found: {identifier}", resource_id=identifier
                )

            # Every connected vertex is read before the first write.
            plan = await self.edges.prepare(vertex, edges)

            effective_annotation = (
                annotation_object
                if annotation_object is not None
                else current.annotation_object
            )
            result = self.reconciler.reconcile(
                revisions, blob, effective_annotation, create_attestation
            )
            changed = await self._apply(
                vertex,
                result,
                decoded.document_id,
                current.document_id_format,
                decoded.document_code,
                blob,
                effective_annotation,
                user_identity,
                node_identity,
            )
            changed = self.edges.apply_to_document_vertex(vertex, plan.delta) or changed

            if changed:
                await self.graph.update(
                    vertex, user_identity=user_identity, node_identity=node_identity
                )
            await self.edges.commit(
                plan,
                decoded.container_id,
                decoded.document_id,
                current.document_id_format,
                user_identity=user_identity,
                node_identity=node_identity,
            )
        except NotFoundError as e:
            self._log_not_found("update", e)
            raise
        except Exception as e:
            raise self._failed("update", e, identifier=identifier) from e

    async def remove_revision(
        self,
        identifier: str,
        revision: Optional[int] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> None:
        """
        Mark a revision as deleted. The revision keeps its slot and stays
        readable with ``include_removed``. Removing it again is a no-op.

        Args:
            identifier: Composite identifier of the document.
            revision: Revision to remove, defaults to the one in the identifier.

        Raises:
            InvalidIdentifierError: If the identifier is malformed or names no
                revision.
            NotFoundError: If the revision does not exist.
            GeneralError: ``removeRevisionFailed`` for any other failure.
        """
        decoded = decode_identifier(identifier)
        target = revision if revision is not None else decoded.revision
        if target is None or isinstance(target, bool) or not isinstance(target, int):
            raise InvalidIdentifierError("invalidDocumentId", value=identifier)

        try:
            vertex = await self.graph.get(decoded.container_id)
            document = self._find_revision(vertex, decoded, target, identifier)
            if document.is_removed:
                return

            document.date_deleted = utc_now()
            store_document(vertex, document)
            await self.graph.update(
                vertex, user_identity=user_identity, node_identity=node_identity
            )
            logger.info(
                "document_revision_removed",
                identifier=identifier,
                document_revision=target,
            )
        except NotFoundError as e:
            self._log_not_found("removeRevision", e)
            raise
        except Exception as e:
            raise self._failed("removeRevision", e, identifier=identifier) from e

    # ==================== Reads ====================

    async def get(
        self,
        identifier: str,
        options: Optional[DocumentGetOptions] = None,
        cursor: Optional[str] = None,
        page_size: Optional[int] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> DocumentList:
        """
        Get the current revision of a document with a slice of its history.

        Args:
            identifier: Composite identifier of the document.
            options: Read options.
            cursor: Offset into the history.
            page_size: History slice size, overrides ``max_revision_count``.

        Returns:
            A list holding the current revision, its ``revisions`` set to the
            history slice and ``cursor`` set when more history remains.

        Raises:
            InvalidIdentifierError: If the identifier is malformed.
            InvalidCursorError: If the cursor is malformed.
            NotFoundError: If no matching revision remains.
            GeneralError: ``getFailed`` for any other failure.
        """
        decoded = decode_identifier(identifier)
        parse_cursor(cursor)
        options = options or DocumentGetOptions()
        if page_size is not None:
            options = options.model_copy(update={"max_revision_count": page_size})

        try:
            vertex = await self.graph.get(decoded.container_id)
            revisions = find_matching_documents(
                vertex, decoded.document_id, decoded.document_code
            )
            return await self.assembler.assemble(
                revisions,
                options,
                cursor=cursor,
                resource_id=identifier,
                user_identity=user_identity,
                node_identity=node_identity,
            )
        except NotFoundError as e:
            self._log_not_found("get", e)
            raise
        except Exception as e:
            raise self._failed("get", e, identifier=identifier) from e

    async def get_revision(
        self,
        identifier: str,
        revision: Optional[int] = None,
        options: Optional[DocumentGetOptions] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> Document:
        """
        Get a single revision, enriched as requested.

        Without a revision in the arguments or the identifier, the current
        revision is returned.

        Raises:
            InvalidIdentifierError: If the identifier is malformed.
            NotFoundError: If the revision does not exist, or is removed and
                ``include_removed`` is not set.
            GeneralError: ``getRevisionFailed`` for any other failure.
        """
        decoded = decode_identifier(identifier)
        target = revision if revision is not None else decoded.revision
        options = options or DocumentGetOptions()

        try:
            vertex = await self.graph.get(decoded.container_id)
            if target is None:
                revisions = find_matching_documents(
                    vertex, decoded.document_id, decoded.document_code
                )
                document = self.assembler.select(
                    revisions, options, resource_id=identifier
                ).current
            else:
                document = self._find_revision(vertex, decoded, target, identifier)
                if document.is_removed and not options.include_removed:
                    raise NotFoundError(
                        f"Revision removed: {identifier}", resource_id=identifier
                    )

            await self.assembler.enrich(
                document,
                options,
                DocumentList(),
                user_identity=user_identity,
                node_identity=node_identity,
            )
            return document
        except NotFoundError as e:
            self._log_not_found("getRevision", e)
            raise
        except Exception as e:
            raise self._failed("getRevision", e, identifier=identifier) from e

    async def query(
        self,
        container_id: str,
        document_codes: Optional[list[str]] = None,
        include_removed: bool = False,
        include_most_recent_revisions: bool = False,
        cursor: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> DocumentList:
        """
        List the documents on a vertex, one entry per document id and code.

        Pages run over documents rather than revisions. Each entry is the
        current revision, with up to ``most_recent_revision_count`` older
        revisions when ``include_most_recent_revisions`` is set.

        Raises:
            InvalidIdentifierError: If the vertex id or a code is malformed.
            InvalidCursorError: If the cursor is malformed.
            NotFoundError: If the vertex does not exist.
            GeneralError: ``queryFailed`` for any other failure.
        """
        _check_container_id(container_id)
        for document_code in document_codes or []:
            parse_document_code(document_code)
        parse_cursor(cursor)

        try:
            vertex = await self.graph.get(container_id)
            documents = documents_from_vertex(vertex)
            if not include_removed:
                documents = [d for d in documents if not d.is_removed]

            page = self.grouper.group(documents, document_codes, cursor, page_size)
            options = DocumentGetOptions(
                include_removed=include_removed,
                max_revision_count=(
                    self.config.most_recent_revision_count
                    if include_most_recent_revisions
                    else 0
                ),
            )

            document_list = DocumentList(cursor=page.next_cursor)
            for key in page.groups:
                await self.assembler.append(
                    document_list, page.grouped[key], options, resource_id=container_id
                )
            return document_list
        except NotFoundError as e:
            self._log_not_found("query", e)
            raise
        except Exception as e:
            raise self._failed("query", e, container_id=container_id) from e

    async def find_vertices(
        self,
        document_id: str,
        cursor: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> VertexList:
        """
        Find the vertices a document id is an id or alias of.

        Raises:
            InvalidIdentifierError: If the document id is empty.
            GeneralError: ``findVerticesFailed`` for any failure.
        """
        if not isinstance(document_id, str) or not document_id:
            raise InvalidIdentifierError("invalidDocumentId", value=document_id)

        try:
            return await self.graph.query(
                VertexQuery(id=document_id, id_mode=VertexIdMode.BOTH),
                cursor=cursor,
                page_size=page_size,
            )
        except NotFoundError as e:
            self._log_not_found("findVertices", e)
            raise
        except Exception as e:
            raise self._failed("findVertices", e, document_id=document_id) from e

    # ==================== Helpers ====================

    async def _apply(
        self,
        vertex: Vertex,
        result: ReconcileResult,
        document_id: str,
        document_id_format: Optional[str],
        document_code: str,
        blob: Optional[bytes],
        annotation_object: Optional[dict[str, Any]],
        user_identity: Optional[str],
        node_identity: Optional[str],
    ) -> bool:
        """Carry out a reconcile decision on the vertex, returns whether it changed."""
        if result.is_new_revision:
            document = await self._create_revision(
                result,
                document_id,
                document_id_format,
                document_code,
                blob,
                annotation_object,
                user_identity,
                node_identity,
            )
            store_document(vertex, document)
            logger.info(
                "document_revision_created",
                vertex_id=vertex.id,
                document_id=document_id,
                document_revision=result.revision_number,
                attested=document.attestation_id is not None,
            )
            return True

        if not result.changed:
            return False

        document = result.target.model_copy(deep=True)
        document.annotation_object = annotation_object
        document.date_modified = utc_now()
        if result.needs_attestation:
            document.attestation_id = await self._attest(
                document, user_identity, node_identity
            )
        store_document(vertex, document)
        logger.info(
            "document_updated_in_place",
            vertex_id=vertex.id,
            document_id=document_id,
            document_revision=result.revision_number,
            attested=result.needs_attestation,
        )
        return True

    async def _create_revision(
        self,
        result: ReconcileResult,
        document_id: str,
        document_id_format: Optional[str],
        document_code: str,
        blob: bytes,
        annotation_object: Optional[dict[str, Any]],
        user_identity: Optional[str],
        node_identity: Optional[str],
    ) -> Document:
        blob_storage_id = await self.blob_storage.create(
            base64.b64encode(blob).decode("ascii"),
            user_identity=user_identity,
            node_identity=node_identity,
        )
        document = Document(
            document_id=document_id,
            document_id_format=document_id_format,
            document_code=document_code,
            document_revision=result.revision_number,
            annotation_object=annotation_object,
            blob_storage_id=blob_storage_id,
            blob_hash=result.blob_hash,
            date_created=utc_now(),
            user_identity=user_identity,
            node_identity=node_identity,
        )
        if result.needs_attestation:
            document.attestation_id = await self._attest(
                document, user_identity, node_identity
            )
        return document

    async def _attest(
        self,
        document: Document,
        user_identity: Optional[str],
        node_identity: Optional[str],
    ) -> str:
        return await self.attestation.create(
            document.to_attestation().model_dump(by_alias=True, mode="json"),
            user_identity=user_identity,
            node_identity=node_identity,
        )

    @staticmethod
    def _find_revision(
        vertex: Vertex,
        decoded: DocumentIdentifier,
        revision: int,
        identifier: str,
    ) -> Document:
        for document in find_matching_documents(
            vertex, decoded.document_id, decoded.document_code
        ):
            if document.document_revision == revision:
                return document
        raise NotFoundError(
            f"Revision {revision} not found: {identifier}", resource_id=identifier
        )

    @staticmethod
    def _log_not_found(operation: str, error: NotFoundError) -> None:
        logger.info(
            "document_not_found",
            operation=operation,
            resource_id=error.resource_id,
        )

    @staticmethod
    def _failed(operation: str, error: Exception, **context) -> GeneralError:
        logger.error(
            "document_operation_failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            **context,
        )
        return GeneralError(
            f"{operation}Failed",
            message=f"{operation} failed: {error}",
            details=context,
        )
