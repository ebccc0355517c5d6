"""REST handlers for document management.

Handlers take API Gateway style events and return API Gateway responses:

- POST   /documents                              - Create a document on a new vertex
- PUT    /vertices/{containerId}/documents       - Attach or revise a document
- PUT    /documents/{id}                         - Update a document
- GET    /documents/{id}                         - Get a document with history
- GET    /documents/{id}/revisions/{revision}    - Get one revision
- DELETE /documents/{id}/revisions/{revision}    - Remove a revision
- GET    /vertices/{containerId}/documents       - Query the documents on a vertex
- GET    /vertices?documentId=                   - Find vertices for a document id
"""

import base64
import binascii
import json
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import unquote

from pydantic import Field, ValidationError

from document_management.core.config import DocumentManagementConfig
from document_management.core.errors import (
    DocumentManagementError,
    InvalidCursorError,
    InvalidIdentifierError,
    NotFoundError,
)
from document_management.core.logging import (
    configure_logging,
    get_logger,
    request_context,
)
from document_management.models.document import CamelModel, DocumentGetOptions
from document_management.models.vertex import EdgeRequest
from document_management.service import DocumentManagementService
from document_management.storage.memory import (
    MemoryAttestationComponent,
    MemoryBlobStorageComponent,
    MemoryDataExtractionComponent,
    MemoryGraphComponent,
)

logger = get_logger(__name__)


class BadRequestError(DocumentManagementError):
    """Request that cannot be parsed."""

    def __init__(self, message: str):
        super().__init__(message, error_code="BAD_REQUEST")


class DocumentCreateRequest(CamelModel):
    """Body of a create request."""

    document_id: str
    document_id_format: Optional[str] = None
    document_code: str
    blob: str = Field(..., description="Base64 content")
    annotation_object: Optional[dict[str, Any]] = None
    edges: Optional[list[EdgeRequest]] = None
    create_attestation: bool = False
    add_alias: bool = True
    alias_annotation_object: Optional[dict[str, Any]] = None


class DocumentSetRequest(CamelModel):
    """Body of an attach or revise request."""

    document_id: str
    document_id_format: Optional[str] = None
    document_code: str
    blob: str = Field(..., description="Base64 content")
    annotation_object: Optional[dict[str, Any]] = None
    create_attestation: Optional[bool] = None


class DocumentUpdateRequest(CamelModel):
    """Body of an update request, every field optional."""

    blob: Optional[str] = Field(None, description="Base64 content")
    annotation_object: Optional[dict[str, Any]] = None
    edges: Optional[list[EdgeRequest]] = None
    create_attestation: Optional[bool] = None


def _build_response(
    status_code: int,
    body: Any = None,
    extra_headers: Optional[dict] = None,
) -> dict:
    """Build an API Gateway response."""
    headers = {
        "Content-Type": "application/ld+json",
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": "Content-Type,Authorization",
        "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
    }
    if extra_headers:
        headers.update(extra_headers)

    if body is None:
        body = ""
    return {
        "statusCode": status_code,
        "headers": headers,
        "body": json.dumps(body) if not isinstance(body, str) else body,
    }


def _error_response(error: DocumentManagementError) -> dict:
    if isinstance(error, NotFoundError):
        status_code = 404
    elif isinstance(error, (InvalidIdentifierError, InvalidCursorError, BadRequestError)):
        status_code = 400
    else:
        status_code = 500

    body = {"error": error.error_code, "message": error.message}
    reason = getattr(error, "reason", None)
    if reason:
        body["reason"] = reason
    return _build_response(status_code, body)


def _parse_bool(value: Optional[str], name: str) -> bool:
    if value is None or value == "":
        return False
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise BadRequestError(f"{name} must be true or false")


def _parse_int(value: Optional[str], name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise BadRequestError(f"{name} must be an integer") from None


def _decode_blob(blob: str) -> bytes:
    try:
        return base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError):
        raise BadRequestError("blob must be base64 encoded") from None


def _parse_body(event: dict, model):
    raw = event.get("body") or "{}"
    if event.get("isBase64Encoded"):
        try:
            raw = base64.b64decode(raw, validate=True).decode("utf-8")
        except (binascii.Error, ValueError):
            raise BadRequestError("Request body is not valid base64 UTF-8") from None
    try:
        return model.model_validate(json.loads(raw))
    except json.JSONDecodeError:
        raise BadRequestError("Request body is not valid JSON") from None
    except ValidationError as e:
        raise BadRequestError(f"Invalid request body: {e.error_count()} error(s)")


def _path_param(event: dict, name: str) -> str:
    value = (event.get("pathParameters") or {}).get(name)
    if not value:
        raise BadRequestError(f"Missing path parameter: {name}")
    return unquote(value)


def _identities(event: dict) -> dict[str, Optional[str]]:
    """Identities set by the authorizer, if any."""
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    return {
        "user_identity": authorizer.get("userIdentity"),
        "node_identity": authorizer.get("nodeIdentity"),
    }


class DocumentManagementRoutes:
    """Request handlers bound to a DocumentManagementService."""

    def __init__(self, service: DocumentManagementService):
        self.service = service
        self._routes: dict[tuple[str, str], Callable[[dict], Awaitable[dict]]] = {
            ("POST", "/documents"): self.create,
            ("PUT", "/vertices/{containerId}/documents"): self.set,
            ("PUT", "/documents/{id}"): self.update,
            ("GET", "/documents/{id}"): self.get,
            ("GET", "/documents/{id}/revisions/{revision}"): self.get_revision,
            ("DELETE", "/documents/{id}/revisions/{revision}"): self.remove_revision,
            ("GET", "/vertices/{containerId}/documents"): self.query,
            ("GET", "/vertices"): self.find_vertices,
        }

    async def handle(self, event: dict) -> dict:
        """Dispatch an event on its method and resource template."""
        key = (event.get("httpMethod", "").upper(), event.get("resource", ""))
        handler = self._routes.get(key)
        if handler is None:
            return _build_response(404, {"error": "NOT_FOUND", "message": "Route not found"})
        return await handler(event)

    async def _run(
        self, operation: str, event: dict, action: Callable[[], Awaitable[dict]]
    ) -> dict:
        with request_context(operation, **_identities(event)):
            logger.info("document_request_received", path=event.get("path"))
            try:
                return await action()
            except DocumentManagementError as e:
                logger.warning(
                    "document_request_failed",
                    error_code=e.error_code,
                    error=str(e),
                )
                return _error_response(e)
            except Exception as e:
                logger.error(
                    "document_request_error",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return _build_response(
                    500, {"error": "INTERNAL_ERROR", "message": "Internal server error"}
                )

    async def create(self, event: dict) -> dict:
        """POST /documents"""

        async def action() -> dict:
            request = _parse_body(event, DocumentCreateRequest)
            identifier = await self.service.create(
                request.document_id,
                request.document_id_format,
                request.document_code,
                _decode_blob(request.blob),
                annotation_object=request.annotation_object,
                edges=request.edges,
                create_attestation=request.create_attestation,
                add_alias=request.add_alias,
                alias_annotation_object=request.alias_annotation_object,
                **_identities(event),
            )
            return _build_response(201, extra_headers={"Location": identifier})

        return await self._run("create", event, action)

    async def set(self, event: dict) -> dict:
        """PUT /vertices/{containerId}/documents"""

        async def action() -> dict:
            container_id = _path_param(event, "containerId")
            request = _parse_body(event, DocumentSetRequest)
            identifier = await self.service.set(
                container_id,
                request.document_id,
                request.document_id_format,
                request.document_code,
                _decode_blob(request.blob),
                annotation_object=request.annotation_object,
                create_attestation=request.create_attestation,
                **_identities(event),
            )
            return _build_response(201, extra_headers={"Location": identifier})

        return await self._run("set", event, action)

    async def update(self, event: dict) -> dict:
        """PUT /documents/{id}"""

        async def action() -> dict:
            identifier = _path_param(event, "id")
            request = _parse_body(event, DocumentUpdateRequest)
            await self.service.update(
                identifier,
                blob=_decode_blob(request.blob) if request.blob is not None else None,
                annotation_object=request.annotation_object,
                edges=request.edges,
                create_attestation=request.create_attestation,
                **_identities(event),
            )
            return _build_response(204)

        return await self._run("update", event, action)

    async def get(self, event: dict) -> dict:
        """GET /documents/{id}"""

        async def action() -> dict:
            identifier = _path_param(event, "id")
            params = event.get("queryStringParameters") or {}
            document_list = await self.service.get(
                identifier,
                options=_get_options(params),
                cursor=params.get("cursor") or None,
                page_size=_parse_int(params.get("pageSize"), "pageSize"),
                **_identities(event),
            )
            return _build_response(200, document_list.to_json_ld())

        return await self._run("get", event, action)

    async def get_revision(self, event: dict) -> dict:
        """GET /documents/{id}/revisions/{revision}"""

        async def action() -> dict:
            identifier = _path_param(event, "id")
            revision = _parse_int(_path_param(event, "revision"), "revision")
            params = event.get("queryStringParameters") or {}
            document = await self.service.get_revision(
                identifier,
                revision=revision,
                options=_get_options(params),
                **_identities(event),
            )
            return _build_response(
                200, document.model_dump(by_alias=True, exclude_none=True, mode="json")
            )

        return await self._run("getRevision", event, action)

    async def remove_revision(self, event: dict) -> dict:
        """DELETE /documents/{id}/revisions/{revision}"""

        async def action() -> dict:
            identifier = _path_param(event, "id")
            revision = _parse_int(_path_param(event, "revision"), "revision")
            await self.service.remove_revision(
                identifier, revision, **_identities(event)
            )
            return _build_response(204)

        return await self._run("removeRevision", event, action)

    async def query(self, event: dict) -> dict:
        """GET /vertices/{containerId}/documents"""

        async def action() -> dict:
            container_id = _path_param(event, "containerId")
            params = event.get("queryStringParameters") or {}
            codes = params.get("documentCodes")
            document_list = await self.service.query(
                container_id,
                document_codes=[c.strip() for c in codes.split(",") if c.strip()]
                if codes
                else None,
                include_removed=_parse_bool(params.get("includeRemoved"), "includeRemoved"),
                include_most_recent_revisions=_parse_bool(
                    params.get("includeMostRecentRevisions"),
                    "includeMostRecentRevisions",
                ),
                cursor=params.get("cursor") or None,
                page_size=_parse_int(params.get("pageSize"), "pageSize"),
            )
            return _build_response(200, document_list.to_json_ld())

        return await self._run("query", event, action)

    async def find_vertices(self, event: dict) -> dict:
        """GET /vertices?documentId="""

        async def action() -> dict:
            params = event.get("queryStringParameters") or {}
            document_id = params.get("documentId")
            if not document_id:
                raise BadRequestError("Missing query parameter: documentId")
            vertices = await self.service.find_vertices(
                document_id,
                cursor=params.get("cursor") or None,
                page_size=_parse_int(params.get("pageSize"), "pageSize"),
            )
            return _build_response(
                200, vertices.model_dump(by_alias=True, exclude_none=True, mode="json")
            )

        return await self._run("findVertices", event, action)


def _get_options(params: dict) -> DocumentGetOptions:
    return DocumentGetOptions(
        include_blob_storage_metadata=_parse_bool(
            params.get("includeBlobStorageMetadata"), "includeBlobStorageMetadata"
        ),
        include_blob_storage_data=_parse_bool(
            params.get("includeBlobStorageData"), "includeBlobStorageData"
        ),
        include_attestation=_parse_bool(
            params.get("includeAttestation"), "includeAttestation"
        ),
        include_removed=_parse_bool(params.get("includeRemoved"), "includeRemoved"),
        extract_rule_group_id=params.get("extractRuleGroupId") or None,
        extract_mime_type=params.get("extractMimeType") or None,
    )


def create_memory_routes(
    config: Optional[DocumentManagementConfig] = None,
) -> DocumentManagementRoutes:
    """Routes over in-memory components, for local development.

    Logging is configured from the config, which is read from the
    environment when not given.
    """
    config = config or DocumentManagementConfig.from_env()
    configure_logging(level=config.log_level, json_format=config.json_logs)

    service = DocumentManagementService(
        MemoryGraphComponent(),
        MemoryBlobStorageComponent(),
        MemoryAttestationComponent(),
        data_extraction=MemoryDataExtractionComponent(),
        config=config,
    )
    return DocumentManagementRoutes(service)
