"""
In-memory implementations of the document management components.

These implementations are suitable for local development and testing.
All data is stored in memory and lost when the process terminates.
"""

import base64
import hashlib
import json
from copy import deepcopy
from typing import Any, Optional
from uuid import uuid4

from document_management.core.errors import (
    GeneralError,
    InvalidCursorError,
    NotFoundError,
)
from document_management.core.logging import get_logger
from document_management.models.document import (
    AttestationInformation,
    BlobStorageEntry,
    utc_now,
)
from document_management.models.vertex import (
    Vertex,
    VertexIdMode,
    VertexList,
    VertexQuery,
)
from document_management.storage.components import (
    AttestationComponent,
    BlobStorageComponent,
    DataExtractionComponent,
    GraphComponent,
)

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20


def _offset(cursor: Optional[str]) -> int:
    if not cursor:
        return 0
    if not str(cursor).isdigit():
        raise InvalidCursorError(cursor)
    return int(cursor)


def _merge_deleted(current: list, previous: list, now) -> list:
    """Keep entries dropped from ``current`` as deleted entries."""
    kept_ids = {entry.id for entry in current}
    merged = list(current)
    for entry in previous:
        if entry.id in kept_ids:
            continue
        if entry.date_deleted is None:
            entry = entry.model_copy(update={"date_deleted": now})
        merged.append(entry)
    return merged


class MemoryGraphComponent(GraphComponent):
    """
    Auditable graph kept in a dictionary.

    Aliases and edges removed by an update are kept with ``date_deleted``
    set and are only returned when deleted entries are requested.
    """

    def __init__(self, id_prefix: str = "aig"):
        """Initialize empty storage."""
        self.id_prefix = id_prefix
        self._vertices: dict[str, Vertex] = {}  # vertex_id -> vertex

    async def get(self, vertex_id: str, include_deleted: bool = False) -> Vertex:
        """Get a copy of a vertex."""
        stored = self._vertices.get(vertex_id)
        if stored is None:
            raise NotFoundError(f"Vertex not found: {vertex_id}", resource_id=vertex_id)

        vertex = deepcopy(stored)
        if not include_deleted:
            vertex.aliases = [a for a in vertex.aliases if a.date_deleted is None]
            vertex.resources = [r for r in vertex.resources if r.date_deleted is None]
            vertex.edges = [e for e in vertex.edges if e.date_deleted is None]
        return vertex

    async def create(
        self,
        vertex: Vertex,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> str:
        """Store a new vertex under a generated ``aig:<hex>`` id."""
        now = utc_now()
        vertex_id = f"{self.id_prefix}:{uuid4().hex}"

        stored = deepcopy(vertex)
        stored.id = vertex_id
        stored.date_created = now
        for entry in [*stored.aliases, *stored.resources, *stored.edges]:
            if entry.date_created is None:
                entry.date_created = now

        self._vertices[vertex_id] = stored
        logger.debug("vertex_created", vertex_id=vertex_id, user_identity=user_identity)
        return vertex_id

    async def update(
        self,
        vertex: Vertex,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> None:
        """Replace a stored vertex, soft deleting aliases and edges it dropped."""
        previous = self._vertices.get(vertex.id)
        if previous is None:
            raise NotFoundError(f"Vertex not found: {vertex.id}", resource_id=vertex.id)

        now = utc_now()
        stored = deepcopy(vertex)
        stored.date_created = previous.date_created
        stored.date_modified = now
        stored.aliases = _merge_deleted(stored.aliases, previous.aliases, now)
        stored.edges = _merge_deleted(stored.edges, previous.edges, now)
        for entry in [*stored.aliases, *stored.resources, *stored.edges]:
            if entry.date_created is None:
                entry.date_created = now

        self._vertices[vertex.id] = stored
        logger.debug("vertex_updated", vertex_id=vertex.id, user_identity=user_identity)

    async def query(
        self,
        options: VertexQuery,
        cursor: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> VertexList:
        """Find vertices whose id or live aliases match."""
        matches = [
            vertex
            for vertex in self._vertices.values()
            if self._matches(vertex, options)
        ]

        start = _offset(cursor)
        end = start + (page_size or DEFAULT_PAGE_SIZE)
        result = VertexList(vertices=[deepcopy(v) for v in matches[start:end]])
        if end < len(matches):
            result.cursor = str(end)
        return result

    @staticmethod
    def _matches(vertex: Vertex, options: VertexQuery) -> bool:
        by_id = options.id_mode in (VertexIdMode.ID, VertexIdMode.BOTH)
        by_alias = options.id_mode in (VertexIdMode.ALIAS, VertexIdMode.BOTH)

        found = (by_id and vertex.id == options.id) or (
            by_alias and vertex.find_alias(options.id) is not None
        )
        if not found:
            return False

        if options.resource_types:
            return any(
                resource.resource_object.get("type") in options.resource_types
                for resource in vertex.resources
                if resource.date_deleted is None
            )
        return True


class MemoryBlobStorageComponent(BlobStorageComponent):
    """Content addressed blob store, ids are ``blob:memory:<sha256 hex>``."""

    def __init__(self):
        """Initialize empty storage."""
        self._blobs: dict[str, dict[str, Any]] = {}  # blob_id -> content and metadata

    async def create(
        self,
        blob_base64: str,
        encoding_format: Optional[str] = None,
        file_extension: Optional[str] = None,
        annotation_object: Optional[dict[str, Any]] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> str:
        """Store the decoded content, identical content shares one id."""
        content = base64.b64decode(blob_base64)
        blob_id = f"blob:memory:{hashlib.sha256(content).hexdigest()}"

        if blob_id not in self._blobs:
            self._blobs[blob_id] = {
                "content": content,
                "encoding_format": encoding_format,
                "file_extension": file_extension,
                "annotation_object": deepcopy(annotation_object),
                "date_created": utc_now(),
            }
        return blob_id

    async def get(
        self,
        blob_id: str,
        include_content: bool = False,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> BlobStorageEntry:
        """Describe a stored blob."""
        stored = self._blobs.get(blob_id)
        if stored is None:
            raise NotFoundError(f"Blob not found: {blob_id}", resource_id=blob_id)

        content = stored["content"]
        digest = base64.b64encode(hashlib.sha256(content).digest()).decode("ascii")
        return BlobStorageEntry(
            id=blob_id,
            blob_size=len(content),
            blob_hash=f"sha256:{digest}",
            encoding_format=stored["encoding_format"],
            file_extension=stored["file_extension"],
            date_created=stored["date_created"],
            blob=base64.b64encode(content).decode("ascii") if include_content else None,
        )


def _proof_value(attestation_object: dict[str, Any]) -> str:
    canonical = json.dumps(
        attestation_object, sort_keys=True, separators=(",", ":"), default=str
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class MemoryAttestationComponent(AttestationComponent):
    """
    Attestation service that proves objects with a sha256 over canonical JSON.

    ``get`` recomputes the proof, so an object altered after attestation
    reports ``verified=False``.
    """

    PROOF_TYPE = "Sha256CanonicalJson"

    def __init__(self):
        """Initialize empty storage."""
        self._attestations: dict[str, dict[str, Any]] = {}  # attestation_id -> record

    async def create(
        self,
        attestation_object: dict[str, Any],
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> str:
        """Attest a JSON compatible object."""
        attestation_id = f"attestation:memory:{uuid4().hex}"
        self._attestations[attestation_id] = {
            "attestation_object": deepcopy(attestation_object),
            "proof": {"type": self.PROOF_TYPE, "value": _proof_value(attestation_object)},
            "owner_identity": node_identity or user_identity,
            "date_created": utc_now(),
        }
        return attestation_id

    async def get(self, attestation_id: str) -> AttestationInformation:
        """Get an attestation and check its proof."""
        record = self._attestations.get(attestation_id)
        if record is None:
            raise NotFoundError(
                f"Attestation not found: {attestation_id}", resource_id=attestation_id
            )

        attestation_object = deepcopy(record["attestation_object"])
        return AttestationInformation(
            id=attestation_id,
            attestation_object=attestation_object,
            proof=deepcopy(record["proof"]),
            verified=record["proof"]["value"] == _proof_value(attestation_object),
            owner_identity=record["owner_identity"],
            date_created=record["date_created"],
        )


class MemoryDataExtractionComponent(DataExtractionComponent):
    """
    Extracts fields from JSON content using dotted path rules.

    A rule group maps output field names to paths into the parsed content,
    e.g. ``{"consignee": "parties.consignee.name"}``.
    """

    def __init__(self, rule_groups: Optional[dict[str, dict[str, str]]] = None):
        self.rule_groups: dict[str, dict[str, str]] = dict(rule_groups or {})

    def add_rule_group(self, rule_group_id: str, rules: dict[str, str]) -> None:
        """Register or replace a rule group."""
        self.rule_groups[rule_group_id] = dict(rules)

    async def extract(
        self,
        rule_group_id: str,
        data: bytes,
        mime_type: Optional[str] = None,
    ) -> Any:
        """Apply a rule group to JSON content."""
        rules = self.rule_groups.get(rule_group_id)
        if rules is None:
            raise GeneralError(
                "ruleGroupNotFound",
                message=f"Rule group not found: {rule_group_id}",
                details={"rule_group_id": rule_group_id},
            )
        if mime_type and mime_type != "application/json":
            raise GeneralError(
                "unsupportedMimeType",
                message=f"Cannot extract from {mime_type}",
                details={"mime_type": mime_type},
            )

        try:
            content = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise GeneralError(
                "extractionFailed", message="Content is not JSON"
            ) from e

        return {field: self._resolve(content, path) for field, path in rules.items()}

    @staticmethod
    def _resolve(content: Any, path: str) -> Any:
        value = content
        for part in path.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            elif isinstance(value, list) and part.isdigit() and int(part) < len(value):
                value = value[int(part)]
            else:
                return None
        return value
