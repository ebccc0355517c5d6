"""Document data models for revisions stored on graph vertices."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from document_management.models.contexts import (
    DEFAULT_CONTEXTS,
    DocumentTypes,
    add_context,
)


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class BlobStorageEntry(CamelModel):
    """Blob storage metadata, with the base64 content when requested."""

    type: str = Field("BlobStorageEntry", description="JSON-LD type")
    id: str = Field(..., description="Blob storage id")
    blob_size: int = Field(..., description="Size of the blob in bytes")
    blob_hash: str = Field(..., description="Hash of the blob content")
    encoding_format: Optional[str] = Field(None, description="Mime type of the blob")
    file_extension: Optional[str] = Field(None, description="File extension")
    date_created: datetime = Field(default_factory=utc_now)
    blob: Optional[str] = Field(None, description="Base64 content")


class AttestationInformation(CamelModel):
    """Attestation details returned by the attestation service."""

    type: str = Field("Information", description="JSON-LD type")
    id: str = Field(..., description="Attestation id")
    attestation_object: dict[str, Any] = Field(
        default_factory=dict, description="The object that was attested"
    )
    proof: Optional[dict[str, Any]] = Field(None, description="Proof of the attestation")
    verified: bool = Field(False, description="Whether the proof verifies")
    owner_identity: Optional[str] = Field(None, description="Owner of the attestation")
    date_created: datetime = Field(default_factory=utc_now)


class DocumentAttestation(CamelModel):
    """The part of a revision that is attested: identity and content hash."""

    context: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CONTEXTS), alias="@context"
    )
    type: str = Field(DocumentTypes.DOCUMENT_ATTESTATION.value)
    document_id: str
    document_code: str
    document_revision: int
    date_created: datetime
    blob_hash: str


# Fields filled in at read time which never persist on the vertex.
ENRICHMENT_FIELDS = {
    "blob_storage_entry",
    "attestation_information",
    "extracted_data",
    "revisions",
}


class Document(CamelModel):
    """A single revision of a document attached to a container vertex."""

    context: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CONTEXTS), alias="@context"
    )
    type: str = Field(DocumentTypes.DOCUMENT.value, description="Type discriminator")
    document_id: str = Field(..., alias="id", description="Logical document id")
    document_id_format: Optional[str] = Field(None, description="Format of the document id")
    document_code: str = Field(..., description="Code for the document type")
    document_revision: Optional[int] = Field(
        None,
        strict=True,
        description="0 based revision within the document id and code",
    )
    annotation_object: Optional[dict[str, Any]] = Field(
        None, description="Additional structured information"
    )
    blob_storage_id: str = Field(..., description="Blob storage id for the content")
    blob_hash: str = Field(..., description="Hash of the content")
    attestation_id: Optional[str] = Field(None, description="Attestation for the revision")
    date_created: datetime = Field(default_factory=utc_now)
    date_modified: Optional[datetime] = None
    date_deleted: Optional[datetime] = None
    node_identity: Optional[str] = None
    user_identity: Optional[str] = None

    blob_storage_entry: Optional[BlobStorageEntry] = None
    attestation_information: Optional[AttestationInformation] = None
    extracted_data: Optional[Any] = None
    revisions: list["Document"] = Field(default_factory=list)

    @property
    def is_removed(self) -> bool:
        return self.date_deleted is not None

    @property
    def group_key(self) -> tuple[str, str]:
        return (self.document_id, self.document_code)

    def to_resource_object(self) -> dict[str, Any]:
        """Serialise the persisted part of the revision for a vertex resource."""
        return self.model_dump(
            by_alias=True,
            exclude_none=True,
            exclude=ENRICHMENT_FIELDS,
            mode="json",
        )

    def to_attestation(self) -> DocumentAttestation:
        """Build the object submitted to the attestation service."""
        return DocumentAttestation(
            document_id=self.document_id,
            document_code=self.document_code,
            document_revision=self.document_revision,
            date_created=self.date_created,
            blob_hash=self.blob_hash,
        )


Document.model_rebuild()


class DocumentList(CamelModel):
    """A page of documents, each carrying its slice of revision history."""

    context: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CONTEXTS), alias="@context"
    )
    type: str = Field(DocumentTypes.DOCUMENT_LIST.value)
    documents: list[Document] = Field(default_factory=list)
    cursor: Optional[str] = Field(None, description="Cursor for the next chunk")

    def add_context(self, marker: str) -> None:
        add_context(self.context, marker)

    def to_json_ld(self) -> dict[str, Any]:
        """Serialise for a response body."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class DocumentGetOptions(BaseModel):
    """Options for reading documents."""

    include_blob_storage_metadata: bool = False
    include_blob_storage_data: bool = False
    include_attestation: bool = False
    include_removed: bool = False
    max_revision_count: int = 0
    extract_rule_group_id: Optional[str] = None
    extract_mime_type: Optional[str] = None

    @property
    def include_blob(self) -> bool:
        return self.include_blob_storage_metadata or self.include_blob_storage_data
