"""Tests for the document management data models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from document_management.models.codes import DocumentCode
from document_management.models.contexts import (
    DEFAULT_CONTEXTS,
    DocumentContexts,
    add_context,
)
from document_management.models.document import (
    AttestationInformation,
    BlobStorageEntry,
    Document,
    DocumentGetOptions,
    DocumentList,
)
from document_management.models.vertex import (
    EdgeRequest,
    Vertex,
    VertexAlias,
    VertexEdge,
)


def make_document(**overrides) -> Document:
    fields = dict(
        document_id="doc-1",
        document_id_format="bol",
        document_code=DocumentCode.BILL_OF_LADING.value,
        document_revision=0,
        blob_storage_id="blob:memory:abc",
        blob_hash="sha256:abc",
        date_created=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return Document(**fields)


class TestDocument:
    """Tests for the Document model."""

    def test_defaults(self):
        document = make_document()
        assert document.type == "Document"
        assert document.context == DEFAULT_CONTEXTS
        assert document.is_removed is False
        assert document.group_key == ("doc-1", DocumentCode.BILL_OF_LADING.value)

    def test_resource_object_uses_camel_case(self):
        resource = make_document(annotation_object={"a": 1}).to_resource_object()
        assert resource["id"] == "doc-1"
        assert resource["@context"] == DEFAULT_CONTEXTS
        assert resource["documentCode"] == DocumentCode.BILL_OF_LADING.value
        assert resource["documentRevision"] == 0
        assert resource["blobStorageId"] == "blob:memory:abc"
        assert resource["annotationObject"] == {"a": 1}
        assert resource["dateCreated"].startswith("2024-01-01T00:00:00")
        assert "dateDeleted" not in resource

    def test_resource_object_excludes_enrichment(self):
        document = make_document(
            blob_storage_entry=BlobStorageEntry(id="b", blob_size=1, blob_hash="h"),
            attestation_information=AttestationInformation(id="a"),
            extracted_data={"x": 1},
            revisions=[make_document(document_revision=1)],
        )
        resource = document.to_resource_object()
        for key in ("blobStorageEntry", "attestationInformation", "extractedData", "revisions"):
            assert key not in resource

    def test_resource_object_round_trip(self):
        document = make_document(attestation_id="attestation:memory:1")
        restored = Document.model_validate(document.to_resource_object())
        assert restored == document

    @pytest.mark.parametrize("revision", ["1", "abc", 1.5, True])
    def test_revision_number_must_be_an_integer(self, revision):
        resource = make_document().to_resource_object()
        resource["documentRevision"] = revision
        with pytest.raises(ValidationError):
            Document.model_validate(resource)

    def test_to_attestation(self):
        attestation = make_document().to_attestation()
        dumped = attestation.model_dump(by_alias=True, mode="json")
        assert dumped["type"] == "DocumentAttestation"
        assert dumped["documentId"] == "doc-1"
        assert dumped["documentRevision"] == 0
        assert dumped["blobHash"] == "sha256:abc"
        assert "@context" in dumped


class TestDocumentList:
    """Tests for the DocumentList model."""

    def test_json_ld(self):
        document_list = DocumentList(documents=[make_document()], cursor="5")
        body = document_list.to_json_ld()
        assert body["type"] == "DocumentList"
        assert body["cursor"] == "5"
        assert body["documents"][0]["id"] == "doc-1"

    def test_cursor_omitted_when_unset(self):
        assert "cursor" not in DocumentList().to_json_ld()

    def test_add_context_is_ordered_and_unique(self):
        document_list = DocumentList()
        document_list.add_context(DocumentContexts.ATTESTATION.value)
        document_list.add_context(DocumentContexts.BLOB_STORAGE.value)
        document_list.add_context(DocumentContexts.ATTESTATION.value)
        assert document_list.context == DEFAULT_CONTEXTS + [
            DocumentContexts.ATTESTATION.value,
            DocumentContexts.BLOB_STORAGE.value,
        ]

    def test_default_contexts_not_shared(self):
        first = DocumentList()
        first.add_context(DocumentContexts.ATTESTATION.value)
        assert DocumentList().context == DEFAULT_CONTEXTS

    def test_add_context_function(self):
        contexts = ["a"]
        assert add_context(contexts, "a") == ["a"]
        assert add_context(contexts, "b") == ["a", "b"]


class TestDocumentGetOptions:
    """Tests for DocumentGetOptions."""

    def test_include_blob(self):
        assert DocumentGetOptions().include_blob is False
        assert DocumentGetOptions(include_blob_storage_metadata=True).include_blob is True
        assert DocumentGetOptions(include_blob_storage_data=True).include_blob is True


class TestVertex:
    """Tests for the vertex models."""

    def test_deleted_entries_are_ignored(self):
        deleted = datetime.now(timezone.utc)
        vertex = Vertex(
            id="aig:1",
            aliases=[VertexAlias(id="a", date_deleted=deleted), VertexAlias(id="b")],
            edges=[VertexEdge(id="aig:2", date_deleted=deleted), VertexEdge(id="aig:3")],
        )
        assert vertex.find_alias("a") is None
        assert vertex.find_alias("b") is not None
        assert vertex.find_edge("aig:2") is None
        assert vertex.edge_ids() == ["aig:3"]

    def test_edge_request_from_camel_case(self):
        request = EdgeRequest.model_validate(
            {"id": "aig:1", "addAlias": True, "aliasAnnotationObject": {"k": 1}}
        )
        assert request.add_alias is True
        assert request.alias_annotation_object == {"k": 1}


class TestDocumentCode:
    """Tests for DocumentCode."""

    def test_number(self):
        assert DocumentCode.BILL_OF_LADING.number == 705
        assert DocumentCode.COMMERCIAL_INVOICE.number == 380

    def test_is_known(self):
        assert DocumentCode.is_known("unece:DocumentCodeList#705")
        assert not DocumentCode.is_known("unece:DocumentCodeList#999")
        assert not DocumentCode.is_known("705")
