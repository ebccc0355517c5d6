"""Tests for composite document identifiers."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from document_management.core.errors import InvalidIdentifierError
from document_management.models.codes import DocumentCode
from document_management.revisions.identifiers import (
    DocumentIdentifier,
    decode_identifier,
    encode_identifier,
    format_document_code,
    is_container_id,
    parse_document_code,
)

CONTAINER_ID = "aig:5858585858585858585858585858585858585858585858585858585858585858"
BILL_OF_LADING = DocumentCode.BILL_OF_LADING.value


container_id_strategy = st.builds(
    lambda namespace, specific: f"{namespace}:{specific}",
    st.from_regex(r"[a-z][a-z0-9-]{0,10}", fullmatch=True),
    st.from_regex(r"[0-9a-f]{1,64}", fullmatch=True),
)
document_id_strategy = st.from_regex(r"[A-Za-z0-9_.-]{1,40}", fullmatch=True)
document_code_strategy = st.sampled_from([code.value for code in DocumentCode])
revision_strategy = st.one_of(st.none(), st.integers(min_value=0, max_value=10_000))


class TestDocumentCodes:
    """Tests for document code parsing."""

    def test_parse_document_code(self):
        """Test the numeric part is extracted."""
        assert parse_document_code(BILL_OF_LADING) == 705

    def test_format_document_code(self):
        """Test the prefix is re-prepended."""
        assert format_document_code(705) == BILL_OF_LADING

    @pytest.mark.parametrize(
        "code",
        [
            "unece:DocumentCodeList#",
            "unece:DocumentCodeList#7a",
            "other:DocumentCodeList#705",
            "705",
            "unece:DocumentCodeList#705#1",
            "unece:DocumentCodeList#0705",
        ],
    )
    def test_parse_invalid_document_code(self, code):
        """Test malformed codes are rejected."""
        with pytest.raises(InvalidIdentifierError) as exc_info:
            parse_document_code(code)
        assert exc_info.value.reason == "invalidDocumentCode"

    def test_known_code_number(self):
        """Test the enum exposes its numeric part."""
        assert DocumentCode.BILL_OF_LADING.number == 705
        assert DocumentCode.is_known(BILL_OF_LADING)
        assert not DocumentCode.is_known("unece:DocumentCodeList#1")


class TestContainerIds:
    """Tests for container id validation."""

    def test_valid_container_id(self):
        assert is_container_id(CONTAINER_ID)
        assert is_container_id("urn-x:abc")

    @pytest.mark.parametrize(
        "value", ["aig", "aig:", ":abc", "-aig:abc", "aig:a:b", "aig:abc\n", None]
    )
    def test_invalid_container_id(self, value):
        assert not is_container_id(value)


class TestEncodeIdentifier:
    """Tests for encode_identifier."""

    def test_encode_with_revision(self):
        """Test a revision is appended as a colon suffix."""
        identifier = encode_identifier(CONTAINER_ID, BILL_OF_LADING, "test-doc-id-1", 0)
        assert identifier == f"{CONTAINER_ID}:705:test-doc-id-1:0"

    def test_encode_without_revision(self):
        identifier = encode_identifier(CONTAINER_ID, BILL_OF_LADING, "test-doc-id-1")
        assert identifier == f"{CONTAINER_ID}:705:test-doc-id-1"

    def test_encode_rejects_document_id_with_separator(self):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            encode_identifier(CONTAINER_ID, BILL_OF_LADING, "doc:1", 0)
        assert exc_info.value.reason == "invalidDocumentId"

    def test_encode_rejects_empty_document_id(self):
        with pytest.raises(InvalidIdentifierError):
            encode_identifier(CONTAINER_ID, BILL_OF_LADING, "", 0)

    def test_encode_rejects_negative_revision(self):
        with pytest.raises(InvalidIdentifierError):
            encode_identifier(CONTAINER_ID, BILL_OF_LADING, "doc-1", -1)

    def test_encode_rejects_bad_container(self):
        with pytest.raises(InvalidIdentifierError):
            encode_identifier("not-a-urn", BILL_OF_LADING, "doc-1", 0)

    def test_encode_rejects_bad_code(self):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            encode_identifier(CONTAINER_ID, "BillOfLading", "doc-1", 0)
        assert exc_info.value.reason == "invalidDocumentCode"


class TestDecodeIdentifier:
    """Tests for decode_identifier."""

    def test_decode_with_revision(self):
        decoded = decode_identifier(f"{CONTAINER_ID}:705:test-doc-id-1:3")
        assert decoded == DocumentIdentifier(
            container_id=CONTAINER_ID,
            document_code=BILL_OF_LADING,
            document_id="test-doc-id-1",
            revision=3,
        )

    def test_decode_without_revision(self):
        decoded = decode_identifier(f"{CONTAINER_ID}:705:test-doc-id-1")
        assert decoded.revision is None
        assert decoded.document_code == BILL_OF_LADING

    @pytest.mark.parametrize(
        "identifier",
        [
            "",
            "aig:abc",
            "aig:abc:705",
            "aig:abc:705:doc:1:2",
            "aig:abc:705::0",
            "aig:abc:705:doc:x",
            "aig:abc:705:doc:01",
            "-:abc:705:doc",
        ],
    )
    def test_decode_invalid_document_id(self, identifier):
        """Test malformed identifiers are rejected as invalid ids."""
        with pytest.raises(InvalidIdentifierError) as exc_info:
            decode_identifier(identifier)
        assert exc_info.value.reason == "invalidDocumentId"

    def test_decode_non_integer_code(self):
        """Test a non numeric code segment is rejected as an invalid code."""
        with pytest.raises(InvalidIdentifierError) as exc_info:
            decode_identifier("aig:abc:BillOfLading:doc-1:0")
        assert exc_info.value.reason == "invalidDocumentCode"

    def test_decode_code_with_leading_zero(self):
        """Test a zero padded code segment is rejected as an invalid code."""
        with pytest.raises(InvalidIdentifierError) as exc_info:
            decode_identifier("aig:abc:0705:doc-1")
        assert exc_info.value.reason == "invalidDocumentCode"

    def test_with_revision(self):
        decoded = decode_identifier(f"{CONTAINER_ID}:705:doc-1")
        assert decoded.with_revision(2).encode() == f"{CONTAINER_ID}:705:doc-1:2"


class TestIdentifierRoundTrip:
    """Round trip properties of the identifier codec."""

    @settings(max_examples=200)
    @given(
        container_id=container_id_strategy,
        document_code=document_code_strategy,
        document_id=document_id_strategy,
        revision=revision_strategy,
    )
    def test_decode_encode_round_trip(
        self, container_id, document_code, document_id, revision
    ):
        """Property: decoding an encoded identifier returns its parts."""
        identifier = encode_identifier(container_id, document_code, document_id, revision)
        assert decode_identifier(identifier) == DocumentIdentifier(
            container_id, document_code, document_id, revision
        )
        assert decode_identifier(identifier).encode() == identifier
