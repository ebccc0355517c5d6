"""Tests for blob content hashing."""

from hypothesis import given
from hypothesis import strategies as st

from document_management.revisions.hashing import HASH_PREFIX, hash_blob


class TestHashBlob:
    """Tests for hash_blob."""

    def test_known_hash(self):
        """Test the digest is base64 encoded behind the sha256 prefix."""
        assert hash_blob(b"Hello World") == "sha256:pZGm1Av0IEBKARczz7exkNYsZb8LzaMrV7J32a2fFG4="

    def test_different_content_different_hash(self):
        assert hash_blob(b"Hello World") != hash_blob(b"Hello World2")

    def test_empty_content(self):
        assert hash_blob(b"").startswith(HASH_PREFIX)

    @given(data=st.binary(max_size=512))
    def test_hash_is_deterministic(self, data):
        """Property: identical content always hashes identically."""
        assert hash_blob(data) == hash_blob(bytes(data))
        assert len(hash_blob(data)) == len(HASH_PREFIX) + 44
