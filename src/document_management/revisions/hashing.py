"""Content hashing for blob de-duplication."""

import base64
import hashlib

HASH_PREFIX = "sha256:"


def hash_blob(data: bytes) -> str:
    """Hash blob content as ``sha256:<base64 digest>``.

    Used only to compare content between writes.
    """
    digest = hashlib.sha256(data).digest()
    return f"{HASH_PREFIX}{base64.b64encode(digest).decode('ascii')}"
