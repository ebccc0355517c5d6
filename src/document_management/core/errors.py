"""Custom exception classes for document management."""

from typing import Optional


class DocumentManagementError(Exception):
    """Base exception for all document management errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class NotFoundError(DocumentManagementError):
    """A vertex, document or revision does not exist.

    Always propagated unwrapped so callers can tell "missing" apart from
    an internal failure.
    """

    def __init__(
        self,
        message: str,
        resource_id: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, error_code="NOT_FOUND", **kwargs)
        self.resource_id = resource_id
        self.details.update({"resource_id": resource_id})


class GeneralError(DocumentManagementError):
    """Failure of a named operation.

    ``reason`` names what failed (``setFailed``, ``reconcileFailed``, ...).
    When raised with ``raise GeneralError(...) from error`` the original
    error is available both as ``__cause__`` and ``cause``.
    """

    def __init__(
        self,
        reason: str,
        message: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message or reason, error_code="GENERAL", details=details)
        self.reason = reason
        self.details.setdefault("reason", reason)

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__


class InvalidIdentifierError(GeneralError):
    """Malformed composite document identifier or document code."""

    def __init__(
        self,
        reason: str,
        value: Optional[str] = None,
        message: Optional[str] = None,
    ):
        super().__init__(
            reason,
            message=message or f"{reason}: {value!r}",
            details={"value": value},
        )
        self.value = value


class InvalidCursorError(GeneralError):
    """Pagination cursor that is not a non-negative integer."""

    def __init__(self, cursor: Optional[str]):
        super().__init__(
            "invalidCursor",
            message=f"invalidCursor: {cursor!r}",
            details={"cursor": cursor},
        )
        self.cursor = cursor
