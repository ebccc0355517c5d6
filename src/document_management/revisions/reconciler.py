"""Revision reconciliation.

Decides, for a write against a (document id, document code) pair, whether a
new revision is appended or the current revision is updated in place. The
reconciler is pure: blob uploads and attestation creation are left to the
caller, which only needs to act on the returned decision.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from document_management.core.errors import GeneralError
from document_management.models.document import Document
from document_management.revisions.hashing import hash_blob


class ReconcileAction(str, Enum):
    """Outcome of reconciling a write with the existing revisions."""

    NEW_REVISION = "new_revision"
    UPDATE_IN_PLACE = "update_in_place"


@dataclass
class ReconcileResult:
    """Decision produced by RevisionReconciler.

    For NEW_REVISION ``revision_number`` is the slot to create and ``target``
    is None. For UPDATE_IN_PLACE ``target`` is the current revision and
    ``changed`` tells the caller whether anything needs persisting.
    """

    action: ReconcileAction
    blob_hash: str
    revision_number: int
    needs_attestation: bool = False
    changed: bool = True
    target: Optional[Document] = None

    @property
    def is_new_revision(self) -> bool:
        return self.action == ReconcileAction.NEW_REVISION


def annotations_equal(
    left: Optional[dict[str, Any]], right: Optional[dict[str, Any]]
) -> bool:
    """Deep comparison of annotation objects ignoring key order."""
    if left is None or right is None:
        return left is right
    return json.dumps(left, sort_keys=True, default=str) == json.dumps(
        right, sort_keys=True, default=str
    )


def check_revision_numbers(revisions: list[Document]) -> None:
    """Fail when any revision lacks an integer revision number.

    Raises:
        GeneralError: ``reconcileFailed`` naming the offending document.
    """
    for revision in revisions:
        number = revision.document_revision
        if isinstance(number, bool) or not isinstance(number, int):
            raise GeneralError(
                "reconcileFailed",
                message=(
                    f"Revision number missing for document {revision.document_id}"
                ),
                details={
                    "document_id": revision.document_id,
                    "document_code": revision.document_code,
                    "document_revision": number,
                },
            )


def sort_revisions(revisions: list[Document]) -> list[Document]:
    """Return revisions ordered by revision number, newest first."""
    check_revision_numbers(revisions)
    return sorted(revisions, key=lambda d: d.document_revision, reverse=True)


def current_revision(revisions: list[Document]) -> Optional[Document]:
    """The highest numbered revision that is not soft-deleted."""
    for revision in revisions:
        if not revision.is_removed:
            return revision
    return None


class RevisionReconciler:
    """Chooses between appending a revision and updating the current one.

    Revision numbers are assigned as the count of existing revisions for the
    pair, so soft-deleted revisions keep their slot and numbering stays
    contiguous.
    """

    def __init__(self, inherit_attestation: bool = False):
        """Initialize the reconciler.

        Args:
            inherit_attestation: When the caller does not say whether to
                attest, attest new revisions of documents that were
                attested before.
        """
        self.inherit_attestation = inherit_attestation

    def reconcile(
        self,
        existing_revisions: list[Document],
        new_blob: Optional[bytes],
        new_annotation: Optional[dict[str, Any]],
        create_attestation: Optional[bool] = None,
    ) -> ReconcileResult:
        """Reconcile a write with the existing revisions.

        Args:
            existing_revisions: All revisions for the pair, soft-deleted ones
                included, sorted by revision descending.
            new_blob: New content, or None to keep the current content.
            new_annotation: Annotation the revision should carry afterwards.
            create_attestation: Explicit attestation request, None if unset.

        Returns:
            The reconcile decision.

        Raises:
            GeneralError: ``reconcileFailed`` on revisions without a number,
                or when content is kept but there is no current revision.
        """
        check_revision_numbers(existing_revisions)
        current = current_revision(existing_revisions)

        if new_blob is None:
            if current is None:
                raise GeneralError(
                    "reconcileFailed",
                    message="No current revision to keep the content of",
                )
            new_hash = current.blob_hash
        else:
            new_hash = hash_blob(new_blob)

        if current is not None and current.blob_hash == new_hash:
            needs_attestation = bool(create_attestation) and not current.attestation_id
            changed = needs_attestation or not annotations_equal(
                current.annotation_object, new_annotation
            )
            return ReconcileResult(
                action=ReconcileAction.UPDATE_IN_PLACE,
                blob_hash=new_hash,
                revision_number=current.document_revision,
                needs_attestation=needs_attestation,
                changed=changed,
                target=current,
            )

        return ReconcileResult(
            action=ReconcileAction.NEW_REVISION,
            blob_hash=new_hash,
            revision_number=len(existing_revisions),
            needs_attestation=self._needs_attestation(
                existing_revisions, create_attestation
            ),
        )

    def _needs_attestation(
        self,
        existing_revisions: list[Document],
        create_attestation: Optional[bool],
    ) -> bool:
        if create_attestation is not None:
            return create_attestation
        if not self.inherit_attestation:
            return False
        return any(revision.attestation_id for revision in existing_revisions)
