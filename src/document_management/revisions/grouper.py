"""Groups the documents on a container vertex for paged queries."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from document_management.models.document import Document
from document_management.revisions.assembler import parse_cursor

GroupKey = tuple[str, str]


@dataclass
class GroupPage:
    """One page of document groups.

    Attributes:
        groups: Group keys on this page, in first-seen order.
        grouped: Revisions per group key, for every group on the page.
        next_cursor: Offset of the next page, None when this is the last.
    """

    groups: list[GroupKey] = field(default_factory=list)
    grouped: dict[GroupKey, list[Document]] = field(default_factory=dict)
    next_cursor: Optional[str] = None


class QueryGrouper:
    """Pages over (document id, document code) groups rather than revisions."""

    def __init__(self, page_size: int = 20):
        self.page_size = page_size

    def group(
        self,
        documents: Iterable[Document],
        document_codes: Optional[list[str]] = None,
        cursor: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> GroupPage:
        """Group revisions and return the requested page of groups.

        Args:
            documents: Revisions found on the vertex.
            document_codes: Only keep groups with one of these codes.
            cursor: Offset into the group list.
            page_size: Groups per page, defaults to the grouper's page size.

        Returns:
            The page of groups.

        Raises:
            InvalidCursorError: If the cursor is malformed.
        """
        start = parse_cursor(cursor)
        size = page_size if page_size and page_size > 0 else self.page_size
        codes = set(document_codes) if document_codes else None

        grouped: dict[GroupKey, list[Document]] = {}
        for document in documents:
            if codes is not None and document.document_code not in codes:
                continue
            grouped.setdefault(document.group_key, []).append(document)

        keys = list(grouped)
        end = start + size
        page = GroupPage(groups=keys[start:end])
        page.grouped = {key: grouped[key] for key in page.groups}
        if end < len(keys):
            page.next_cursor = str(end)
        return page
