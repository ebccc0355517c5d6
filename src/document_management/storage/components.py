"""
Abstract interfaces for the services document management is built on.

The graph, blob storage, attestation and data extraction services are
injected into DocumentManagementService. Every implementation must follow
these interfaces so the service behaves the same against any backend.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from document_management.models.document import (
    AttestationInformation,
    BlobStorageEntry,
)
from document_management.models.vertex import Vertex, VertexList, VertexQuery


class GraphComponent(ABC):
    """Auditable graph holding container vertices."""

    @abstractmethod
    async def get(self, vertex_id: str, include_deleted: bool = False) -> Vertex:
        """
        Get a vertex by id.

        Args:
            vertex_id: The vertex to fetch.
            include_deleted: Also return soft-deleted aliases, resources and edges.

        Returns:
            The vertex.

        Raises:
            NotFoundError: If the vertex does not exist.
        """
        ...

    @abstractmethod
    async def create(
        self,
        vertex: Vertex,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> str:
        """
        Create a vertex.

        Args:
            vertex: The vertex to create, its id is assigned by the graph.
            user_identity: Identity of the user performing the write.
            node_identity: Identity of the node performing the write.

        Returns:
            The id of the new vertex.
        """
        ...

    @abstractmethod
    async def update(
        self,
        vertex: Vertex,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> None:
        """
        Replace the aliases, resources and edges of an existing vertex.

        Entries missing from the new vertex are marked deleted, not dropped.

        Raises:
            NotFoundError: If the vertex does not exist.
        """
        ...

    @abstractmethod
    async def query(
        self,
        options: VertexQuery,
        cursor: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> VertexList:
        """
        Find vertices by id and/or alias.

        Args:
            options: Query filter.
            cursor: Cursor from a previous page.
            page_size: Maximum number of vertices to return.

        Returns:
            A page of matching vertices.
        """
        ...


class BlobStorageComponent(ABC):
    """Content storage for document blobs."""

    @abstractmethod
    async def create(
        self,
        blob_base64: str,
        encoding_format: Optional[str] = None,
        file_extension: Optional[str] = None,
        annotation_object: Optional[dict[str, Any]] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> str:
        """
        Store a blob.

        Returns:
            The blob storage id.
        """
        ...

    @abstractmethod
    async def get(
        self,
        blob_id: str,
        include_content: bool = False,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> BlobStorageEntry:
        """
        Get blob metadata, and the base64 content when requested.

        Raises:
            NotFoundError: If the blob does not exist.
        """
        ...


class AttestationComponent(ABC):
    """Issues and verifies tamper evident proofs."""

    @abstractmethod
    async def create(
        self,
        attestation_object: dict[str, Any],
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> str:
        """
        Attest an object.

        Returns:
            The attestation id.
        """
        ...

    @abstractmethod
    async def get(self, attestation_id: str) -> AttestationInformation:
        """
        Get an attestation together with its verification state.

        Raises:
            NotFoundError: If the attestation does not exist.
        """
        ...


class DataExtractionComponent(ABC):
    """Rule based extraction of fields from document content."""

    @abstractmethod
    async def extract(
        self,
        rule_group_id: str,
        data: bytes,
        mime_type: Optional[str] = None,
    ) -> Any:
        """
        Run a rule group over document content.

        Args:
            rule_group_id: The rule group to apply.
            data: Raw document content.
            mime_type: Mime type of the content, detected when not given.

        Returns:
            The extracted data.
        """
        ...
