"""Graph vertex models as exchanged with the auditable graph service."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from document_management.models.document import CamelModel


class EdgeRelationship(str, Enum):
    """Relationship tags placed on vertex edges."""

    DOCUMENT = "document"


class VertexAlias(CamelModel):
    """Alternate lookup key for a vertex."""

    id: str = Field(..., description="Alias value")
    alias_format: Optional[str] = Field(None, description="Format of the alias")
    annotation_object: Optional[dict[str, Any]] = None
    date_created: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    date_deleted: Optional[datetime] = None


class VertexEdge(CamelModel):
    """Directed link from a vertex to another vertex."""

    id: str = Field(..., description="Target vertex id")
    edge_relationships: list[str] = Field(default_factory=list)
    annotation_object: Optional[dict[str, Any]] = None
    date_created: Optional[datetime] = None
    date_deleted: Optional[datetime] = None


class VertexResource(CamelModel):
    """Typed object embedded in a vertex."""

    id: Optional[str] = None
    resource_object: dict[str, Any] = Field(default_factory=dict)
    date_created: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    date_deleted: Optional[datetime] = None


class Vertex(CamelModel):
    """A vertex of the auditable graph."""

    id: Optional[str] = None
    date_created: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    annotation_object: Optional[dict[str, Any]] = None
    aliases: list[VertexAlias] = Field(default_factory=list)
    resources: list[VertexResource] = Field(default_factory=list)
    edges: list[VertexEdge] = Field(default_factory=list)

    def find_alias(self, alias_id: str) -> Optional[VertexAlias]:
        for alias in self.aliases:
            if alias.id == alias_id and alias.date_deleted is None:
                return alias
        return None

    def find_edge(self, target_id: str) -> Optional[VertexEdge]:
        for edge in self.edges:
            if edge.id == target_id and edge.date_deleted is None:
                return edge
        return None

    def edge_ids(self) -> list[str]:
        """Ids of the vertices this vertex currently links to."""
        return [edge.id for edge in self.edges if edge.date_deleted is None]


class VertexList(CamelModel):
    """A page of vertices."""

    vertices: list[Vertex] = Field(default_factory=list)
    cursor: Optional[str] = None


class VertexIdMode(str, Enum):
    """Which identifiers a vertex query matches against."""

    ID = "id"
    ALIAS = "alias"
    BOTH = "both"


class VertexQuery(CamelModel):
    """Filter for graph vertex queries."""

    id: str
    id_mode: VertexIdMode = VertexIdMode.BOTH
    resource_types: Optional[list[str]] = None


class EdgeRequest(CamelModel):
    """A requested connection from a document vertex to another vertex."""

    id: str = Field(..., description="Vertex to connect to")
    add_alias: bool = Field(False, description="Add the document id as an alias on it")
    alias_annotation_object: Optional[dict[str, Any]] = None
