"""Edge and alias synchronization between a document vertex and its connections.

Connections are kept symmetric: the document vertex has an edge to every
connected vertex, each connected vertex has a back edge to the document
vertex, and optionally an alias keyed by the logical document id.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from document_management.core.logging import get_logger
from document_management.models.document import utc_now
from document_management.models.vertex import (
    EdgeRelationship,
    EdgeRequest,
    Vertex,
    VertexAlias,
    VertexEdge,
)
from document_management.storage.components import GraphComponent

logger = get_logger(__name__)


@dataclass
class EdgeDelta:
    """Connections to add and to remove, in request order."""

    to_add: list[str] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.to_add or self.to_remove)


def diff_edges(existing: list[str], requested: Optional[list[str]]) -> EdgeDelta:
    """Compare current connections with the requested ones.

    Args:
        existing: Ids currently connected.
        requested: Ids that should be connected. None leaves the
            connections alone, an empty list removes all of them.

    Returns:
        The delta to apply.
    """
    if requested is None:
        return EdgeDelta()

    wanted = list(dict.fromkeys(requested))
    current = list(dict.fromkeys(existing))
    return EdgeDelta(
        to_add=[edge_id for edge_id in wanted if edge_id not in current],
        to_remove=[edge_id for edge_id in current if edge_id not in wanted],
    )


def document_edge_ids(vertex: Vertex) -> list[str]:
    """Ids of the live document relationship edges on a vertex."""
    return [
        edge.id
        for edge in vertex.edges
        if edge.date_deleted is None
        and EdgeRelationship.DOCUMENT.value in edge.edge_relationships
    ]


@dataclass
class EdgePlan:
    """Result of the read phase: the delta plus every vertex it touches."""

    delta: EdgeDelta = field(default_factory=EdgeDelta)
    requests: dict[str, EdgeRequest] = field(default_factory=dict)
    connected: dict[str, Vertex] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.connected and not self.delta.has_changes


class EdgeSynchronizer:
    """
    Keeps the edges of a document vertex and its connected vertices in step.

    Work is split in two phases. ``prepare`` fetches every vertex that will
    be touched before anything is written, so a missing connection aborts
    the operation without partial changes. ``commit`` then writes the
    connected vertices that actually changed. The document vertex itself is
    written by the caller between the two phases and is not rolled back if
    a later connected vertex write fails.
    """

    def __init__(self, graph: GraphComponent):
        self.graph = graph

    async def prepare(
        self,
        document_vertex: Vertex,
        edge_requests: Optional[list[EdgeRequest]],
    ) -> EdgePlan:
        """Compute the delta and fetch every affected connected vertex.

        Raises:
            NotFoundError: If a connected vertex does not exist.
        """
        if edge_requests is None:
            return EdgePlan()

        requests = {request.id: request for request in edge_requests}
        delta = diff_edges(document_edge_ids(document_vertex), list(requests))

        # Kept connections are read as well so commit restores missing back edges.
        affected = list(delta.to_add) + list(delta.to_remove)
        for edge_id in requests:
            if edge_id not in affected:
                affected.append(edge_id)

        plan = EdgePlan(delta=delta, requests=requests)
        for edge_id in affected:
            plan.connected[edge_id] = await self.graph.get(edge_id)
        return plan

    @staticmethod
    def apply_to_document_vertex(vertex: Vertex, delta: EdgeDelta) -> bool:
        """Add and remove document edges on the document vertex.

        Returns:
            Whether the vertex changed.
        """
        changed = False

        if delta.to_remove:
            remaining = [
                edge
                for edge in vertex.edges
                if not (edge.id in delta.to_remove and edge.date_deleted is None)
            ]
            changed = len(remaining) != len(vertex.edges)
            vertex.edges = remaining

        for edge_id in delta.to_add:
            if vertex.find_edge(edge_id) is None:
                vertex.edges.append(
                    VertexEdge(
                        id=edge_id,
                        edge_relationships=[EdgeRelationship.DOCUMENT.value],
                        date_created=utc_now(),
                    )
                )
                changed = True

        return changed

    @staticmethod
    def apply_to_connected_vertex(
        vertex: Vertex,
        document_vertex_id: str,
        document_id: str,
        document_id_format: Optional[str] = None,
        request: Optional[EdgeRequest] = None,
        remove: bool = False,
    ) -> bool:
        """Bring one connected vertex in line with the document vertex.

        Args:
            vertex: The connected vertex, modified in place.
            document_vertex_id: Id of the document vertex.
            document_id: Logical document id, used as the alias.
            document_id_format: Format stored on the alias.
            request: The edge request, None when the connection is removed.
            remove: Strip the back edge and alias instead of adding them.

        Returns:
            Whether the vertex changed.
        """
        if remove:
            edges = [
                edge
                for edge in vertex.edges
                if not (edge.id == document_vertex_id and edge.date_deleted is None)
            ]
            aliases = [
                alias
                for alias in vertex.aliases
                if not (alias.id == document_id and alias.date_deleted is None)
            ]
            changed = len(edges) != len(vertex.edges) or len(aliases) != len(
                vertex.aliases
            )
            vertex.edges = edges
            vertex.aliases = aliases
            return changed

        now = utc_now()
        changed = False

        if vertex.find_edge(document_vertex_id) is None:
            vertex.edges.append(
                VertexEdge(
                    id=document_vertex_id,
                    edge_relationships=[EdgeRelationship.DOCUMENT.value],
                    date_created=now,
                )
            )
            changed = True

        if request is not None and request.add_alias:
            changed = (
                _upsert_alias(
                    vertex,
                    document_id,
                    document_id_format,
                    request.alias_annotation_object,
                    now,
                )
                or changed
            )

        return changed

    async def commit(
        self,
        plan: EdgePlan,
        document_vertex_id: str,
        document_id: str,
        document_id_format: Optional[str] = None,
        user_identity: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> list[str]:
        """Write every connected vertex that changed.

        Returns:
            Ids of the vertices that were written.
        """
        updated: list[str] = []
        removed = set(plan.delta.to_remove)

        for edge_id, vertex in plan.connected.items():
            changed = self.apply_to_connected_vertex(
                vertex,
                document_vertex_id,
                document_id,
                document_id_format,
                request=plan.requests.get(edge_id),
                remove=edge_id in removed,
            )
            if changed:
                await self.graph.update(
                    vertex, user_identity=user_identity, node_identity=node_identity
                )
                updated.append(edge_id)

        if plan.delta.has_changes or updated:
            logger.info(
                "edges_synchronized",
                document_vertex_id=document_vertex_id,
                added=plan.delta.to_add,
                removed=plan.delta.to_remove,
                updated=updated,
            )
        return updated


def _upsert_alias(
    vertex: Vertex,
    alias_id: str,
    alias_format: Optional[str],
    annotation_object: Optional[dict[str, Any]],
    now,
) -> bool:
    alias = vertex.find_alias(alias_id)
    if alias is None:
        vertex.aliases.append(
            VertexAlias(
                id=alias_id,
                alias_format=alias_format,
                annotation_object=annotation_object,
                date_created=now,
            )
        )
        return True

    if alias.alias_format == alias_format and alias.annotation_object == annotation_object:
        return False

    alias.alias_format = alias_format
    alias.annotation_object = annotation_object
    alias.date_modified = now
    return True
