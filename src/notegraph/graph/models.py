"""Core Pydantic models for the note link graph."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

from notegraph.errors import DanglingEdgeError


class EdgeType(StrEnum):
    """How an edge was discovered."""

    OUTGOING = "outgoing"
    INCOMING = "incoming"
    WIKILINK = "wikilink"


class NetworkMode(StrEnum):
    """Ego network around a focal note, or the complete corpus."""

    EGO = "ego"
    COMPLETE = "complete"


class GainFormula(StrEnum):
    """Modularity gain used by community detection.

    ``legacy`` compares against the node's current community degree sum
    including the node itself. ``canonical`` removes the node's own degree
    first, matching the standard Louvain gain up to a positive factor.
    """

    LEGACY = "legacy"
    CANONICAL = "canonical"


class GraphNode(BaseModel):
    """A note as it appears in one traversal."""

    id: str
    title: str
    step: int | None = 0
    is_focal: bool = False
    created: datetime | None = None
    modified: datetime | None = None


class GraphEdge(BaseModel):
    """A directed link between two nodes of a network."""

    source: str
    target: str
    edge_type: EdgeType
    step: int = 1

    @property
    def edge_key(self) -> tuple[str, str]:
        """Directed key: ``(source, target)``."""
        return (self.source, self.target)

    @property
    def pair_key(self) -> frozenset[str]:
        """Undirected key: the unordered endpoint pair."""
        return frozenset((self.source, self.target))


class Network(BaseModel):
    """Nodes and edges produced by one build call.

    Every edge must reference nodes present in ``nodes``.
    """

    mode: NetworkMode
    focal_id: str | None = None
    steps: int | None = None
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_edges(self) -> Network:
        ids = {node.id for node in self.nodes}
        for edge in self.edges:
            if edge.source not in ids or edge.target not in ids:
                raise DanglingEdgeError(
                    f"Edge {edge.source}->{edge.target} references a node "
                    "outside the network"
                )
        return self

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def node_ids(self) -> list[str]:
        """Node ids in discovery order."""
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> GraphNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


class Backlink(BaseModel):
    """An inbound reference to a note."""

    source_id: str
    source_title: str
    context: str = ""
