"""Build networks from a note collection.

Two modes:

- ``build_ego_network``: bounded BFS around a focal note, following
  outgoing links and backlinks for up to three steps;
- ``build_full_network``: every note, one undirected edge per linked pair.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from notegraph.graph.analytics import bfs_distances, build_adjacency
from notegraph.graph.links import NoteResolver
from notegraph.graph.models import EdgeType, GraphEdge, GraphNode, Network, NetworkMode
from notegraph.graph.notes import Note

logger = logging.getLogger(__name__)

MIN_STEPS = 1
MAX_STEPS = 3


def clamp_steps(steps: int) -> int:
    """Pull *steps* into the supported 1..3 range, warning if it moved."""
    clamped = max(MIN_STEPS, min(MAX_STEPS, steps))
    if clamped != steps:
        logger.warning("Step budget %d out of range, using %d", steps, clamped)
    return clamped


class NetworkBuilder:
    """Builds ego and complete networks over one note snapshot."""

    def __init__(self, notes: Mapping[str, Note], resolver: NoteResolver | None = None) -> None:
        self._notes = notes
        self._resolver = resolver or NoteResolver(notes)

    def build_ego_network(self, focal_id: str, max_steps: int = 1) -> Network:
        """BFS outwards from *focal_id* for *max_steps* steps.

        At each step every node found in the previous step contributes its
        outgoing targets and the notes linking to it. A node keeps the step
        it was first found at. Edges to already-known nodes are recorded
        unless the same directed pair is already present.

        An unknown *focal_id* gives an empty network.
        """
        steps = clamp_steps(max_steps)
        focal = self._notes.get(focal_id)
        if focal is None:
            logger.debug("Focal note %s not in collection", focal_id)
            return Network(mode=NetworkMode.EGO, focal_id=focal_id, steps=steps)

        incoming = self._resolver.incoming_index()
        nodes = [
            GraphNode(
                id=focal.id,
                title=focal.title,
                step=0,
                is_focal=True,
                created=focal.created,
                modified=focal.modified,
            )
        ]
        edges: list[GraphEdge] = []
        seen = {focal.id}
        seen_edges: set[tuple[str, str]] = set()
        frontier = [focal.id]

        def discover(note_id: str, step: int, found: list[str]) -> None:
            if note_id in seen:
                return
            seen.add(note_id)
            note = self._notes[note_id]
            nodes.append(
                GraphNode(
                    id=note_id,
                    title=note.title,
                    step=step,
                    created=note.created,
                    modified=note.modified,
                )
            )
            found.append(note_id)

        def link(source: str, target: str, edge_type: EdgeType, step: int) -> None:
            if (source, target) in seen_edges:
                return
            seen_edges.add((source, target))
            edges.append(GraphEdge(source=source, target=target, edge_type=edge_type, step=step))

        for step in range(1, steps + 1):
            found: list[str] = []
            for note_id in frontier:
                for target_id in self._resolver.resolved_links(self._notes[note_id]):
                    discover(target_id, step, found)
                    link(note_id, target_id, EdgeType.OUTGOING, step)
                for source_id in incoming.get(note_id, []):
                    discover(source_id, step, found)
                    link(source_id, note_id, EdgeType.INCOMING, step)
            frontier = found

        logger.debug(
            "Ego network for %s (%d steps): %d nodes, %d edges",
            focal_id,
            steps,
            len(nodes),
            len(edges),
        )
        return Network(
            mode=NetworkMode.EGO, focal_id=focal.id, steps=steps, nodes=nodes, edges=edges
        )

    def build_full_network(self, focal_id: str | None = None) -> Network:
        """Every note as a node; one ``wikilink`` edge per linked pair.

        The first link seen between two notes fixes the edge direction;
        later links in either direction are dropped. With *focal_id*, node
        steps are undirected hop distances from it (``None`` when
        unreachable); without it every step is ``None``.
        """
        edges: list[GraphEdge] = []
        pairs: set[frozenset[str]] = set()
        for note in self._notes.values():
            for target_id in self._resolver.resolved_links(note):
                pair = frozenset((note.id, target_id))
                if pair in pairs:
                    continue
                pairs.add(pair)
                edges.append(
                    GraphEdge(
                        source=note.id, target=target_id, edge_type=EdgeType.WIKILINK, step=1
                    )
                )

        focal = focal_id if focal_id in self._notes else None
        distances: dict[str, int] = {}
        if focal is not None:
            distances = bfs_distances(focal, build_adjacency(self._notes, edges))

        nodes = [
            GraphNode(
                id=note.id,
                title=note.title,
                step=distances.get(note.id),
                is_focal=note.id == focal,
                created=note.created,
                modified=note.modified,
            )
            for note in self._notes.values()
        ]
        logger.debug("Full network: %d nodes, %d edges", len(nodes), len(edges))
        return Network(mode=NetworkMode.COMPLETE, focal_id=focal, nodes=nodes, edges=edges)
