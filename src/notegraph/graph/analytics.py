"""Structural analysis of a note network.

Everything here works on an undirected adjacency list derived from a
``Network``: betweenness centrality, greedy modularity communities,
connected components, a sampled diameter and isolated-note detection.

Two figures are approximations and are labelled as such in reports:

- the *heuristic* modularity from ``summarize_communities`` is a clamped
  function of community count, not Newman modularity (that one is
  ``newman_modularity``);
- ``estimate_diameter`` only runs BFS from the first sampled nodes, so it
  is a lower bound.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from notegraph.graph.links import NoteResolver
from notegraph.graph.models import EdgeType, GainFormula, GraphEdge, Network, NetworkMode
from notegraph.graph.notes import Note

logger = logging.getLogger(__name__)

Adjacency = dict[str, list[str]]

# Defaults mirrored by AnalyticsSectionConfig.
MAX_COMMUNITY_ITERATIONS = 50
DIAMETER_SAMPLE_SIZE = 50
TOP_CENTRALITY = 10
HEURISTIC_MODULARITY_CAP = 0.8


@dataclass
class CentralityScore:
    """Betweenness of one node, comparable only within the same run."""

    node_id: str
    score: float


@dataclass
class Community:
    """One cell of the community partition."""

    label: int
    members: list[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass
class CommunitySummary:
    """Communities plus the heuristic modularity figure."""

    communities: list[Community] = field(default_factory=list)
    largest_size: int = 0
    heuristic_modularity: float = 0.0

    @property
    def count(self) -> int:
        return len(self.communities)


@dataclass
class NetworkStatistics:
    """Everything the statistics sheet reports about one network."""

    mode: NetworkMode
    focal_id: str | None
    focal_title: str
    steps: int | None
    total_notes: int
    node_count: int
    edge_count: int
    isolated_notes: list[Note] = field(default_factory=list)
    node_steps: dict[str, int | None] = field(default_factory=dict)
    nodes_by_step: dict[int, int] = field(default_factory=dict)
    edges_by_step: dict[int, int] = field(default_factory=dict)
    outgoing_from_focal: int = 0
    incoming_to_focal: int = 0
    density: float = 0.0
    average_degree: float = 0.0
    max_degree: int = 0
    centrality: dict[str, float] = field(default_factory=dict)
    top_central: list[CentralityScore] = field(default_factory=list)
    communities: CommunitySummary = field(default_factory=CommunitySummary)
    newman_modularity: float = 0.0
    connected_components: int = 1
    diameter: int | None = None

    @property
    def isolated_count(self) -> int:
        return len(self.isolated_notes)

    @property
    def connected_notes(self) -> int:
        return self.total_notes - self.isolated_count

    @property
    def isolation_rate(self) -> float:
        """Percentage of the corpus that is isolated."""
        if not self.total_notes:
            return 0.0
        return self.isolated_count / self.total_notes * 100

    @property
    def coverage(self) -> float:
        """Percentage of the corpus included in the network."""
        if not self.total_notes:
            return 0.0
        return self.node_count / self.total_notes * 100


# -- Adjacency ---------------------------------------------------------------


def build_adjacency(node_ids: Iterable[str], edges: Iterable[GraphEdge]) -> Adjacency:
    """Undirected adjacency list in one pass.

    Self loops are dropped, neighbor lists are deduplicated and keep
    insertion order. Edges touching an unknown node are ignored.
    """
    neighbors: dict[str, dict[str, None]] = {node_id: {} for node_id in node_ids}
    for edge in edges:
        if edge.source == edge.target:
            continue
        if edge.source not in neighbors or edge.target not in neighbors:
            continue
        neighbors[edge.source][edge.target] = None
        neighbors[edge.target][edge.source] = None
    return {node_id: list(adjacent) for node_id, adjacent in neighbors.items()}


def bfs_distances(source: str, adjacency: Adjacency) -> dict[str, int]:
    """Hop distance from *source* to every reachable node."""
    distances = {source: 0}
    queue: deque[str] = deque([source])
    while queue:
        current = queue.popleft()
        for neighbor in adjacency.get(current, []):
            if neighbor not in distances:
                distances[neighbor] = distances[current] + 1
                queue.append(neighbor)
    return distances


# -- Centrality --------------------------------------------------------------


def betweenness_centrality(adjacency: Adjacency) -> dict[str, float]:
    """Unweighted betweenness, one BFS per source node.

    Dependencies are split evenly across shortest-path predecessors.
    Scores are multiplied by ``2 / ((n-1)(n-2))`` when ``n > 2``.
    """
    node_ids = list(adjacency)
    centrality = dict.fromkeys(node_ids, 0.0)

    for source in node_ids:
        distances = {source: 0}
        predecessors: dict[str, list[str]] = {node_id: [] for node_id in node_ids}
        order: list[str] = []
        queue: deque[str] = deque([source])

        while queue:
            current = queue.popleft()
            order.append(current)
            for neighbor in adjacency[current]:
                if neighbor not in distances:
                    distances[neighbor] = distances[current] + 1
                    queue.append(neighbor)
                if distances[neighbor] == distances[current] + 1:
                    predecessors[neighbor].append(current)

        dependency = dict.fromkeys(node_ids, 0.0)
        for w in reversed(order):
            for v in predecessors[w]:
                dependency[v] += (1 + dependency[w]) / len(predecessors[w])
            if w != source:
                centrality[w] += dependency[w]

    n = len(node_ids)
    if n > 2:
        scale = 2 / ((n - 1) * (n - 2))
        for node_id in centrality:
            centrality[node_id] *= scale
    return centrality


def top_central_nodes(
    centrality: Mapping[str, float], limit: int = TOP_CENTRALITY
) -> list[CentralityScore]:
    """Highest scores first; equal scores keep discovery order."""
    ranked = sorted(centrality.items(), key=lambda item: -item[1])
    return [CentralityScore(node_id=node_id, score=score) for node_id, score in ranked[:limit]]


# -- Communities -------------------------------------------------------------


def detect_communities(
    adjacency: Adjacency,
    *,
    max_iterations: int = MAX_COMMUNITY_ITERATIONS,
    gain_formula: GainFormula = GainFormula.LEGACY,
) -> dict[str, int]:
    """Single-level greedy modularity optimisation.

    Every node starts alone (label = its position). Each pass moves a node
    to the neighboring community with the strictly largest positive gain.
    Stops after a pass without moves or after *max_iterations* passes.
    The result is not guaranteed to be modularity-maximal.
    """
    node_ids = list(adjacency)
    assignment = {node_id: index for index, node_id in enumerate(node_ids)}
    degree = {node_id: len(adjacency[node_id]) for node_id in node_ids}
    community_degree = {assignment[node_id]: degree[node_id] for node_id in node_ids}
    total_edges = sum(degree.values()) / 2
    if total_edges == 0:
        return assignment

    for iteration in range(max_iterations):
        moved = False
        for node_id in node_ids:
            current = assignment[node_id]
            ties: dict[int, int] = {}
            for neighbor in adjacency[node_id]:
                community = assignment[neighbor]
                ties[community] = ties.get(community, 0) + 1

            current_sum = community_degree[current]
            if gain_formula == GainFormula.CANONICAL:
                current_sum -= degree[node_id]

            best, best_gain = current, 0.0
            for community, ties_to_target in ties.items():
                if community == current:
                    continue
                gain = (ties_to_target - ties.get(current, 0)) / (2 * total_edges) - (
                    degree[node_id] * (community_degree[community] - current_sum)
                ) / (4 * total_edges * total_edges)
                if gain > best_gain:
                    best, best_gain = community, gain

            if best != current:
                assignment[node_id] = best
                community_degree[current] -= degree[node_id]
                community_degree[best] += degree[node_id]
                moved = True

        if not moved:
            logger.debug("Community detection converged after %d passes", iteration + 1)
            break

    return assignment


def summarize_communities(assignment: Mapping[str, int]) -> CommunitySummary:
    """Group an assignment into communities ordered by label.

    ``heuristic_modularity`` is 0 when there is a single community or every
    node is alone, else ``min(0.8, 0.3 + 0.5 * count / n)``. It is a rough
    indicator only; see ``newman_modularity`` for the real figure.
    """
    groups: dict[int, list[str]] = {}
    for node_id, label in assignment.items():
        groups.setdefault(label, []).append(node_id)

    communities = [Community(label=label, members=groups[label]) for label in sorted(groups)]
    count = len(communities)
    n = len(assignment)

    if count <= 1 or count == n:
        heuristic = 0.0
    else:
        heuristic = min(HEURISTIC_MODULARITY_CAP, 0.3 + (count / n) * 0.5)

    return CommunitySummary(
        communities=communities,
        largest_size=max((c.size for c in communities), default=0),
        heuristic_modularity=heuristic,
    )


def newman_modularity(adjacency: Adjacency, assignment: Mapping[str, int]) -> float:
    """Newman modularity ``Q = sum_c (L_c / m - (d_c / 2m)^2)``."""
    total_edges = sum(len(neighbors) for neighbors in adjacency.values()) / 2
    if total_edges == 0:
        return 0.0

    internal: dict[int, float] = {}
    degree_sum: dict[int, int] = {}
    for node_id, neighbors in adjacency.items():
        community = assignment[node_id]
        degree_sum[community] = degree_sum.get(community, 0) + len(neighbors)
        for neighbor in neighbors:
            if assignment[neighbor] == community:
                # each internal edge is seen from both ends
                internal[community] = internal.get(community, 0.0) + 0.5

    return sum(
        internal.get(community, 0.0) / total_edges
        - (total / (2 * total_edges)) ** 2
        for community, total in degree_sum.items()
    )


# -- Components and distances ------------------------------------------------


def count_connected_components(adjacency: Adjacency) -> int:
    """Number of connected components, found with an explicit stack."""
    visited: set[str] = set()
    components = 0
    for start in adjacency:
        if start in visited:
            continue
        components += 1
        visited.add(start)
        stack = [start]
        while stack:
            current = stack.pop()
            for neighbor in adjacency[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    stack.append(neighbor)
    return components


def estimate_diameter(adjacency: Adjacency, sample_size: int = DIAMETER_SAMPLE_SIZE) -> int:
    """Longest finite BFS distance from the first *sample_size* nodes.

    Sources are taken in iteration order, not at random. The result is a
    lower bound on the true diameter.
    """
    longest = 0
    for source in list(adjacency)[:sample_size]:
        distances = bfs_distances(source, adjacency)
        longest = max(longest, max(distances.values()))
    return longest


# -- Isolation ---------------------------------------------------------------


def find_isolated_notes(
    notes: Mapping[str, Note], resolver: NoteResolver | None = None
) -> list[Note]:
    """Notes that declare no links and that no other note links to.

    Always evaluated against the whole collection.
    """
    resolver = resolver or NoteResolver(notes)
    linked_to = resolver.incoming_index()
    return [
        note
        for note in notes.values()
        if not note.outgoing_links() and note.id not in linked_to
    ]


# -- Aggregate ---------------------------------------------------------------


def analyze_network(
    network: Network,
    notes: Mapping[str, Note],
    *,
    top_centrality: int = TOP_CENTRALITY,
    max_iterations: int = MAX_COMMUNITY_ITERATIONS,
    gain_formula: GainFormula = GainFormula.LEGACY,
    diameter_sample_size: int = DIAMETER_SAMPLE_SIZE,
    resolver: NoteResolver | None = None,
) -> NetworkStatistics:
    """Compute the full statistics record for *network*.

    Isolated notes come from the whole collection, whatever subset the
    network covers. Components and diameter are only computed for the
    complete network; an ego network is connected by construction.
    """
    resolver = resolver or NoteResolver(notes)
    complete = network.mode == NetworkMode.COMPLETE
    focal_note = notes.get(network.focal_id) if network.focal_id else None

    nodes_by_step: dict[int, int] = {}
    for node in network.nodes:
        if node.step is not None:
            nodes_by_step[node.step] = nodes_by_step.get(node.step, 0) + 1

    edges_by_step: dict[int, int] = {}
    degrees: dict[str, int] = {}
    for edge in network.edges:
        edges_by_step[edge.step] = edges_by_step.get(edge.step, 0) + 1
        degrees[edge.source] = degrees.get(edge.source, 0) + 1
        degrees[edge.target] = degrees.get(edge.target, 0) + 1

    if complete:
        outgoing = sum(1 for e in network.edges if e.source == network.focal_id)
        incoming = sum(1 for e in network.edges if e.target == network.focal_id)
    else:
        outgoing = sum(1 for e in network.edges if e.edge_type == EdgeType.OUTGOING)
        incoming = sum(1 for e in network.edges if e.edge_type == EdgeType.INCOMING)

    node_count = len(network.nodes)
    edge_count = len(network.edges)
    max_possible = node_count * (node_count - 1)

    adjacency = build_adjacency(network.node_ids(), network.edges)
    centrality = betweenness_centrality(adjacency)
    assignment = detect_communities(
        adjacency, max_iterations=max_iterations, gain_formula=gain_formula
    )

    stats = NetworkStatistics(
        mode=network.mode,
        focal_id=network.focal_id,
        focal_title=focal_note.title if focal_note else "Unknown",
        steps=network.steps,
        total_notes=len(notes),
        node_count=node_count,
        edge_count=edge_count,
        isolated_notes=find_isolated_notes(notes, resolver),
        node_steps={node.id: node.step for node in network.nodes},
        nodes_by_step=nodes_by_step,
        edges_by_step=edges_by_step,
        outgoing_from_focal=outgoing,
        incoming_to_focal=incoming,
        density=(edge_count * 2) / max_possible if max_possible else 0.0,
        average_degree=sum(degrees.values()) / len(degrees) if degrees else 0.0,
        max_degree=max(degrees.values(), default=0),
        centrality=centrality,
        top_central=top_central_nodes(centrality, top_centrality),
        communities=summarize_communities(assignment),
        newman_modularity=newman_modularity(adjacency, assignment),
        connected_components=count_connected_components(adjacency) if complete else 1,
        diameter=estimate_diameter(adjacency, diameter_sample_size) if complete else None,
    )
    logger.debug(
        "Analyzed %s network: %d nodes, %d edges, %d communities",
        network.mode,
        node_count,
        edge_count,
        stats.communities.count,
    )
    return stats
