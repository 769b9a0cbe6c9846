"""Note link graph: note collection -> networks -> statistics -> CSV.

Public API re-exports for the graph domain.
"""

from notegraph.graph.analytics import (
    CentralityScore,
    Community,
    CommunitySummary,
    NetworkStatistics,
    analyze_network,
    betweenness_centrality,
    build_adjacency,
    count_connected_components,
    detect_communities,
    estimate_diameter,
    find_isolated_notes,
    newman_modularity,
    summarize_communities,
    top_central_nodes,
)
from notegraph.graph.backlinks import BacklinkIndex
from notegraph.graph.builder import NetworkBuilder
from notegraph.graph.engine import ExportOptions, NetworkExport, NoteGraph
from notegraph.graph.links import LinkKind, LinkTarget, NoteResolver, outgoing_links
from notegraph.graph.models import (
    Backlink,
    EdgeType,
    GainFormula,
    GraphEdge,
    GraphNode,
    Network,
    NetworkMode,
)
from notegraph.graph.notes import Note
from notegraph.graph.report import escape_csv_value

__all__ = [
    # models
    "Backlink",
    "EdgeType",
    "GainFormula",
    "GraphEdge",
    "GraphNode",
    "Network",
    "NetworkMode",
    "Note",
    # links
    "LinkKind",
    "LinkTarget",
    "NoteResolver",
    "outgoing_links",
    # backlinks
    "BacklinkIndex",
    # builder
    "NetworkBuilder",
    # analytics
    "CentralityScore",
    "Community",
    "CommunitySummary",
    "NetworkStatistics",
    "analyze_network",
    "betweenness_centrality",
    "build_adjacency",
    "count_connected_components",
    "detect_communities",
    "estimate_diameter",
    "find_isolated_notes",
    "newman_modularity",
    "summarize_communities",
    "top_central_nodes",
    # report
    "escape_csv_value",
    # engine
    "ExportOptions",
    "NetworkExport",
    "NoteGraph",
]
