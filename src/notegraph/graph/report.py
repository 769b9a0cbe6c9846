"""CSV tables for network downloads.

Every string field is escaped with ``escape_csv_value`` and wrapped in
double quotes; numbers are written bare. Tables are a header row plus
data rows joined with ``\\n``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

from notegraph.graph.analytics import NetworkStatistics
from notegraph.graph.models import GraphEdge, Network, NetworkMode
from notegraph.graph.notes import Note

UNKNOWN = "Unknown"

EDGE_COLUMNS = ["source_id", "target_id", "source_title", "target_title", "link_type", "step"]
EDGE_METADATA_COLUMNS = [
    "source_created",
    "target_created",
    "source_modified",
    "target_modified",
    "source_word_count",
    "target_word_count",
    "source_outgoing_links",
    "target_outgoing_links",
    "source_tags",
    "target_tags",
    "weight",
]
NODE_COLUMNS = ["id", "title", "is_focal", "node_type", "step"]
NODE_METADATA_COLUMNS = [
    "created",
    "modified",
    "word_count",
    "character_count",
    "outgoing_links_count",
    "incoming_links_count",
    "tags",
    "first_paragraph",
    "last_modified_days_ago",
]
STATS_COLUMNS = ["metric", "value", "description"]
ISOLATED_COLUMNS = [
    "id",
    "title",
    "created",
    "modified",
    "word_count",
    "character_count",
    "tags",
    "first_paragraph",
    "last_modified_days_ago",
    "potential_tags",
]

# Capitalised words too common to be worth suggesting as tags.
_TAG_STOPWORDS = frozenset({"The", "This", "That", "When", "Where", "What", "Why", "How"})
_CAPITALIZED_RE = re.compile(r"\b[A-Z][a-z]+\b")
_HASHTAG_RE = re.compile(r"#(\w+)")
_QUOTED_RE = re.compile(r'"([^"]+)"')

CsvValue = str | int | float | bool | None


def escape_csv_value(value: str) -> str:
    """Double embedded quotes, turn newlines into spaces, drop CRs."""
    return value.replace('"', '""').replace("\n", " ").replace("\r", "")


def _field(value: CsvValue) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return f'"{"true" if value else "false"}"'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(round(value, 4))
    return f'"{escape_csv_value(value)}"'


def csv_row(values: Sequence[CsvValue]) -> str:
    return ",".join(_field(value) for value in values)


def render_table(columns: Sequence[str], rows: Sequence[Sequence[CsvValue]]) -> str:
    """Header line plus one line per row."""
    return "\n".join([",".join(columns), *(csv_row(row) for row in rows)])


def suggest_tags(content: str, limit: int = 5) -> list[str]:
    """Candidate tags for an unlinked note.

    Collects capitalised words longer than three letters, hashtags and
    short quoted terms, in that order, keeping the first *limit*.
    """
    found: dict[str, None] = {}
    for word in _CAPITALIZED_RE.findall(content):
        if len(word) > 3 and word not in _TAG_STOPWORDS:
            found.setdefault(word, None)
    for tag in _HASHTAG_RE.findall(content):
        found.setdefault(tag, None)
    for term in _QUOTED_RE.findall(content):
        if 3 < len(term) < 30:
            found.setdefault(term, None)
    return list(found)[:limit]


def _iso(value: datetime) -> str:
    return _ensure_utc(value).isoformat()


def _ensure_utc(value: datetime) -> datetime:
    """Attach UTC if *value* is timezone-naive."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _days_since(value: datetime, now: datetime) -> int:
    return (_ensure_utc(now) - _ensure_utc(value)).days


# -- Tables ------------------------------------------------------------------


def edges_table(
    network: Network,
    notes: Mapping[str, Note],
    *,
    include_metadata: bool = True,
) -> str:
    """One row per edge, with per-endpoint metadata on request."""
    columns = EDGE_COLUMNS + (EDGE_METADATA_COLUMNS if include_metadata else [])
    rows = [
        _edge_row(edge, notes.get(edge.source), notes.get(edge.target), include_metadata)
        for edge in network.edges
    ]
    return render_table(columns, rows)


def _edge_row(
    edge: GraphEdge, source: Note | None, target: Note | None, include_metadata: bool
) -> list[CsvValue]:
    row: list[CsvValue] = [
        edge.source,
        edge.target,
        source.title if source else UNKNOWN,
        target.title if target else UNKNOWN,
        edge.edge_type.value,
        edge.step,
    ]
    if not include_metadata:
        return row

    def describe(note: Note | None) -> tuple[CsvValue, CsvValue, int, int, CsvValue]:
        if note is None:
            return UNKNOWN, UNKNOWN, 0, 0, UNKNOWN
        return (
            _iso(note.created),
            _iso(note.modified),
            note.word_count,
            len(note.outgoing_links()),
            ";".join(note.tags),
        )

    s_created, s_modified, s_words, s_links, s_tags = describe(source)
    t_created, t_modified, t_words, t_links, t_tags = describe(target)
    row.extend(
        [
            s_created,
            t_created,
            s_modified,
            t_modified,
            s_words,
            t_words,
            s_links,
            t_links,
            s_tags,
            t_tags,
            1,
        ]
    )
    return row


def nodes_table(
    network: Network,
    notes: Mapping[str, Note],
    *,
    incoming_counts: Mapping[str, int] | None = None,
    include_metadata: bool = True,
    paragraph_chars: int = 100,
    now: datetime | None = None,
) -> str:
    """One row per node. ``incoming_counts`` covers the whole corpus."""
    now = now or datetime.now(UTC)
    incoming_counts = incoming_counts or {}
    columns = NODE_COLUMNS + (NODE_METADATA_COLUMNS if include_metadata else [])
    rows: list[list[CsvValue]] = []

    for node in network.nodes:
        row: list[CsvValue] = [
            node.id,
            node.title,
            node.is_focal,
            "focal" if node.is_focal else "connected",
            node.step,
        ]
        if include_metadata:
            note = notes.get(node.id)
            if note is None:
                row.extend([UNKNOWN, UNKNOWN, 0, 0, 0, 0, UNKNOWN, "", None])
            else:
                row.extend(
                    [
                        _iso(note.created),
                        _iso(note.modified),
                        note.word_count,
                        note.character_count,
                        len(note.outgoing_links()),
                        incoming_counts.get(note.id, 0),
                        ";".join(note.tags),
                        note.first_paragraph(paragraph_chars),
                        _days_since(note.modified, now),
                    ]
                )
        rows.append(row)

    return render_table(columns, rows)


def isolated_table(
    isolated: Sequence[Note],
    *,
    paragraph_chars: int = 150,
    now: datetime | None = None,
) -> str:
    """One row per isolated note, with suggested tags."""
    now = now or datetime.now(UTC)
    rows = [
        [
            note.id,
            note.title,
            _iso(note.created),
            _iso(note.modified),
            note.word_count,
            note.character_count,
            ";".join(note.tags),
            note.first_paragraph(paragraph_chars),
            _days_since(note.modified, now),
            ";".join(suggest_tags(note.body)),
        ]
        for note in isolated
    ]
    return render_table(ISOLATED_COLUMNS, rows)


def stats_table(
    stats: NetworkStatistics,
    notes: Mapping[str, Note],
    *,
    isolated_samples: int = 10,
    include_isolated: bool = True,
    now: datetime | None = None,
) -> str:
    """Flat ``metric,value,description`` sheet for one network."""
    now = now or datetime.now(UTC)
    complete = stats.mode == NetworkMode.COMPLETE
    communities = stats.communities

    rows: list[list[CsvValue]] = [
        ["network_type", stats.mode.value, "Type of network exported"],
        [
            "max_steps",
            "all" if complete else str(stats.steps),
            "Maximum steps from focal note",
        ],
        ["focal_note_id", stats.focal_id or "", "ID of the focal note"],
        ["focal_note_title", stats.focal_title, "Title of the focal note"],
        ["total_notes_in_vault", stats.total_notes, "Total notes in the collection"],
        ["connected_notes", stats.connected_notes, "Notes with at least one wikilink"],
        ["isolated_notes", stats.isolated_count, "Notes with no wikilinks (orphans)"],
        ["isolation_rate", stats.isolation_rate, "Percentage of notes that are isolated"],
        ["nodes_in_network", stats.node_count, "Notes included in network export"],
        ["total_edges", stats.edge_count, "Total number of connections"],
        ["outgoing_edges_from_focal", stats.outgoing_from_focal, "Links from focal note to others"],
        ["incoming_edges_to_focal", stats.incoming_to_focal, "Links from others to focal note"],
        ["network_density", stats.density, "Ratio of actual to possible connections"],
        ["average_degree", stats.average_degree, "Average connections per note"],
        ["max_degree", stats.max_degree, "Maximum connections for any note"],
        [
            "connected_components",
            stats.connected_components,
            "Number of disconnected subgraphs",
        ],
        [
            "network_diameter",
            "N/A" if stats.diameter is None else str(stats.diameter),
            "Longest shortest path found from sampled notes (lower bound)",
        ],
        ["num_communities", communities.count, "Number of detected communities"],
        [
            "modularity",
            communities.heuristic_modularity,
            "Heuristic community separation score, not Newman modularity",
        ],
        [
            "newman_modularity",
            stats.newman_modularity,
            "Newman modularity of the detected partition",
        ],
        [
            "largest_community_size",
            communities.largest_size,
            "Size of the largest community",
        ],
        ["network_coverage", stats.coverage, "Percentage of collection included in this network"],
        ["export_timestamp", _iso(now), "When this export was generated"],
    ]

    # full networks carry unbounded BFS distances
    for step in sorted({0, *stats.nodes_by_step}):
        count = stats.nodes_by_step.get(step, 0)
        where = "focal note" if step == 0 else f"{step} step{'s' if step > 1 else ''} from focal"
        rows.append([f"nodes_at_step_{step}", count, f"Number of nodes {where}"])

    for step in sorted(stats.edges_by_step):
        rows.append(
            [f"edges_at_step_{step}", stats.edges_by_step[step], f"Connections at step {step}"]
        )

    for rank, item in enumerate(stats.top_central, start=1):
        note = notes.get(item.node_id)
        title = note.title if note else UNKNOWN
        step = stats.node_steps.get(item.node_id)
        rows.append(
            [
                f"betweenness_rank_{rank}",
                f"{item.node_id}: {title} ({item.score:.4f}) "
                f"[step {'unknown' if step is None else step}]",
                "Node with highest betweenness centrality"
                if rank == 1
                else f"Node with rank {rank} betweenness centrality",
            ]
        )

    for index, community in enumerate(communities.communities, start=1):
        rows.append(
            [
                f"community_{index}",
                ";".join(community.members),
                f"Community {index} members ({community.size} nodes)",
            ]
        )

    if include_isolated:
        for index, note in enumerate(stats.isolated_notes[:isolated_samples], start=1):
            rows.append(
                [
                    f"isolated_note_{index}",
                    f"{note.id}: {note.title}",
                    f"Isolated note example {index}",
                ]
            )

    return render_table(STATS_COLUMNS, rows)
