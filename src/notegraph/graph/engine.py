"""Public entry point of the graph engine.

``NoteGraph`` holds the last note snapshot it was given and answers
network, backlink, isolation and export queries against it. Callers must
call ``update_notes`` after editing notes; until then queries see the old
snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime

from pydantic import BaseModel

from notegraph.config import NoteGraphConfig
from notegraph.graph.analytics import NetworkStatistics, analyze_network, find_isolated_notes
from notegraph.graph.backlinks import BacklinkIndex
from notegraph.graph.builder import NetworkBuilder
from notegraph.graph.links import NoteResolver
from notegraph.graph.models import Backlink, GainFormula, Network
from notegraph.graph.notes import Note
from notegraph.graph.report import edges_table, isolated_table, nodes_table, stats_table

logger = logging.getLogger(__name__)


class ExportOptions(BaseModel):
    """What ``export_network`` should produce."""

    full_corpus: bool = False
    include_metadata: bool = True
    include_isolated: bool = True
    steps: int | None = None


class NetworkExport(BaseModel):
    """CSV tables for one export; ``isolated_table`` only for full exports."""

    edges_table: str
    nodes_table: str
    stats_table: str
    isolated_table: str | None = None


class NoteGraph:
    """Graph queries over a note collection snapshot.

    ``on_node_select`` is called with a node id by ``select_node``; the
    rendering layer sets it to open the chosen note.
    """

    def __init__(
        self,
        notes: Mapping[str, Note] | None = None,
        *,
        config: NoteGraphConfig | None = None,
        now: datetime | None = None,
    ) -> None:
        self._config = config or NoteGraphConfig()
        self._now = now
        self._notes: dict[str, Note] = {}
        self._backlinks = BacklinkIndex(context_words=self._config.backlinks.context_words)
        self.on_node_select: Callable[[str], None] | None = None
        self.update_notes(notes or {})

    @property
    def notes(self) -> Mapping[str, Note]:
        return self._notes

    @property
    def config(self) -> NoteGraphConfig:
        return self._config

    def update_notes(self, notes: Mapping[str, Note]) -> None:
        """Replace the working snapshot and rebuild the backlink index."""
        self._notes = {note.id: note for note in notes.values()}
        self._backlinks.rebuild(self._notes)
        logger.debug("Note snapshot updated: %d notes", len(self._notes))

    # -- Networks ------------------------------------------------------------

    def build_ego_network(self, note_id: str, steps: int | None = None) -> Network:
        steps = steps if steps is not None else self._config.graph.default_steps
        return NetworkBuilder(self._notes).build_ego_network(note_id, steps)

    def build_full_network(self, focal_id: str | None = None) -> Network:
        return NetworkBuilder(self._notes).build_full_network(focal_id)

    def analyze(
        self, network: Network, *, resolver: NoteResolver | None = None
    ) -> NetworkStatistics:
        analytics = self._config.analytics
        return analyze_network(
            network,
            self._notes,
            top_centrality=analytics.top_centrality,
            max_iterations=analytics.max_iterations,
            gain_formula=GainFormula(analytics.gain_formula),
            diameter_sample_size=analytics.diameter_sample_size,
            resolver=resolver,
        )

    # -- Backlinks and isolation ---------------------------------------------

    def backlinks_for(self, title: str) -> list[Backlink]:
        return self._backlinks.backlinks_for(title)

    def find_isolated_notes(self) -> list[Note]:
        return find_isolated_notes(self._notes)

    # -- Export --------------------------------------------------------------

    def export_network(
        self, note_id: str, options: ExportOptions | None = None
    ) -> NetworkExport | None:
        """Render the edges, nodes, statistics and isolated-notes tables.

        Returns ``None`` when the focal note is unknown or the network is
        empty.
        """
        options = options or ExportOptions()
        if note_id not in self._notes:
            logger.debug("Export skipped: note %s not found", note_id)
            return None

        resolver = NoteResolver(self._notes)
        builder = NetworkBuilder(self._notes, resolver)
        if options.full_corpus:
            network = builder.build_full_network(note_id)
        else:
            steps = (
                options.steps
                if options.steps is not None
                else self._config.graph.default_steps
            )
            network = builder.build_ego_network(note_id, steps)
        if network.is_empty:
            return None

        now = self._current_time()
        export = self._config.export
        stats = self.analyze(network, resolver=resolver)
        incoming_counts = {
            target_id: len(sources)
            for target_id, sources in resolver.incoming_index().items()
        }

        isolated = None
        if options.full_corpus and options.include_isolated:
            isolated = isolated_table(
                stats.isolated_notes,
                paragraph_chars=export.isolated_paragraph_chars,
                now=now,
            )

        logger.info(
            "Exported %s network for %s: %d nodes, %d edges",
            network.mode,
            note_id,
            len(network.nodes),
            len(network.edges),
        )
        return NetworkExport(
            edges_table=edges_table(
                network, self._notes, include_metadata=options.include_metadata
            ),
            nodes_table=nodes_table(
                network,
                self._notes,
                incoming_counts=incoming_counts,
                include_metadata=options.include_metadata,
                paragraph_chars=export.node_paragraph_chars,
                now=now,
            ),
            stats_table=stats_table(
                stats,
                self._notes,
                isolated_samples=export.isolated_samples,
                include_isolated=options.include_isolated,
                now=now,
            ),
            isolated_table=isolated,
        )

    # -- Selection -----------------------------------------------------------

    def select_node(self, node_id: str) -> None:
        """Forward a node selection to ``on_node_select`` if one is set."""
        if self.on_node_select is not None:
            self.on_node_select(node_id)

    def _current_time(self) -> datetime:
        return self._now or datetime.now(UTC)
