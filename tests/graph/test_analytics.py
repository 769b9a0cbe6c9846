"""Tests for network structural analysis."""

from __future__ import annotations

import pytest

from notegraph.graph.analytics import (
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
from notegraph.graph.builder import NetworkBuilder
from notegraph.graph.models import EdgeType, GainFormula, GraphEdge
from notegraph.graph.notes import Note


def _note(note_id: str, title: str, content: str = "") -> Note:
    return Note(id=note_id, title=title, content=content)


def _edges(*pairs: tuple[str, str]) -> list[GraphEdge]:
    return [GraphEdge(source=s, target=t, edge_type=EdgeType.WIKILINK) for s, t in pairs]


@pytest.fixture
def path_abc():
    return build_adjacency(["a", "b", "c"], _edges(("a", "b"), ("b", "c")))


@pytest.fixture
def chain() -> dict[str, Note]:
    return {
        "a": _note("a", "A", "[[B]]"),
        "b": _note("b", "B", "[[C]]"),
        "c": _note("c", "C"),
        "d": _note("d", "D"),
    }


class TestBuildAdjacency:
    def test_undirected_and_deduplicated(self):
        adjacency = build_adjacency(
            ["a", "b"], _edges(("a", "b"), ("b", "a"), ("a", "a"))
        )
        assert adjacency == {"a": ["b"], "b": ["a"]}

    def test_edges_to_unknown_nodes_ignored(self):
        adjacency = build_adjacency(["a"], _edges(("a", "zzz")))
        assert adjacency == {"a": []}


# -- Centrality --------------------------------------------------------------


class TestBetweenness:
    def test_two_nodes_score_zero(self):
        adjacency = build_adjacency(["a", "b"], _edges(("a", "b")))
        assert betweenness_centrality(adjacency) == {"a": 0.0, "b": 0.0}

    def test_path_middle_node(self, path_abc):
        scores = betweenness_centrality(path_abc)
        assert scores["b"] == pytest.approx(2.0)
        assert scores["a"] == 0.0
        assert scores["c"] == 0.0

    def test_scores_non_negative(self):
        adjacency = build_adjacency(
            list("abcde"),
            _edges(("a", "b"), ("b", "c"), ("c", "a"), ("c", "d"), ("d", "e")),
        )
        assert all(score >= 0 for score in betweenness_centrality(adjacency).values())

    def test_top_central_order(self):
        ranked = top_central_nodes({"a": 0.1, "b": 0.5, "c": 0.1}, limit=2)
        assert [r.node_id for r in ranked] == ["b", "a"]


# -- Communities -------------------------------------------------------------


class TestCommunities:
    def test_two_disjoint_pairs(self):
        adjacency = build_adjacency(list("abcd"), _edges(("a", "b"), ("c", "d")))
        assignment = detect_communities(adjacency)
        assert assignment["a"] == assignment["b"]
        assert assignment["c"] == assignment["d"]
        assert assignment["a"] != assignment["c"]

        summary = summarize_communities(assignment)
        assert summary.count == 2
        assert summary.largest_size == 2
        assert summary.heuristic_modularity == pytest.approx(0.55)
        assert newman_modularity(adjacency, assignment) == pytest.approx(0.5)

    def test_path_merges_into_one(self, path_abc):
        assignment = detect_communities(path_abc)
        summary = summarize_communities(assignment)
        assert summary.count == 1
        assert summary.heuristic_modularity == 0.0
        assert newman_modularity(path_abc, assignment) == pytest.approx(0.0)

    def test_every_node_in_one_community(self):
        adjacency = build_adjacency(
            list("abcdef"),
            _edges(("a", "b"), ("b", "c"), ("c", "a"), ("d", "e"), ("e", "f"), ("c", "d")),
        )
        for formula in GainFormula:
            summary = summarize_communities(detect_communities(adjacency, gain_formula=formula))
            members = [m for community in summary.communities for m in community.members]
            assert sorted(members) == list("abcdef")

    def test_no_edges_leaves_singletons(self):
        adjacency = build_adjacency(["a", "b"], [])
        summary = summarize_communities(detect_communities(adjacency))
        assert summary.count == 2
        assert summary.heuristic_modularity == 0.0

    def test_components_never_share_community(self):
        adjacency = build_adjacency(
            list("abcdef"),
            _edges(("a", "b"), ("b", "c"), ("d", "e"), ("e", "f")),
        )
        assignment = detect_communities(adjacency)
        assert {assignment[x] for x in "abc"}.isdisjoint({assignment[x] for x in "def"})

    def test_newman_modularity_without_edges(self):
        adjacency = build_adjacency(["a"], [])
        assert newman_modularity(adjacency, {"a": 0}) == 0.0


# -- Components and diameter -------------------------------------------------


class TestStructure:
    def test_connected_components(self):
        adjacency = build_adjacency(list("abcd"), _edges(("a", "b")))
        assert count_connected_components(adjacency) == 3

    def test_diameter_of_path(self):
        adjacency = build_adjacency(list("abcd"), _edges(("a", "b"), ("b", "c"), ("c", "d")))
        assert estimate_diameter(adjacency) == 3

    def test_sampled_diameter_is_lower_bound(self):
        adjacency = build_adjacency(["b", "a", "c"], _edges(("a", "b"), ("b", "c")))
        assert estimate_diameter(adjacency, sample_size=1) == 1
        assert estimate_diameter(adjacency) == 2

    def test_diameter_of_empty_graph(self):
        assert estimate_diameter({}) == 0


# -- Isolation and aggregate -------------------------------------------------


class TestIsolatedNotes:
    def test_single_isolated(self, chain):
        assert [n.id for n in find_isolated_notes(chain)] == ["d"]

    def test_chain_without_isolated(self, chain):
        del chain["d"]
        assert find_isolated_notes(chain) == []

    def test_unresolved_link_is_not_isolated(self):
        notes = {"a": _note("a", "A", "[[Ghost]]")}
        assert find_isolated_notes(notes) == []


class TestAnalyzeNetwork:
    def test_ego_network(self, chain):
        network = NetworkBuilder(chain).build_ego_network("b", 1)
        stats = analyze_network(network, chain)

        assert stats.node_count == 3
        assert stats.edge_count == 2
        assert stats.outgoing_from_focal == 1
        assert stats.incoming_to_focal == 1
        assert stats.nodes_by_step == {0: 1, 1: 2}
        assert stats.edges_by_step == {1: 2}
        assert stats.connected_components == 1
        assert stats.diameter is None
        assert stats.focal_title == "B"
        assert [n.id for n in stats.isolated_notes] == ["d"]

    def test_complete_network(self, chain):
        network = NetworkBuilder(chain).build_full_network("a")
        stats = analyze_network(network, chain)

        assert stats.total_notes == 4
        assert stats.connected_components == 2
        assert stats.diameter == 2
        assert stats.outgoing_from_focal == 1
        assert stats.incoming_to_focal == 0
        assert stats.density == pytest.approx(4 / 12)
        assert stats.max_degree == 2
        assert stats.isolation_rate == pytest.approx(25.0)
        assert stats.coverage == pytest.approx(100.0)
        assert stats.node_steps["d"] is None
        assert stats.top_central[0].node_id == "b"
