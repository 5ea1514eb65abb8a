"""Tests for socialgraph/analytics.py.

- Results are deterministic; ties go to the lowest person id.
- People with no outgoing edges score 0 and never error.
- A person has no mutual neighbors with themself.
"""
import pytest

from socialgraph import analytics
from socialgraph.errors import EmptyGraph, NotFound
from socialgraph.models import RelationKind
from socialgraph.snapshot import GraphSnapshot

from conftest import person, rel


class TestExampleGraph:
    def test_influence_sum(self, example_snapshot):
        assert analytics.influence_score(example_snapshot, "p1") == 10

    def test_top_one_by_average(self, example_snapshot):
        top = analytics.top_influential(example_snapshot, 1)
        assert len(top) == 1
        assert top[0].person.id == "p1"
        assert top[0].score == 5.0

    def test_zero_edge_people(self, example_snapshot):
        assert analytics.influence_score(example_snapshot, "p2") == 0
        assert analytics.average_importance(example_snapshot, "p3") == 0.0


class TestMostConnected:
    def test_tie_broken_by_id(self, social_snapshot):
        # ann and bob both have four connections
        top = analytics.most_connected(social_snapshot)
        assert top.person.id == "ann"
        assert top.score == 4.0
        assert top.connection_count == 4

    def test_independent_of_store_order(self):
        edges = [rel("b", "a"), rel("a", "b")]
        forward = GraphSnapshot([person("a"), person("b")], edges)
        backward = GraphSnapshot([person("b"), person("a")], edges)
        assert analytics.most_connected(forward).person.id == "a"
        assert analytics.most_connected(backward).person.id == "a"

    def test_isolated_never_wins_over_connected(self):
        snap = GraphSnapshot([person("a"), person("b"), person("c")], [rel("c", "a")])
        assert analytics.most_connected(snap).person.id == "c"

    def test_all_isolated(self):
        snap = GraphSnapshot([person("b"), person("a")])
        top = analytics.most_connected(snap)
        assert top.person.id == "a"
        assert top.score == 0

    def test_empty_graph(self):
        with pytest.raises(EmptyGraph):
            analytics.most_connected(GraphSnapshot.empty())


class TestMostInfluential:
    def test_sum_of_importance(self, social_snapshot):
        top = analytics.most_influential(social_snapshot)
        assert top.person.id == "ann"
        assert top.score == 28

    def test_sum_differs_from_average(self):
        # a: one edge of 10 (avg 10, sum 10); b: three edges of 6 (avg 6, sum 18)
        snap = GraphSnapshot(
            [person("a"), person("b"), person("c"), person("d")],
            [rel("a", "b", importance=10),
             rel("b", "a", importance=6), rel("b", "c", importance=6), rel("b", "d", importance=6)],
        )
        assert analytics.most_influential(snap).person.id == "b"
        assert analytics.top_influential(snap, 1)[0].person.id == "a"

    def test_empty_graph(self):
        with pytest.raises(EmptyGraph):
            analytics.most_influential(GraphSnapshot.empty())


class TestTopInfluential:
    def test_ranking(self, social_snapshot):
        top = analytics.top_influential(social_snapshot, 3)
        assert [r.person.id for r in top] == ["ann", "cat", "fay"]
        assert [r.score for r in top] == [7.0, 7.0, 6.0]

    def test_loner_ranked_last(self, social_snapshot):
        ranked = analytics.top_influential(social_snapshot, 100)
        assert len(ranked) == 6
        assert ranked[-1].person.id == "eve"
        assert ranked[-1].score == 0.0

    @pytest.mark.parametrize("k", [0, -3])
    def test_non_positive_k(self, social_snapshot, k):
        assert analytics.top_influential(social_snapshot, k) == []

    def test_empty_graph_is_empty_ranking(self):
        assert analytics.top_influential(GraphSnapshot.empty(), 5) == []


class TestMutualNeighbors:
    def test_common_friends(self, social_snapshot):
        mutual = analytics.mutual_neighbors(social_snapshot, "ann", "bob", RelationKind.FRIEND)
        assert [p.id for p in mutual] == ["cat", "dan"]

    def test_restricted_to_kind(self, social_snapshot):
        assert analytics.mutual_neighbors(social_snapshot, "ann", "bob", RelationKind.FAMILY) == []
        assert analytics.mutual_neighbors(social_snapshot, "ann", "bob", RelationKind.COLLEAGUE) == []

    @pytest.mark.parametrize("kind", list(RelationKind))
    def test_self_has_no_mutual_neighbors(self, social_snapshot, kind):
        assert analytics.mutual_neighbors(social_snapshot, "ann", "ann", kind) == []

    def test_unknown_person(self, social_snapshot):
        with pytest.raises(NotFound):
            analytics.mutual_neighbors(social_snapshot, "ann", "zed")
        with pytest.raises(NotFound):
            analytics.mutual_neighbors(social_snapshot, "zed", "zed")

    def test_symmetric(self, social_snapshot):
        ab = {p.id for p in analytics.mutual_neighbors(social_snapshot, "ann", "bob")}
        ba = {p.id for p in analytics.mutual_neighbors(social_snapshot, "bob", "ann")}
        assert ab == ba

    def test_isolated_person(self, social_snapshot):
        assert analytics.mutual_neighbors(social_snapshot, "ann", "eve") == []


class TestNeighbors:
    def test_by_kind(self, social_snapshot):
        friends = analytics.neighbors_by_kind(social_snapshot, "ann", RelationKind.FRIEND)
        assert [p.id for p in friends] == ["bob", "cat", "dan"]
        family = analytics.neighbors_by_kind(social_snapshot, "ann", "FAMILY")
        assert [p.id for p in family] == ["fay"]

    def test_duplicate_edges_listed_once(self):
        snap = GraphSnapshot([person("a"), person("b")], [rel("a", "b"), rel("a", "b", importance=9)])
        assert analytics.neighbor_ids(snap, "a", RelationKind.FRIEND) == ["b"]

    def test_edges_by_importance(self, social_snapshot):
        ordered = analytics.edges_by_importance(social_snapshot, "ann")
        assert [e.importance for e in ordered] == [10, 9, 6, 3]
