"""Tests for socialgraph/filters.py.

- The default filter changes nothing but connection counts.
- Applying a filter twice equals applying it once.
- prune_isolated only changes the display set, never lookups.
"""
import pytest

from socialgraph.errors import InvalidFilterRange
from socialgraph.filters import DEFAULT_FILTER, FilterSpec, apply_filter
from socialgraph.models import ALL_KINDS, RelationKind


class TestFilterSpec:
    def test_defaults(self):
        spec = FilterSpec.create()
        assert spec.kinds == ALL_KINDS
        assert spec.frequency_range == (1, 10)
        assert spec.importance_range == (1, 10)
        assert spec.prune_isolated is True
        assert spec == DEFAULT_FILTER
        assert not spec.is_active

    def test_ranges_clamped(self):
        spec = FilterSpec.create(frequency_range=(-5, 3), importance_range=(4, 50))
        assert spec.frequency_range == (1, 3)
        assert spec.importance_range == (4, 10)

    def test_inverted_range(self):
        with pytest.raises(InvalidFilterRange) as exc_info:
            FilterSpec.create(importance_range=(8, 2))
        assert exc_info.value.name == "importance"

    def test_inverted_after_clamping(self):
        with pytest.raises(InvalidFilterRange):
            FilterSpec.create(frequency_range=(12, 0))

    def test_invalid_range_is_value_error(self):
        with pytest.raises(ValueError):
            FilterSpec.create(frequency_range=(9, 1))

    def test_kinds_from_strings(self):
        spec = FilterSpec.create(kinds=["friend", "FAMILY"])
        assert spec.kinds == {RelationKind.FRIEND, RelationKind.FAMILY}

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            FilterSpec.create(kinds=["RIVAL"])

    @pytest.mark.parametrize("kwargs", [
        {"kinds": ["FRIEND", "FAMILY"]},
        {"frequency_range": (2, 10)},
        {"importance_range": (1, 9)},
    ])
    def test_active(self, kwargs):
        assert FilterSpec.create(**kwargs).is_active

    def test_prune_flag_does_not_activate(self):
        assert not FilterSpec.create(prune_isolated=False).is_active


class TestApplyFilter:
    def test_example_importance_filter(self, example_snapshot):
        spec = FilterSpec.create(importance_range=(5, 10))
        view = apply_filter(example_snapshot, spec)
        assert [(e.source_id, e.target_id) for e in view.snapshot.edges()] == [("p1", "p2")]
        assert view.visible_ids == ("p1", "p2")

    def test_example_keep_isolated(self, example_snapshot):
        spec = FilterSpec.create(importance_range=(5, 10), prune_isolated=False)
        view = apply_filter(example_snapshot, spec)
        assert view.visible_ids == ("p1", "p2", "p3")
        assert view.snapshot.connection_count("p3") == 0

    def test_pruned_person_still_resolvable(self, example_snapshot):
        view = apply_filter(example_snapshot, FilterSpec.create(importance_range=(5, 10)))
        assert [p.id for p in view.visible_people()] == ["p1", "p2"]
        assert view.snapshot.get("p3").id == "p3"

    def test_counts_recomputed(self, social_snapshot):
        view = apply_filter(social_snapshot, FilterSpec.create(importance_range=(5, 10)))
        counts = {pid: view.snapshot.connection_count(pid) for pid in view.snapshot.ids()}
        assert counts == {"ann": 3, "bob": 2, "cat": 2, "dan": 0, "eve": 0, "fay": 1}
        assert view.visible_ids == ("ann", "bob", "cat", "fay")

    def test_kind_filter(self, social_snapshot):
        view = apply_filter(social_snapshot, FilterSpec.create(kinds=[RelationKind.FAMILY]))
        assert view.visible_ids == ("ann", "fay")
        assert {e.kind for e in view.snapshot.edges()} == {RelationKind.FAMILY}

    def test_frequency_filter(self, social_snapshot):
        view = apply_filter(social_snapshot, FilterSpec.create(frequency_range=(8, 10)))
        assert view.visible_ids == ("ann", "bob", "dan", "fay")

    def test_no_kinds(self, social_snapshot):
        view = apply_filter(social_snapshot, FilterSpec.create(kinds=[]))
        assert view.visible_ids == ()
        assert list(view.snapshot.edges()) == []
        assert len(view.snapshot) == 6

    def test_default_is_noop(self, social_snapshot):
        view = apply_filter(social_snapshot, DEFAULT_FILTER)
        assert list(view.snapshot.edges()) == list(social_snapshot.edges())
        assert view.snapshot.ids() == social_snapshot.ids()
        # eve has no edges at all
        assert "eve" not in view.visible_ids

    @pytest.mark.parametrize("spec", [
        DEFAULT_FILTER,
        FilterSpec.create(importance_range=(5, 10)),
        FilterSpec.create(kinds=["FRIEND"], frequency_range=(3, 7)),
        FilterSpec.create(kinds=["COLLEAGUE", "FAMILY"], prune_isolated=False),
    ])
    def test_idempotent(self, social_snapshot, spec):
        once = apply_filter(social_snapshot, spec)
        twice = apply_filter(once.snapshot, spec)
        assert twice == once

    def test_asymmetric_edge_keeps_target_visible(self, example_snapshot):
        # p2 has no outgoing edges but is the target of a kept one
        view = apply_filter(example_snapshot, FilterSpec.create(kinds=["FRIEND"]))
        assert view.visible_ids == ("p1", "p2")
        assert view.snapshot.connection_count("p2") == 0
