"""Declarative relationship filters and the filtered view they produce."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .errors import InvalidFilterRange
from .models import ALL_KINDS, WEIGHT_MAX, WEIGHT_MIN, Person, RelationKind, Relationship, clamp_weight
from .snapshot import GraphSnapshot

FULL_RANGE = (WEIGHT_MIN, WEIGHT_MAX)


def _normalize_range(name: str, value: Optional[Sequence[int]]) -> Tuple[int, int]:
    if value is None:
        return FULL_RANGE
    if len(value) != 2:
        raise ValueError(f"{name} range must have exactly two values")
    low, high = clamp_weight(value[0]), clamp_weight(value[1])
    if low > high:
        raise InvalidFilterRange(name, low, high)
    return low, high


@dataclass(frozen=True)
class FilterSpec:
    """Which edges stay visible.

    Ranges are inclusive and clamped to [1, 10]. ``prune_isolated`` drops
    people left without edges from the display set; they stay available for
    lookups either way.
    """
    kinds: FrozenSet[RelationKind] = ALL_KINDS
    frequency_range: Tuple[int, int] = FULL_RANGE
    importance_range: Tuple[int, int] = FULL_RANGE
    prune_isolated: bool = True

    @classmethod
    def create(
        cls,
        kinds: Optional[Iterable] = None,
        frequency_range: Optional[Sequence[int]] = None,
        importance_range: Optional[Sequence[int]] = None,
        prune_isolated: bool = True,
    ) -> "FilterSpec":
        return cls(
            kinds=ALL_KINDS if kinds is None else frozenset(RelationKind.parse(k) for k in kinds),
            frequency_range=_normalize_range("frequency", frequency_range),
            importance_range=_normalize_range("importance", importance_range),
            prune_isolated=prune_isolated,
        )

    @property
    def is_active(self) -> bool:
        """True when some edge could be excluded."""
        return (
            self.kinds != ALL_KINDS
            or self.frequency_range != FULL_RANGE
            or self.importance_range != FULL_RANGE
        )

    def matches(self, rel: Relationship) -> bool:
        f_lo, f_hi = self.frequency_range
        i_lo, i_hi = self.importance_range
        return (
            rel.kind in self.kinds
            and f_lo <= rel.frequency <= f_hi
            and i_lo <= rel.importance <= i_hi
        )


DEFAULT_FILTER = FilterSpec()


@dataclass(frozen=True)
class FilteredView:
    """A snapshot restricted to matching edges.

    ``snapshot`` keeps every person (connection counts recomputed from the
    retained edges); ``visible_ids`` is the display set in snapshot order.
    With ``prune_isolated`` a person is displayed only while at least one
    retained edge starts or ends at them.
    """
    snapshot: GraphSnapshot
    visible_ids: Tuple[str, ...]
    spec: FilterSpec = field(default=DEFAULT_FILTER)

    def visible_people(self) -> List[Person]:
        return [self.snapshot.get(pid) for pid in self.visible_ids]


def apply_filter(snapshot: GraphSnapshot, spec: FilterSpec = DEFAULT_FILTER) -> FilteredView:
    """Keep only edges matching ``spec``. Applying the same spec twice is a no-op."""
    kept = [e for e in snapshot.edges() if spec.matches(e)]
    counts = {pid: 0 for pid in snapshot.ids()}
    touched = set()
    for e in kept:
        counts[e.source_id] += 1
        touched.update((e.source_id, e.target_id))

    filtered = GraphSnapshot(snapshot.people(), kept, totals=counts)
    if spec.prune_isolated:
        visible = tuple(pid for pid in snapshot.ids() if pid in touched)
    else:
        visible = tuple(snapshot.ids())
    return FilteredView(snapshot=filtered, visible_ids=visible, spec=spec)
