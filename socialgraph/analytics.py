"""Connectivity and influence analytics over a GraphSnapshot.

Every function here is pure: the same snapshot always gives the same answer.
Ties are broken by person id ascending so the result never depends on the
order the store returned people in. People without outgoing edges take part
with a count, sum and average of 0.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Tuple

from .errors import EmptyGraph
from .models import Person, RelationKind, Relationship
from .snapshot import GraphSnapshot


@dataclass(frozen=True)
class RankedPerson:
    person: Person
    score: float
    connection_count: int


def influence_score(snapshot: GraphSnapshot, person_id: str) -> int:
    """Sum of importance over the person's outgoing edges."""
    return sum(e.importance for e in snapshot.outgoing(person_id))


def average_importance(snapshot: GraphSnapshot, person_id: str) -> float:
    rels = snapshot.outgoing(person_id)
    if not rels:
        return 0.0
    return sum(e.importance for e in rels) / len(rels)


def _argmax(snapshot: GraphSnapshot, key: Callable[[str], float], operation: str) -> Tuple[Person, float]:
    if len(snapshot) == 0:
        raise EmptyGraph(operation)
    best_id = min(snapshot.ids(), key=lambda pid: (-key(pid), pid))
    return snapshot.get(best_id), key(best_id)


def most_connected(snapshot: GraphSnapshot) -> RankedPerson:
    """Person with the most connections (store total, else outgoing edges)."""
    person, score = _argmax(snapshot, snapshot.connection_count, "most connected")
    return RankedPerson(person, float(score), snapshot.connection_count(person.id))


def most_influential(snapshot: GraphSnapshot) -> RankedPerson:
    """Person with the highest summed edge importance."""
    person, score = _argmax(snapshot, lambda pid: influence_score(snapshot, pid), "most influential")
    return RankedPerson(person, float(score), snapshot.connection_count(person.id))


def top_influential(snapshot: GraphSnapshot, k: int = 10) -> List[RankedPerson]:
    """Top ``k`` people by average (not summed) edge importance."""
    if k <= 0:
        return []
    scored = [(average_importance(snapshot, pid), pid) for pid in snapshot.ids()]
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [
        RankedPerson(snapshot.get(pid), avg, snapshot.connection_count(pid))
        for avg, pid in scored[:k]
    ]


def neighbor_ids(snapshot: GraphSnapshot, person_id: str, kind: RelationKind) -> List[str]:
    """Targets of the person's edges of ``kind``, first occurrence order."""
    kind = RelationKind.parse(kind)
    seen = {}
    for e in snapshot.outgoing(person_id):
        if e.kind is kind:
            seen.setdefault(e.target_id, None)
    return list(seen)


def neighbors_by_kind(snapshot: GraphSnapshot, person_id: str, kind: RelationKind) -> List[Person]:
    return [snapshot.get(pid) for pid in neighbor_ids(snapshot, person_id, kind)]


def mutual_neighbors(
    snapshot: GraphSnapshot,
    person_a: str,
    person_b: str,
    kind: RelationKind = RelationKind.FRIEND,
) -> List[Person]:
    """People that both ``person_a`` and ``person_b`` reach with a ``kind`` edge.

    A person has no mutual neighbors with themself. Results follow the order
    of ``person_a``'s edges.
    """
    a_ids = neighbor_ids(snapshot, person_a, kind)
    b_ids = neighbor_ids(snapshot, person_b, kind)
    if person_a == person_b:
        return []
    b_set = set(b_ids)
    return [snapshot.get(pid) for pid in a_ids if pid in b_set and pid not in (person_a, person_b)]


def edges_by_importance(snapshot: GraphSnapshot, person_id: str) -> List[Relationship]:
    """Outgoing edges, most important first."""
    return sorted(snapshot.outgoing(person_id), key=lambda e: -e.importance)
