"""Point-in-time, read-only view of people and their outgoing relationships."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .errors import DanglingReference, NotFound
from .models import Person, PersonWithConnections, Relationship

logger = logging.getLogger(__name__)


class GraphSnapshot:
    """Read-only lookups over one consistent read of the store.

    People keep the order the store returned them in. Edges whose source or
    target is missing are skipped and kept in ``dangling``; pass
    ``strict=True`` to raise ``DanglingReference`` instead.
    """

    def __init__(
        self,
        people: Iterable[Person],
        edges: Iterable[Relationship] = (),
        totals: Optional[Mapping[str, int]] = None,
        strict: bool = False,
    ):
        self._people: Dict[str, Person] = {}
        for p in people:
            if p.id in self._people:
                logger.warning("Duplicate person id %s in snapshot, keeping the first", p.id)
                continue
            self._people[p.id] = p

        outgoing: Dict[str, List[Relationship]] = {pid: [] for pid in self._people}
        dangling: List[DanglingReference] = []
        for e in edges:
            missing = next((pid for pid in (e.source_id, e.target_id) if pid not in self._people), None)
            if missing is not None:
                err = DanglingReference(e.source_id, e.target_id, missing)
                if strict:
                    raise err
                logger.warning("Skipping relationship: %s", err)
                dangling.append(err)
                continue
            outgoing[e.source_id].append(e)

        self._outgoing: Dict[str, Tuple[Relationship, ...]] = {
            pid: tuple(rels) for pid, rels in outgoing.items()
        }
        self._totals: Dict[str, int] = {
            pid: int(n) for pid, n in (totals or {}).items() if pid in self._people
        }
        self.dangling: Tuple[DanglingReference, ...] = tuple(dangling)

    @classmethod
    def from_connections(cls, rows: Iterable[PersonWithConnections], strict: bool = False) -> "GraphSnapshot":
        rows = list(rows)
        edges = [e for row in rows for e in row.edges]
        totals = {row.id: row.total_count for row in rows if row.total_count is not None}
        return cls((row.person for row in rows), edges, totals=totals, strict=strict)

    @classmethod
    def empty(cls) -> "GraphSnapshot":
        return cls(())

    # ── lookups ──

    def __len__(self) -> int:
        return len(self._people)

    def __contains__(self, person_id) -> bool:
        return person_id in self._people

    def __iter__(self) -> Iterator[Person]:
        return iter(self._people.values())

    def ids(self) -> List[str]:
        return list(self._people)

    def people(self) -> List[Person]:
        return list(self._people.values())

    def get(self, person_id: str) -> Person:
        try:
            return self._people[person_id]
        except KeyError:
            raise NotFound(person_id) from None

    def outgoing(self, person_id: str) -> Tuple[Relationship, ...]:
        if person_id not in self._people:
            raise NotFound(person_id)
        return self._outgoing[person_id]

    def edges(self) -> Iterator[Relationship]:
        for rels in self._outgoing.values():
            yield from rels

    def edge_count(self, person_id: str) -> int:
        return len(self.outgoing(person_id))

    def connection_count(self, person_id: str) -> int:
        """Store-reported total when known, else the outgoing edge count."""
        n = self.edge_count(person_id)
        return self._totals.get(person_id, n)

    def with_connections(self, person_id: str) -> PersonWithConnections:
        return PersonWithConnections(
            person=self.get(person_id),
            edges=self.outgoing(person_id),
            total_count=self.connection_count(person_id),
        )

    def rows(self) -> List[PersonWithConnections]:
        return [self.with_connections(pid) for pid in self._people]

    def __eq__(self, other) -> bool:
        if not isinstance(other, GraphSnapshot):
            return NotImplemented
        return (
            list(self._people.items()) == list(other._people.items())
            and self._outgoing == other._outgoing
            and self._totals == other._totals
        )

    def __repr__(self) -> str:
        return f"GraphSnapshot(people={len(self._people)}, edges={sum(map(len, self._outgoing.values()))})"
