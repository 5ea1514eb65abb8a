"""Answers the view's queries straight from the embedded KuzuDB store."""
from __future__ import annotations

import logging
import threading
from typing import Dict, List

import kuzu
from fastapi.concurrency import run_in_threadpool

from ..errors import NotFound, SourceError
from ..filters import FilterSpec
from ..models import Person, PersonWithConnections, RelationKind, Relationship
from ..schemas import NeighborList, PeopleResult, RankedEntry, RankedPeople, SinglePerson
from .base import RelationshipSource

logger = logging.getLogger(__name__)

_COLS = "{v}.id, {v}.name, {v}.nickname, {v}.email, {v}.photo_url"


def _person(row, offset: int = 0) -> Person:
    return Person(
        id=row[offset],
        name=row[offset + 1],
        nickname=row[offset + 2] or None,
        email=row[offset + 3] or "",
        photo_url=row[offset + 4] or None,
    )


class KuzuSource(RelationshipSource):
    """Queries run on the threadpool; one connection, one query at a time."""

    def __init__(self, conn: kuzu.Connection):
        self.conn = conn
        self._lock = threading.Lock()

    def _rows(self, query: str, params: dict | None = None) -> list:
        with self._lock:
            try:
                result = self.conn.execute(query, params or {})
            except RuntimeError as e:
                logger.warning("Store query failed: %s", e)
                raise SourceError(f"Store query failed: {e}") from e
            rows = []
            while result.has_next():
                rows.append(result.get_next())
        return rows

    async def _query(self, query: str, params: dict | None = None) -> list:
        return await run_in_threadpool(self._rows, query, params)

    async def _require(self, *person_ids: str):
        for pid in person_ids:
            if not await self._query("MATCH (p:Person) WHERE p.id = $id RETURN p.id", {"id": pid}):
                raise NotFound(pid)

    async def _people(self) -> List[Person]:
        return [_person(r) for r in await self._query(f"MATCH (p:Person) RETURN {_COLS.format(v='p')} ORDER BY p.id")]

    def _assemble(self, people: List[Person], edge_rows: list) -> PeopleResult:
        by_source: Dict[str, List[Relationship]] = {p.id: [] for p in people}
        for src, dst, status, frequency, importance in edge_rows:
            try:
                rel = Relationship(src, dst, status, frequency, importance)
            except ValueError:
                logger.warning("Skipping relationship %s -> %s with unknown status %r", src, dst, status)
                continue
            by_source.setdefault(src, []).append(rel)
        return PeopleResult(people=[
            PersonWithConnections(person=p, edges=tuple(by_source[p.id]), total_count=len(by_source[p.id]))
            for p in people
        ])

    async def fetch_all(self) -> PeopleResult:
        edges = await self._query(
            "MATCH (a:Person)-[r:HAS_RELATIONSHIP]->(b:Person) "
            "RETURN a.id, b.id, r.status, r.frequency, r.importance"
        )
        return self._assemble(await self._people(), edges)

    async def fetch_filtered(self, spec: FilterSpec) -> PeopleResult:
        people = await self._people()
        if not spec.kinds:
            return self._assemble(people, [])
        edges = await self._query(
            "MATCH (a:Person)-[r:HAS_RELATIONSHIP]->(b:Person) "
            "WHERE r.frequency >= $fmin AND r.frequency <= $fmax "
            "AND r.importance >= $imin AND r.importance <= $imax "
            "AND list_contains($statuses, r.status) "
            "RETURN a.id, b.id, r.status, r.frequency, r.importance",
            {
                "fmin": spec.frequency_range[0], "fmax": spec.frequency_range[1],
                "imin": spec.importance_range[0], "imax": spec.importance_range[1],
                "statuses": sorted(k.value for k in spec.kinds),
            }
        )
        return self._assemble(people, edges)

    async def fetch_neighbors(self, person_id: str, kind: RelationKind) -> NeighborList:
        kind = RelationKind.parse(kind)
        await self._require(person_id)
        rows = await self._query(
            "MATCH (a:Person)-[r:HAS_RELATIONSHIP]->(b:Person) "
            "WHERE a.id = $id AND r.status = $status "
            "WITH DISTINCT b "
            "OPTIONAL MATCH (b)-[x:HAS_RELATIONSHIP]->(:Person) "
            f"RETURN {_COLS.format(v='b')}, count(x) ORDER BY b.id",
            {"id": person_id, "status": kind.value}
        )
        return NeighborList(people=[_person(r) for r in rows], counts=[int(r[5]) for r in rows])

    async def fetch_top_influential(self, limit: int = 10) -> RankedPeople:
        if limit <= 0:
            return RankedPeople()
        rows = await self._query(
            "MATCH (p:Person)-[r:HAS_RELATIONSHIP]->(:Person) "
            f"RETURN {_COLS.format(v='p')}, avg(r.importance) AS avg_importance, count(r) AS n "
            f"ORDER BY avg_importance DESC, p.id ASC LIMIT {int(limit)}"
        )
        return RankedPeople(entries=[
            RankedEntry(person=_person(r), score=float(r[5]), connection_count=int(r[6])) for r in rows
        ])

    async def fetch_most_connected(self) -> SinglePerson:
        rows = await self._query(
            "MATCH (p:Person)-[r:HAS_RELATIONSHIP]->(:Person) "
            f"RETURN {_COLS.format(v='p')}, count(r) AS n "
            "ORDER BY n DESC, p.id ASC LIMIT 1"
        )
        if not rows:
            return SinglePerson()
        return SinglePerson(person=_person(rows[0]), connection_count=int(rows[0][5]))

    async def fetch_mutual_neighbors(self, person_a: str, person_b: str) -> NeighborList:
        await self._require(person_a, person_b)
        if person_a == person_b:
            return NeighborList()
        rows = await self._query(
            "MATCH (a:Person)-[r1:HAS_RELATIONSHIP]->(m:Person)<-[r2:HAS_RELATIONSHIP]-(b:Person) "
            "WHERE a.id = $a AND b.id = $b AND r1.status = 'FRIEND' AND r2.status = 'FRIEND' "
            "AND m.id <> $a AND m.id <> $b "
            f"RETURN DISTINCT {_COLS.format(v='m')} ORDER BY m.id",
            {"a": person_a, "b": person_b}
        )
        people = [_person(r) for r in rows]
        return NeighborList(people=people, counts=[len(people)] * len(people))
