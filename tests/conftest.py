"""Shared fixtures for the socialgraph test suite."""
import asyncio

import pytest
import kuzu
from fastapi.testclient import TestClient

from socialgraph import crud
from socialgraph.db import _init_schema
from socialgraph.errors import NotFound, SourceError
from socialgraph.filters import apply_filter
from socialgraph import analytics
from socialgraph.models import Person, PersonWithConnections, RelationKind, Relationship
from socialgraph.orchestrator import ViewController
from socialgraph.schemas import NeighborList, PeopleResult, RankedEntry, RankedPeople, SinglePerson
from socialgraph.snapshot import GraphSnapshot
from socialgraph.sources.base import RelationshipSource


def person(pid, name=None):
    return Person(id=pid, name=name or pid.upper(), email=f"{pid}@example.com")


def rel(src, dst, kind="FRIEND", frequency=5, importance=5):
    return Relationship(src, dst, RelationKind(kind), frequency, importance)


def both_ways(a, b, kind="FRIEND", frequency=5, importance=5):
    return [rel(a, b, kind, frequency, importance), rel(b, a, kind, frequency, importance)]


# ── Snapshots ──

@pytest.fixture
def example_snapshot():
    """P1->P2 (FRIEND, importance 8, frequency 3), P1->P3 (FAMILY, importance 2, frequency 5)."""
    return GraphSnapshot(
        [person("p1"), person("p2"), person("p3")],
        [rel("p1", "p2", "FRIEND", frequency=3, importance=8),
         rel("p1", "p3", "FAMILY", frequency=5, importance=2)],
    )


@pytest.fixture
def social_snapshot():
    """Bidirectional graph: ann and bob share friends cat and dan; eve is a loner."""
    edges = (
        both_ways("ann", "bob", "FRIEND", 4, 6)
        + both_ways("ann", "cat", "FRIEND", 7, 9)
        + both_ways("ann", "dan", "FRIEND", 2, 3)
        + both_ways("bob", "cat", "FRIEND", 5, 5)
        + both_ways("bob", "dan", "FRIEND", 8, 4)
        + both_ways("ann", "fay", "FAMILY", 9, 10)
        + both_ways("bob", "fay", "COLLEAGUE", 1, 2)
    )
    people = [person(p) for p in ("ann", "bob", "cat", "dan", "eve", "fay")]
    return GraphSnapshot(people, edges)


# ── In-memory source ──

class FakeSource(RelationshipSource):
    """Answers from a GraphSnapshot. ``gates`` hold calls until released; ``fail`` raises."""

    def __init__(self, snapshot: GraphSnapshot):
        self.snapshot = snapshot
        self.calls = []
        self.gates = {}
        self.fail = {}

    async def _enter(self, name):
        self.calls.append(name)
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        err = self.fail.get(name)
        if err is not None:
            raise err

    def hold(self, name):
        self.gates[name] = asyncio.Event()
        return self.gates[name]

    async def fetch_all(self):
        await self._enter("fetch_all")
        return PeopleResult(people=self.snapshot.rows())

    async def fetch_filtered(self, spec):
        await self._enter("fetch_filtered")
        # server-side filtering keeps people without matching edges
        view = apply_filter(self.snapshot, spec)
        return PeopleResult(people=view.snapshot.rows())

    async def fetch_neighbors(self, person_id, kind):
        await self._enter("fetch_neighbors")
        if person_id not in self.snapshot:
            raise NotFound(person_id)
        people = analytics.neighbors_by_kind(self.snapshot, person_id, kind)
        return NeighborList(people=people, counts=[self.snapshot.connection_count(p.id) for p in people])

    async def fetch_top_influential(self, limit=10):
        await self._enter("fetch_top_influential")
        return RankedPeople(entries=[
            RankedEntry(person=r.person, score=r.score, connection_count=r.connection_count)
            for r in analytics.top_influential(self.snapshot, limit)
        ])

    async def fetch_most_connected(self):
        await self._enter("fetch_most_connected")
        if len(self.snapshot) == 0:
            return SinglePerson()
        top = analytics.most_connected(self.snapshot)
        return SinglePerson(person=top.person, connection_count=top.connection_count)

    async def fetch_mutual_neighbors(self, person_a, person_b):
        await self._enter("fetch_mutual_neighbors")
        people = analytics.mutual_neighbors(self.snapshot, person_a, person_b)
        return NeighborList(people=people, counts=[len(people)] * len(people))


@pytest.fixture
def fake_source(social_snapshot):
    return FakeSource(social_snapshot)


@pytest.fixture
def controller(fake_source):
    return ViewController(fake_source)


# ── Database fixtures ──

@pytest.fixture
def db_path(tmp_path):
    """Temp directory for a fresh KuzuDB."""
    return tmp_path / "test_db"


@pytest.fixture
def db(db_path):
    database = kuzu.Database(str(db_path))
    _init_schema(database)
    return database


@pytest.fixture
def conn(db):
    return kuzu.Connection(db)


@pytest.fixture
def social_store(conn):
    """The social_snapshot graph written to KuzuDB."""
    for pid in ("ann", "bob", "cat", "dan", "eve", "fay"):
        crud.create_person(conn, pid.upper(), email=f"{pid}@example.com", person_id=pid)
    crud.create_relationship(conn, "ann", "bob", "FRIEND", 4, 6)
    crud.create_relationship(conn, "ann", "cat", "FRIEND", 7, 9)
    crud.create_relationship(conn, "ann", "dan", "FRIEND", 2, 3)
    crud.create_relationship(conn, "bob", "cat", "FRIEND", 5, 5)
    crud.create_relationship(conn, "bob", "dan", "FRIEND", 8, 4)
    crud.create_relationship(conn, "ann", "fay", "FAMILY", 9, 10)
    crud.create_relationship(conn, "bob", "fay", "COLLEAGUE", 1, 2)
    return conn


# ── FastAPI app fixtures ──

@pytest.fixture
def app_with_controller(controller):
    """FastAPI app with the controller dependency pointing at the fake source."""
    from socialgraph.main import app, get_controller

    async def override_get_controller():
        return controller

    app.dependency_overrides[get_controller] = override_get_controller
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_with_controller):
    with TestClient(app_with_controller, raise_server_exceptions=False) as c:
        yield c
