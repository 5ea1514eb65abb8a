"""Boundary shapes: collaborator responses in, HTTP bodies out.

Each collaborator query has its own result type so callers never have to
guess which fields a response carries.
"""
from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Person, PersonWithConnections, RelationKind, Relationship, clamp_weight


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Collaborator payloads ──

class EdgeProperties(_Wire):
    status: RelationKind
    importance: int
    frequency: int = Field(alias="frecuency")

    @field_validator("importance", "frequency")
    @classmethod
    def clamp(cls, v):
        return clamp_weight(v)


class EdgeNode(_Wire):
    id: str


class ConnectionEdge(_Wire):
    node: EdgeNode
    properties: Optional[EdgeProperties] = None


class Connection(_Wire):
    edges: List[ConnectionEdge] = []
    total_count: Optional[int] = Field(default=None, alias="totalCount")


class PersonPayload(_Wire):
    id: str
    name: str
    nickname: Optional[str] = None
    email: str = ""
    photo_url: Optional[str] = Field(default=None, alias="photoUrl")
    relationships_connection: Optional[Connection] = Field(default=None, alias="relationshipsConnection")

    def to_person(self) -> Person:
        return Person(
            id=self.id, name=self.name, email=self.email or "",
            nickname=self.nickname, photo_url=self.photo_url,
        )

    @property
    def total_count(self) -> Optional[int]:
        conn = self.relationships_connection
        return conn.total_count if conn else None

    def to_connections(self) -> PersonWithConnections:
        conn = self.relationships_connection
        edges = []
        if conn:
            for edge in conn.edges:
                if edge.properties is None:
                    continue
                edges.append(Relationship(
                    source_id=self.id,
                    target_id=edge.node.id,
                    kind=edge.properties.status,
                    frequency=edge.properties.frequency,
                    importance=edge.properties.importance,
                ))
        return PersonWithConnections(
            person=self.to_person(), edges=tuple(edges), total_count=self.total_count,
        )


class InfluentialPayload(PersonPayload):
    average_importance: float = Field(default=0.0, alias="averageImportance")


class MutualFriendPayload(PersonPayload):
    mutual_friends_count: int = Field(default=0, alias="mutualFriendsCount")


# ── Tagged results ──

class RankedEntry(_Wire):
    person: Person
    score: float
    connection_count: int = 0


class PeopleResult(_Wire):
    kind: Literal["people"] = "people"
    people: List[PersonWithConnections] = []


class NeighborList(_Wire):
    kind: Literal["neighbors"] = "neighbors"
    people: List[Person] = []
    counts: List[int] = []


class RankedPeople(_Wire):
    kind: Literal["ranked"] = "ranked"
    entries: List[RankedEntry] = []


class SinglePerson(_Wire):
    kind: Literal["single"] = "single"
    person: Optional[Person] = None
    connection_count: int = 0


# ── HTTP bodies ──

class FilterIn(_Wire):
    kinds: List[RelationKind] = list(RelationKind)
    frequency_range: Tuple[int, int] = (1, 10)
    importance_range: Tuple[int, int] = (1, 10)
    prune_isolated: bool = True


class PersonOut(_Wire):
    id: str
    name: str
    nickname: Optional[str] = None
    email: str = ""
    photo_url: Optional[str] = None
    connection_count: int = 0


class RelationshipOut(_Wire):
    source_id: str
    target_id: str
    kind: RelationKind
    frequency: int
    importance: int


class ReportOut(_Wire):
    report: str
    people: List[PersonOut] = []
    scores: List[float] = []
    discrepancies: List[str] = []
