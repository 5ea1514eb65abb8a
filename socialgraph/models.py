"""People and typed, weighted relationship edges."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Tuple

WEIGHT_MIN = 1
WEIGHT_MAX = 10


class RelationKind(enum.Enum):
    FRIEND = "FRIEND"
    FAMILY = "FAMILY"
    COLLEAGUE = "COLLEAGUE"

    @classmethod
    def parse(cls, value) -> "RelationKind":
        """Accept a RelationKind or its name; anything else is a ValueError."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


ALL_KINDS = frozenset(RelationKind)


def clamp_weight(value) -> int:
    """Clamp a frequency/importance value into [1, 10]."""
    return max(WEIGHT_MIN, min(WEIGHT_MAX, int(value)))


@dataclass(frozen=True)
class Person:
    id: str
    name: str
    email: str = ""
    nickname: Optional[str] = None
    photo_url: Optional[str] = None


@dataclass(frozen=True)
class Relationship:
    source_id: str
    target_id: str
    kind: RelationKind
    frequency: int
    importance: int

    def __post_init__(self):
        # Weights never leave [1, 10]; unknown kinds are rejected by RelationKind.
        object.__setattr__(self, "kind", RelationKind.parse(self.kind))
        object.__setattr__(self, "frequency", clamp_weight(self.frequency))
        object.__setattr__(self, "importance", clamp_weight(self.importance))


@dataclass(frozen=True)
class PersonWithConnections:
    """A person, their outgoing edges and the connection count.

    ``total_count`` comes from the store for unfiltered reads and is the
    retained edge count once a filter has been applied.
    """
    person: Person
    edges: Tuple[Relationship, ...] = field(default_factory=tuple)
    total_count: Optional[int] = None

    @property
    def id(self) -> str:
        return self.person.id

    @property
    def connection_count(self) -> int:
        if self.total_count is None:
            return len(self.edges)
        return self.total_count
