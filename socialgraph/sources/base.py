from __future__ import annotations

import abc

from ..filters import FilterSpec
from ..models import RelationKind
from ..schemas import NeighborList, PeopleResult, RankedPeople, SinglePerson


class RelationshipSource(abc.ABC):
    """The queries the view may send to the store.

    Implementations validate every response into the tagged result types and
    raise ``SourceError`` for transport or shape failures and ``NotFound``
    for unknown person ids.
    """

    @abc.abstractmethod
    async def fetch_all(self) -> PeopleResult:
        ...

    @abc.abstractmethod
    async def fetch_filtered(self, spec: FilterSpec) -> PeopleResult:
        """People with only their matching edges. May include people with none."""

    @abc.abstractmethod
    async def fetch_neighbors(self, person_id: str, kind: RelationKind) -> NeighborList:
        ...

    @abc.abstractmethod
    async def fetch_top_influential(self, limit: int = 10) -> RankedPeople:
        """Ranked by average edge importance, computed by the store."""

    @abc.abstractmethod
    async def fetch_most_connected(self) -> SinglePerson:
        ...

    @abc.abstractmethod
    async def fetch_mutual_neighbors(self, person_a: str, person_b: str) -> NeighborList:
        """Mutual FRIEND neighbors; ``counts`` holds the store's mutual-friend count."""

    async def aclose(self) -> None:
        pass
