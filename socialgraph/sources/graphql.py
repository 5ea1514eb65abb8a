"""Client for the generated GraphQL API in front of the relationship store."""
from __future__ import annotations

import logging
import os
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from ..errors import NotFound, SourceError
from ..filters import FilterSpec
from ..models import RelationKind
from ..schemas import (
    InfluentialPayload, MutualFriendPayload, NeighborList, PeopleResult,
    PersonPayload, RankedEntry, RankedPeople, SinglePerson,
)
from .base import RelationshipSource

logger = logging.getLogger(__name__)

GRAPHQL_URL = os.environ.get("GRAPHQL_URL", "http://localhost:4000/graphql")
GRAPHQL_TIMEOUT = float(os.environ.get("GRAPHQL_TIMEOUT", "15"))

_PERSON_FIELDS = "id name nickname email photoUrl"
_EDGE_FIELDS = """
    edges {
      node { id }
      properties { status importance frecuency }
    }
    totalCount
"""

ALL_PEOPLE = f"""
query {{
  people {{
    {_PERSON_FIELDS}
    relationshipsConnection {{ {_EDGE_FIELDS} }}
  }}
}}
"""

FILTERED_PEOPLE = f"""
query GetPeopleWithFilters(
  $frequencyMin: Int!
  $frequencyMax: Int!
  $importanceMin: Int!
  $importanceMax: Int!
  $statuses: [RelationshipStatus!]!
) {{
  people {{
    {_PERSON_FIELDS}
    relationshipsConnection(
      where: {{
        edge: {{
          AND: [
            {{ frecuency_GTE: $frequencyMin }}
            {{ frecuency_LTE: $frequencyMax }}
            {{ importance_GTE: $importanceMin }}
            {{ importance_LTE: $importanceMax }}
            {{ status_IN: $statuses }}
          ]
        }}
      }}
    ) {{ {_EDGE_FIELDS} }}
  }}
}}
"""

NEIGHBORS_BY_KIND = f"""
query GetNeighbors($personId: ID!, $status: RelationshipStatus!) {{
  people(where: {{ id_EQ: $personId }}) {{
    relationshipsConnection(where: {{ edge: {{ status_EQ: $status }} }}) {{
      edges {{
        node {{
          {_PERSON_FIELDS}
          relationshipsConnection {{ totalCount }}
        }}
      }}
    }}
  }}
}}
"""

TOP_INFLUENTIAL = f"""
query GetInfluentialPeople($limit: Int!) {{
  influentialPeople(limit: $limit) {{
    {_PERSON_FIELDS}
    averageImportance
    relationshipsConnection {{ totalCount }}
  }}
}}
"""

MOST_CONNECTED = f"""
query GetMostConnectedPerson {{
  mostConnectedPerson {{
    {_PERSON_FIELDS}
    relationshipsConnection {{ totalCount }}
  }}
}}
"""

MUTUAL_FRIENDS = """
query GetMutualFriends($personId1: ID!, $personId2: ID!) {
  mutualFriendsQuery(personId1: $personId1, personId2: $personId2) {
    id name nickname email mutualFriendsCount
  }
}
"""

_people_adapter = TypeAdapter(List[PersonPayload])
_influential_adapter = TypeAdapter(List[InfluentialPayload])
_mutual_adapter = TypeAdapter(List[MutualFriendPayload])
_single_adapter = TypeAdapter(Optional[PersonPayload])


class GraphQLSource(RelationshipSource):
    def __init__(self, url: str = GRAPHQL_URL, timeout: float = GRAPHQL_TIMEOUT,
                 client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _request(self, query: str, variables: Optional[dict] = None) -> dict:
        try:
            response = await self._client.post(self.url, json={"query": query, "variables": variables or {}})
        except httpx.HTTPError as e:
            logger.warning("GraphQL request to %s failed: %s", self.url, e)
            raise SourceError(f"Could not reach {self.url}: {e}") from e

        if response.status_code != 200:
            raise SourceError(f"GraphQL endpoint returned HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as e:
            raise SourceError("GraphQL endpoint returned invalid JSON") from e

        if payload.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in payload["errors"])
            raise SourceError(f"GraphQL error: {messages}")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise SourceError("GraphQL response has no data")
        return data

    @staticmethod
    def _validate(adapter: TypeAdapter, value):
        try:
            return adapter.validate_python(value)
        except ValidationError as e:
            raise SourceError(f"Unexpected response shape: {e}") from e

    async def fetch_all(self) -> PeopleResult:
        data = await self._request(ALL_PEOPLE)
        people = self._validate(_people_adapter, data.get("people"))
        return PeopleResult(people=[p.to_connections() for p in people])

    async def fetch_filtered(self, spec: FilterSpec) -> PeopleResult:
        variables = {
            "frequencyMin": spec.frequency_range[0],
            "frequencyMax": spec.frequency_range[1],
            "importanceMin": spec.importance_range[0],
            "importanceMax": spec.importance_range[1],
            "statuses": sorted(k.value for k in spec.kinds),
        }
        data = await self._request(FILTERED_PEOPLE, variables)
        people = self._validate(_people_adapter, data.get("people"))
        return PeopleResult(people=[p.to_connections() for p in people])

    async def fetch_neighbors(self, person_id: str, kind: RelationKind) -> NeighborList:
        kind = RelationKind.parse(kind)
        data = await self._request(NEIGHBORS_BY_KIND, {"personId": person_id, "status": kind.value})
        rows = data.get("people") or []
        if not rows:
            raise NotFound(person_id)
        edges = ((rows[0] or {}).get("relationshipsConnection") or {}).get("edges") or []
        people = self._validate(_people_adapter, [edge.get("node") for edge in edges])
        return NeighborList(
            people=[p.to_person() for p in people],
            counts=[p.total_count or 0 for p in people],
        )

    async def fetch_top_influential(self, limit: int = 10) -> RankedPeople:
        if limit <= 0:
            return RankedPeople()
        data = await self._request(TOP_INFLUENTIAL, {"limit": int(limit)})
        people = self._validate(_influential_adapter, data.get("influentialPeople"))
        return RankedPeople(entries=[
            RankedEntry(person=p.to_person(), score=p.average_importance, connection_count=p.total_count or 0)
            for p in people[:limit]
        ])

    async def fetch_most_connected(self) -> SinglePerson:
        data = await self._request(MOST_CONNECTED)
        person = self._validate(_single_adapter, data.get("mostConnectedPerson"))
        if person is None:
            return SinglePerson()
        return SinglePerson(person=person.to_person(), connection_count=person.total_count or 0)

    async def fetch_mutual_neighbors(self, person_a: str, person_b: str) -> NeighborList:
        if person_a == person_b:
            return NeighborList()
        data = await self._request(MUTUAL_FRIENDS, {"personId1": person_a, "personId2": person_b})
        people = self._validate(_mutual_adapter, data.get("mutualFriendsQuery"))
        return NeighborList(
            people=[p.to_person() for p in people],
            counts=[p.mutual_friends_count for p in people],
        )

    async def aclose(self) -> None:
        await self._client.aclose()
