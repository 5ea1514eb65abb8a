"""Fill the KuzuDB store with a reproducible random social graph."""
from __future__ import annotations

import argparse
import logging
import random

import kuzu

from . import crud
from .db import connect
from .models import RelationKind

logger = logging.getLogger(__name__)

FIRST_NAMES = [
    "Ada", "Bruno", "Clara", "Diego", "Elena", "Felix", "Greta", "Hugo", "Iris", "Jonas",
    "Kira", "Luis", "Maya", "Nico", "Olga", "Pablo", "Quinn", "Rosa", "Sami", "Tara",
    "Uma", "Victor", "Wendy", "Xavier", "Yara", "Zeno",
]
NICKNAMES = [
    "Adi", "Bru", "Clo", "Dee", "Lena", "Fex", "Gigi", "Hu", "Isa", "Jo",
    "Ki", "Lu", "May", "Nic", "Ollie", "Pab", "Q", "Ro", "Sam", "Tat",
    "Umi", "Vic", "Wen", "Xavi", "Ya", "Zee",
]


def generate(count: int, rng: random.Random, max_partners: int = 4):
    """Return (people, pairs). Each pair is (i, j, kind, frequency, importance), i != j."""
    people = []
    for i in range(count):
        n = i + 1
        people.append({
            "person_id": f"p{n}",
            "name": f"{FIRST_NAMES[i % len(FIRST_NAMES)]} {n}",
            "nickname": f"{NICKNAMES[i % len(NICKNAMES)]}_{n}",
            "email": f"user{n}@example.com",
            "photo_url": f"https://i.pravatar.cc/150?img={i % 70}",
        })

    pairs = []
    if count < 2:
        return people, pairs
    kinds = list(RelationKind)
    for i in range(count):
        wanted = min(rng.randint(1, max_partners), count - 1)
        partners: set[int] = set()
        while len(partners) < wanted:
            j = rng.randrange(count)
            if j != i:
                partners.add(j)
        for j in sorted(partners):
            pairs.append((i, j, rng.choice(kinds), rng.randint(1, 10), rng.randint(1, 10)))
    return people, pairs


def seed(conn: kuzu.Connection, count: int = 1000, seed_value: int = 42, clear_first: bool = True) -> dict:
    rng = random.Random(seed_value)
    people, pairs = generate(count, rng)
    if clear_first:
        crud.clear_all(conn)

    for p in people:
        crud.create_person(conn, **p)
    for i, j, kind, frequency, importance in pairs:
        crud.create_relationship(conn, people[i]["person_id"], people[j]["person_id"], kind.value,
                                 frequency, importance, bidirectional=True)

    summary = {"people": len(people), "relationships": 2 * len(pairs)}
    logger.info("Seeded %(people)d people and %(relationships)d relationships", summary)
    return summary


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--count", type=int, default=1000, help="Number of people to create")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--keep", action="store_true", help="Do not clear existing data first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    conn = connect()
    summary = seed(conn, count=args.count, seed_value=args.seed, clear_first=not args.keep)
    print(f"Created {summary['people']} people and {summary['relationships']} relationships")


if __name__ == "__main__":
    main()
