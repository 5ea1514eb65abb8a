"""CSV import of people and relationships into the KuzuDB store."""
from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import kuzu
import pandas as pd

from . import crud
from .db import connect
from .models import Person, Relationship
from .snapshot import GraphSnapshot

logger = logging.getLogger(__name__)

PEOPLE_COLUMNS = {"id", "name"}
RELATIONSHIP_COLUMNS = {"from", "to", "kind", "frequency", "importance"}


def _read(path_or_buffer, required: set) -> pd.DataFrame:
    """Read a CSV (``#`` comments allowed) and check its required columns."""
    df = pd.read_csv(path_or_buffer, comment="#", dtype=str, keep_default_na=False)
    df.columns = [c.strip().lower() for c in df.columns]
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {sorted(missing)}")
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df


def read_people(path_or_buffer) -> List[Person]:
    df = _read(path_or_buffer, PEOPLE_COLUMNS)
    people = []
    for _, r in df.iterrows():
        if not r["id"]:
            continue
        people.append(Person(
            id=r["id"],
            name=r["name"] or r["id"],
            email=r.get("email", "") or "",
            nickname=r.get("nickname") or None,
            photo_url=r.get("photo_url") or None,
        ))
    return people


def _parse_relationships(path_or_buffer) -> tuple[List[tuple[int, Relationship]], List[dict]]:
    df = _read(path_or_buffer, RELATIONSHIP_COLUMNS)
    rows, errors = [], []
    for line, (_, r) in enumerate(df.iterrows(), start=2):
        try:
            rel = Relationship(r["from"], r["to"], r["kind"], int(r["frequency"]), int(r["importance"]))
        except ValueError as e:
            errors.append({"line": line, "type": "invalid", "message": str(e)})
            continue
        rows.append((line, rel))
    return rows, errors


def read_relationships(path_or_buffer) -> tuple[List[Relationship], List[dict]]:
    """Parse relationship rows. Bad rows are reported, not imported."""
    rows, errors = _parse_relationships(path_or_buffer)
    return [rel for _, rel in rows], errors


def read_snapshot(people_csv, relationships_csv) -> GraphSnapshot:
    rels, errors = read_relationships(relationships_csv)
    for err in errors:
        logger.warning("Line %(line)d: %(message)s", err)
    return GraphSnapshot(read_people(people_csv), rels)


def import_csv(conn: kuzu.Connection, people_csv, relationships_csv, clear_first: bool = True) -> dict:
    """Import both files. Relationships are stored as given (one direction per row)."""
    people = read_people(people_csv)
    rows, errors = _parse_relationships(relationships_csv)
    if not people:
        return {"people": 0, "relationships": 0,
                "errors": [{"line": 0, "type": "empty", "message": "No people rows found"}]}

    if clear_first:
        crud.clear_all(conn)
    for p in people:
        crud.create_person(conn, p.name, email=p.email, nickname=p.nickname,
                           photo_url=p.photo_url, person_id=p.id)

    known = {p.id for p in people}
    rel_count = 0
    for line, rel in rows:
        missing = [pid for pid in (rel.source_id, rel.target_id) if pid not in known]
        if missing:
            errors.append({"line": line, "type": "dangling",
                           "message": f"Unknown person {missing[0]} in {rel.source_id} -> {rel.target_id}"})
            continue
        if rel.source_id == rel.target_id:
            errors.append({"line": line, "type": "self", "message": f"Self relationship on {rel.source_id}"})
            continue
        crud.create_relationship(conn, rel.source_id, rel.target_id, rel.kind.value,
                                 rel.frequency, rel.importance, bidirectional=False)
        rel_count += 1

    return {"people": len(people), "relationships": rel_count, "errors": errors}


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Import people and relationships from CSV files")
    parser.add_argument("people", help="CSV with id,name[,email,nickname,photo_url]")
    parser.add_argument("relationships", help="CSV with from,to,kind,frequency,importance")
    parser.add_argument("--keep", action="store_true", help="Do not clear existing data first")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    result = import_csv(connect(), args.people, args.relationships, clear_first=not args.keep)
    for err in result["errors"]:
        print(f"line {err['line']}: {err['type']}: {err['message']}")
    print(f"Imported {result['people']} people and {result['relationships']} relationships")
    return 1 if result["people"] == 0 else 0


if __name__ == "__main__":
    raise SystemExit(main())
