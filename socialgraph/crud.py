"""Writes and simple reads against the KuzuDB relationship store."""
import uuid
import kuzu

from .models import RelationKind, clamp_weight

_PERSON_COLS = "p.id, p.name, p.nickname, p.email, p.photo_url"


def _row_to_person(row) -> dict:
    return {
        "id": row[0],
        "name": row[1],
        "nickname": row[2] or None,
        "email": row[3] or "",
        "photo_url": row[4] or None,
    }


def create_person(conn: kuzu.Connection, name: str, email: str = "", nickname: str | None = None,
                  photo_url: str | None = None, person_id: str | None = None) -> dict:
    pid = person_id or str(uuid.uuid4())
    conn.execute(
        "CREATE (p:Person {id: $id, name: $name, nickname: $nick, email: $email, photo_url: $photo})",
        {"id": pid, "name": name, "nick": nickname or "", "email": email or "", "photo": photo_url or ""}
    )
    return {"id": pid, "name": name, "nickname": nickname, "email": email or "", "photo_url": photo_url}


def get_person(conn: kuzu.Connection, person_id: str) -> dict | None:
    result = conn.execute(
        f"MATCH (p:Person) WHERE p.id = $id RETURN {_PERSON_COLS}",
        {"id": person_id}
    )
    if result.has_next():
        return _row_to_person(result.get_next())
    return None


def list_people(conn: kuzu.Connection) -> list[dict]:
    result = conn.execute(f"MATCH (p:Person) RETURN {_PERSON_COLS} ORDER BY p.name, p.id")
    people = []
    while result.has_next():
        people.append(_row_to_person(result.get_next()))
    return people


def create_relationship(conn: kuzu.Connection, from_id: str, to_id: str, kind: str,
                        frequency: int, importance: int, bidirectional: bool = True) -> dict:
    """Create a relationship; by default both directions with the same properties."""
    rk = RelationKind.parse(kind)
    if from_id == to_id:
        raise ValueError("A person cannot have a relationship with themself")
    for pid in (from_id, to_id):
        if get_person(conn, pid) is None:
            raise ValueError(f"Person not found: {pid}")

    props = {"status": rk.value, "frequency": clamp_weight(frequency), "importance": clamp_weight(importance)}
    pairs = [(from_id, to_id), (to_id, from_id)] if bidirectional else [(from_id, to_id)]
    for a, b in pairs:
        conn.execute(
            "MATCH (a:Person), (b:Person) WHERE a.id = $a AND b.id = $b "
            "CREATE (a)-[:HAS_RELATIONSHIP {status: $status, frequency: $frequency, importance: $importance}]->(b)",
            {"a": a, "b": b, **props}
        )
    return {"from_person_id": from_id, "to_person_id": to_id, "kind": rk.value, **props}


def list_relationships(conn: kuzu.Connection) -> list[dict]:
    result = conn.execute(
        "MATCH (a:Person)-[r:HAS_RELATIONSHIP]->(b:Person) "
        "RETURN a.id, b.id, r.status, r.frequency, r.importance"
    )
    rels = []
    while result.has_next():
        row = result.get_next()
        rels.append({"from_person_id": row[0], "to_person_id": row[1], "kind": row[2],
                     "frequency": row[3], "importance": row[4]})
    return rels


def count_people(conn: kuzu.Connection) -> int:
    result = conn.execute("MATCH (p:Person) RETURN count(*)")
    return result.get_next()[0] if result.has_next() else 0


def count_relationships(conn: kuzu.Connection) -> int:
    result = conn.execute("MATCH ()-[r:HAS_RELATIONSHIP]->() RETURN count(*)")
    return result.get_next()[0] if result.has_next() else 0


def clear_all(conn: kuzu.Connection):
    conn.execute("MATCH (p:Person) DETACH DELETE p")
