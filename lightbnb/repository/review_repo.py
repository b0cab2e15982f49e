from __future__ import annotations

from sqlite3 import Connection


def insert_review(
    conn: Connection,
    guest_id: int,
    property_id: int,
    rating: int,
    reservation_id: int | None = None,
    message: str | None = None,
) -> int:
    cur = conn.execute(
        "INSERT INTO property_reviews(guest_id, property_id, reservation_id, rating, message) VALUES(?,?,?,?,?)",
        (guest_id, property_id, reservation_id, rating, message),
    )
    return int(cur.lastrowid)
