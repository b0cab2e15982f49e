from __future__ import annotations

from sqlite3 import Connection

_RESERVATION_COLUMNS = (
    "r.id AS id, r.guest_id, r.property_id, r.start_date, r.end_date, "
    "p.owner_id, p.title, p.description, p.thumbnail_photo_url, p.cover_photo_url, "
    "p.cost_per_night, p.parking_spaces, p.number_of_bathrooms, p.number_of_bedrooms, "
    "p.country, p.street, p.city, p.province, p.post_code, p.active"
)


def list_for_guest(conn: Connection, guest_id: int, limit: int, include_unreviewed: bool = False):
    """Reservations of one guest with their property and its average rating.

    Reviews are inner joined unless include_unreviewed is set, so reservations
    on properties without any review are left out by default.
    """
    join = "LEFT JOIN" if include_unreviewed else "JOIN"
    sql = (
        f"SELECT {_RESERVATION_COLUMNS}, AVG(pr.rating) AS average_rating "
        "FROM reservations r "
        "JOIN properties p ON r.property_id = p.id "
        f"{join} property_reviews pr ON p.id = pr.property_id "
        "WHERE r.guest_id = ? "
        "GROUP BY r.id, p.id "
        "ORDER BY r.start_date ASC, r.id ASC "
        "LIMIT ?"
    )
    return conn.execute(sql, (guest_id, limit)).fetchall()


def insert_reservation(conn: Connection, guest_id: int, property_id: int, start_date: str, end_date: str) -> int:
    cur = conn.execute(
        "INSERT INTO reservations(guest_id, property_id, start_date, end_date) VALUES(?,?,?,?)",
        (guest_id, property_id, start_date, end_date),
    )
    return int(cur.lastrowid)
