from __future__ import annotations

from sqlite3 import Connection
from typing import Any, Mapping, Optional

# Insertable columns, in statement order.
PROPERTY_FIELDS = (
    "owner_id",
    "title",
    "description",
    "thumbnail_photo_url",
    "cover_photo_url",
    "cost_per_night",
    "street",
    "city",
    "province",
    "post_code",
    "country",
    "parking_spaces",
    "number_of_bathrooms",
    "number_of_bedrooms",
)


def get_by_id(conn: Connection, property_id: int):
    return conn.execute("SELECT * FROM properties WHERE id = ?", (property_id,)).fetchone()


def insert_property(conn: Connection, prop: Mapping[str, Any]) -> int:
    cols = ", ".join(PROPERTY_FIELDS)
    marks = ", ".join(["?"] * len(PROPERTY_FIELDS))
    cur = conn.execute(
        f"INSERT INTO properties({cols}) VALUES({marks})",
        tuple(prop.get(f) for f in PROPERTY_FIELDS),
    )
    return int(cur.lastrowid)


def list_properties(
    conn: Connection,
    limit: int,
    city: Optional[str] = None,
    owner_id: Optional[int] = None,
    min_cost: Optional[int] = None,
    max_cost: Optional[int] = None,
    min_rating: Optional[float] = None,
    include_unreviewed: bool = False,
):
    """
    Properties with their average review rating, cheapest first.

    Costs are in cents. A filter applies when its argument is not None (city
    when non-empty). Row filters go into WHERE; min_rating filters the
    aggregate and therefore goes into HAVING. The city match is a plain
    substring test on casefolded text, so % and _ are not wildcards.
    """
    join = "LEFT JOIN" if include_unreviewed else "JOIN"
    sql = (
        "SELECT p.*, AVG(pr.rating) AS average_rating "
        "FROM properties p "
        f"{join} property_reviews pr ON p.id = pr.property_id"
    )
    where = []
    params: dict = {}
    if city:
        where.append("instr(casefold(p.city), :city) > 0")
        params["city"] = city.casefold()
    if owner_id is not None:
        where.append("p.owner_id = :owner_id")
        params["owner_id"] = owner_id
    if min_cost is not None:
        where.append("p.cost_per_night >= :min_cost")
        params["min_cost"] = min_cost
    if max_cost is not None:
        where.append("p.cost_per_night <= :max_cost")
        params["max_cost"] = max_cost
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " GROUP BY p.id"
    if min_rating is not None:
        sql += " HAVING AVG(pr.rating) >= :min_rating"
        params["min_rating"] = min_rating
    sql += " ORDER BY p.cost_per_night ASC, p.id ASC LIMIT :limit"
    params["limit"] = limit
    return conn.execute(sql, params).fetchall()
