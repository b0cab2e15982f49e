import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

SEEDS_DIR = str(_PROJECT_ROOT / "seeds")


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "lightbnb_test.db"
    # Point lightbnb to this temp DB
    os.environ["LIGHTBNB_DB_PATH"] = str(path)
    # Initialize schema
    schema = Path(_PROJECT_ROOT / "schema.sql").read_text(encoding="utf-8")
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(schema)
        conn.commit()
    finally:
        conn.close()
    return str(path)


@pytest.fixture()
def pool(tmp_db_path):
    from lightbnb.db import ConnectionPool
    p = ConnectionPool(tmp_db_path, max_size=4)
    yield p
    p.close()


@pytest.fixture()
def service(pool):
    from lightbnb.services.query_svc import QueryService
    return QueryService(pool)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Clean tables before each test for isolation
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("LIGHTBNB_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    tables = [
        "property_reviews",
        "reservations",
        "properties",
        "users",
        "operation_log",
        "sqlite_sequence",
    ]
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in tables:
            try:
                conn.execute(f"DELETE FROM {t}")
            except sqlite3.OperationalError:
                pass
        conn.commit()
    finally:
        conn.close()
    yield


@pytest.fixture()
def seeded(pool):
    """
    Small fixed dataset. Costs are cents.

      p1 Vancouver        4000  reviews 3,5 -> 4.0  owner alice
      p2 North Vancouver  6000  reviews 2   -> 2.0  owner alice
      p3 Toronto          9000  reviews 5   -> 5.0  owner bob
      p4 Savannah         5000  reviews 4,4 -> 4.0  owner bob
      p5 Vancouver       12000  no reviews          owner carol

    bob reserved p3, p1, p2, p5, p4.
    """
    from lightbnb.repository import user_repo, property_repo, reservation_repo, review_repo

    def _prop(owner_id, title, city, cost):
        return {
            "owner_id": owner_id, "title": title, "description": "desc",
            "thumbnail_photo_url": "http://x/t.jpg", "cover_photo_url": "http://x/c.jpg",
            "cost_per_night": cost, "street": "1 Main St", "city": city,
            "province": "BC", "post_code": "V5K", "country": "Canada",
            "parking_spaces": 1, "number_of_bathrooms": 1, "number_of_bedrooms": 2,
        }

    with pool.connection() as conn:
        alice = user_repo.insert_user(conn, "Alice", "Alice@Example.com", "hash-a")
        bob = user_repo.insert_user(conn, "Bob", "bob@example.com", "hash-b")
        carol = user_repo.insert_user(conn, "Carol", "carol@example.com", "hash-c")

        p1 = property_repo.insert_property(conn, _prop(alice, "Loft", "Vancouver", 4000))
        p2 = property_repo.insert_property(conn, _prop(alice, "Cabin", "North Vancouver", 6000))
        p3 = property_repo.insert_property(conn, _prop(bob, "Condo", "Toronto", 9000))
        p4 = property_repo.insert_property(conn, _prop(bob, "Cottage", "Savannah", 5000))
        p5 = property_repo.insert_property(conn, _prop(carol, "Villa", "Vancouver", 12000))

        for pid, rating in ((p1, 3), (p1, 5), (p2, 2), (p3, 5), (p4, 4), (p4, 4)):
            review_repo.insert_review(conn, carol, pid, rating)

        r1 = reservation_repo.insert_reservation(conn, bob, p3, "2021-05-01", "2021-05-04")
        r2 = reservation_repo.insert_reservation(conn, bob, p1, "2020-01-10", "2020-01-12")
        r3 = reservation_repo.insert_reservation(conn, bob, p2, "2022-03-03", "2022-03-09")
        r4 = reservation_repo.insert_reservation(conn, bob, p5, "2019-07-07", "2019-07-08")
        r5 = reservation_repo.insert_reservation(conn, bob, p4, "2023-01-01", "2023-01-05")

    return {
        "users": {"alice": alice, "bob": bob, "carol": carol},
        "properties": {"p1": p1, "p2": p2, "p3": p3, "p4": p4, "p5": p5},
        "reservations": {"r1": r1, "r2": r2, "r3": r3, "r4": r4, "r5": r5},
    }
