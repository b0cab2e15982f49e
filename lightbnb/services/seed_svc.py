# lightbnb/services/seed_svc.py
from __future__ import annotations

import logging
import os

import pandas as pd

from ..db import ConnectionPool, get_pool
from ..logs import LogContext
from ..repository import property_repo, reservation_repo, review_repo, user_repo

logger = logging.getLogger(__name__)

# load order follows foreign keys
SEED_FILES = ("users.csv", "properties.csv", "reservations.csv", "property_reviews.csv")


def _none_if_nan(v):
    return None if pd.isna(v) else v


def _records(path: str) -> list[dict]:
    df = pd.read_csv(path)
    return [{k: _none_if_nan(v) for k, v in r.items()} for r in df.to_dict(orient="records")]


def seed_load(seed_dir: str, log: LogContext, pool: ConnectionPool | None = None) -> dict:
    """Load seed CSVs from seed_dir; files that are missing are skipped.

    Expected columns:
      users.csv: name, email, password
      properties.csv: owner_id, title, ..., cost_per_night (cents), ...
      reservations.csv: guest_id, property_id, start_date, end_date
      property_reviews.csv: guest_id, property_id, reservation_id, rating, message
    """
    pool = pool or get_pool()
    counts = {name.removesuffix(".csv"): 0 for name in SEED_FILES}

    with pool.connection() as conn:
        conn.execute("BEGIN")
        for name in SEED_FILES:
            path = os.path.join(seed_dir, name)
            if not os.path.exists(path):
                logger.info(f"seed file {path} not found, skipped")
                continue
            table = name.removesuffix(".csv")
            for r in _records(path):
                if table == "users":
                    user_repo.insert_user(conn, str(r["name"]), str(r["email"]), str(r["password"]))
                elif table == "properties":
                    property_repo.insert_property(conn, r)
                elif table == "reservations":
                    reservation_repo.insert_reservation(
                        conn, int(r["guest_id"]), int(r["property_id"]), str(r["start_date"]), str(r["end_date"])
                    )
                else:
                    res_id = r.get("reservation_id")
                    review_repo.insert_review(
                        conn,
                        int(r["guest_id"]),
                        int(r["property_id"]),
                        int(r["rating"]),
                        reservation_id=None if res_id is None else int(res_id),
                        message=r.get("message"),
                    )
                counts[table] += 1
        conn.execute("COMMIT")

    logger.info(f"seed load from {seed_dir}: {counts}")
    log.set_payload({"seed_dir": seed_dir})
    log.set_after(counts)
    return counts
