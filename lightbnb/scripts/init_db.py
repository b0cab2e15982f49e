"""
Create the LightBnB schema and optionally load seed CSVs.

WARNING: --reset DELETES every row of users, properties, reservations,
property_reviews before loading.

Usage:
  python -m lightbnb.scripts.init_db --seeds seeds/ [--reset] [--db path/to/lightbnb.db]
"""
from __future__ import annotations

import argparse
import logging

from lightbnb.db import ConnectionPool, ensure_schema
from lightbnb.logs import ENTITY_SEED, LogContext
from lightbnb.services.seed_svc import seed_load

TABLES = ("property_reviews", "reservations", "properties", "users")


def run(argv: list[str] | None = None) -> dict:
    ap = argparse.ArgumentParser()
    ap.add_argument("--db", default=None, help="database file (defaults to resolved db path)")
    ap.add_argument("--seeds", default=None, help="directory holding seed CSVs")
    ap.add_argument("--reset", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    pool = ConnectionPool(args.db, max_size=1)
    try:
        with pool.connection() as conn:
            ensure_schema(conn)
            if args.reset:
                for t in TABLES:
                    conn.execute(f"DELETE FROM {t}")
                # restart ids so seed foreign keys line up again
                conn.execute(
                    "DELETE FROM sqlite_sequence WHERE name IN ({})".format(",".join(["?"] * len(TABLES))),
                    TABLES,
                )

        out = {"message": "ok", "db": pool.db_path}
        if args.seeds:
            log = LogContext("SEED_LOAD", ENTITY_SEED, pool=pool)
            try:
                out.update(seed_load(args.seeds, log, pool=pool))
            except Exception as e:
                log.write("ERROR", str(e))
                raise
            log.write("OK")
    finally:
        pool.close()
    print(out)
    return out


def main():
    run()


if __name__ == "__main__":
    main()
