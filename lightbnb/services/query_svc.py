"""
Query service: the six data-access operations of the rental app.

Each operation checks one connection out of the injected pool, runs one
statement (inserts re-read the new row on the same connection) and returns a
QueryResult. Store faults are logged and reported as FAILED instead of being
raised.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from ..db import ConnectionPool, get_pool
from ..domain.money import dollars_to_cents
from ..domain.results import QueryResult
from ..logs import ENTITY_PROPERTY, ENTITY_USER, LogContext
from ..repository import property_repo, reservation_repo, user_repo

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
USER_FIELDS = ("name", "email", "password")


class PropertyFilters(BaseModel):
    """Optional, conjunctive filters for get_all_properties. Prices in dollars."""
    city: str | None = None
    owner_id: int | None = Field(None, ge=1)
    minimum_price_per_night: float | None = Field(None, ge=0)
    maximum_price_per_night: float | None = Field(None, ge=0)
    minimum_rating: float | None = Field(None, ge=0, le=5)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        # html forms submit untouched inputs as ""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


def _as_filters(options: PropertyFilters | Mapping[str, Any] | None) -> PropertyFilters:
    if options is None:
        return PropertyFilters()
    if isinstance(options, PropertyFilters):
        return options
    return PropertyFilters.model_validate(dict(options))


def _check_limit(limit) -> int:
    n = int(limit)
    if n < 0:
        # SQLite reads a negative LIMIT as "no limit"
        raise ValueError(f"limit must be >= 0, got {limit}")
    return n


def _row(r) -> dict | None:
    return None if r is None else dict(r)


class QueryService:
    def __init__(self, pool: ConnectionPool, audit: bool = True):
        self.pool = pool
        self.audit = audit

    # ---------------- helpers ----------------

    def _run(self, op: str, fn: Callable[[sqlite3.Connection], QueryResult]) -> QueryResult:
        try:
            with self.pool.connection() as conn:
                return fn(conn)
        except sqlite3.Error as e:
            logger.error(f"{op} failed: {e}")
            return QueryResult.failed(str(e))

    def _fetch_one(self, op: str, getter, *args) -> QueryResult[dict]:
        def _do(conn):
            row = getter(conn, *args)
            if row is None:
                return QueryResult.not_found()
            return QueryResult.found(dict(row))
        return self._run(op, _do)

    def _write_audit(self, log: LogContext, res: QueryResult):
        if not self.audit:
            return
        try:
            if res.ok:
                log.set_entity(res.value.get("id"))
                log.set_after(res.value)
                log.write("OK")
            else:
                log.write("ERROR", res.error or res.status.value)
        except sqlite3.Error as e:
            logger.warning(f"audit write for {log.action} failed: {e}")

    # ---------------- users ----------------

    def get_user_with_email(self, email: str) -> QueryResult[dict]:
        """Single user by email, compared case-insensitively."""
        return self._fetch_one("get_user_with_email", user_repo.get_by_email, email)

    def get_user_with_id(self, user_id: int) -> QueryResult[dict]:
        return self._fetch_one("get_user_with_id", user_repo.get_by_id, user_id)

    def add_user(self, user: Mapping[str, Any]) -> QueryResult[dict]:
        """
        Insert {name, email, password}; password must already be hashed.
        Returns the stored row with its generated id. Duplicate emails are
        rejected by the unique index and come back as FAILED.
        """
        payload = {k: user.get(k) for k in USER_FIELDS}
        log = LogContext("ADD_USER", ENTITY_USER, pool=self.pool)
        log.set_payload(payload)

        def _do(conn):
            new_id = user_repo.insert_user(conn, payload["name"], payload["email"], payload["password"])
            row = _row(user_repo.get_by_id(conn, new_id))
            return QueryResult.not_found() if row is None else QueryResult.found(row)

        res = self._run("add_user", _do)
        self._write_audit(log, res)
        return res

    # ---------------- reservations ----------------

    def get_all_reservations(self, guest_id: int, limit: int = DEFAULT_LIMIT,
                             include_unreviewed: bool = False) -> QueryResult[list[dict]]:
        """Reservations of a guest, earliest start_date first, with average_rating."""
        n = _check_limit(limit)

        def _do(conn):
            rows = reservation_repo.list_for_guest(conn, guest_id, n, include_unreviewed)
            return QueryResult.found([dict(r) for r in rows])
        return self._run("get_all_reservations", _do)

    # ---------------- properties ----------------

    def get_all_properties(self, options: PropertyFilters | Mapping[str, Any] | None = None,
                           limit: int = DEFAULT_LIMIT,
                           include_unreviewed: bool = False) -> QueryResult[list[dict]]:
        """
        Properties matching every given filter, cheapest first, capped at limit.

        Raises pydantic.ValidationError for malformed options and ValueError for
        a negative limit; store faults are returned as FAILED.
        """
        f = _as_filters(options)
        n = _check_limit(limit)
        min_cost = dollars_to_cents(f.minimum_price_per_night) if f.minimum_price_per_night else None
        max_cost = dollars_to_cents(f.maximum_price_per_night) if f.maximum_price_per_night else None

        def _do(conn):
            rows = property_repo.list_properties(
                conn,
                n,
                city=f.city,
                owner_id=f.owner_id,
                min_cost=min_cost,
                max_cost=max_cost,
                min_rating=f.minimum_rating or None,
                include_unreviewed=include_unreviewed,
            )
            return QueryResult.found([dict(r) for r in rows])
        return self._run("get_all_properties", _do)

    def add_property(self, prop: Mapping[str, Any]) -> QueryResult[dict]:
        """Insert a property from the fixed field set; cost_per_night is in cents."""
        payload = {k: prop.get(k) for k in property_repo.PROPERTY_FIELDS}
        log = LogContext("ADD_PROPERTY", ENTITY_PROPERTY, pool=self.pool)
        log.set_payload(payload)

        def _do(conn):
            new_id = property_repo.insert_property(conn, payload)
            row = _row(property_repo.get_by_id(conn, new_id))
            return QueryResult.not_found() if row is None else QueryResult.found(row)

        res = self._run("add_property", _do)
        self._write_audit(log, res)
        return res


_service: Optional[QueryService] = None


def get_query_service() -> QueryService:
    """Service bound to the process-wide pool from lightbnb.db.get_pool()."""
    global _service
    if _service is None or _service.pool is not get_pool():
        _service = QueryService(get_pool())
    return _service
