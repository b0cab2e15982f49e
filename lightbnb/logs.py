"""
Audit trail for the write side of the data layer: user sign-ups, new
property listings and seed loads. One `operation_log` row per attempt,
successful or not. Credentials are masked before anything is serialized.
"""
import json, time, uuid, datetime as dt
from typing import Any, Dict, List, Optional, Tuple
from .db import get_conn, ConnectionPool

ENTITY_USER = "USER"
ENTITY_PROPERTY = "PROPERTY"
ENTITY_SEED = "SEED"

_MASKED_KEYS = ("password", "email_key")
_MASK = "***"

_INSERT_SQL = (
    "INSERT INTO operation_log"
    "(ts, actor, action, entity_type, entity_id, request_id, payload_json, after_json, result, err_msg, latency_ms) "
    "VALUES(:ts, :actor, :action, :entity_type, :entity_id, :request_id, :payload_json, :after_json, :result, :err_msg, :latency_ms)"
)


def _mask(obj):
    if isinstance(obj, dict):
        return {k: (_MASK if k in _MASKED_KEYS else _mask(v)) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_mask(v) for v in obj]
    return obj


def _dump(obj) -> Optional[str]:
    return None if obj is None else json.dumps(obj, ensure_ascii=False, default=str)


class LogContext:
    """Collects one audited write; `write()` stores it."""

    def __init__(self, action: str, entity_type: Optional[str] = None, actor: str = "system",
                 pool: Optional[ConnectionPool] = None):
        self.action = action
        self.entity_type = entity_type
        self.entity_id: Optional[str] = None
        self.actor = actor
        self.pool = pool
        self.request_id = str(uuid.uuid4())
        self.payload = None
        self.after = None
        self._t0 = time.perf_counter()

    def set_entity(self, eid):
        self.entity_id = None if eid is None else str(eid)

    def set_payload(self, obj): self.payload = _mask(obj)
    def set_after(self, obj): self.after = _mask(obj)

    def write(self, result: str = "OK", err: Optional[str] = None):
        rec = {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "actor": self.actor,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "payload_json": _dump(self.payload),
            "after_json": _dump(self.after),
            "result": result,
            "err_msg": err,
            "latency_ms": int((time.perf_counter() - self._t0) * 1000),
        }
        if self.pool is not None:
            with self.pool.connection() as conn:
                conn.execute(_INSERT_SQL, rec)
        else:
            with get_conn() as conn:
                conn.execute(_INSERT_SQL, rec)


def search_logs(action: Optional[str] = None, entity_type: Optional[str] = None, entity_id=None,
                q: Optional[str] = None, since: Optional[str] = None, page: int = 1, size: int = 20,
                pool: Optional[ConnectionPool] = None) -> Tuple[int, List[Dict[str, Any]]]:
    """
    Newest-first page of audit rows plus the total match count.

    `entity_type` + `entity_id` give the history of one user or property;
    `q` is a substring of the stored payload or result row; `since` is an
    ISO timestamp lower bound.
    """
    where = []
    params: dict = {}
    if action:
        where.append("action = :action")
        params["action"] = action
    if entity_type:
        where.append("entity_type = :entity_type")
        params["entity_type"] = entity_type
    if entity_id is not None:
        where.append("entity_id = :entity_id")
        params["entity_id"] = str(entity_id)
    if q:
        where.append("(instr(payload_json, :q) > 0 OR instr(after_json, :q) > 0)")
        params["q"] = q
    if since:
        where.append("ts >= :since")
        params["since"] = since
    wh = " WHERE " + " AND ".join(where) if where else ""
    page = max(1, page)
    with (pool.connection() if pool is not None else get_conn()) as conn:
        total = conn.execute(f"SELECT COUNT(1) AS cnt FROM operation_log{wh}", params).fetchone()["cnt"]
        rows = conn.execute(
            f"SELECT * FROM operation_log{wh} ORDER BY ts DESC, id DESC LIMIT :limit OFFSET :offset",
            {**params, "limit": size, "offset": (page - 1) * size},
        ).fetchall()
    return total, [dict(r) for r in rows]
