from __future__ import annotations

from sqlite3 import Connection

_USER_COLUMNS = "id, name, email, password"


def email_key(email: str | None) -> str | None:
    """Case-insensitive lookup key; casefold() also folds non-ASCII letters."""
    return None if email is None else email.strip().casefold()


def get_by_email(conn: Connection, email: str):
    return conn.execute(
        f"SELECT {_USER_COLUMNS} FROM users WHERE email_key = ?",
        (email_key(email),),
    ).fetchone()


def get_by_id(conn: Connection, user_id: int):
    return conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()


def insert_user(conn: Connection, name: str, email: str, password: str) -> int:
    cur = conn.execute(
        "INSERT INTO users(name, email, email_key, password) VALUES(?,?,?,?)",
        (name, email, email_key(email), password),
    )
    return int(cur.lastrowid)
