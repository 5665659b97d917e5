"""GLOBEBOARD FILE PURPOSE
Purpose: owner-scoped SQLite store for API keys, registrations and webhooks.
Hot path: yes (every authenticated request resolves its key here).
Feature flags: none.
Failure mode: sqlite failures => PersistenceError; absent rows => NotFoundError; never retried.
"""

from __future__ import annotations

import json
import os
import sqlite3
import time
from collections.abc import Iterator
from contextlib import closing, contextmanager
from pathlib import Path

from core.errors import ConflictError, NotFoundError, PersistenceError
from core.models import Registration, Webhook

DEFAULT_DB_PATH = "ops/globeboard.sqlite3"


def _db_path() -> str:
    return os.getenv("GB_DB_PATH", DEFAULT_DB_PATH)


def _validate_required(value: str, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} is required")


def init_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS api_keys (
            token TEXT PRIMARY KEY,
            owner_id TEXT NOT NULL UNIQUE,
            created_ts INTEGER NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS registrations (
            id TEXT NOT NULL,
            owner_id TEXT NOT NULL,
            country TEXT NOT NULL,
            iso_code TEXT NOT NULL,
            features_json TEXT NOT NULL,
            last_change TEXT NOT NULL,
            PRIMARY KEY (id, owner_id)
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS webhooks (
            id TEXT NOT NULL,
            owner_id TEXT NOT NULL,
            url TEXT NOT NULL,
            country TEXT,
            events_json TEXT NOT NULL,
            created_ts INTEGER NOT NULL,
            PRIMARY KEY (id, owner_id)
        )
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_registrations_owner_change ON registrations(owner_id, last_change)"
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_webhooks_owner ON webhooks(owner_id)")
    conn.commit()


def get_conn(db_path: str | None = None) -> sqlite3.Connection:
    path = db_path or _db_path()
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    init_schema(conn)
    return conn


@contextmanager
def _session() -> Iterator[sqlite3.Connection]:
    try:
        # closing() releases the handle; the inner `with conn` commits or rolls back.
        with closing(get_conn()) as conn, conn:
            yield conn
    except sqlite3.IntegrityError:
        raise
    except sqlite3.Error as e:
        raise PersistenceError(f"database error: {e}") from e


def check_connection() -> str:
    try:
        with _session() as conn:
            conn.execute("SELECT 1").fetchone()
    except PersistenceError:
        return "503 Service Unavailable"
    return "200 OK"


def add_api_key(owner_id: str, token: str) -> None:
    _validate_required(owner_id, "owner_id")
    _validate_required(token, "token")
    try:
        with _session() as conn:
            conn.execute(
                "INSERT INTO api_keys(token, owner_id, created_ts) VALUES (?, ?, ?)",
                (token, owner_id, int(time.time())),
            )
            conn.commit()
    except sqlite3.IntegrityError as e:
        raise ConflictError("API key is already registered to user") from e


def get_api_key_owner(token: str) -> str | None:
    with _session() as conn:
        row = conn.execute("SELECT owner_id FROM api_keys WHERE token = ? LIMIT 1", (token,)).fetchone()
    if row is None:
        return None
    return str(row["owner_id"])


def delete_api_key(owner_id: str, token: str) -> None:
    with _session() as conn:
        cur = conn.execute("DELETE FROM api_keys WHERE owner_id = ? AND token = ?", (owner_id, token))
        deleted = cur.rowcount
        conn.commit()
    if deleted == 0:
        raise NotFoundError("API key not found")


def _registration_from_row(row: sqlite3.Row) -> Registration:
    return Registration.model_validate(
        {
            "id": str(row["id"]),
            "owner_id": str(row["owner_id"]),
            "country": str(row["country"]),
            "isoCode": str(row["iso_code"]),
            "features": json.loads(str(row["features_json"])),
            "lastChange": str(row["last_change"]),
        }
    )


def put_registration(reg: Registration) -> None:
    features_json = json.dumps(reg.features.model_dump(by_alias=True), sort_keys=True, separators=(",", ":"))
    last_change = reg.model_dump(mode="json")["last_change"]
    try:
        with _session() as conn:
            conn.execute(
                """
                INSERT INTO registrations(id, owner_id, country, iso_code, features_json, last_change)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id, owner_id) DO UPDATE SET
                    country = excluded.country,
                    iso_code = excluded.iso_code,
                    features_json = excluded.features_json,
                    last_change = excluded.last_change
                """,
                (reg.id, reg.owner_id, reg.country, reg.iso_code, features_json, last_change),
            )
            conn.commit()
    except sqlite3.IntegrityError as e:
        raise PersistenceError(f"database error: {e}") from e


def get_registration(reg_id: str, owner_id: str) -> Registration:
    with _session() as conn:
        row = conn.execute(
            """
            SELECT id, owner_id, country, iso_code, features_json, last_change
            FROM registrations
            WHERE id = ? AND owner_id = ?
            LIMIT 1
            """,
            (reg_id, owner_id),
        ).fetchone()
    if row is None:
        raise NotFoundError("no registration with that ID was found")
    return _registration_from_row(row)


def list_registrations(owner_id: str) -> list[Registration]:
    with _session() as conn:
        rows = conn.execute(
            """
            SELECT id, owner_id, country, iso_code, features_json, last_change
            FROM registrations
            WHERE owner_id = ?
            ORDER BY last_change DESC, id ASC
            """,
            (owner_id,),
        ).fetchall()
    return [_registration_from_row(row) for row in rows]


def delete_registration(reg_id: str, owner_id: str) -> None:
    with _session() as conn:
        cur = conn.execute("DELETE FROM registrations WHERE id = ? AND owner_id = ?", (reg_id, owner_id))
        deleted = cur.rowcount
        conn.commit()
    if deleted == 0:
        raise NotFoundError("no registration with that ID was found")


def _webhook_from_row(row: sqlite3.Row) -> Webhook:
    return Webhook.model_validate(
        {
            "id": str(row["id"]),
            "owner_id": str(row["owner_id"]),
            "url": str(row["url"]),
            "country": row["country"],
            "event": json.loads(str(row["events_json"])),
        }
    )


def add_webhook(webhook: Webhook) -> None:
    events_json = json.dumps([e.value for e in webhook.events], separators=(",", ":"))
    try:
        with _session() as conn:
            conn.execute(
                """
                INSERT INTO webhooks(id, owner_id, url, country, events_json, created_ts)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (webhook.id, webhook.owner_id, webhook.url, webhook.country, events_json, int(time.time())),
            )
            conn.commit()
    except sqlite3.IntegrityError as e:
        raise PersistenceError(f"database error: {e}") from e


def get_webhook(webhook_id: str, owner_id: str) -> Webhook:
    with _session() as conn:
        row = conn.execute(
            "SELECT id, owner_id, url, country, events_json FROM webhooks WHERE id = ? AND owner_id = ? LIMIT 1",
            (webhook_id, owner_id),
        ).fetchone()
    if row is None:
        raise NotFoundError("no webhook with that ID was found")
    return _webhook_from_row(row)


def list_webhooks(owner_id: str) -> list[Webhook]:
    with _session() as conn:
        rows = conn.execute(
            """
            SELECT id, owner_id, url, country, events_json
            FROM webhooks
            WHERE owner_id = ?
            ORDER BY created_ts ASC, id ASC
            """,
            (owner_id,),
        ).fetchall()
    return [_webhook_from_row(row) for row in rows]


def delete_webhook(webhook_id: str, owner_id: str) -> None:
    with _session() as conn:
        cur = conn.execute("DELETE FROM webhooks WHERE id = ? AND owner_id = ?", (webhook_id, owner_id))
        deleted = cur.rowcount
        conn.commit()
    if deleted == 0:
        raise NotFoundError("no webhook with that ID was found")


def count_webhooks(owner_id: str | None = None) -> int:
    with _session() as conn:
        if owner_id is None:
            row = conn.execute("SELECT COUNT(*) AS n FROM webhooks").fetchone()
        else:
            row = conn.execute("SELECT COUNT(*) AS n FROM webhooks WHERE owner_id = ?", (owner_id,)).fetchone()
    return int(row["n"])
