import json
import sqlite3
from pathlib import Path
from typing import Any, Iterator

from ...config import get_settings
from ...db import ensure_db_dir
from ...logging import log_event
from ...migrations import migrate
from ...utils import now_ts, dumps_json


class SQLiteStorage:
    _fetch_size = 100

    def __init__(self) -> None:
        self._settings = get_settings()
        self._db_path = Path(self._settings.db_path)

    def _connect(self) -> sqlite3.Connection:
        ensure_db_dir()
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute(f"PRAGMA busy_timeout={self._settings.busy_timeout_ms};")
        return conn

    def init(self) -> None:
        with self._connect() as conn:
            migrate(conn)
        log_event("db.init")

    def get_config(self, organization_id: str, var: str) -> Any:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value_json FROM awesome_config WHERE organization_id=? AND var=?",
                (organization_id, var),
            ).fetchone()
            return json.loads(row["value_json"]) if row else None

    def set_config(self, organization_id: str, var: str, value: Any) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO awesome_config(organization_id, var, value_json, updated_at) VALUES(?, ?, ?, ?) "
                "ON CONFLICT(organization_id, var) DO UPDATE SET value_json=excluded.value_json, updated_at=excluded.updated_at",
                (organization_id, var, dumps_json(value), now_ts()),
            )
        log_event("config.set", organization_id=organization_id)

    def create_user(self, data: dict) -> None:
        now = now_ts()
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO users(user_id, organization_id, email, about, confirmed, admin, created_at, updated_at) VALUES(?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(user_id) DO UPDATE SET email=excluded.email, about=excluded.about, confirmed=excluded.confirmed, "
                "admin=excluded.admin, updated_at=excluded.updated_at",
                (
                    data["user_id"],
                    data["organization_id"],
                    data["email"],
                    data.get("about"),
                    int(bool(data.get("confirmed"))),
                    int(bool(data.get("admin"))),
                    now,
                    now,
                ),
            )
        log_event("users.create", user_id=data["user_id"], organization_id=data["organization_id"])

    def get_user(self, user_id: str) -> dict | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE user_id=?", (user_id,)).fetchone()
            if not row:
                return None
            user = dict(row)
            user["confirmed"] = bool(user["confirmed"])
            user["admin"] = bool(user["admin"])
            return user

    def add_content(self, user_id: str, kind: str, body: str) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO contents(user_id, kind, body, created_at) VALUES(?, ?, ?, ?)",
                (user_id, kind, body, now_ts()),
            )
            return int(cursor.lastrowid)

    def count_contents(self, user_id: str) -> int:
        with self._connect() as conn:
            return int(conn.execute("SELECT COUNT(*) as c FROM contents WHERE user_id=?", (user_id,)).fetchone()["c"])

    def iter_content_bodies(self, user_id: str, limit: int | None = None) -> Iterator[str]:
        sql = "SELECT body FROM contents WHERE user_id=? ORDER BY created_at DESC, id DESC"
        params: list[Any] = [user_id]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        conn = self._connect()
        try:
            cursor = conn.execute(sql, params)
            while True:
                rows = cursor.fetchmany(self._fetch_size)
                if not rows:
                    return
                for row in rows:
                    yield row["body"]
        finally:
            conn.close()

    def metrics(self) -> dict:
        with self._connect() as conn:
            users = conn.execute("SELECT COUNT(*) as c FROM users").fetchone()["c"]
            contents = conn.execute("SELECT COUNT(*) as c FROM contents").fetchone()["c"]
            configs = conn.execute("SELECT COUNT(*) as c FROM awesome_config").fetchone()["c"]
            return {"users": int(users), "contents": int(contents), "configs": int(configs)}
