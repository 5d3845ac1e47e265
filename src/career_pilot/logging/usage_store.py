"""SQLite log of generation attempts: one row per submission, metadata only."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from career_pilot.logging.models import GenerationLog

DEFAULT_DB_PATH = Path.home() / ".career-pilot" / "usage.db"

_FIELDS = tuple(GenerationLog.model_fields)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS generation_logs (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    model TEXT NOT NULL,
    elapsed_seconds REAL NOT NULL DEFAULT 0.0,
    input_tokens INTEGER NOT NULL DEFAULT 0,
    output_tokens INTEGER NOT NULL DEFAULT 0,
    career_count INTEGER NOT NULL DEFAULT 0,
    estimated_cost_usd REAL NOT NULL DEFAULT 0.0,
    success INTEGER NOT NULL DEFAULT 1,
    error_kind TEXT
);
CREATE INDEX IF NOT EXISTS idx_generation_logs_user_time
    ON generation_logs (user_id, timestamp);
"""


class UsageStore:
    """Generation attempts in SQLite (WAL mode), with monthly and failure summaries."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            # journal_mode is stored in the database file, so once is enough
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def save_log(self, log: GenerationLog) -> None:
        """Persist one attempt; saving the same id again replaces it."""
        columns = ", ".join(_FIELDS)
        values = ", ".join(f":{name}" for name in _FIELDS)
        with self._connect() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO generation_logs ({columns}) VALUES ({values})",
                log.model_dump(mode="json"),
            )

    def get_logs(self, user_id: str | None = None, limit: int = 50) -> list[GenerationLog]:
        """Attempts newest first, optionally for one user."""
        query = "SELECT * FROM generation_logs"
        params: list = []
        if user_id is not None:
            query += " WHERE user_id = ?"
            params.append(user_id)
        query += " ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [GenerationLog.model_validate(dict(row)) for row in rows]

    def get_error_breakdown(self, since: datetime | None = None) -> dict[str, int]:
        """Failed attempts per error kind, most frequent first."""
        query = "SELECT error_kind, COUNT(*) AS n FROM generation_logs WHERE success = 0"
        params: list = []
        if since is not None:
            query += " AND timestamp >= ?"
            params.append(since.isoformat())
        query += " GROUP BY error_kind ORDER BY n DESC, error_kind"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return {row["error_kind"] or "Unknown": row["n"] for row in rows}

    def get_monthly_stats(self, now: datetime | None = None) -> dict:
        """Aggregate this month's attempts.

        Cost and tokens cover every attempt, since a failed parse was still
        billed. `avg_careers` only counts attempts that returned results.
        """
        now = now or datetime.now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        with self._connect() as conn:
            row = conn.execute(
                """SELECT
                       COUNT(*) AS runs,
                       SUM(success) AS succeeded,
                       SUM(input_tokens) AS input_tokens,
                       SUM(output_tokens) AS output_tokens,
                       SUM(estimated_cost_usd) AS cost,
                       AVG(elapsed_seconds) AS avg_elapsed,
                       AVG(CASE WHEN success = 1 THEN career_count END) AS avg_careers
                   FROM generation_logs
                   WHERE timestamp >= ?""",
                (month_start.isoformat(),),
            ).fetchone()

        runs = row["runs"] or 0
        succeeded = row["succeeded"] or 0
        return {
            "total_runs": runs,
            "succeeded": succeeded,
            "failed": runs - succeeded,
            "total_input_tokens": row["input_tokens"] or 0,
            "total_output_tokens": row["output_tokens"] or 0,
            "total_cost_usd": row["cost"] or 0.0,
            "avg_elapsed_seconds": round(row["avg_elapsed"], 1) if row["avg_elapsed"] is not None else None,
            "avg_careers": round(row["avg_careers"], 1) if row["avg_careers"] is not None else None,
            "success_rate": (succeeded / runs * 100) if runs else 0.0,
            "errors_by_kind": self.get_error_breakdown(since=month_start),
            "month": now.strftime("%Y-%m"),
        }
