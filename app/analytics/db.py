from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from app.core.config import settings

RUN_STATUSES = ("success", "error", "invalid")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_db_path() -> Path:
    return Path(settings.analytics_db_path)


@contextmanager
def _connect() -> Iterator[sqlite3.Connection]:
    with closing(sqlite3.connect(_get_db_path())) as conn:
        with conn:
            yield conn


def init_db() -> None:
    if not settings.analytics_enabled:
        return
    _get_db_path().parent.mkdir(parents=True, exist_ok=True)
    with _connect() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS ai_refinement_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                created_at TEXT NOT NULL,
                run_id TEXT NOT NULL,
                model TEXT NOT NULL,
                status TEXT NOT NULL,
                error_code TEXT,
                latency_ms INTEGER,
                prompt_chars INTEGER,
                prompt_truncated INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_ai_refinement_runs_created_at ON ai_refinement_runs (created_at)"
        )


def log_ai_refinement_run(
    *,
    run_id: str,
    model: str,
    status: str,
    error_code: str | None = None,
    latency_ms: int | None = None,
    prompt_chars: int | None = None,
    prompt_truncated: bool = False,
) -> None:
    """Append one refinement attempt. ``status`` is one of RUN_STATUSES."""
    if not settings.analytics_enabled:
        return
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO ai_refinement_runs (
                created_at, run_id, model, status, error_code, latency_ms, prompt_chars, prompt_truncated
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (_utc_now(), run_id, model, status, error_code, latency_ms, prompt_chars, int(prompt_truncated)),
        )


def purge_old_records() -> dict[str, int]:
    if not settings.analytics_enabled:
        return {"ai_refinement_runs": 0}
    retention = max(1, int(settings.analytics_retention_days))
    cutoff = (datetime.now(timezone.utc) - timedelta(days=retention)).isoformat()
    with _connect() as conn:
        cur = conn.execute("DELETE FROM ai_refinement_runs WHERE created_at < ?", (cutoff,))
        return {"ai_refinement_runs": int(cur.rowcount or 0)}


def get_ai_run_summary() -> dict[str, Any]:
    if not settings.analytics_enabled:
        return {"enabled": False}
    with _connect() as conn:
        by_status = {
            status: count
            for status, count in conn.execute(
                "SELECT status, COUNT(*) FROM ai_refinement_runs GROUP BY status ORDER BY COUNT(*) DESC"
            )
        }
        top_errors = [
            {"error_code": code, "count": count}
            for code, count in conn.execute(
                """
                SELECT error_code, COUNT(*) FROM ai_refinement_runs
                WHERE error_code IS NOT NULL
                GROUP BY error_code
                ORDER BY COUNT(*) DESC
                LIMIT 10
                """
            )
        ]
        avg_latency, truncated = conn.execute(
            """
            SELECT AVG(CASE WHEN status = 'success' THEN latency_ms END), SUM(prompt_truncated)
            FROM ai_refinement_runs
            """
        ).fetchone()

    total = sum(by_status.values())
    return {
        "enabled": True,
        "total": total,
        "by_status": by_status,
        "success_rate": round(by_status.get("success", 0) / total * 100, 2) if total else 0.0,
        "top_errors": top_errors,
        "avg_success_latency_ms": int(avg_latency) if avg_latency is not None else None,
        "truncated_prompts": int(truncated or 0),
    }
