from __future__ import annotations

import json
import logging
import os
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from app.schemas.achievements import BadgeCriteria, BadgeDefinition, EarnedBadge, UserBadge
from app.schemas.analysis import AnalysisRecord, HybridResult, Suggestion

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS analysis_records (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        local_score INTEGER NOT NULL CHECK (local_score BETWEEN 0 AND 100),
        ai_score INTEGER CHECK (ai_score BETWEEN 0 AND 100),
        final_score INTEGER NOT NULL CHECK (final_score BETWEEN 0 AND 100),
        summary TEXT,
        strengths_json TEXT NOT NULL,
        weaknesses_json TEXT NOT NULL,
        suggestions_json TEXT NOT NULL,
        ai_status TEXT NOT NULL CHECK (ai_status IN ('success', 'fallback', 'skipped')),
        CHECK ((ai_status = 'success') = (ai_score IS NOT NULL))
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_analysis_records_user
    ON analysis_records (user_id, created_at)
    """,
    """
    CREATE TABLE IF NOT EXISTS badge_definitions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        description TEXT NOT NULL,
        icon TEXT NOT NULL,
        rarity TEXT NOT NULL,
        criteria_json TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_badges (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        badge_id INTEGER NOT NULL REFERENCES badge_definitions (id),
        earned_at TEXT NOT NULL,
        UNIQUE (user_id, badge_id)
    )
    """,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _row_to_dict(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def _load_list(raw: str | None) -> list[Any]:
    if not raw:
        return []
    parsed = json.loads(raw)
    return parsed if isinstance(parsed, list) else []


class SQLiteStore:
    """Persistence for analysis history, badge definitions and the badge unlock facts.

    Every operation opens its own connection so concurrent callers only share
    the database file. ``user_badges`` is append-only and unique per
    ``(user_id, badge_id)``.
    """

    def __init__(self, db_path: str, *, timeout_s: float = 5.0):
        self.db_path = db_path
        self._timeout_s = timeout_s

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=self._timeout_s, isolation_level=None)
        try:
            conn.execute(f"PRAGMA busy_timeout={int(self._timeout_s * 1000)};")
            conn.execute("PRAGMA foreign_keys=ON;")
            yield conn
        finally:
            conn.close()

    def init_schema(self) -> None:
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            for statement in _SCHEMA:
                conn.execute(statement)

    # -- badge definitions -------------------------------------------------

    def seed_badges(self, definitions: Iterable[dict[str, Any]]) -> int:
        inserted = 0
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                for item in definitions:
                    cur = conn.execute(
                        """
                        INSERT OR IGNORE INTO badge_definitions (name, description, icon, rarity, criteria_json)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (
                            item["name"],
                            item["description"],
                            item.get("icon", ""),
                            item.get("rarity", "common"),
                            json.dumps(item["criteria"], sort_keys=True),
                        ),
                    )
                    inserted += int(cur.rowcount or 0)
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise
        if inserted:
            logger.info("badge_definitions_seeded inserted=%s", inserted)
        return inserted

    def list_badge_definitions(self) -> list[BadgeDefinition]:
        with self._connect() as conn:
            cur = conn.execute(
                "SELECT id, name, description, icon, rarity, criteria_json FROM badge_definitions ORDER BY id"
            )
            rows = [_row_to_dict(cur, row) for row in cur.fetchall()]
        definitions: list[BadgeDefinition] = []
        for row in rows:
            try:
                criteria = BadgeCriteria.model_validate(json.loads(row["criteria_json"]))
            except ValueError:
                logger.warning("badge_criteria_unparsable badge=%s", row["name"])
                criteria = BadgeCriteria(type="unknown", value=False)
            definitions.append(
                BadgeDefinition(
                    id=row["id"],
                    name=row["name"],
                    description=row["description"],
                    icon=row["icon"],
                    rarity=row["rarity"],
                    criteria=criteria,
                )
            )
        return definitions

    # -- analysis history --------------------------------------------------

    def insert_analysis(
        self,
        user_id: str,
        result: HybridResult,
        *,
        created_at: datetime | None = None,
    ) -> AnalysisRecord:
        created = created_at or _utc_now()
        suggestions = [item.model_dump(mode="json") for item in result.suggestions]
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO analysis_records (
                    user_id, created_at, local_score, ai_score, final_score, summary,
                    strengths_json, weaknesses_json, suggestions_json, ai_status
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    _to_iso(created),
                    result.local_score,
                    result.ai_score,
                    result.final_score,
                    result.summary,
                    json.dumps(result.strengths, ensure_ascii=False),
                    json.dumps(result.weaknesses, ensure_ascii=False),
                    json.dumps(suggestions, ensure_ascii=False),
                    result.ai_status,
                ),
            )
            record_id = int(cur.lastrowid)
        return AnalysisRecord(
            id=record_id,
            user_id=user_id,
            created_at=datetime.fromisoformat(_to_iso(created)),
            local_score=result.local_score,
            ai_score=result.ai_score,
            final_score=result.final_score,
            summary=result.summary,
            strengths=list(result.strengths),
            weaknesses=list(result.weaknesses),
            suggestions=list(result.suggestions),
            ai_status=result.ai_status,
        )

    def list_analyses(self, user_id: str) -> list[AnalysisRecord]:
        """Full history for a user, oldest first."""
        with self._connect() as conn:
            cur = conn.execute(
                """
                SELECT id, user_id, created_at, local_score, ai_score, final_score, summary,
                       strengths_json, weaknesses_json, suggestions_json, ai_status
                FROM analysis_records
                WHERE user_id = ?
                ORDER BY created_at, id
                """,
                (user_id,),
            )
            rows = [_row_to_dict(cur, row) for row in cur.fetchall()]
        return [
            AnalysisRecord(
                id=row["id"],
                user_id=row["user_id"],
                created_at=datetime.fromisoformat(row["created_at"]),
                local_score=row["local_score"],
                ai_score=row["ai_score"],
                final_score=row["final_score"],
                summary=row["summary"],
                strengths=_load_list(row["strengths_json"]),
                weaknesses=_load_list(row["weaknesses_json"]),
                suggestions=[Suggestion.model_validate(item) for item in _load_list(row["suggestions_json"])],
                ai_status=row["ai_status"],
            )
            for row in rows
        ]

    # -- badge unlocks -----------------------------------------------------

    def list_user_badges(self, user_id: str) -> list[UserBadge]:
        with self._connect() as conn:
            cur = conn.execute(
                "SELECT user_id, badge_id, earned_at FROM user_badges WHERE user_id = ? ORDER BY badge_id",
                (user_id,),
            )
            rows = cur.fetchall()
        return [
            UserBadge(user_id=row[0], badge_id=row[1], earned_at=datetime.fromisoformat(row[2]))
            for row in rows
        ]

    def list_earned_badges(self, user_id: str) -> list[EarnedBadge]:
        with self._connect() as conn:
            cur = conn.execute(
                """
                SELECT b.id, b.name, b.description, b.icon, b.rarity, ub.earned_at
                FROM user_badges ub
                JOIN badge_definitions b ON b.id = ub.badge_id
                WHERE ub.user_id = ?
                ORDER BY ub.earned_at DESC, b.id
                """,
                (user_id,),
            )
            rows = [_row_to_dict(cur, row) for row in cur.fetchall()]
        return [
            EarnedBadge(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                icon=row["icon"],
                rarity=row["rarity"],
                earned_at=datetime.fromisoformat(row["earned_at"]),
            )
            for row in rows
        ]

    def award_badges(
        self,
        user_id: str,
        badge_ids: Iterable[int],
        *,
        earned_at: datetime | None = None,
    ) -> list[int]:
        """Insert unlock facts in one transaction and return the ids this call inserted.

        A row that already exists, including one written by a concurrent caller,
        is skipped silently by the unique constraint.
        """
        earned_iso = _to_iso(earned_at or _utc_now())
        inserted: list[int] = []
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                for badge_id in badge_ids:
                    cur = conn.execute(
                        "INSERT OR IGNORE INTO user_badges (user_id, badge_id, earned_at) VALUES (?, ?, ?)",
                        (user_id, badge_id, earned_iso),
                    )
                    if cur.rowcount == 1:
                        inserted.append(badge_id)
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise
        return inserted
