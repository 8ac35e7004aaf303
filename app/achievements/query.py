from __future__ import annotations

from collections.abc import Sequence

from app.schemas.achievements import AchievementItem, BadgeDefinition, CompletionSummary, EarnedBadge
from app.storage.db import SQLiteStore


class AchievementQueryService:
    """Read path over badge definitions and unlock facts. Never writes."""

    def __init__(self, store: SQLiteStore):
        self._store = store

    def list_for_user(self, user_id: str) -> list[AchievementItem]:
        earned = {badge.badge_id: badge for badge in self._store.list_user_badges(user_id)}
        items: list[AchievementItem] = []
        for definition in self._store.list_badge_definitions():
            unlock = earned.get(definition.id)
            items.append(
                AchievementItem(
                    badge=definition,
                    earned=unlock is not None,
                    earned_at=unlock.earned_at if unlock else None,
                )
            )
        return items

    def list_earned(self, user_id: str) -> list[EarnedBadge]:
        return self._store.list_earned_badges(user_id)

    def list_definitions(self) -> list[BadgeDefinition]:
        return self._store.list_badge_definitions()

    @staticmethod
    def summarize(items: Sequence[AchievementItem]) -> CompletionSummary:
        total = len(items)
        earned = sum(1 for item in items if item.earned)
        completion_rate = round(earned / total * 100, 2) if total else 0.0
        return CompletionSummary(total=total, earned=earned, completion_rate=completion_rate)
