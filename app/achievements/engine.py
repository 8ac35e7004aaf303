from __future__ import annotations

import logging

from app.achievements.rules import evaluate
from app.schemas.achievements import BadgeDefinition
from app.storage.db import SQLiteStore

logger = logging.getLogger(__name__)


class AchievementEngine:
    def __init__(self, store: SQLiteStore):
        self._store = store

    def check_and_award(self, user_id: str) -> list[BadgeDefinition]:
        """Award every badge whose rule now holds and return the ones unlocked by this call.

        Safe to call repeatedly and concurrently for the same user: the
        ``(user_id, badge_id)`` unique constraint decides which caller wins.
        """
        history = self._store.list_analyses(user_id)
        definitions = self._store.list_badge_definitions()
        earned_ids = {badge.badge_id for badge in self._store.list_user_badges(user_id)}

        qualifying = [
            definition
            for definition in definitions
            if definition.id not in earned_ids and evaluate(definition.criteria, history)
        ]
        if not qualifying:
            return []

        inserted = set(self._store.award_badges(user_id, [definition.id for definition in qualifying]))
        unlocked = [definition for definition in qualifying if definition.id in inserted]
        if unlocked:
            logger.info(
                "badges_unlocked user=%s badges=%s",
                user_id,
                [definition.name for definition in unlocked],
            )
        return unlocked
