from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Rarity = Literal["common", "rare", "epic", "legendary"]


class BadgeCriteria(BaseModel):
    type: str
    value: int | float | bool = 0
    threshold: int | float | None = None


class BadgeDefinition(BaseModel):
    id: int
    name: str
    description: str
    icon: str = ""
    rarity: Rarity = "common"
    criteria: BadgeCriteria

    def public_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"criteria"})


class UserBadge(BaseModel):
    user_id: str
    badge_id: int
    earned_at: datetime


class AchievementItem(BaseModel):
    badge: BadgeDefinition
    earned: bool
    earned_at: datetime | None = None


class EarnedBadge(BaseModel):
    id: int
    name: str
    description: str
    icon: str = ""
    rarity: Rarity = "common"
    earned_at: datetime


class CompletionSummary(BaseModel):
    total: int = Field(ge=0)
    earned: int = Field(ge=0)
    completion_rate: float = Field(ge=0.0, le=100.0)
