from typing import Any

from fastapi import APIRouter, Depends

from app.achievements import AchievementEngine, AchievementQueryService
from app.api.deps import get_current_user, get_engine, get_query_service
from app.core.security import AuthenticatedUser
from app.schemas.achievements import AchievementItem, BadgeDefinition

router = APIRouter()


def _badge_payload(badge: BadgeDefinition) -> dict[str, Any]:
    return badge.public_dict()


def _achievement_payload(item: AchievementItem) -> dict[str, Any]:
    payload = item.badge.model_dump(mode="json")
    payload["earned"] = item.earned
    payload["earnedAt"] = item.earned_at.isoformat() if item.earned_at else None
    return payload


@router.get("/achievements")
def list_achievements(
    user: AuthenticatedUser = Depends(get_current_user),
    engine: AchievementEngine = Depends(get_engine),
    query: AchievementQueryService = Depends(get_query_service),
):
    newly_unlocked = engine.check_and_award(user.user_id)
    achievements = query.list_for_user(user.user_id)
    summary = query.summarize(achievements)
    return {
        "achievements": [_achievement_payload(item) for item in achievements],
        "newlyUnlocked": [_badge_payload(badge) for badge in newly_unlocked],
        "summary": {
            "total": summary.total,
            "earned": summary.earned,
            "completionRate": summary.completion_rate,
        },
    }


@router.get("/badges")
def list_badges(query: AchievementQueryService = Depends(get_query_service)):
    return {"badges": [_badge_payload(badge) for badge in query.list_definitions()]}


@router.get("/badges/user")
def list_user_badges(
    user: AuthenticatedUser = Depends(get_current_user),
    query: AchievementQueryService = Depends(get_query_service),
):
    badges = query.list_earned(user.user_id)
    return {
        "badges": [
            {
                "id": badge.id,
                "name": badge.name,
                "description": badge.description,
                "icon": badge.icon,
                "rarity": badge.rarity,
                "earnedAt": badge.earned_at.isoformat(),
            }
            for badge in badges
        ]
    }


@router.post("/badges/check")
def check_badges(
    user: AuthenticatedUser = Depends(get_current_user),
    engine: AchievementEngine = Depends(get_engine),
):
    unlocked = engine.check_and_award(user.user_id)
    return {"newBadges": [_badge_payload(badge) for badge in unlocked]}
