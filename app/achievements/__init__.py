from .catalog import BADGE_CATALOG
from .engine import AchievementEngine
from .query import AchievementQueryService

__all__ = ["BADGE_CATALOG", "AchievementEngine", "AchievementQueryService"]
