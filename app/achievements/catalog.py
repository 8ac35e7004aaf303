from __future__ import annotations

from typing import Any

# Seeded into badge_definitions on startup; names are unique so seeding is idempotent.
BADGE_CATALOG: list[dict[str, Any]] = [
    {
        "name": "First Steps",
        "description": "Analyzed your first resume",
        "icon": "🎯",
        "rarity": "common",
        "criteria": {"type": "analysis_count", "value": 1},
    },
    {
        "name": "Getting Started",
        "description": "Completed 3 resume analyses",
        "icon": "📝",
        "rarity": "common",
        "criteria": {"type": "analysis_count", "value": 3},
    },
    {
        "name": "Resume Pro",
        "description": "Completed 10 resume analyses",
        "icon": "🏆",
        "rarity": "rare",
        "criteria": {"type": "analysis_count", "value": 10},
    },
    {
        "name": "Excellence",
        "description": "Achieved a resume score of 90+",
        "icon": "⭐",
        "rarity": "epic",
        "criteria": {"type": "score_threshold", "value": 90},
    },
    {
        "name": "Perfectionist",
        "description": "Achieved a perfect score of 100",
        "icon": "💎",
        "rarity": "legendary",
        "criteria": {"type": "score_threshold", "value": 100},
    },
    {
        "name": "Consistent",
        "description": "Analyzed a resume on 3 consecutive days",
        "icon": "🔥",
        "rarity": "rare",
        "criteria": {"type": "consecutive_days", "value": 3},
    },
    {
        "name": "Dedicated",
        "description": "Analyzed a resume on 7 consecutive days",
        "icon": "💪",
        "rarity": "epic",
        "criteria": {"type": "consecutive_days", "value": 7},
    },
    {
        "name": "Weekly Habit",
        "description": "Stayed active for 3 consecutive weeks",
        "icon": "📅",
        "rarity": "rare",
        "criteria": {"type": "consecutive_weeks", "value": 3},
    },
    {
        "name": "Overachiever",
        "description": "Scored 95+ on 3 different analyses",
        "icon": "🌟",
        "rarity": "epic",
        "criteria": {"type": "high_scores", "value": 3, "threshold": 95},
    },
    {
        "name": "Rising Star",
        "description": "Improved your score by 15 points since your first analysis",
        "icon": "📈",
        "rarity": "rare",
        "criteria": {"type": "score_improvement", "value": 15},
    },
    {
        "name": "AI Verified",
        "description": "Received your first AI-verified verdict",
        "icon": "🤖",
        "rarity": "common",
        "criteria": {"type": "ai_verified", "value": 1},
    },
]
