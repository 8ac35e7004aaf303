from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class HelpTopic:
    message: str
    related: tuple[str, ...]


GENERAL_TOPIC = "general"

HELP_TOPICS: dict[str, HelpTopic] = {
    GENERAL_TOPIC: HelpTopic(
        message=(
            "## How it works\n"
            "Paste your resume to get a score from 0 to 100, written feedback and rewrite suggestions. "
            "Every analysis counts towards achievement badges."
        ),
        related=("scoring", "hybrid_mode", "achievements", "chat_coach"),
    ),
    "overview": HelpTopic(
        message=(
            "## Overview\n"
            "1. A local scorer checks structure, wording, keywords and measurable impact.\n"
            "2. An AI reviewer validates and refines the verdict.\n"
            "3. Your result is saved so you can track progress and unlock badges."
        ),
        related=("scoring", "hybrid_mode", "achievements"),
    ),
    "scoring": HelpTopic(
        message=(
            "## Scoring\n"
            "The local score weighs content quality (40%), ATS compatibility (35%), "
            "format and structure (15%) and impact metrics (10%). "
            "When AI review is enabled the final score is the AI's verdict."
        ),
        related=("hybrid_mode", "suggestions"),
    ),
    "hybrid_mode": HelpTopic(
        message=(
            "## AI review\n"
            "With AI review enabled every analysis is checked by a language model. "
            "If the AI is unavailable the analysis fails instead of returning a lower-quality result; "
            "simply try again a little later."
        ),
        related=("scoring", "overview"),
    ),
    "achievements": HelpTopic(
        message=(
            "## Achievements\n"
            "Badges unlock from your analysis history: number of analyses, high scores, "
            "streaks of daily or weekly activity and score improvements. Once earned, a badge is yours to keep."
        ),
        related=("overview", "scoring"),
    ),
    "suggestions": HelpTopic(
        message=(
            "## Suggestions\n"
            "Each suggestion shows a line from your resume and an improved version. "
            "Start with HIGH priority items: they usually have the biggest effect on your score."
        ),
        related=("scoring", "chat_coach"),
    ),
    "chat_coach": HelpTopic(
        message=(
            "## Resume coach\n"
            "Ask the coach follow-up questions about your latest analysis, for example "
            "\"How do I quantify my achievements?\""
        ),
        related=("suggestions", "overview"),
    ),
}


def get_help(topic: str | None) -> dict[str, Any]:
    key = (topic or "").strip().lower()
    entry = HELP_TOPICS.get(key)
    if entry is None:
        key, entry = GENERAL_TOPIC, HELP_TOPICS[GENERAL_TOPIC]
    return {
        "success": True,
        "help_message": entry.message,
        "format": "markdown",
        "related_topics": list(entry.related),
        "topic": key,
    }
