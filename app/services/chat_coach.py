from __future__ import annotations

import logging
from typing import Any

from app.ai.types import AIClient, ChatMessage
from app.core.errors import AIMisconfigured, AIUnavailable
from app.scoring.prompts import COACH_SYSTEM_PROMPT, build_coach_prompt, harden_system_prompt

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "Sorry, I could not process that."


async def answer(
    client: AIClient | None,
    message: str,
    analysis: dict[str, Any],
    *,
    temperature: float = 0.7,
    max_tokens: int = 300,
) -> str:
    if client is None:
        raise AIMisconfigured("AI service is not configured.")

    prompt, _ = build_coach_prompt(message, analysis)
    try:
        content = await client.complete(
            [
                ChatMessage(role="system", content=harden_system_prompt(COACH_SYSTEM_PROMPT)),
                ChatMessage(role="user", content=prompt),
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except Exception as exc:  # noqa: BLE001 - provider errors are never shown to the caller
        logger.warning("chat_coach_failed error=%s: %s", type(exc).__name__, exc)
        raise AIUnavailable("Failed to generate response. Please try again.") from exc

    return content.strip() or FALLBACK_ANSWER
