from __future__ import annotations

import asyncio
import json
import logging
import math
import time
import uuid
from typing import Any

from app.ai.types import AIClient, ChatMessage
from app.analytics.db import log_ai_refinement_run
from app.core.errors import AIMisconfigured, AIUnavailable
from app.schemas.analysis import AIVerdict, LocalResult, Suggestion
from app.scoring.prompts import REFINER_SYSTEM_PROMPT, build_refiner_prompt, harden_system_prompt

logger = logging.getLogger(__name__)

_PRIORITIES = {"HIGH", "MEDIUM", "LOW"}


def _safe_str(value: Any, max_len: int = 1500) -> str:
    if not isinstance(value, str):
        return ""
    text = " ".join(value.split())
    return text[:max_len].rstrip()


def _safe_str_list(value: Any, max_items: int, max_len: int = 400) -> list[str]:
    if not isinstance(value, list):
        return []
    output: list[str] = []
    for item in value:
        text = _safe_str(item, max_len=max_len)
        if text:
            output.append(text)
        if len(output) >= max_items:
            break
    return output


def _safe_rewrites(value: Any, max_items: int = 6) -> list[Suggestion]:
    if not isinstance(value, list):
        return []
    rewrites: list[Suggestion] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        after = _safe_str(item.get("after"), max_len=600)
        if not after:
            continue
        priority = _safe_str(item.get("priority")).upper()
        rewrites.append(
            Suggestion(
                title=_safe_str(item.get("title"), max_len=200) or "Suggested rewrite",
                before=_safe_str(item.get("before"), max_len=600),
                after=after,
                priority=priority if priority in _PRIORITIES else "MEDIUM",
            )
        )
        if len(rewrites) >= max_items:
            break
    return rewrites


def parse_verdict(content: str) -> AIVerdict:
    """Validate a raw model payload into an AIVerdict or raise AIUnavailable."""
    if not content or not content.strip():
        raise AIUnavailable("AI service returned an empty response.")
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise AIUnavailable("AI service returned an unparsable response.") from exc
    if not isinstance(payload, dict):
        raise AIUnavailable("AI service returned an unparsable response.")

    problems: list[str] = []
    raw_score = payload.get("ai_final_score")
    if isinstance(raw_score, bool) or not isinstance(raw_score, (int, float)) or not math.isfinite(raw_score):
        problems.append("ai_final_score is missing or not a number")
    summary = _safe_str(payload.get("summary"))
    if not summary:
        problems.append("summary is missing or not a string")
    strengths = _safe_str_list(payload.get("strengths"), max_items=8)
    weaknesses = _safe_str_list(payload.get("weaknesses"), max_items=8)
    improvements = _safe_str_list(payload.get("improvement_suggestions"), max_items=10)
    for name, values in (
        ("strengths", strengths),
        ("weaknesses", weaknesses),
        ("improvement_suggestions", improvements),
    ):
        if not values:
            problems.append(f"{name} is missing or empty")
    if problems:
        logger.warning("ai_refine_invalid_response problems=%s", problems)
        raise AIUnavailable("AI service response is missing required fields.")

    return AIVerdict(
        ai_score=int(max(0, min(100, round(float(raw_score))))),
        summary=summary,
        strengths=strengths,
        weaknesses=weaknesses,
        improvement_suggestions=improvements,
        before_after_rewrites=_safe_rewrites(payload.get("before_after_rewrites")),
        confidence_level=_safe_str(payload.get("confidence_level"), max_len=20).lower() or "medium",
    )


class AIRefiner:
    """Second-stage verdict from the language model. One attempt per call, no retries."""

    def __init__(
        self,
        client: AIClient | None,
        *,
        temperature: float = 0.3,
        max_tokens: int = 1500,
    ):
        self._client = client
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def refine(self, resume_text: str, local_result: LocalResult) -> AIVerdict:
        if self._client is None:
            raise AIMisconfigured("AI service is not configured.")

        prompt, was_truncated = build_refiner_prompt(resume_text, local_result)
        if was_truncated:
            logger.info("ai_refine_resume_truncated prompt_len=%s", len(prompt))

        run_id = uuid.uuid4().hex
        started = time.perf_counter()
        try:
            content = await self._client.complete(
                [
                    ChatMessage(role="system", content=harden_system_prompt(REFINER_SYSTEM_PROMPT)),
                    ChatMessage(role="user", content=prompt),
                ],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                json_mode=True,
            )
        except Exception as exc:  # noqa: BLE001 - any provider failure is AI_UNAVAILABLE
            logger.warning(
                "ai_refine_failed model=%s prompt_len=%s error=%s: %s",
                getattr(self._client, "model", "unknown"),
                len(prompt),
                type(exc).__name__,
                exc,
            )
            await self._log_run(run_id, "error", "provider_error", started, prompt, was_truncated)
            raise AIUnavailable("AI analysis is temporarily unavailable. Please try again.") from exc

        try:
            verdict = parse_verdict(content)
        except AIUnavailable:
            await self._log_run(run_id, "invalid", "invalid_response", started, prompt, was_truncated)
            raise

        await self._log_run(run_id, "success", None, started, prompt, was_truncated)
        logger.info(
            "ai_refine_succeeded ai_score=%s local_score=%s rewrites=%s",
            verdict.ai_score,
            local_result.local_score,
            len(verdict.before_after_rewrites),
        )
        return verdict

    async def _log_run(
        self,
        run_id: str,
        status: str,
        error_code: str | None,
        started: float,
        prompt: str,
        was_truncated: bool,
    ) -> None:
        latency_ms = int((time.perf_counter() - started) * 1000)
        try:
            await asyncio.to_thread(
                log_ai_refinement_run,
                run_id=run_id,
                model=getattr(self._client, "model", "unknown"),
                status=status,
                error_code=error_code,
                latency_ms=latency_ms,
                prompt_chars=len(prompt),
                prompt_truncated=was_truncated,
            )
        except Exception:  # pragma: no cover - analytics must not break AI responses
            logger.debug("ai_run_logging_failed", exc_info=True)
