from __future__ import annotations

import logging

from app.ai.factory import get_ai_client
from app.core.config import Settings
from app.core.errors import AIMisconfigured
from app.schemas.analysis import AIVerdict, HybridResult, LocalResult
from app.scoring.ai_refiner import AIRefiner
from app.scoring.local_scorer import LocalScorer, grade_for_score

logger = logging.getLogger(__name__)


class HybridOrchestrator:
    """Local scoring followed, in hybrid mode, by mandatory AI refinement.

    The mode comes from ``settings.hybrid_mode`` and is fixed for the lifetime
    of the instance. In hybrid mode an AI failure fails the request; the local
    result is never returned in its place.
    """

    def __init__(self, settings: Settings, scorer: LocalScorer, refiner: AIRefiner):
        self._hybrid_mode = settings.hybrid_mode
        self._scorer = scorer
        self._refiner = refiner
        self._config_error: str | None = None
        if self._hybrid_mode and not (settings.ai_credential_configured and refiner.configured):
            self._config_error = "OPENAI_API_KEY is required when HYBRID_MODE is enabled."
            logger.error("hybrid_mode_misconfigured: %s", self._config_error)

    @property
    def hybrid_mode(self) -> bool:
        return self._hybrid_mode

    @property
    def config_error(self) -> str | None:
        return self._config_error

    async def analyze(self, resume_text: str) -> HybridResult:
        if self._config_error:
            raise AIMisconfigured("AI service is not configured.")

        local_result = self._scorer.score(resume_text)
        if not self._hybrid_mode:
            return self._local_only(local_result)

        verdict = await self._refiner.refine(resume_text, local_result)
        return self._merge(local_result, verdict)

    @staticmethod
    def _local_only(local_result: LocalResult) -> HybridResult:
        return HybridResult(
            local_score=local_result.local_score,
            ai_score=None,
            final_score=local_result.local_score,
            grade=local_result.grade,
            strengths=list(local_result.strengths),
            weaknesses=list(local_result.weaknesses),
            suggestions=list(local_result.suggestions),
            components=dict(local_result.components),
            ai_status="skipped",
        )

    @staticmethod
    def _merge(local_result: LocalResult, verdict: AIVerdict) -> HybridResult:
        return HybridResult(
            local_score=local_result.local_score,
            ai_score=verdict.ai_score,
            final_score=verdict.ai_score,
            grade=grade_for_score(verdict.ai_score),
            summary=verdict.summary,
            strengths=list(verdict.strengths or local_result.strengths),
            weaknesses=list(verdict.weaknesses or local_result.weaknesses),
            suggestions=list(verdict.before_after_rewrites or local_result.suggestions),
            improvement_suggestions=list(verdict.improvement_suggestions),
            confidence_level=verdict.confidence_level,
            components=dict(local_result.components),
            ai_status="success",
        )


def build_orchestrator(settings: Settings) -> HybridOrchestrator:
    client = None
    if settings.hybrid_mode and settings.ai_credential_configured:
        client = get_ai_client(settings)
    refiner = AIRefiner(client, temperature=settings.ai_temperature, max_tokens=settings.ai_max_tokens)
    return HybridOrchestrator(settings, LocalScorer(), refiner)
