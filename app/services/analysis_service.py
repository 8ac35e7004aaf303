from __future__ import annotations

import asyncio
import logging

from app.schemas.analysis import AnalysisRecord, HybridResult
from app.scoring.orchestrator import HybridOrchestrator
from app.storage.db import SQLiteStore

logger = logging.getLogger(__name__)


async def score_and_persist(
    orchestrator: HybridOrchestrator,
    store: SQLiteStore,
    *,
    user_id: str,
    resume_text: str,
) -> tuple[AnalysisRecord, HybridResult]:
    """Run the hybrid pipeline and append the result to the user's history.

    Nothing is written when the pipeline fails.
    """
    result = await orchestrator.analyze(resume_text)
    record = await asyncio.to_thread(store.insert_analysis, user_id, result)
    logger.info(
        "analysis_recorded user=%s id=%s final_score=%s ai_status=%s",
        user_id,
        record.id,
        record.final_score,
        record.ai_status,
    )
    return record, result
