import time

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_current_user, get_orchestrator, get_store
from app.core.config import settings
from app.core.errors import ValidationFailed
from app.core.rate_limit import ai_rate_limit
from app.core.security import AuthenticatedUser
from app.schemas.analysis import AnalyzeRequest, AnalyzeResponse
from app.scoring.orchestrator import HybridOrchestrator
from app.services.analysis_service import score_and_persist
from app.storage.db import SQLiteStore

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
@ai_rate_limit()
async def analyze_resume(
    request: Request,
    payload: AnalyzeRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    orchestrator: HybridOrchestrator = Depends(get_orchestrator),
    store: SQLiteStore = Depends(get_store),
):
    _ = request
    resume_text = payload.resume_text.strip()
    if len(resume_text) < 15:
        raise ValidationFailed("Resume text is too short (minimum 15 characters).")
    if len(resume_text) > settings.max_resume_chars:
        raise ValidationFailed(f"Resume text is too long (maximum {settings.max_resume_chars} characters).")

    started = time.perf_counter()
    record, result = await score_and_persist(orchestrator, store, user_id=user.user_id, resume_text=resume_text)
    return AnalyzeResponse(
        analysis_id=record.id,
        created_at=record.created_at,
        result=result,
        processing_time_ms=int((time.perf_counter() - started) * 1000),
    )
