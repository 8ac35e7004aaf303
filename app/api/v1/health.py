from fastapi import APIRouter, Depends

from app.api.deps import get_orchestrator
from app.scoring.orchestrator import HybridOrchestrator

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check(orchestrator: HybridOrchestrator = Depends(get_orchestrator)):
    return {
        "status": "degraded" if orchestrator.config_error else "healthy",
        "hybrid_mode": orchestrator.hybrid_mode,
    }
