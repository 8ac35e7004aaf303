from fastapi import APIRouter, Depends

from app.analytics import db as analytics_db
from app.api.deps import require_api_key

router = APIRouter()


@router.get("/analytics/ai-runs")
def ai_runs(_: None = Depends(require_api_key)):
    return analytics_db.get_ai_run_summary()
