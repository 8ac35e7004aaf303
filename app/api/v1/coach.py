from fastapi import APIRouter, Query

from app.services.help_topics import get_help

router = APIRouter()


@router.get("/coach/help")
async def coach_help(topic: str | None = Query(default=None, max_length=50)):
    return get_help(topic)
