from fastapi import APIRouter, Depends, Request

from app.ai.types import AIClient
from app.api.deps import get_coach_client
from app.core.config import settings
from app.core.rate_limit import ai_rate_limit
from app.schemas.chat import ChatCoachRequest, ChatCoachResponse
from app.services.chat_coach import answer

router = APIRouter()


@router.post("/chat-coach", response_model=ChatCoachResponse)
@ai_rate_limit()
async def chat_coach(
    request: Request,
    payload: ChatCoachRequest,
    client: AIClient | None = Depends(get_coach_client),
):
    _ = request
    text = await answer(
        client,
        payload.message,
        payload.analysis,
        temperature=settings.coach_temperature,
        max_tokens=settings.coach_max_tokens,
    )
    return ChatCoachResponse(answer=text)
