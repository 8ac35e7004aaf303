from typing import Any

from pydantic import BaseModel, Field


class ChatCoachRequest(BaseModel):
    message: str = Field(min_length=1, max_length=2000)
    analysis: dict[str, Any]


class ChatCoachResponse(BaseModel):
    answer: str
