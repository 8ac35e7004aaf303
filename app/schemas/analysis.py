from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Priority = Literal["HIGH", "MEDIUM", "LOW"]
AIStatus = Literal["success", "fallback", "skipped"]
Grade = Literal["A", "B", "C", "D", "F"]


class Suggestion(BaseModel):
    title: str
    before: str = ""
    after: str = ""
    priority: Priority = "MEDIUM"


class ComponentScore(BaseModel):
    score: int = Field(ge=0, le=100)
    weight: int = Field(ge=0, le=100)
    notes: list[str] = Field(default_factory=list)


class LocalResult(BaseModel):
    local_score: int = Field(ge=0, le=100)
    grade: Grade
    components: dict[str, ComponentScore] = Field(default_factory=dict)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    suggestions: list[Suggestion] = Field(default_factory=list)
    stats: dict[str, int] = Field(default_factory=dict)


class AIVerdict(BaseModel):
    ai_score: int = Field(ge=0, le=100)
    summary: str
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    improvement_suggestions: list[str] = Field(default_factory=list)
    before_after_rewrites: list[Suggestion] = Field(default_factory=list)
    confidence_level: str = "medium"


class HybridResult(BaseModel):
    local_score: int = Field(ge=0, le=100)
    ai_score: int | None = Field(default=None, ge=0, le=100)
    final_score: int = Field(ge=0, le=100)
    grade: Grade
    summary: str | None = None
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    suggestions: list[Suggestion] = Field(default_factory=list)
    improvement_suggestions: list[str] = Field(default_factory=list)
    confidence_level: str | None = None
    components: dict[str, ComponentScore] = Field(default_factory=dict)
    ai_status: AIStatus


class AnalysisRecord(BaseModel):
    id: int
    user_id: str
    created_at: datetime
    local_score: int = Field(ge=0, le=100)
    ai_score: int | None = Field(default=None, ge=0, le=100)
    final_score: int = Field(ge=0, le=100)
    summary: str | None = None
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    suggestions: list[Suggestion] = Field(default_factory=list)
    ai_status: AIStatus


class AnalyzeRequest(BaseModel):
    resume_text: str = Field(min_length=15, max_length=50000)


class AnalyzeResponse(BaseModel):
    success: bool = True
    analysis_id: int
    created_at: datetime
    result: HybridResult
    processing_time_ms: int
