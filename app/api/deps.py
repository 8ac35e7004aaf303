from __future__ import annotations

from functools import lru_cache

from fastapi import Cookie, Depends, Header

from app.achievements import AchievementEngine, AchievementQueryService
from app.ai.factory import get_ai_client
from app.ai.types import AIClient
from app.core.config import settings
from app.core.errors import AIMisconfigured, Unauthorized
from app.core.security import AuthenticatedUser, check_api_key, extract_bearer_token, verify_token
from app.scoring.orchestrator import HybridOrchestrator, build_orchestrator
from app.storage import SQLiteStore, get_default_store


def get_store() -> SQLiteStore:
    return get_default_store()


@lru_cache(maxsize=1)
def get_orchestrator() -> HybridOrchestrator:
    return build_orchestrator(settings)


@lru_cache(maxsize=1)
def _coach_client() -> AIClient | None:
    try:
        return get_ai_client(settings)
    except AIMisconfigured:
        return None


def get_coach_client() -> AIClient | None:
    return _coach_client()


def get_engine(store: SQLiteStore = Depends(get_store)) -> AchievementEngine:
    return AchievementEngine(store)


def get_query_service(store: SQLiteStore = Depends(get_store)) -> AchievementQueryService:
    return AchievementQueryService(store)


def get_current_user(
    token: str | None = Cookie(default=None, alias=settings.auth_cookie_name),
    authorization: str | None = Header(default=None),
) -> AuthenticatedUser:
    raw = extract_bearer_token(token, authorization)
    if not raw:
        raise Unauthorized("Unauthorized")
    return verify_token(raw)


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    check_api_key(x_api_key)
