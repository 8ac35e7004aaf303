from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from app.core.config import Settings, settings
from app.core.errors import InternalError, Unauthorized

ACCESS_TOKEN_EXPIRE_DAYS = 7


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str
    email: str | None


def check_api_key(x_api_key: str | None, config: Settings = settings) -> None:
    if not config.api_key:
        return
    if not x_api_key or not secrets.compare_digest(x_api_key, config.api_key):
        raise Unauthorized("Please provide a valid API key.")


def _jwt_secret(config: Settings) -> str:
    secret = (config.jwt_secret or "").strip()
    if not secret:
        raise InternalError(
            "JWT_SECRET is not defined. Set it to a strong, random value before issuing or verifying tokens."
        )
    return secret


def create_access_token(
    user_id: str | int,
    email: str | None = None,
    *,
    expires_delta: timedelta | None = None,
    config: Settings = settings,
) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    payload: dict[str, Any] = {"userId": str(user_id), "exp": expire}
    if email:
        payload["email"] = email
    return jwt.encode(payload, _jwt_secret(config), algorithm=config.jwt_algorithm)


def verify_token(token: str, config: Settings = settings) -> AuthenticatedUser:
    """Resolve an opaque bearer token to the acting user or raise INVALID_TOKEN."""
    secret = _jwt_secret(config)
    try:
        payload = jwt.decode(token, secret, algorithms=[config.jwt_algorithm])
    except JWTError as exc:
        raise Unauthorized("Invalid token", code="INVALID_TOKEN") from exc

    raw_user_id = payload.get("userId", payload.get("sub"))
    if raw_user_id is None or str(raw_user_id).strip() == "":
        raise Unauthorized("Invalid token", code="INVALID_TOKEN")
    email = payload.get("email")
    return AuthenticatedUser(user_id=str(raw_user_id), email=email if isinstance(email, str) else None)


def extract_bearer_token(cookie_token: str | None, authorization: str | None) -> str | None:
    if cookie_token and cookie_token.strip():
        return cookie_token.strip()
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return None
