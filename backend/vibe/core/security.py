from datetime import datetime, timedelta, timezone

import jwt
from fastapi import HTTPException, Request

from vibe.core.config import settings
from vibe.schemas.auth import AuthUser


# ── JWT access tokens ────────────────────────────────────────

def create_access_token(user_id: str, plan: str = "free") -> str:
    """Create a short-lived JWT in the shape the identity provider issues."""
    payload = {
        "sub": user_id,
        "plan": plan,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        "iat": datetime.now(timezone.utc),
    }
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_access_token(token: str) -> dict:
    """Decode and validate an access JWT. Returns the payload or raises."""
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def read_token(request: Request) -> str | None:
    """Bearer header first, then the session cookie."""
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return request.cookies.get("access_token")


# ── FastAPI dependencies ─────────────────────────────────────

async def get_current_user(request: Request) -> AuthUser:
    """FastAPI dependency — verifies the caller's token and returns their identity."""
    token = read_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = verify_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    plan = "pro" if payload.get("plan") == "pro" else "free"
    return AuthUser(id=str(user_id), plan=plan)
