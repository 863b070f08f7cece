"""
fixilissimo/auth_context.py

Identity context for FastAPI dependency injection.

Contains:
- AuthContext: the caller's user id, the only source of owner scoping
- require_auth_context: FastAPI dependency for auth enforcement
- get_db: the injected storage handle for the running app
- create_access_token / verify_token: JWT issue and verification

Missing credential -> 401, invalid or expired credential -> 403.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fixilissimo import config
from fixilissimo.db import Database
from fixilissimo.errors import UnavailableError

# auto_error=False so a missing header is answered with 401 rather than FastAPI's default
security = HTTPBearer(auto_error=False)


# ---------------------------------------------------------
# Storage handle
# ---------------------------------------------------------
def get_db(request: Request) -> Database:
    """The Database injected into create_app()."""
    return request.app.state.database


# ---------------------------------------------------------
# JWT
# ---------------------------------------------------------
def create_access_token(user_id: int, username: str, expires_in: Optional[timedelta] = None) -> str:
    expires_at = datetime.now(timezone.utc) + (expires_in or timedelta(days=config.ACCESS_TOKEN_DAYS))
    payload = {"sub": str(user_id), "username": username, "exp": expires_at}
    return jwt.encode(payload, config.SECRET_KEY, algorithm=config.ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify a JWT access token and return the decoded payload.

    Raises:
        HTTPException(403): If token is expired or invalid
    """
    try:
        return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except jwt.ExpiredSignatureError:
        print("[AUTH] Expired token presented")
        raise HTTPException(status_code=403, detail="Invalid or expired token")
    except jwt.InvalidTokenError:
        print("[AUTH] Invalid token presented")
        raise HTTPException(status_code=403, detail="Invalid or expired token")


# ---------------------------------------------------------
# AuthContext
# ---------------------------------------------------------
class AuthContext(BaseModel):
    """
    Caller identity derived from server-side JWT verification.
    Never trust owner ids from request bodies or query params.
    """
    user_id: int
    username: str


def require_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Database = Depends(get_db),
) -> AuthContext:
    """
    Resolve the bearer token to an AuthContext.

    Raises:
        HTTPException(401): No bearer token
        HTTPException(403): Token invalid, expired, or its user no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Access token required")

    payload = verify_token(credentials.credentials)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        print("[AUTH] Missing user id in token payload")
        raise HTTPException(status_code=403, detail="Invalid or expired token")

    try:
        with db.connect() as conn:
            row = conn.execute(
                text("SELECT id, username FROM users WHERE id = :id"), {"id": user_id}
            ).fetchone()
    except SQLAlchemyError as e:
        print(f"[AUTH] Storage failure resolving user: {type(e).__name__}: {e}")
        raise UnavailableError() from e

    if row is None:
        print(f"[AUTH] Token for unknown user: user_id={user_id}")
        raise HTTPException(status_code=403, detail="Invalid or expired token")

    ctx = AuthContext(user_id=row.id, username=row.username)
    if config.IS_DEV:
        print(f"[AUTH] Authenticated: user_id={ctx.user_id}")
    return ctx
