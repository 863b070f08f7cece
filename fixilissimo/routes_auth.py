"""
fixilissimo/routes_auth.py

Registration and login. Issues the bearer tokens that require_auth_context
turns back into a user id.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text

from fixilissimo import config
from fixilissimo.auth_context import AuthContext, create_access_token, get_db, require_auth_context
from fixilissimo.db import Database, now_iso
from fixilissimo.errors import ValidationError
from fixilissimo.migrate import seed_owner_defaults
from fixilissimo.models import User
from fixilissimo.schemas import LoginRequest, RegisterRequest
from fixilissimo.store import OwnershipStore, fetch_one

PBKDF2_ITERATIONS = 200_000

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
)


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algorithm, iterations, salt, expected = password_hash.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


@router.post("/register", status_code=201)
def register(req: RegisterRequest, db: Database = Depends(get_db)) -> Dict[str, Any]:
    if not req.username or not req.password:
        raise ValidationError("Username and password are required")
    if len(req.password) < config.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {config.MIN_PASSWORD_LENGTH} characters long")

    store = OwnershipStore(db)
    now = now_iso()
    with store.transaction(conflict="Username already exists") as conn:
        user = fetch_one(
            conn,
            """
            INSERT INTO users (username, password_hash, email, created_at)
            VALUES (:username, :password_hash, :email, :created_at)
            RETURNING id, username, email, created_at
            """,
            {
                "username": req.username,
                "password_hash": hash_password(req.password),
                "email": req.email or None,
                "created_at": now,
            },
        )
        seed_owner_defaults(conn, user["id"], now)

    print(f"[REGISTER] User created: user_id={user['id']}")
    return {
        "message": "User created successfully",
        "user": User(**user).dict(),
        "token": create_access_token(user["id"], user["username"]),
    }


@router.post("/login")
def login(req: LoginRequest, db: Database = Depends(get_db)) -> Dict[str, Any]:
    if not req.username or not req.password:
        raise ValidationError("Username and password are required")

    with OwnershipStore(db).read() as conn:
        row = fetch_one(
            conn,
            "SELECT id, username, email, created_at, password_hash FROM users WHERE username = :username",
            {"username": req.username},
        )

    if row is None or not verify_password(req.password, row["password_hash"]):
        print("[LOGIN] Invalid credentials")
        raise HTTPException(status_code=401, detail="Invalid username or password")

    print(f"[LOGIN] Login successful: user_id={row['id']}")
    return {
        "message": "Login successful",
        "user": User(**row).dict(),
        "token": create_access_token(row["id"], row["username"]),
    }


@router.get("/me")
def me(ctx: AuthContext = Depends(require_auth_context), db: Database = Depends(get_db)) -> Dict[str, Any]:
    with OwnershipStore(db).read() as conn:
        row = fetch_one(
            conn,
            "SELECT id, username, email, created_at FROM users WHERE id = :id",
            {"id": ctx.user_id},
        )
    if row is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user": User(**row).dict()}


@router.post("/logout")
def logout() -> Dict[str, str]:
    # Tokens are stateless; the client drops its copy
    return {"message": "Logged out successfully"}
