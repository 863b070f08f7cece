"""
fixilissimo/schemas.py

Pydantic request schemas for the HTTP boundary.

Required fields are declared Optional here and checked by the services, so a
missing name produces the same "Name is required" message whether the caller
is the API or a test calling the service directly. Type, range and enum
checks (status, doer, start_month, money >= 0) happen here and fail with 400.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, validator

from fixilissimo.models import Doer, ProjectStatus

# Fixed path segments under /api/locations
RESERVED_LOCATION_IDS = ("stats",)


def _strip(v):
    if isinstance(v, str):
        return v.strip()
    return v


# ========================================================================
# AUTH
# ========================================================================

class RegisterRequest(BaseModel):
    username: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, max_length=255)

    @validator("username", "email", pre=True)
    def trim(cls, v):
        return _strip(v)


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None

    @validator("username", pre=True)
    def trim_username(cls, v):
        return _strip(v)


# ========================================================================
# LOCATIONS / CATEGORIES
# ========================================================================

class LocationCreateRequest(BaseModel):
    """Location ids are client-chosen slugs used in URLs."""
    id: Optional[str] = Field(None, max_length=64, description="Slug, unique per user")
    name: Optional[str] = Field(None, max_length=100)
    icon: Optional[str] = Field(None, max_length=16)
    color: Optional[str] = Field(None, max_length=32)

    @validator("id", "name", "icon", "color", pre=True)
    def trim(cls, v):
        return _strip(v)

    @validator("id")
    def validate_slug(cls, v):
        if v and ("/" in v or "?" in v or "#" in v):
            raise ValueError("id must not contain '/', '?' or '#'")
        if v in RESERVED_LOCATION_IDS:
            raise ValueError(f"'{v}' is reserved")
        return v


class LocationUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    icon: Optional[str] = Field(None, max_length=16)
    color: Optional[str] = Field(None, max_length=32)

    @validator("name", "icon", "color", pre=True)
    def trim(cls, v):
        return _strip(v)


class CategoryRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)

    @validator("name", pre=True)
    def trim(cls, v):
        return _strip(v)


# ========================================================================
# PROJECTS
# ========================================================================

class ProjectRequest(BaseModel):
    """Body for both create and full-replace update."""
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=64)
    status: Optional[ProjectStatus] = None
    start_month: Optional[int] = Field(None, ge=1, le=12)
    start_year: Optional[int] = Field(None, ge=1900, le=2200)
    budget: Optional[float] = Field(None, ge=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    estimated_days: Optional[int] = Field(None, ge=0)
    doer: Optional[Doer] = None

    class Config:
        use_enum_values = True

    @validator("name", "category", "location", pre=True)
    def trim(cls, v):
        # The form sends "" for an unselected dropdown
        return _strip(v) or None

    @validator("status", "doer", pre=True)
    def blank_is_default(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class NoteRequest(BaseModel):
    content: Optional[str] = None
