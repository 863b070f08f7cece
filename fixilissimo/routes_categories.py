"""
fixilissimo/routes_categories.py

Category endpoints, nested under the owning location:
/api/categories/{location_id}[/{category_id}]
"""

from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends, Path

from fixilissimo.auth_context import AuthContext, require_auth_context
from fixilissimo.dependencies import get_category_service
from fixilissimo.models import Category
from fixilissimo.modules.categories import CategoryService
from fixilissimo.schemas import CategoryRequest

router = APIRouter(
    prefix="/api/categories",
    tags=["categories"],
)


@router.get("/{location_id}", response_model=List[Category])
def list_categories(
    location_id: str = Path(..., description="Location slug"),
    ctx: AuthContext = Depends(require_auth_context),
    service: CategoryService = Depends(get_category_service),
):
    """Categories of one of the caller's locations, by name."""
    return service.list_by_location(ctx.user_id, location_id)


@router.post("/{location_id}", response_model=Category, status_code=201)
def create_category(
    request: CategoryRequest,
    location_id: str = Path(..., description="Location slug"),
    ctx: AuthContext = Depends(require_auth_context),
    service: CategoryService = Depends(get_category_service),
):
    return service.create(ctx.user_id, location_id, request.name)


@router.put("/{location_id}/{category_id}", response_model=Category)
def update_category(
    request: CategoryRequest,
    location_id: str = Path(..., description="Location slug"),
    category_id: int = Path(..., ge=1, description="Category ID"),
    ctx: AuthContext = Depends(require_auth_context),
    service: CategoryService = Depends(get_category_service),
):
    return service.update(ctx.user_id, location_id, category_id, request.name)


@router.delete("/{location_id}/{category_id}")
def delete_category(
    location_id: str = Path(..., description="Location slug"),
    category_id: int = Path(..., ge=1, description="Category ID"),
    ctx: AuthContext = Depends(require_auth_context),
    service: CategoryService = Depends(get_category_service),
) -> Dict[str, str]:
    service.delete(ctx.user_id, location_id, category_id)
    return {"message": "Category deleted successfully"}
