"""
fixilissimo/routes_locations.py

Location endpoints plus the dashboard statistics.

Security guarantees:
- All endpoints require authentication (require_auth_context)
- All queries filtered by the caller's user id from the auth context
- No client-provided owner id accepted
- Another user's location answers 404, exactly like a missing one
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Path

from fixilissimo.auth_context import AuthContext, require_auth_context
from fixilissimo.dependencies import get_location_service, get_stats_service
from fixilissimo.models import Location
from fixilissimo.modules.locations import LocationService
from fixilissimo.modules.stats import StatsService
from fixilissimo.schemas import LocationCreateRequest, LocationUpdateRequest

router = APIRouter(
    prefix="/api/locations",
    tags=["locations"],
)


@router.get("", response_model=List[Location])
def list_locations(
    ctx: AuthContext = Depends(require_auth_context),
    service: LocationService = Depends(get_location_service),
):
    """Caller's locations, oldest first."""
    return service.list(ctx.user_id)


@router.get("/stats")
def all_location_stats(
    ctx: AuthContext = Depends(require_auth_context),
    stats: StatsService = Depends(get_stats_service),
) -> Dict[str, Any]:
    """Completed / not-completed project stats for every location the caller owns."""
    return stats.all_locations(ctx.user_id)


@router.post("", response_model=Location, status_code=201)
def create_location(
    request: LocationCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
    service: LocationService = Depends(get_location_service),
):
    return service.create(ctx.user_id, request.dict())


@router.get("/{location_id}", response_model=Location)
def get_location(
    location_id: str = Path(..., description="Location slug"),
    ctx: AuthContext = Depends(require_auth_context),
    service: LocationService = Depends(get_location_service),
):
    return service.get(ctx.user_id, location_id)


@router.put("/{location_id}", response_model=Location)
def update_location(
    request: LocationUpdateRequest,
    location_id: str = Path(..., description="Location slug"),
    ctx: AuthContext = Depends(require_auth_context),
    service: LocationService = Depends(get_location_service),
):
    return service.update(ctx.user_id, location_id, request.dict())


@router.delete("/{location_id}")
def delete_location(
    location_id: str = Path(..., description="Location slug"),
    ctx: AuthContext = Depends(require_auth_context),
    service: LocationService = Depends(get_location_service),
) -> Dict[str, str]:
    """
    Delete a location and its categories.

    Raises:
        400 {error, projectCount}: location still used by projects
        404: location not found
    """
    service.delete(ctx.user_id, location_id)
    return {"message": "Location deleted successfully"}


@router.get("/{location_id}/project-count")
def location_project_count(
    location_id: str = Path(..., description="Location slug"),
    ctx: AuthContext = Depends(require_auth_context),
    stats: StatsService = Depends(get_stats_service),
) -> Dict[str, Any]:
    return {
        "locationId": location_id,
        "projectCount": stats.project_count_for_location(ctx.user_id, location_id),
    }


@router.get("/{location_id}/stats")
def location_stats(
    location_id: str = Path(..., description="Location slug"),
    ctx: AuthContext = Depends(require_auth_context),
    stats: StatsService = Depends(get_stats_service),
) -> Dict[str, Any]:
    return stats.for_location(ctx.user_id, location_id)
