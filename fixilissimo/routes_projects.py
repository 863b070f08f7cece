"""
fixilissimo/routes_projects.py

Project endpoints with their photos, notes and cover image.

Security guarantees:
- All endpoints require authentication (require_auth_context)
- Projects are filtered by the caller's user id; photos and notes are reached
  only through a project the caller owns
- Input validated via Pydantic schemas (status, doer, ranges)
- Uploads are capped at 10MB and stored under generated filenames
"""

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile

from fixilissimo.auth_context import AuthContext, require_auth_context
from fixilissimo.dependencies import get_note_service, get_photo_service, get_project_service
from fixilissimo.models import Note, Photo, Project
from fixilissimo.modules.attachments import NoteService, PhotoService
from fixilissimo.modules.projects import ProjectService
from fixilissimo.schemas import NoteRequest, ProjectRequest

router = APIRouter(
    prefix="/api/projects",
    tags=["projects"],
)


@router.get("", response_model=List[Project])
def list_projects(
    category: Optional[str] = Query(None, max_length=100),
    status: Optional[str] = Query(None, max_length=50),
    location: Optional[str] = Query(None, max_length=64),
    search: Optional[str] = Query(None, max_length=200, description="Substring of name or description"),
    ctx: AuthContext = Depends(require_auth_context),
    service: ProjectService = Depends(get_project_service),
):
    """Caller's projects, most recently updated first. Filters are ANDed."""
    return service.list(ctx.user_id, category=category, status=status, location=location, search=search)


@router.post("", response_model=Project, status_code=201)
def create_project(
    request: ProjectRequest,
    ctx: AuthContext = Depends(require_auth_context),
    service: ProjectService = Depends(get_project_service),
):
    return service.create(ctx.user_id, request.dict())


@router.get("/{project_id}", response_model=Project)
def get_project(
    project_id: int = Path(..., description="Project ID"),
    ctx: AuthContext = Depends(require_auth_context),
    service: ProjectService = Depends(get_project_service),
):
    return service.get(ctx.user_id, project_id)


@router.put("/{project_id}", response_model=Project)
def update_project(
    request: ProjectRequest,
    project_id: int = Path(..., description="Project ID"),
    ctx: AuthContext = Depends(require_auth_context),
    service: ProjectService = Depends(get_project_service),
):
    """Full replace of the editable fields; omitted fields are cleared."""
    return service.update(ctx.user_id, project_id, request.dict())


@router.delete("/{project_id}")
def delete_project(
    project_id: int = Path(..., description="Project ID"),
    ctx: AuthContext = Depends(require_auth_context),
    service: ProjectService = Depends(get_project_service),
) -> Dict[str, str]:
    """Delete a project together with its photos and notes."""
    service.delete(ctx.user_id, project_id)
    return {"message": "Project deleted successfully"}


# ---------------------------------------------------------
# Photos
# ---------------------------------------------------------
@router.get("/{project_id}/photos", response_model=List[Photo])
def list_photos(
    project_id: int = Path(..., description="Project ID"),
    ctx: AuthContext = Depends(require_auth_context),
    service: PhotoService = Depends(get_photo_service),
):
    return service.list(ctx.user_id, project_id)


@router.post("/{project_id}/photos", response_model=Photo, status_code=201)
def upload_photo(
    project_id: int = Path(..., description="Project ID"),
    photo: Optional[UploadFile] = File(None),
    caption: Optional[str] = Form(None),
    is_before_photo: Optional[str] = Form(None),
    ctx: AuthContext = Depends(require_auth_context),
    service: PhotoService = Depends(get_photo_service),
):
    stream = photo.file if photo is not None else None
    original_name = photo.filename if photo is not None else None
    return service.add(ctx.user_id, project_id, stream, original_name, caption=caption, is_before=is_before_photo)


# ---------------------------------------------------------
# Notes
# ---------------------------------------------------------
@router.get("/{project_id}/notes", response_model=List[Note])
def list_notes(
    project_id: int = Path(..., description="Project ID"),
    ctx: AuthContext = Depends(require_auth_context),
    service: NoteService = Depends(get_note_service),
):
    return service.list(ctx.user_id, project_id)


@router.post("/{project_id}/notes", response_model=Note, status_code=201)
def add_note(
    request: NoteRequest,
    project_id: int = Path(..., description="Project ID"),
    ctx: AuthContext = Depends(require_auth_context),
    service: NoteService = Depends(get_note_service),
):
    return service.add(ctx.user_id, project_id, request.content)


# ---------------------------------------------------------
# Cover image
# ---------------------------------------------------------
@router.post("/{project_id}/image", response_model=Project)
def upload_project_image(
    project_id: int = Path(..., description="Project ID"),
    image: Optional[UploadFile] = File(None),
    ctx: AuthContext = Depends(require_auth_context),
    service: ProjectService = Depends(get_project_service),
):
    """Replace the project's cover image; the stored filename is in image_filename."""
    stream = image.file if image is not None else None
    original_name = image.filename if image is not None else None
    return service.set_image(ctx.user_id, project_id, stream, original_name)
