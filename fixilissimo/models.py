from pydantic import BaseModel
from typing import Optional
from enum import Enum

# Enums
class ProjectStatus(str, Enum):
    planning = "planning"
    in_progress = "in_progress"
    completed = "completed"
    on_hold = "on_hold"

class Doer(str, Enum):
    me = "me"
    pro = "pro"

DEFAULT_LOCATION_ICON = "🏠"
DEFAULT_LOCATION_COLOR = "#3B82F6"

# Models (public shapes; owner_id never leaves the server)
class User(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    created_at: Optional[str] = None

class Location(BaseModel):
    id: str
    name: str
    icon: str = DEFAULT_LOCATION_ICON
    color: str = DEFAULT_LOCATION_COLOR
    created_at: Optional[str] = None

class Category(BaseModel):
    id: int
    name: str
    location_id: str
    created_at: Optional[str] = None

class Project(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    status: str = ProjectStatus.planning.value  # stored as free text; see schemas for input checks
    start_month: Optional[int] = None
    start_year: Optional[int] = None
    budget: Optional[float] = None
    actual_cost: Optional[float] = None
    estimated_days: Optional[int] = None
    doer: str = Doer.me.value
    image_filename: Optional[str] = None
    created_at: str
    updated_at: str

class Photo(BaseModel):
    id: int
    project_id: int
    filename: str
    original_name: str
    caption: Optional[str] = None
    is_before_photo: bool = False
    upload_date: str

class Note(BaseModel):
    id: int
    project_id: int
    content: str
    created_at: str
