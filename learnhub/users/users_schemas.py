from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field, HttpUrl

from learnhub.models import CamelModel, Role

# ==================== REQUEST SCHEMAS ====================

class UpdateProfileRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    photo_url: Optional[HttpUrl] = None

# ==================== RESPONSE SCHEMAS ====================

class UserProfile(CamelModel):
    """The caller's own account"""
    id: str
    email: str
    name: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    role: Role
    email_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class PublicUser(CamelModel):
    """What anyone may see of another user; no email"""
    id: str
    name: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    role: Role

class PaginatedUsers(CamelModel):
    users: List[UserProfile]
    total: int
    page: int
    limit: int
    total_pages: int
