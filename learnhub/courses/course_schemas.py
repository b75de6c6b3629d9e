from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from learnhub.models import CamelModel, CourseStatus

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

# ==================== COURSE SCHEMAS ====================

class CourseCreate(CamelModel):
    title: str = Field(..., min_length=3, max_length=200)
    slug: str = Field(..., pattern=SLUG_PATTERN)
    description: Optional[str] = None
    price: int = Field(0, ge=0)

class CourseUpdate(CamelModel):
    """Status moves only through submit and the admin status route"""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=3, max_length=200)
    slug: Optional[str] = Field(None, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)

class CourseStatusUpdate(CamelModel):
    status: CourseStatus

class CourseResponse(CamelModel):
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    price: int = 0
    is_free: bool = True
    status: CourseStatus
    instructor_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class PaginatedCourses(CamelModel):
    courses: List[CourseResponse]
    total: int
    page: int
    limit: int
    total_pages: int

# ==================== LESSON SCHEMAS ====================

class LessonCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., pattern=SLUG_PATTERN)
    description: Optional[str] = None
    content: Optional[str] = None
    duration: int = Field(0, ge=0)  # seconds
    is_free: bool = False
    is_published: bool = False

class LessonUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    content: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    order: Optional[int] = Field(None, ge=0)
    is_free: Optional[bool] = None
    is_published: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError("title must not be blank")
        return v

class LessonReorder(CamelModel):
    lesson_ids: List[str] = Field(..., min_length=1)

class LessonResponse(CamelModel):
    id: str
    course_id: str
    title: str
    slug: str
    description: Optional[str] = None
    content: Optional[str] = None
    duration: int = 0
    order: int
    is_free: bool = False
    is_published: bool = False
