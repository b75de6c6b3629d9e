from datetime import datetime
from typing import List, Optional

from pydantic import Field

from learnhub.models import CamelModel

# ==================== REQUEST SCHEMAS ====================

class UpdateProgressRequest(CamelModel):
    watched_seconds: Optional[int] = Field(None, ge=0)
    last_position: Optional[int] = Field(None, ge=0)

# ==================== RESPONSE SCHEMAS ====================

class LessonProgress(CamelModel):
    id: Optional[str] = None  # None until a progress row exists
    lesson_id: str
    is_completed: bool = False
    watched_seconds: int = 0
    last_position: int = 0
    completed_at: Optional[datetime] = None

class LessonProgressSummary(CamelModel):
    id: str
    title: str
    order: int
    is_completed: bool

class CourseProgress(CamelModel):
    course_id: str
    total_lessons: int
    completed_lessons: int
    progress_percent: int
    lessons: List[LessonProgressSummary] = []
