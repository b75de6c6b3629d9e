from datetime import datetime
from typing import List, Optional

from learnhub.models import CamelModel, EnrollmentStatus

# ==================== REQUEST SCHEMAS ====================

class EnrollRequest(CamelModel):
    course_id: str

class AdminUpdateEnrollmentRequest(CamelModel):
    status: EnrollmentStatus

# ==================== RESPONSE SCHEMAS ====================

class EnrollmentResponse(CamelModel):
    id: str
    user_id: str
    course_id: str
    status: EnrollmentStatus
    progress_percent: int = 0
    enrolled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    course_title: Optional[str] = None

class PaginatedEnrollments(CamelModel):
    enrollments: List[EnrollmentResponse]
    total: int
    page: int
    limit: int
    total_pages: int

class EnrollmentCheck(CamelModel):
    is_enrolled: bool
    status: Optional[EnrollmentStatus] = None
    progress_percent: int = 0
