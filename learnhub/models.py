import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# ==================== ENUMS ====================

class Role(str, Enum):
    USER = "USER"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"

class EnrollmentStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"

class CourseStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"

# Enrollments that may record lesson progress
PROGRESS_ELIGIBLE_STATUSES = {EnrollmentStatus.ACTIVE, EnrollmentStatus.COMPLETED}

# ==================== HELPERS ====================

def generate_id(prefix: str) -> str:
    """Generate unique ID with prefix"""
    return f"{prefix}_{secrets.token_hex(8).upper()}"

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

# ==================== PAGINATION ====================

@dataclass(frozen=True)
class PageParams:
    page: int = 1
    limit: int = 10

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

def total_pages(total: int, limit: int) -> int:
    return (total + limit - 1) // limit

# ==================== BASE SCHEMA ====================

class CamelModel(BaseModel):
    """
    Wire schema base: camelCase on the wire, snake_case in Python
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
