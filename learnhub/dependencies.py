"""
FastAPI dependency providers: database, repositories and services
"""

from fastapi import Depends, Query, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.auth.auth_guard import AuthorizationGate
from learnhub.auth.auth_service import AuthService
from learnhub.auth.firebase_provider import IdentityProvider
from learnhub.config import Settings, get_settings
from learnhub.courses.course_service import CourseService
from learnhub.enrollments.enrollment_service import EnrollmentService
from learnhub.models import PageParams
from learnhub.progress.progress_service import ProgressService
from learnhub.repositories import (
    CourseRepository, EnrollmentRepository, LessonRepository, ProgressRepository, UserRepository,
    MongoCourseRepository, MongoEnrollmentRepository, MongoLessonRepository,
    MongoProgressRepository, MongoUserRepository,
)
from learnhub.users.users_service import UsersService

# ==================== INFRASTRUCTURE ====================

async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """Database handle opened in the application lifespan"""
    return request.app.state.db

async def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider

def get_page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> PageParams:
    return PageParams(page=page, limit=limit)

# ==================== REPOSITORIES ====================

async def get_user_repository(db: AsyncIOMotorDatabase = Depends(get_db)) -> UserRepository:
    return MongoUserRepository(db)

async def get_course_repository(db: AsyncIOMotorDatabase = Depends(get_db)) -> CourseRepository:
    return MongoCourseRepository(db)

async def get_lesson_repository(db: AsyncIOMotorDatabase = Depends(get_db)) -> LessonRepository:
    return MongoLessonRepository(db)

async def get_enrollment_repository(db: AsyncIOMotorDatabase = Depends(get_db)) -> EnrollmentRepository:
    return MongoEnrollmentRepository(db)

async def get_progress_repository(db: AsyncIOMotorDatabase = Depends(get_db)) -> ProgressRepository:
    return MongoProgressRepository(db)

# ==================== SERVICES ====================

async def get_authorization_gate(
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    users: UserRepository = Depends(get_user_repository),
) -> AuthorizationGate:
    return AuthorizationGate(identity_provider, users)

async def get_auth_service(
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(identity_provider, users, admin_emails=settings.ADMIN_EMAILS)

async def get_progress_service(
    enrollments: EnrollmentRepository = Depends(get_enrollment_repository),
    lessons: LessonRepository = Depends(get_lesson_repository),
    progress: ProgressRepository = Depends(get_progress_repository),
) -> ProgressService:
    return ProgressService(enrollments, lessons, progress)

async def get_enrollment_service(
    enrollments: EnrollmentRepository = Depends(get_enrollment_repository),
    courses: CourseRepository = Depends(get_course_repository),
) -> EnrollmentService:
    return EnrollmentService(enrollments, courses)

async def get_course_service(
    courses: CourseRepository = Depends(get_course_repository),
    lessons: LessonRepository = Depends(get_lesson_repository),
    enrollments: EnrollmentRepository = Depends(get_enrollment_repository),
) -> CourseService:
    return CourseService(courses, lessons, enrollments)

async def get_users_service(users: UserRepository = Depends(get_user_repository)) -> UsersService:
    return UsersService(users)
