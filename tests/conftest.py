"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from fakes import (
    FakeCourseRepository, FakeEnrollmentRepository, FakeIdentityProvider,
    FakeLessonRepository, FakeProgressRepository, FakeUserRepository,
)
from learnhub import dependencies
from learnhub.auth.auth_guard import AuthorizationGate
from learnhub.auth.auth_service import AuthService
from learnhub.main import app
from learnhub.progress.progress_service import ProgressService


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def users() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def courses() -> FakeCourseRepository:
    return FakeCourseRepository()


@pytest.fixture
def lessons() -> FakeLessonRepository:
    return FakeLessonRepository()


@pytest.fixture
def enrollments() -> FakeEnrollmentRepository:
    return FakeEnrollmentRepository()


@pytest.fixture
def progress(lessons: FakeLessonRepository) -> FakeProgressRepository:
    return FakeProgressRepository(lessons)


@pytest.fixture
def progress_service(enrollments, lessons, progress) -> ProgressService:
    return ProgressService(enrollments, lessons, progress)


@pytest.fixture
def auth_service(identity_provider, users) -> AuthService:
    return AuthService(identity_provider, users, admin_emails={"admin@learnhub.dev"})


@pytest.fixture
def gate(identity_provider, users) -> AuthorizationGate:
    return AuthorizationGate(identity_provider, users)


@pytest.fixture
def tokens(identity_provider, users) -> dict:
    """Registered accounts for each role, keyed by role name"""
    accounts = {
        "student": ("USR_STUDENT", "uid-student", "student@learnhub.dev", "USER"),
        "other": ("USR_OTHER", "uid-other", "other@learnhub.dev", "USER"),
        "instructor": ("USR_INSTRUCTOR", "uid-instructor", "teach@learnhub.dev", "INSTRUCTOR"),
        "rival": ("USR_RIVAL", "uid-rival", "rival@learnhub.dev", "INSTRUCTOR"),
        "admin": ("USR_ADMIN", "uid-admin", "admin@learnhub.dev", "ADMIN"),
    }
    result = {}
    for name, (user_id, uid, email, role) in accounts.items():
        users.seed(user_id, uid, email, role)
        result[name] = identity_provider.add_account(uid, email)
    return result


@pytest.fixture
def bearer(tokens):
    def _headers(name: str) -> dict:
        return {"Authorization": f"Bearer {tokens[name]}"}
    return _headers


@pytest.fixture
def test_client(identity_provider, users, courses, lessons, enrollments, progress):
    overrides = {
        dependencies.get_identity_provider: lambda: identity_provider,
        dependencies.get_user_repository: lambda: users,
        dependencies.get_course_repository: lambda: courses,
        dependencies.get_lesson_repository: lambda: lessons,
        dependencies.get_enrollment_repository: lambda: enrollments,
        dependencies.get_progress_repository: lambda: progress,
    }
    app.dependency_overrides.update(overrides)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def three_lesson_course(courses, lessons, enrollments):
    """Published course with three published lessons and an enrolled student"""
    courses.seed("CRS_PY", instructor_id="USR_INSTRUCTOR")
    for order, lesson_id in enumerate(["LSN_1", "LSN_2", "LSN_3"]):
        lessons.seed(lesson_id, "CRS_PY", order)
    enrollments.seed("USR_STUDENT", "CRS_PY")
    return "CRS_PY"
