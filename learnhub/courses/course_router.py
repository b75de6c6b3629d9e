from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from learnhub.auth.auth_guard import (
    ADMIN_ONLY, INSTRUCTOR_ONLY, OPTIONAL_AUTH, PUBLIC, AuthUser, authorize,
)
from learnhub.courses.course_schemas import (
    CourseCreate, CourseResponse, CourseStatusUpdate, CourseUpdate, LessonCreate, LessonReorder,
    LessonResponse, LessonUpdate, PaginatedCourses,
)
from learnhub.courses.course_service import CourseService
from learnhub.dependencies import get_course_service, get_page_params
from learnhub.models import PageParams

router = APIRouter(prefix="/courses", tags=["Courses"])

# ==================== CATALOGUE ====================

@router.get("", response_model=PaginatedCourses, dependencies=[Depends(authorize(PUBLIC))])
async def list_courses(
    search: Optional[str] = Query(None, max_length=100),
    min_price: Optional[int] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[int] = Query(None, alias="maxPrice", ge=0),
    page: PageParams = Depends(get_page_params),
    service: CourseService = Depends(get_course_service),
):
    """Published course catalogue, searchable by title or description"""
    return await service.search_published(page, search, min_price, max_price)


@router.get("/my-courses", response_model=List[CourseResponse])
async def my_courses(
    instructor: AuthUser = Depends(authorize(INSTRUCTOR_ONLY)),
    service: CourseService = Depends(get_course_service),
):
    return await service.list_my_courses(instructor)


@router.get("/{course_id}", response_model=CourseResponse, dependencies=[Depends(authorize(PUBLIC))])
async def get_course(course_id: str, service: CourseService = Depends(get_course_service)):
    return await service.get_course(course_id)

# ==================== AUTHORING ====================

@router.post("", response_model=CourseResponse, status_code=201)
async def create_course(
    data: CourseCreate,
    instructor: AuthUser = Depends(authorize(INSTRUCTOR_ONLY)),
    service: CourseService = Depends(get_course_service),
):
    """Create a DRAFT course owned by the caller"""
    return await service.create_course(instructor, data.model_dump())


@router.patch("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: str,
    data: CourseUpdate,
    instructor: AuthUser = Depends(authorize(INSTRUCTOR_ONLY)),
    service: CourseService = Depends(get_course_service),
):
    return await service.update_course(course_id, instructor, data.model_dump(exclude_none=True))


@router.patch("/{course_id}/submit", response_model=CourseResponse)
async def submit_course(
    course_id: str,
    instructor: AuthUser = Depends(authorize(INSTRUCTOR_ONLY)),
    service: CourseService = Depends(get_course_service),
):
    """Send a DRAFT course for review"""
    return await service.submit_for_review(course_id, instructor)


@router.patch("/{course_id}/status", response_model=CourseResponse)
async def set_course_status(
    course_id: str,
    data: CourseStatusUpdate,
    admin: AuthUser = Depends(authorize(ADMIN_ONLY)),
    service: CourseService = Depends(get_course_service),
):
    return await service.set_status(course_id, data.status, admin)


@router.delete("/{course_id}", status_code=204)
async def delete_course(
    course_id: str,
    instructor: AuthUser = Depends(authorize(INSTRUCTOR_ONLY)),
    service: CourseService = Depends(get_course_service),
):
    await service.delete_course(course_id, instructor)
    return Response(status_code=204)

# ==================== LESSONS ====================

@router.get("/{course_id}/lessons", response_model=List[LessonResponse],
            dependencies=[Depends(authorize(PUBLIC))])
async def list_lessons(course_id: str, service: CourseService = Depends(get_course_service)):
    """Published lessons in course order"""
    return await service.list_published_lessons(course_id)


@router.patch("/{course_id}/lessons/reorder", response_model=List[LessonResponse])
async def reorder_lessons(
    course_id: str,
    data: LessonReorder,
    instructor: AuthUser = Depends(authorize(INSTRUCTOR_ONLY)),
    service: CourseService = Depends(get_course_service),
):
    return await service.reorder_lessons(course_id, data.lesson_ids, instructor)


@router.get("/{course_id}/lessons/{slug}", response_model=LessonResponse)
async def get_lesson(
    course_id: str,
    slug: str,
    user: Optional[AuthUser] = Depends(authorize(OPTIONAL_AUTH)),
    service: CourseService = Depends(get_course_service),
):
    """Lesson detail; paid lessons need an enrollment"""
    return await service.get_lesson_by_slug(course_id, slug, user)


@router.post("/{course_id}/lessons", response_model=LessonResponse, status_code=201)
async def create_lesson(
    course_id: str,
    data: LessonCreate,
    instructor: AuthUser = Depends(authorize(INSTRUCTOR_ONLY)),
    service: CourseService = Depends(get_course_service),
):
    return await service.create_lesson(course_id, instructor, data.model_dump())


@router.patch("/{course_id}/lessons/{lesson_id}", response_model=LessonResponse)
async def update_lesson(
    course_id: str,
    lesson_id: str,
    data: LessonUpdate,
    instructor: AuthUser = Depends(authorize(INSTRUCTOR_ONLY)),
    service: CourseService = Depends(get_course_service),
):
    return await service.update_lesson(course_id, lesson_id, instructor, data.model_dump(exclude_none=True))


@router.delete("/{course_id}/lessons/{lesson_id}", status_code=204)
async def delete_lesson(
    course_id: str,
    lesson_id: str,
    instructor: AuthUser = Depends(authorize(INSTRUCTOR_ONLY)),
    service: CourseService = Depends(get_course_service),
):
    await service.delete_lesson(course_id, lesson_id, instructor)
    return Response(status_code=204)
