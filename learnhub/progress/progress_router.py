from fastapi import APIRouter, Depends

from learnhub.auth.auth_guard import AUTHENTICATED, AuthUser, authorize
from learnhub.dependencies import get_progress_service
from learnhub.progress.progress_schemas import CourseProgress, LessonProgress, UpdateProgressRequest
from learnhub.progress.progress_service import ProgressService

router = APIRouter(prefix="/courses/{course_id}", tags=["Progress"])


@router.post("/lessons/{lesson_id}/complete", response_model=LessonProgress, status_code=201)
async def mark_lesson_complete(
    course_id: str,
    lesson_id: str,
    user: AuthUser = Depends(authorize(AUTHENTICATED)),
    service: ProgressService = Depends(get_progress_service),
):
    """
    Mark lesson as complete and recompute course progress
    403 if not enrolled, 404 if the lesson is missing or unpublished
    """
    return await service.mark_lesson_complete(user.db_id, course_id, lesson_id)


@router.get("/progress", response_model=CourseProgress)
async def get_course_progress(
    course_id: str,
    user: AuthUser = Depends(authorize(AUTHENTICATED)),
    service: ProgressService = Depends(get_progress_service),
):
    """Course progress summary with per-lesson completion"""
    return await service.get_course_progress(user.db_id, course_id)


@router.get("/lessons/{lesson_id}/progress", response_model=LessonProgress)
async def get_lesson_progress(
    course_id: str,
    lesson_id: str,
    user: AuthUser = Depends(authorize(AUTHENTICATED)),
    service: ProgressService = Depends(get_progress_service),
):
    """Lesson progress, used to resume video playback"""
    return await service.get_lesson_progress(user.db_id, course_id, lesson_id)


@router.patch("/lessons/{lesson_id}/progress", response_model=LessonProgress)
async def update_lesson_progress(
    course_id: str,
    lesson_id: str,
    data: UpdateProgressRequest,
    user: AuthUser = Depends(authorize(AUTHENTICATED)),
    service: ProgressService = Depends(get_progress_service),
):
    return await service.update_watch_position(
        user.db_id, course_id, lesson_id,
        watched_seconds=data.watched_seconds,
        last_position=data.last_position,
    )
