"""
Lesson progress tracking and enrollment auto-completion.

The enrollment's ``progress_percent`` always reflects the share of the
course's published lessons the user has completed. It is recomputed every
time a lesson is marked complete, and an enrollment reaching 100% moves to
COMPLETED. That transition is one-way: publishing more lessons later lowers
the percentage on the next recompute but never reopens the enrollment.
"""

import logging
from typing import Optional

from learnhub.errors import LessonNotFound, NotEnrolled
from learnhub.models import PROGRESS_ELIGIBLE_STATUSES, EnrollmentStatus, utcnow
from learnhub.progress.progress_schemas import CourseProgress, LessonProgress, LessonProgressSummary
from learnhub.repositories import EnrollmentRepository, LessonRepository, ProgressRepository

logger = logging.getLogger(__name__)


# ==================== PURE COMPUTATION ====================

def compute_progress_percent(completed: int, total: int) -> Optional[int]:
    """
    Percentage of completed lessons, rounded half up

    Returns None when the course has no published lessons.
    """
    if total <= 0:
        return None
    completed = max(0, min(completed, total))
    # floor(100 * completed / total + 0.5) in exact integer arithmetic
    return (200 * completed + total) // (2 * total)


def enrollment_update_for(completed: int, total: int) -> Optional[dict]:
    """
    Fields to write on the enrollment after a completion event,
    or None when there is nothing to recompute
    """
    percent = compute_progress_percent(completed, total)
    if percent is None:
        return None

    fields = {"progress_percent": percent}
    if percent == 100:
        fields["status"] = EnrollmentStatus.COMPLETED.value
        fields["completed_at"] = utcnow()
    return fields


def to_lesson_progress(progress: Optional[dict], lesson_id: str) -> LessonProgress:
    if not progress:
        return LessonProgress(id=None, lesson_id=lesson_id)
    return LessonProgress(
        id=progress.get("progress_id"),
        lesson_id=progress["lesson_id"],
        is_completed=progress.get("is_completed", False),
        watched_seconds=progress.get("watched_seconds", 0),
        last_position=progress.get("last_position", 0),
        completed_at=progress.get("completed_at"),
    )


# ==================== SERVICE ====================

class ProgressService:
    def __init__(
        self,
        enrollments: EnrollmentRepository,
        lessons: LessonRepository,
        progress: ProgressRepository,
    ):
        self.enrollments = enrollments
        self.lessons = lessons
        self.progress = progress

    async def mark_lesson_complete(self, user_id: str, course_id: str, lesson_id: str) -> LessonProgress:
        """
        Mark a lesson complete and recompute the enrollment

        Marking an already-completed lesson again is not an error; the
        progress row and the percentage end up the same.

        Raises:
            NotEnrolled: No ACTIVE/COMPLETED enrollment for the course
            LessonNotFound: Lesson missing, in another course, or unpublished
        """
        logger.info("Marking lesson complete: user=%s, course=%s, lesson=%s", user_id, course_id, lesson_id)

        enrollment = await self._require_enrollment(user_id, course_id)

        lesson = await self.lessons.find_in_course(lesson_id, course_id, published_only=True)
        if not lesson:
            raise LessonNotFound(f"Published lesson {lesson_id} not found in course {course_id}")

        progress = await self.progress.upsert(user_id, lesson_id, {
            "course_id": course_id,
            "is_completed": True,
            "completed_at": utcnow(),
        })

        await self._recompute_enrollment(enrollment, user_id, course_id)

        return to_lesson_progress(progress, lesson_id)

    async def get_course_progress(self, user_id: str, course_id: str) -> CourseProgress:
        """Read-only summary; never writes to the enrollment"""
        await self._require_enrollment(user_id, course_id)

        lessons = await self.lessons.list_published(course_id)
        completed_ids = await self.progress.completed_lesson_ids(
            user_id, [lesson["lesson_id"] for lesson in lessons]
        )

        total = len(lessons)
        completed = len(completed_ids)
        percent = compute_progress_percent(completed, total) or 0

        logger.debug("Course progress: user=%s, course=%s, %s/%s (%s%%)", user_id, course_id, completed, total, percent)

        return CourseProgress(
            course_id=course_id,
            total_lessons=total,
            completed_lessons=completed,
            progress_percent=percent,
            lessons=[
                LessonProgressSummary(
                    id=lesson["lesson_id"],
                    title=lesson["title"],
                    order=lesson["order"],
                    is_completed=lesson["lesson_id"] in completed_ids,
                )
                for lesson in lessons
            ],
        )

    async def get_lesson_progress(self, user_id: str, course_id: str, lesson_id: str) -> LessonProgress:
        """Stored progress for one lesson, or zeroed defaults when none exists yet"""
        await self._require_enrollment(user_id, course_id)
        await self._require_lesson(lesson_id, course_id)

        return to_lesson_progress(await self.progress.find(user_id, lesson_id), lesson_id)

    async def update_watch_position(
        self,
        user_id: str,
        course_id: str,
        lesson_id: str,
        watched_seconds: Optional[int] = None,
        last_position: Optional[int] = None,
    ) -> LessonProgress:
        """Record the video resume position; completion state is left alone"""
        await self._require_enrollment(user_id, course_id)
        await self._require_lesson(lesson_id, course_id)

        fields = {"course_id": course_id}
        if watched_seconds is not None:
            fields["watched_seconds"] = watched_seconds
        if last_position is not None:
            fields["last_position"] = last_position

        progress = await self.progress.upsert(user_id, lesson_id, fields)
        return to_lesson_progress(progress, lesson_id)

    # ==================== HELPERS ====================

    async def _recompute_enrollment(self, enrollment: dict, user_id: str, course_id: str) -> None:
        total = await self.lessons.count_published(course_id)
        if total == 0:
            return

        completed = await self.progress.count_completed(user_id, course_id)
        fields = enrollment_update_for(completed, total)

        if fields.get("status") == EnrollmentStatus.COMPLETED.value:
            logger.info("Auto-completing enrollment: user=%s, course=%s", user_id, course_id)

        await self.enrollments.update(enrollment["enrollment_id"], fields)
        logger.info(
            "Enrollment progress updated: user=%s, course=%s, progress=%s%%",
            user_id, course_id, fields["progress_percent"],
        )

    async def _require_enrollment(self, user_id: str, course_id: str) -> dict:
        enrollment = await self.enrollments.find(user_id, course_id)
        if not enrollment:
            raise NotEnrolled()
        if enrollment["status"] not in PROGRESS_ELIGIBLE_STATUSES:
            raise NotEnrolled("Your enrollment is not active")
        return enrollment

    async def _require_lesson(self, lesson_id: str, course_id: str) -> dict:
        lesson = await self.lessons.find_in_course(lesson_id, course_id)
        if not lesson:
            raise LessonNotFound(f"Lesson {lesson_id} not found in course {course_id}")
        return lesson
