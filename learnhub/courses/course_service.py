import logging
from typing import List, Optional

from learnhub.auth.auth_guard import AuthUser
from learnhub.courses.course_schemas import CourseResponse, LessonResponse, PaginatedCourses
from learnhub.errors import BadRequest, Conflict, Forbidden, LessonNotFound, NotFound
from learnhub.models import (
    PROGRESS_ELIGIBLE_STATUSES, CourseStatus, EnrollmentStatus, PageParams, Role,
    generate_id, total_pages, utcnow,
)
from learnhub.repositories import CourseRepository, EnrollmentRepository, LessonRepository

logger = logging.getLogger(__name__)


def to_course_response(course: dict) -> CourseResponse:
    return CourseResponse(
        id=course["course_id"],
        title=course["title"],
        slug=course["slug"],
        description=course.get("description"),
        price=course.get("price", 0),
        is_free=course.get("is_free", True),
        status=course["status"],
        instructor_id=course["instructor_id"],
        created_at=course.get("created_at"),
        updated_at=course.get("updated_at"),
    )

def to_lesson_response(lesson: dict) -> LessonResponse:
    return LessonResponse(
        id=lesson["lesson_id"],
        course_id=lesson["course_id"],
        title=lesson["title"],
        slug=lesson["slug"],
        description=lesson.get("description"),
        content=lesson.get("content"),
        duration=lesson.get("duration", 0),
        order=lesson["order"],
        is_free=lesson.get("is_free", False),
        is_published=lesson.get("is_published", False),
    )


class CourseService:
    """Course and lesson authoring; instructors may only touch their own courses"""

    def __init__(self, courses: CourseRepository, lessons: LessonRepository, enrollments: EnrollmentRepository):
        self.courses = courses
        self.lessons = lessons
        self.enrollments = enrollments

    # ==================== CATALOGUE ====================

    async def search_published(
        self,
        page: PageParams,
        search: Optional[str] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
    ) -> PaginatedCourses:
        """
        Raises:
            BadRequest: minPrice above maxPrice
        """
        if min_price is not None and max_price is not None and min_price > max_price:
            raise BadRequest("minPrice must not exceed maxPrice")

        docs, total = await self.courses.search_published(
            search.strip() if search else None, min_price, max_price, page.skip, page.limit,
        )
        return PaginatedCourses(
            courses=[to_course_response(course) for course in docs],
            total=total,
            page=page.page,
            limit=page.limit,
            total_pages=total_pages(total, page.limit),
        )

    async def get_course(self, course_id: str) -> CourseResponse:
        course = await self.courses.find_by_id(course_id)
        if not course:
            raise NotFound(f"Course {course_id} not found")
        return to_course_response(course)

    async def list_my_courses(self, instructor: AuthUser) -> List[CourseResponse]:
        """Every course the caller owns, whatever its status"""
        return [to_course_response(course) for course in await self.courses.list_by_instructor(instructor.db_id)]

    # ==================== AUTHORING ====================

    async def create_course(self, instructor: AuthUser, data: dict) -> CourseResponse:
        now = utcnow()
        price = data.get("price", 0)
        course = await self.courses.create({
            "course_id": generate_id("CRS"),
            "title": data["title"],
            "slug": data["slug"],
            "description": data.get("description"),
            "price": price,
            "is_free": price == 0,
            "status": CourseStatus.DRAFT.value,
            "instructor_id": instructor.db_id,
            "created_at": now,
            "updated_at": now,
        })
        logger.info("Course created: %s by %s", course["course_id"], instructor.db_id)
        return to_course_response(course)

    async def update_course(self, course_id: str, user: AuthUser, data: dict) -> CourseResponse:
        await self.verify_course_ownership(course_id, user)

        updates = {k: v for k, v in data.items() if v is not None}
        if "price" in updates:
            updates["is_free"] = updates["price"] == 0

        course = await self.courses.update(course_id, updates)
        return to_course_response(course)

    async def submit_for_review(self, course_id: str, user: AuthUser) -> CourseResponse:
        """
        DRAFT goes to PENDING for instructors; an admin submit publishes directly

        Raises:
            Conflict: Course is not in DRAFT
        """
        course = await self.verify_course_ownership(course_id, user)
        if course["status"] != CourseStatus.DRAFT.value:
            raise Conflict("Only DRAFT courses can be submitted")

        status = CourseStatus.PUBLISHED if user.role == Role.ADMIN else CourseStatus.PENDING
        course = await self.courses.update(course_id, {"status": status.value})
        logger.info("Course %s submitted by %s: %s", course_id, user.db_id, status.value)
        return to_course_response(course)

    async def set_status(self, course_id: str, status: CourseStatus, admin: AuthUser) -> CourseResponse:
        """Admin moderation, any status to any status"""
        if not await self.courses.find_by_id(course_id):
            raise NotFound(f"Course {course_id} not found")

        course = await self.courses.update(course_id, {"status": CourseStatus(status).value})
        logger.info("Course %s status set to %s by %s", course_id, course["status"], admin.db_id)
        return to_course_response(course)

    async def delete_course(self, course_id: str, user: AuthUser) -> None:
        """
        Raises:
            Conflict: Someone is enrolled in the course
        """
        await self.verify_course_ownership(course_id, user)
        if await self.enrollments.count_by_course(course_id):
            raise Conflict("Cannot delete a course with enrollments")

        removed = await self.lessons.delete_by_course(course_id)
        await self.courses.delete(course_id)
        logger.info("Course deleted: %s (%d lessons) by %s", course_id, removed, user.db_id)

    async def verify_course_ownership(self, course_id: str, user: AuthUser) -> dict:
        """
        Validates the user owns this course (admins own everything)

        Raises:
            NotFound: Course not found
            Forbidden: Not the owner
        """
        course = await self.courses.find_by_id(course_id)
        if not course:
            raise NotFound(f"Course {course_id} not found")

        if not _manages(course, user):
            raise Forbidden("Not authorized to modify this course")

        return course

    # ==================== LESSONS ====================

    async def list_published_lessons(self, course_id: str) -> List[LessonResponse]:
        return [to_lesson_response(lesson) for lesson in await self.lessons.list_published(course_id)]

    async def get_lesson_by_slug(self, course_id: str, slug: str, user: Optional[AuthUser]) -> LessonResponse:
        """
        Owners and admins see everything. Anyone else sees published lessons of
        published courses, and paid ones only with an ACTIVE or COMPLETED enrollment.

        Raises:
            NotFound: Course missing, or hidden from the caller
            LessonNotFound: No such slug, or hidden from the caller
            Forbidden: Paid lesson without an eligible enrollment
        """
        course = await self.courses.find_by_id(course_id)
        if not course:
            raise NotFound(f"Course {course_id} not found")

        manager = user is not None and _manages(course, user)
        if not manager and course["status"] != CourseStatus.PUBLISHED.value:
            raise NotFound(f"Course {course_id} not found")

        lesson = await self.lessons.find_by_slug(course_id, slug)
        if not lesson or (not manager and not lesson.get("is_published", False)):
            raise LessonNotFound(f"Lesson {slug} not found in course {course_id}")

        if manager or lesson.get("is_free", False):
            return to_lesson_response(lesson)

        if user is None:
            raise Forbidden("Log in and enroll in this course to access this lesson")
        enrollment = await self.enrollments.find(user.db_id, course_id)
        if not enrollment or EnrollmentStatus(enrollment["status"]) not in PROGRESS_ELIGIBLE_STATUSES:
            raise Forbidden("You must be enrolled in this course to access this lesson")

        return to_lesson_response(lesson)

    async def create_lesson(self, course_id: str, user: AuthUser, data: dict) -> LessonResponse:
        """New lessons are appended after the current last one"""
        await self.verify_course_ownership(course_id, user)

        now = utcnow()
        lesson = await self.lessons.create({
            "lesson_id": generate_id("LSN"),
            "course_id": course_id,
            "title": data["title"],
            "slug": data["slug"],
            "description": data.get("description"),
            "content": data.get("content"),
            "duration": data.get("duration", 0),
            "order": await self.lessons.next_order(course_id),
            "is_free": data.get("is_free", False),
            "is_published": data.get("is_published", False),
            "created_at": now,
            "updated_at": now,
        })
        logger.info("Lesson created: %s in course %s", lesson["lesson_id"], course_id)
        return to_lesson_response(lesson)

    async def update_lesson(self, course_id: str, lesson_id: str, user: AuthUser, data: dict) -> LessonResponse:
        # Publishing here does not touch enrollments: COMPLETED stays COMPLETED
        await self.verify_course_ownership(course_id, user)
        if not await self.lessons.find_in_course(lesson_id, course_id):
            raise LessonNotFound(f"Lesson {lesson_id} not found in course {course_id}")

        updates = {k: v for k, v in data.items() if v is not None}
        lesson = await self.lessons.update(lesson_id, updates)
        return to_lesson_response(lesson)

    async def reorder_lessons(self, course_id: str, lesson_ids: List[str], user: AuthUser) -> List[LessonResponse]:
        """
        Rewrites every lesson's order to its position in lesson_ids

        Raises:
            BadRequest: lesson_ids is not exactly the course's lessons, each once
        """
        await self.verify_course_ownership(course_id, user)

        current = {lesson["lesson_id"] for lesson in await self.lessons.list_by_course(course_id)}
        if len(lesson_ids) != len(set(lesson_ids)) or set(lesson_ids) != current:
            raise BadRequest("lessonIds must list every lesson of the course exactly once")

        for order, lesson_id in enumerate(lesson_ids):
            await self.lessons.update(lesson_id, {"order": order})

        logger.info("Lessons reordered in course %s by %s", course_id, user.db_id)
        return [to_lesson_response(lesson) for lesson in await self.lessons.list_by_course(course_id)]

    async def delete_lesson(self, course_id: str, lesson_id: str, user: AuthUser) -> None:
        await self.verify_course_ownership(course_id, user)
        if not await self.lessons.find_in_course(lesson_id, course_id):
            raise LessonNotFound(f"Lesson {lesson_id} not found in course {course_id}")

        await self.lessons.delete(lesson_id)
        logger.info("Lesson deleted: %s from course %s", lesson_id, course_id)


def _manages(course: dict, user: AuthUser) -> bool:
    return user.role == Role.ADMIN or course["instructor_id"] == user.db_id
