import logging
from typing import List, Optional

from learnhub.enrollments.enrollment_schemas import EnrollmentCheck, EnrollmentResponse, PaginatedEnrollments
from learnhub.errors import BadRequest, Conflict, NotFound, PaymentRequired
from learnhub.models import CourseStatus, EnrollmentStatus, PageParams, generate_id, total_pages, utcnow
from learnhub.repositories import CourseRepository, EnrollmentRepository

logger = logging.getLogger(__name__)


def to_enrollment_response(enrollment: dict, course: Optional[dict] = None) -> EnrollmentResponse:
    return EnrollmentResponse(
        id=enrollment["enrollment_id"],
        user_id=enrollment["user_id"],
        course_id=enrollment["course_id"],
        status=enrollment["status"],
        progress_percent=enrollment.get("progress_percent", 0),
        enrolled_at=enrollment.get("enrolled_at"),
        completed_at=enrollment.get("completed_at"),
        course_title=course.get("title") if course else None,
    )


class EnrollmentService:
    def __init__(self, enrollments: EnrollmentRepository, courses: CourseRepository):
        self.enrollments = enrollments
        self.courses = courses

    async def enroll(self, user_id: str, course_id: str) -> EnrollmentResponse:
        """
        Enroll in a free published course

        Raises:
            NotFound: Course missing or not published
            PaymentRequired: Course is paid
            Conflict: Already enrolled
        """
        course = await self.courses.find_by_id(course_id)
        if not course or course.get("status") != CourseStatus.PUBLISHED.value:
            raise NotFound(f"Course {course_id} not found")

        if not course.get("is_free", False):
            raise PaymentRequired()

        if await self.enrollments.find(user_id, course_id):
            raise Conflict("Already enrolled in this course")

        enrollment = await self.enrollments.create({
            "enrollment_id": generate_id("ENR"),
            "user_id": user_id,
            "course_id": course_id,
            "status": EnrollmentStatus.ACTIVE.value,
            "progress_percent": 0,
            "enrolled_at": utcnow(),
            "completed_at": None,
        })

        logger.info("User enrolled: user=%s, course=%s", user_id, course_id)
        return to_enrollment_response(enrollment, course)

    async def get_my_enrollments(self, user_id: str) -> List[EnrollmentResponse]:
        """Enrolled courses for the dashboard, enriched with course titles"""
        result = []
        for enrollment in await self.enrollments.list_by_user(user_id):
            course = await self.courses.find_by_id(enrollment["course_id"])
            result.append(to_enrollment_response(enrollment, course))
        return result

    async def check_enrollment(self, user_id: str, course_id: str) -> EnrollmentCheck:
        enrollment = await self.enrollments.find(user_id, course_id)
        if not enrollment:
            return EnrollmentCheck(is_enrolled=False)
        return EnrollmentCheck(
            is_enrolled=enrollment["status"] in (EnrollmentStatus.ACTIVE, EnrollmentStatus.COMPLETED),
            status=enrollment["status"],
            progress_percent=enrollment.get("progress_percent", 0),
        )

    # ==================== ADMIN ====================

    async def list_all(
        self,
        page: PageParams,
        status: Optional[EnrollmentStatus] = None,
        course_id: Optional[str] = None,
    ) -> PaginatedEnrollments:
        docs, total = await self.enrollments.list_page(
            status.value if status else None, course_id, page.skip, page.limit,
        )
        return PaginatedEnrollments(
            enrollments=[to_enrollment_response(enrollment) for enrollment in docs],
            total=total,
            page=page.page,
            limit=page.limit,
            total_pages=total_pages(total, page.limit),
        )

    async def get_by_id(self, enrollment_id: str) -> EnrollmentResponse:
        enrollment = await self.enrollments.find_by_id(enrollment_id)
        if not enrollment:
            raise NotFound(f"Enrollment {enrollment_id} not found")
        course = await self.courses.find_by_id(enrollment["course_id"])
        return to_enrollment_response(enrollment, course)

    async def admin_update(self, enrollment_id: str, status: EnrollmentStatus) -> EnrollmentResponse:
        """
        Raises:
            NotFound: Unknown enrollment
            BadRequest: Attempt to reopen a COMPLETED enrollment
        """
        enrollment = await self.enrollments.find_by_id(enrollment_id)
        if not enrollment:
            raise NotFound(f"Enrollment {enrollment_id} not found")

        # COMPLETED is terminal for the learner
        if enrollment["status"] == EnrollmentStatus.COMPLETED and status in (EnrollmentStatus.ACTIVE, EnrollmentStatus.PENDING):
            raise BadRequest("A completed enrollment cannot be reopened")

        fields = {"status": EnrollmentStatus(status).value}
        if status == EnrollmentStatus.COMPLETED and enrollment["status"] != EnrollmentStatus.COMPLETED:
            fields["completed_at"] = utcnow()

        updated = await self.enrollments.update(enrollment_id, fields)
        logger.info("Enrollment %s status set to %s", enrollment_id, fields["status"])
        return to_enrollment_response(updated)

    async def delete(self, enrollment_id: str) -> None:
        if not await self.enrollments.delete(enrollment_id):
            raise NotFound(f"Enrollment {enrollment_id} not found")
        logger.info("Enrollment deleted: %s", enrollment_id)
