"""ProgressService: lesson completion and enrollment consistency."""

import itertools

import pytest

from learnhub.errors import LessonNotFound, NotEnrolled
from learnhub.progress.progress_service import (
    ProgressService, compute_progress_percent, enrollment_update_for,
)


class TestComputeProgressPercent:
    def test_no_published_lessons_skips(self) -> None:
        assert compute_progress_percent(0, 0) is None

    @pytest.mark.parametrize(
        "completed,total,expected",
        [(0, 3, 0), (1, 3, 33), (2, 3, 67), (3, 3, 100), (1, 8, 13), (1, 200, 1), (1, 201, 0)],
    )
    def test_rounds_half_up(self, completed: int, total: int, expected: int) -> None:
        assert compute_progress_percent(completed, total) == expected

    def test_enrollment_update_marks_completed_only_at_100(self) -> None:
        assert enrollment_update_for(2, 3) == {"progress_percent": 67}

        fields = enrollment_update_for(3, 3)
        assert fields["progress_percent"] == 100
        assert fields["status"] == "COMPLETED"
        assert fields["completed_at"] is not None

    def test_enrollment_update_none_for_empty_course(self) -> None:
        assert enrollment_update_for(0, 0) is None


class TestMarkLessonComplete:
    async def test_three_lesson_scenario(
        self, progress_service: ProgressService, enrollments, three_lesson_course
    ) -> None:
        """Two of three lessons give 67% ACTIVE; the third completes the enrollment."""
        await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_1")
        await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_2")

        enrollment = await enrollments.find("USR_STUDENT", three_lesson_course)
        assert enrollment["progress_percent"] == 67
        assert enrollment["status"] == "ACTIVE"

        result = await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_3")

        enrollment = await enrollments.find("USR_STUDENT", three_lesson_course)
        assert enrollment["progress_percent"] == 100
        assert enrollment["status"] == "COMPLETED"
        assert enrollment["completed_at"] is not None
        assert result.is_completed is True
        assert result.lesson_id == "LSN_3"
        assert result.completed_at is not None

    @pytest.mark.parametrize("order", list(itertools.permutations(["LSN_1", "LSN_2", "LSN_3"])))
    async def test_any_completion_order_reaches_completed(
        self, progress_service, enrollments, three_lesson_course, order
    ) -> None:
        for lesson_id in order + (order[0],):
            await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, lesson_id)

        enrollment = await enrollments.find("USR_STUDENT", three_lesson_course)
        assert enrollment["status"] == "COMPLETED"
        assert enrollment["progress_percent"] == 100

    async def test_repeat_completion_is_idempotent(
        self, progress_service, enrollments, progress, three_lesson_course
    ) -> None:
        first = await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_1")
        second = await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_1")

        assert first.id == second.id
        assert len(progress.rows) == 1
        enrollment = await enrollments.find("USR_STUDENT", three_lesson_course)
        assert enrollment["progress_percent"] == 33

    async def test_not_enrolled(self, progress_service, three_lesson_course) -> None:
        with pytest.raises(NotEnrolled) as exc_info:
            await progress_service.mark_lesson_complete("USR_OTHER", three_lesson_course, "LSN_1")
        assert exc_info.value.status_code == 403

    @pytest.mark.parametrize("status", ["PENDING", "EXPIRED"])
    async def test_inactive_enrollment_rejected(self, progress_service, enrollments, lessons, courses, status) -> None:
        courses.seed("CRS_X", instructor_id="USR_INSTRUCTOR")
        lessons.seed("LSN_X", "CRS_X", 0)
        enrollments.seed("USR_STUDENT", "CRS_X", status=status)

        with pytest.raises(NotEnrolled, match="not active"):
            await progress_service.mark_lesson_complete("USR_STUDENT", "CRS_X", "LSN_X")

    async def test_completed_enrollment_may_still_record_progress(
        self, progress_service, enrollments, lessons, courses
    ) -> None:
        courses.seed("CRS_DONE", instructor_id="USR_INSTRUCTOR")
        lessons.seed("LSN_D", "CRS_DONE", 0)
        enrollments.seed("USR_STUDENT", "CRS_DONE", status="COMPLETED", progress_percent=100)

        result = await progress_service.mark_lesson_complete("USR_STUDENT", "CRS_DONE", "LSN_D")
        assert result.is_completed is True

    async def test_enrollment_checked_before_lesson(self, progress_service, three_lesson_course) -> None:
        with pytest.raises(NotEnrolled):
            await progress_service.mark_lesson_complete("USR_OTHER", three_lesson_course, "LSN_MISSING")

    async def test_unpublished_lesson_not_found(self, progress_service, lessons, three_lesson_course) -> None:
        lessons.seed("LSN_DRAFT", three_lesson_course, 9, is_published=False)

        with pytest.raises(LessonNotFound) as exc_info:
            await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_DRAFT")
        assert exc_info.value.status_code == 404

    async def test_lesson_from_other_course_not_found(self, progress_service, lessons, three_lesson_course) -> None:
        lessons.seed("LSN_ELSEWHERE", "CRS_OTHER", 0)

        with pytest.raises(LessonNotFound):
            await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_ELSEWHERE")

    async def test_failed_precondition_writes_nothing(self, progress_service, progress, enrollments, three_lesson_course) -> None:
        with pytest.raises(LessonNotFound):
            await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_NOPE")

        assert progress.rows == {}
        assert enrollments.updates == []

    async def test_completion_is_one_way(self, progress_service, enrollments, lessons, three_lesson_course) -> None:
        """A lesson published after completion lowers the percent but keeps COMPLETED."""
        for lesson_id in ("LSN_1", "LSN_2", "LSN_3"):
            await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, lesson_id)

        lessons.seed("LSN_4", three_lesson_course, 3)
        await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_1")

        enrollment = await enrollments.find("USR_STUDENT", three_lesson_course)
        assert enrollment["progress_percent"] == 75
        assert enrollment["status"] == "COMPLETED"


class TestEmptyCourse:
    async def test_recompute_skipped_when_no_published_lessons(
        self, progress_service: ProgressService, enrollments, progress
    ) -> None:
        enrollments.seed("USR_STUDENT", "CRS_EMPTY", progress_percent=40)

        summary = await progress_service.get_course_progress("USR_STUDENT", "CRS_EMPTY")
        assert summary.total_lessons == 0
        assert summary.progress_percent == 0

        # the recompute itself must leave the stored value alone
        await progress_service._recompute_enrollment(
            await enrollments.find("USR_STUDENT", "CRS_EMPTY"), "USR_STUDENT", "CRS_EMPTY"
        )
        enrollment = await enrollments.find("USR_STUDENT", "CRS_EMPTY")
        assert enrollment["progress_percent"] == 40
        assert enrollments.updates == []


class TestCourseProgress:
    async def test_lists_published_lessons_in_order(self, progress_service, lessons, three_lesson_course) -> None:
        lessons.seed("LSN_DRAFT", three_lesson_course, 1, is_published=False)
        await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_2")

        summary = await progress_service.get_course_progress("USR_STUDENT", three_lesson_course)

        assert [lesson.id for lesson in summary.lessons] == ["LSN_1", "LSN_2", "LSN_3"]
        assert [lesson.is_completed for lesson in summary.lessons] == [False, True, False]
        assert summary.total_lessons == 3
        assert summary.completed_lessons == 1
        assert summary.progress_percent == 33

    async def test_read_path_agrees_with_write_path(self, progress_service, enrollments, three_lesson_course) -> None:
        for lesson_id in ("LSN_3", "LSN_1", "LSN_3", "LSN_2"):
            await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, lesson_id)
            summary = await progress_service.get_course_progress("USR_STUDENT", three_lesson_course)
            enrollment = await enrollments.find("USR_STUDENT", three_lesson_course)
            assert summary.progress_percent == enrollment["progress_percent"]

    async def test_read_path_does_not_mutate(self, progress_service, enrollments, three_lesson_course) -> None:
        await progress_service.get_course_progress("USR_STUDENT", three_lesson_course)
        assert enrollments.updates == []

    async def test_requires_enrollment(self, progress_service, three_lesson_course) -> None:
        with pytest.raises(NotEnrolled):
            await progress_service.get_course_progress("USR_OTHER", three_lesson_course)


class TestWatchPosition:
    async def test_default_progress_when_none_recorded(self, progress_service, three_lesson_course) -> None:
        result = await progress_service.get_lesson_progress("USR_STUDENT", three_lesson_course, "LSN_1")

        assert result.id is None
        assert result.is_completed is False
        assert result.watched_seconds == 0
        assert result.last_position == 0

    async def test_update_does_not_touch_completion(self, progress_service, enrollments, three_lesson_course) -> None:
        await progress_service.mark_lesson_complete("USR_STUDENT", three_lesson_course, "LSN_1")

        result = await progress_service.update_watch_position(
            "USR_STUDENT", three_lesson_course, "LSN_1", watched_seconds=300, last_position=150
        )

        assert result.is_completed is True
        assert result.watched_seconds == 300
        assert result.last_position == 150
        assert len(enrollments.updates) == 1

    async def test_partial_update_keeps_other_field(self, progress_service, three_lesson_course) -> None:
        await progress_service.update_watch_position(
            "USR_STUDENT", three_lesson_course, "LSN_2", watched_seconds=120, last_position=60
        )
        result = await progress_service.update_watch_position(
            "USR_STUDENT", three_lesson_course, "LSN_2", last_position=90
        )

        assert result.watched_seconds == 120
        assert result.last_position == 90
        assert result.is_completed is False

    async def test_unknown_lesson(self, progress_service, three_lesson_course) -> None:
        with pytest.raises(LessonNotFound):
            await progress_service.get_lesson_progress("USR_STUDENT", three_lesson_course, "LSN_404")
