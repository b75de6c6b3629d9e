from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from learnhub.auth.auth_guard import ADMIN_ONLY, AUTHENTICATED, AuthUser, authorize
from learnhub.dependencies import get_enrollment_service, get_page_params
from learnhub.enrollments.enrollment_schemas import (
    AdminUpdateEnrollmentRequest, EnrollmentCheck, EnrollmentResponse, EnrollRequest, PaginatedEnrollments,
)
from learnhub.enrollments.enrollment_service import EnrollmentService
from learnhub.models import EnrollmentStatus, PageParams

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])

# ==================== ADMIN ENDPOINTS ====================

@router.get("/admin", response_model=PaginatedEnrollments)
async def list_all_enrollments(
    status: Optional[EnrollmentStatus] = None,
    course_id: Optional[str] = Query(None, alias="courseId"),
    page: PageParams = Depends(get_page_params),
    admin: AuthUser = Depends(authorize(ADMIN_ONLY)),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    return await service.list_all(page, status, course_id)


@router.get("/admin/{enrollment_id}", response_model=EnrollmentResponse)
async def get_enrollment(
    enrollment_id: str,
    admin: AuthUser = Depends(authorize(ADMIN_ONLY)),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    return await service.get_by_id(enrollment_id)


@router.patch("/admin/{enrollment_id}", response_model=EnrollmentResponse)
async def admin_update_enrollment(
    enrollment_id: str,
    data: AdminUpdateEnrollmentRequest,
    admin: AuthUser = Depends(authorize(ADMIN_ONLY)),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    return await service.admin_update(enrollment_id, data.status)


@router.delete("/admin/{enrollment_id}", status_code=204)
async def admin_delete_enrollment(
    enrollment_id: str,
    admin: AuthUser = Depends(authorize(ADMIN_ONLY)),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    """Delete an enrollment (refunds, cancellations)"""
    await service.delete(enrollment_id)
    return Response(status_code=204)

# ==================== USER ENDPOINTS ====================

@router.get("", response_model=List[EnrollmentResponse])
async def get_my_enrollments(
    user: AuthUser = Depends(authorize(AUTHENTICATED)),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    return await service.get_my_enrollments(user.db_id)


@router.get("/{course_id}/check", response_model=EnrollmentCheck)
async def check_enrollment(
    course_id: str,
    user: AuthUser = Depends(authorize(AUTHENTICATED)),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    return await service.check_enrollment(user.db_id, course_id)


@router.post("", response_model=EnrollmentResponse, status_code=201)
async def enroll(
    data: EnrollRequest,
    user: AuthUser = Depends(authorize(AUTHENTICATED)),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    """Enroll the current user in a free course"""
    return await service.enroll(user.db_id, data.course_id)
