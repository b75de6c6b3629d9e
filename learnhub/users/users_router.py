from fastapi import APIRouter, Depends

from learnhub.auth.auth_guard import ADMIN_ONLY, AUTHENTICATED, PUBLIC, AuthUser, authorize
from learnhub.dependencies import get_page_params, get_users_service
from learnhub.models import PageParams
from learnhub.users.users_schemas import PaginatedUsers, PublicUser, UpdateProfileRequest, UserProfile
from learnhub.users.users_service import UsersService

router = APIRouter(prefix="/users", tags=["Users"])

# ==================== CURRENT USER ====================

@router.get("/me", response_model=UserProfile)
async def get_me(
    user: AuthUser = Depends(authorize(AUTHENTICATED)),
    service: UsersService = Depends(get_users_service),
):
    return await service.get_profile(user.db_id)


@router.patch("/me", response_model=UserProfile)
async def update_me(
    data: UpdateProfileRequest,
    user: AuthUser = Depends(authorize(AUTHENTICATED)),
    service: UsersService = Depends(get_users_service),
):
    return await service.update_profile(user.db_id, data.model_dump(exclude_none=True))

# ==================== DIRECTORY ====================

@router.get("", response_model=PaginatedUsers, dependencies=[Depends(authorize(ADMIN_ONLY))])
async def list_users(
    page: PageParams = Depends(get_page_params),
    service: UsersService = Depends(get_users_service),
):
    return await service.list_users(page)


@router.get("/{user_id}", response_model=PublicUser, dependencies=[Depends(authorize(PUBLIC))])
async def get_user(user_id: str, service: UsersService = Depends(get_users_service)):
    """Public profile, without email"""
    return await service.get_public_profile(user_id)
