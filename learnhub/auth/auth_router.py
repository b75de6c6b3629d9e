from typing import List

from fastapi import APIRouter, Depends

from learnhub.auth.auth_guard import ADMIN_ONLY, AUTHENTICATED, PUBLIC, AuthUser, authorize
from learnhub.auth.auth_schemas import (
    ForgotPasswordRequest, LoginRequest, MessageResponse, RegisterRequest,
    SessionResponse, UpdateRoleRequest, UserResponse,
)
from learnhub.auth.auth_service import AuthService
from learnhub.dependencies import get_auth_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=MessageResponse, status_code=201,
             dependencies=[Depends(authorize(PUBLIC))])
async def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Register a new user with the identity provider and sync to database"""
    return await service.register(data.email, data.password, data.name)


@router.post("/login", response_model=SessionResponse, dependencies=[Depends(authorize(PUBLIC))])
async def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Login with an ID token obtained from client-side Firebase Auth"""
    return await service.login(data.id_token)


@router.get("/profile", response_model=AuthUser)
async def get_profile(user: AuthUser = Depends(authorize(AUTHENTICATED))):
    return user


@router.post("/forgot-password", response_model=MessageResponse,
             dependencies=[Depends(authorize(PUBLIC))])
async def forgot_password(data: ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)):
    return await service.request_password_reset(data.email)


@router.post("/refresh", response_model=SessionResponse)
async def refresh_session(
    user: AuthUser = Depends(authorize(AUTHENTICATED)),
    service: AuthService = Depends(get_auth_service),
):
    """
    Latest user data from the database
    Clients call this after refreshing their Firebase ID token
    """
    return {"user": await service.get_user_by_firebase_uid(user.uid)}


# ==================== ADMIN ====================

@router.get("/users", response_model=List[UserResponse])
async def list_users(
    admin: AuthUser = Depends(authorize(ADMIN_ONLY)),
    service: AuthService = Depends(get_auth_service),
):
    return await service.get_all_users()


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    data: UpdateRoleRequest,
    admin: AuthUser = Depends(authorize(ADMIN_ONLY)),
    service: AuthService = Depends(get_auth_service),
):
    return await service.update_user_role(user_id, data.role, admin.db_id)
