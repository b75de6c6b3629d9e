from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from learnhub.models import CamelModel, Role

# ==================== REQUEST SCHEMAS ====================

class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: Optional[str] = None

class LoginRequest(CamelModel):
    id_token: str = Field(..., min_length=1)

class ForgotPasswordRequest(CamelModel):
    email: EmailStr

class UpdateRoleRequest(CamelModel):
    role: Role

# ==================== RESPONSE SCHEMAS ====================

class MessageResponse(CamelModel):
    message: str

class UserResponse(CamelModel):
    id: str
    firebase_uid: str
    email: str
    name: Optional[str] = None
    email_verified: bool = False
    photo_url: Optional[str] = None
    role: Role
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class SessionResponse(CamelModel):
    user: UserResponse
