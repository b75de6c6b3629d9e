"""
Local user accounts backed by the identity provider
"""

import logging
from typing import Iterable, List, Optional

from learnhub.auth.auth_schemas import UserResponse
from learnhub.auth.firebase_provider import IdentityProvider, IdentityProviderError
from learnhub.errors import BadRequest, Conflict, Forbidden, InvalidCredential, NotFound
from learnhub.models import Role, generate_id, utcnow
from learnhub.repositories import UserRepository

logger = logging.getLogger(__name__)

PASSWORD_RESET_MESSAGE = "If the email exists, a password reset link has been sent"


def to_user_response(user: dict) -> UserResponse:
    return UserResponse(
        id=user["user_id"],
        firebase_uid=user["firebase_uid"],
        email=user["email"],
        name=user.get("name"),
        email_verified=user.get("email_verified", False),
        photo_url=user.get("photo_url"),
        role=user["role"],
        created_at=user.get("created_at"),
        updated_at=user.get("updated_at"),
    )


class AuthService:
    """
    Account lifecycle on top of the identity provider

    Login is the only path that creates a local user for an existing
    provider account; protected routes never provision.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        users: UserRepository,
        admin_emails: Optional[Iterable[str]] = None,
    ):
        self.identity_provider = identity_provider
        self.users = users
        self.admin_emails = {email.lower() for email in (admin_emails or ())}

    def _initial_role(self, email: Optional[str]) -> Role:
        if email and email.lower() in self.admin_emails:
            return Role.ADMIN
        return Role.USER

    # ==================== REGISTRATION ====================

    async def register(self, email: str, password: str, name: Optional[str] = None) -> dict:
        """
        Create the provider account, then the local user

        Raises:
            Conflict: Email already registered locally or at the provider
            BadRequest: Provider rejected the email or password
        """
        email = email.lower()
        if await self.users.find_by_email(email):
            raise Conflict("Email already registered")

        try:
            provider_user = await self.identity_provider.create_user(email, password, name)
        except IdentityProviderError as e:
            logger.error("Registration failed for %s: %s", email, e)
            if e.code == "email-already-exists":
                raise Conflict("Email already registered")
            if e.code == "invalid-email":
                raise BadRequest("Invalid email address")
            if e.code == "weak-password":
                raise BadRequest("Password is too weak. Please choose a stronger password")
            raise BadRequest("Registration failed")

        now = utcnow()
        await self.users.create({
            "user_id": generate_id("USR"),
            "firebase_uid": provider_user.uid,
            "email": (provider_user.email or email).lower(),
            "name": provider_user.display_name or name,
            "email_verified": provider_user.email_verified,
            "photo_url": provider_user.photo_url,
            "role": self._initial_role(email).value,
            "created_at": now,
            "updated_at": now,
        })

        logger.info("User registered successfully: %s", email)
        return {"message": "User registered successfully"}

    # ==================== LOGIN ====================

    async def login(self, id_token: str) -> dict:
        """
        Verify a provider token and return the local user, syncing it on first login

        Raises:
            InvalidCredential: Token rejected, provider lookup failed, or the
                provider email belongs to another local account
        """
        try:
            claims = await self.identity_provider.verify_token(id_token)
            user = await self.users.find_by_firebase_uid(claims["uid"])
            if not user:
                user = await self.sync_provider_user(claims["uid"])
        except (IdentityProviderError, Conflict) as e:
            logger.warning("Login failed: %s", e)
            raise InvalidCredential("Authentication failed")

        logger.info("User logged in: %s", user["email"])
        return {"user": to_user_response(user)}

    async def sync_provider_user(self, firebase_uid: str) -> dict:
        """Upsert the local user from the provider record"""
        provider_user = await self.identity_provider.get_user(firebase_uid)
        email = (provider_user.email or "").lower()

        user = await self.users.upsert_by_firebase_uid(
            firebase_uid,
            fields={
                "email": email,
                "name": provider_user.display_name,
                "email_verified": provider_user.email_verified,
                "photo_url": provider_user.photo_url,
            },
            on_insert={"role": self._initial_role(email).value},
        )

        logger.info("Synced provider user to database: %s", email)
        return user

    # ==================== PASSWORD RESET ====================

    async def request_password_reset(self, email: str) -> dict:
        """
        Same answer whether or not the account exists
        """
        try:
            await self.identity_provider.generate_password_reset_link(email)
            logger.info("Password reset link generated for %s", email)
        except IdentityProviderError as e:
            logger.warning("Password reset failed for %s: %s", email, e)

        return {"message": PASSWORD_RESET_MESSAGE}

    # ==================== USERS ====================

    async def get_user_by_firebase_uid(self, firebase_uid: str) -> UserResponse:
        user = await self.users.find_by_firebase_uid(firebase_uid)
        if not user:
            raise NotFound("User not found")
        return to_user_response(user)

    async def get_all_users(self) -> List[UserResponse]:
        return [to_user_response(user) for user in await self.users.list_all()]

    async def update_user_role(self, user_id: str, role: Role, admin_user_id: str) -> UserResponse:
        """
        Raises:
            Forbidden: Admin targeting their own account, whatever the role
            NotFound: Unknown user
        """
        if user_id == admin_user_id:
            raise Forbidden("You cannot change your own role")

        if not await self.users.find_by_id(user_id):
            raise NotFound(f"User with ID {user_id} not found")

        user = await self.users.update_role(user_id, Role(role).value)
        if not user:
            raise NotFound(f"User with ID {user_id} not found")

        logger.info("Role changed: user=%s, role=%s, by=%s", user_id, user["role"], admin_user_id)
        return to_user_response(user)
