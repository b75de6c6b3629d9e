"""
Authorization Gate and Role Guard

Every route declares an AccessPolicy. A single guard consults it before the
handler runs: public routes skip authentication entirely, all others go
through token verification, local user resolution and the role check.
Optional routes identify the caller when a token is sent and stay anonymous
otherwise.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from fastapi import Depends, Request

from learnhub.auth.firebase_provider import IdentityProvider, IdentityProviderError
from learnhub.errors import Forbidden, InvalidCredential, UserNotRegistered
from learnhub.models import CamelModel, Role
from learnhub.repositories import UserRepository

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "firebase_token"


class AuthUser(CamelModel):
    """Identity attached to the request once the gate has passed"""
    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    name: Optional[str] = None
    db_id: str
    role: Role


@dataclass(frozen=True)
class AccessPolicy:
    public: bool = False
    optional: bool = False
    required_roles: FrozenSet[Role] = field(default_factory=frozenset)

    @classmethod
    def roles(cls, *roles: Role) -> "AccessPolicy":
        return cls(required_roles=frozenset(roles))


PUBLIC = AccessPolicy(public=True)
AUTHENTICATED = AccessPolicy()
OPTIONAL_AUTH = AccessPolicy(optional=True)
INSTRUCTOR_ONLY = AccessPolicy.roles(Role.INSTRUCTOR)
ADMIN_ONLY = AccessPolicy.roles(Role.ADMIN)


def extract_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    """Bearer header first, then the token cookie"""
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
        if token:
            return token
    if cookie_token:
        return cookie_token
    return None


def check_roles(user: AuthUser, required_roles: FrozenSet[Role]) -> None:
    """
    Role Guard

    Raises:
        Forbidden: If the route declares roles and the user holds none of them.
            Admins pass every role check.
    """
    if not required_roles:
        return
    if user.role == Role.ADMIN or user.role in required_roles:
        return

    wanted = ", ".join(sorted(role.value for role in required_roles))
    raise Forbidden(f"Access denied: requires one of roles [{wanted}]")


class AuthorizationGate:
    """
    Resolves a bearer credential to a local user

    Two sequential calls per request: the identity provider, then the user
    store. Nothing is cached.
    """

    def __init__(self, identity_provider: IdentityProvider, users: UserRepository):
        self.identity_provider = identity_provider
        self.users = users

    async def authenticate(self, token: Optional[str]) -> AuthUser:
        """
        Args:
            token: Raw bearer token, possibly empty or missing

        Returns:
            AuthUser: uid, email, email_verified, name, db_id and role

        Raises:
            InvalidCredential: Token missing or rejected by the provider
            UserNotRegistered: Token valid but no local account exists
        """
        if not token:
            raise InvalidCredential("No token provided")

        try:
            claims = await self.identity_provider.verify_token(token)
        except IdentityProviderError:
            raise InvalidCredential("Invalid or expired token")

        user = await self.users.find_by_firebase_uid(claims["uid"])
        if not user:
            logger.info("Token for unregistered uid=%s rejected", claims["uid"])
            raise UserNotRegistered()

        return AuthUser(
            uid=claims["uid"],
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified", False)),
            name=claims.get("name"),
            db_id=user["user_id"],
            role=user["role"],
        )


def authorize(policy: AccessPolicy):
    """
    FastAPI dependency enforcing one route's AccessPolicy

    Usage:
        @router.get("/auth/users")
        async def list_users(user: AuthUser = Depends(authorize(ADMIN_ONLY))):
            ...
    """
    if policy.public:
        async def public_guard() -> Optional[AuthUser]:
            return None
        return public_guard

    # deferred: learnhub.dependencies imports this module
    from learnhub.dependencies import get_authorization_gate

    async def guard(
        request: Request,
        gate: AuthorizationGate = Depends(get_authorization_gate),
    ) -> Optional[AuthUser]:
        token = extract_token(
            request.headers.get("authorization"),
            request.cookies.get(TOKEN_COOKIE),
        )
        if policy.optional and not token:
            return None

        user = await gate.authenticate(token)
        check_roles(user, policy.required_roles)

        request.state.user = user
        return user

    return guard
