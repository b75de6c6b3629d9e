import logging

from learnhub.errors import NotFound
from learnhub.models import PageParams, total_pages
from learnhub.repositories import UserRepository
from learnhub.users.users_schemas import PaginatedUsers, PublicUser, UserProfile

logger = logging.getLogger(__name__)


def to_user_profile(user: dict) -> UserProfile:
    return UserProfile(
        id=user["user_id"],
        email=user["email"],
        name=user.get("name"),
        photo_url=user.get("photo_url"),
        bio=user.get("bio"),
        role=user["role"],
        email_verified=user.get("email_verified", False),
        created_at=user.get("created_at"),
        updated_at=user.get("updated_at"),
    )

def to_public_user(user: dict) -> PublicUser:
    return PublicUser(
        id=user["user_id"],
        name=user.get("name"),
        photo_url=user.get("photo_url"),
        bio=user.get("bio"),
        role=user["role"],
    )


class UsersService:
    def __init__(self, users: UserRepository):
        self.users = users

    async def _get(self, user_id: str) -> dict:
        user = await self.users.find_by_id(user_id)
        if not user:
            raise NotFound(f"User with ID {user_id} not found")
        return user

    async def get_profile(self, user_id: str) -> UserProfile:
        return to_user_profile(await self._get(user_id))

    async def update_profile(self, user_id: str, data: dict) -> UserProfile:
        """
        Only name, bio and photo URL are writable here; email and role are not

        Raises:
            NotFound: Caller's local account is gone
        """
        updates = {k: v for k, v in data.items() if v is not None}
        if "photo_url" in updates:
            updates["photo_url"] = str(updates["photo_url"])
        if not updates:
            return await self.get_profile(user_id)

        user = await self.users.update_profile(user_id, updates)
        if not user:
            raise NotFound(f"User with ID {user_id} not found")

        logger.info("Profile updated: %s (%s)", user_id, ", ".join(sorted(updates)))
        return to_user_profile(user)

    async def get_public_profile(self, user_id: str) -> PublicUser:
        return to_public_user(await self._get(user_id))

    async def list_users(self, page: PageParams) -> PaginatedUsers:
        docs, total = await self.users.list_page(page.skip, page.limit)
        return PaginatedUsers(
            users=[to_user_profile(user) for user in docs],
            total=total,
            page=page.page,
            limit=page.limit,
            total_pages=total_pages(total, page.limit),
        )
