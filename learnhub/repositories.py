"""
Repository contracts and their MongoDB implementations.

Each entity gets one narrow interface; services only ever talk to these
interfaces, so any backing store (or an in-memory fake) can stand in.
Documents are plain dicts with the Mongo ``_id`` stripped.
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from learnhub.errors import Conflict
from learnhub.models import CourseStatus, generate_id, utcnow


def serialize_mongo(doc: Optional[dict]) -> Optional[dict]:
    if doc is not None:
        doc.pop("_id", None)
    return doc

def serialize_many(docs: List[dict]) -> List[dict]:
    return [serialize_mongo(doc) for doc in docs]

async def paginate(collection, query: dict, sort: list, skip: int, limit: int) -> Tuple[List[dict], int]:
    """One page of documents plus the total matching count"""
    total = await collection.count_documents(query)
    cursor = collection.find(query).sort(sort).skip(skip).limit(limit)
    return serialize_many(await cursor.to_list(length=limit)), total


# ==================== CONTRACTS ====================

class UserRepository(Protocol):
    async def find_by_id(self, user_id: str) -> Optional[dict]: ...
    async def find_by_firebase_uid(self, firebase_uid: str) -> Optional[dict]: ...
    async def find_by_email(self, email: str) -> Optional[dict]: ...
    async def create(self, user: dict) -> dict: ...
    async def upsert_by_firebase_uid(self, firebase_uid: str, fields: dict, on_insert: dict) -> dict: ...
    async def update_role(self, user_id: str, role: str) -> Optional[dict]: ...
    async def update_profile(self, user_id: str, fields: dict) -> Optional[dict]: ...
    async def list_all(self) -> List[dict]: ...
    async def list_page(self, skip: int, limit: int) -> Tuple[List[dict], int]: ...


class CourseRepository(Protocol):
    async def find_by_id(self, course_id: str) -> Optional[dict]: ...
    async def search_published(
        self,
        search: Optional[str],
        min_price: Optional[int],
        max_price: Optional[int],
        skip: int,
        limit: int,
    ) -> Tuple[List[dict], int]: ...
    async def list_by_instructor(self, instructor_id: str) -> List[dict]: ...
    async def create(self, course: dict) -> dict: ...
    async def update(self, course_id: str, fields: dict) -> Optional[dict]: ...
    async def delete(self, course_id: str) -> bool: ...


class LessonRepository(Protocol):
    async def find_in_course(self, lesson_id: str, course_id: str, published_only: bool = False) -> Optional[dict]: ...
    async def find_by_slug(self, course_id: str, slug: str) -> Optional[dict]: ...
    async def list_published(self, course_id: str) -> List[dict]: ...
    async def list_by_course(self, course_id: str) -> List[dict]: ...
    async def count_published(self, course_id: str) -> int: ...
    async def next_order(self, course_id: str) -> int: ...
    async def create(self, lesson: dict) -> dict: ...
    async def update(self, lesson_id: str, fields: dict) -> Optional[dict]: ...
    async def delete(self, lesson_id: str) -> bool: ...
    async def delete_by_course(self, course_id: str) -> int: ...


class EnrollmentRepository(Protocol):
    async def find(self, user_id: str, course_id: str) -> Optional[dict]: ...
    async def find_by_id(self, enrollment_id: str) -> Optional[dict]: ...
    async def list_by_user(self, user_id: str) -> List[dict]: ...
    async def list_page(
        self,
        status: Optional[str],
        course_id: Optional[str],
        skip: int,
        limit: int,
    ) -> Tuple[List[dict], int]: ...
    async def count_by_course(self, course_id: str) -> int: ...
    async def create(self, enrollment: dict) -> dict: ...
    async def update(self, enrollment_id: str, fields: dict) -> Optional[dict]: ...
    async def delete(self, enrollment_id: str) -> bool: ...


class ProgressRepository(Protocol):
    async def find(self, user_id: str, lesson_id: str) -> Optional[dict]: ...
    async def upsert(self, user_id: str, lesson_id: str, fields: dict) -> dict: ...
    async def count_completed(self, user_id: str, course_id: str) -> int: ...
    async def completed_lesson_ids(self, user_id: str, lesson_ids: Iterable[str]) -> Set[str]: ...


# Fields a freshly inserted progress row starts with
PROGRESS_DEFAULTS: Dict[str, Any] = {
    "is_completed": False,
    "completed_at": None,
    "watched_seconds": 0,
    "last_position": 0,
}


# ==================== MONGO IMPLEMENTATIONS ====================

class MongoUserRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.users

    async def find_by_id(self, user_id: str) -> Optional[dict]:
        return serialize_mongo(await self.collection.find_one({"user_id": user_id}))

    async def find_by_firebase_uid(self, firebase_uid: str) -> Optional[dict]:
        return serialize_mongo(await self.collection.find_one({"firebase_uid": firebase_uid}))

    async def find_by_email(self, email: str) -> Optional[dict]:
        return serialize_mongo(await self.collection.find_one({"email": email}))

    async def create(self, user: dict) -> dict:
        try:
            await self.collection.insert_one(user)
        except DuplicateKeyError:
            raise Conflict("Email already registered")
        return serialize_mongo(user)

    async def upsert_by_firebase_uid(self, firebase_uid: str, fields: dict, on_insert: dict) -> dict:
        """
        Raises:
            Conflict: The provider email already belongs to another local user
        """
        now = utcnow()
        try:
            doc = await self.collection.find_one_and_update(
                {"firebase_uid": firebase_uid},
                {
                    "$set": {**fields, "updated_at": now},
                    "$setOnInsert": {
                        **{k: v for k, v in on_insert.items() if k not in fields},
                        "user_id": generate_id("USR"),
                        "created_at": now,
                    },
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise Conflict("Email already registered")
        return serialize_mongo(doc)

    async def update_role(self, user_id: str, role: str) -> Optional[dict]:
        doc = await self.collection.find_one_and_update(
            {"user_id": user_id},
            {"$set": {"role": role, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return serialize_mongo(doc)

    async def update_profile(self, user_id: str, fields: dict) -> Optional[dict]:
        doc = await self.collection.find_one_and_update(
            {"user_id": user_id},
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return serialize_mongo(doc)

    async def list_all(self) -> List[dict]:
        cursor = self.collection.find({}).sort("created_at", DESCENDING)
        return serialize_many(await cursor.to_list(length=None))

    async def list_page(self, skip: int, limit: int) -> Tuple[List[dict], int]:
        return await paginate(self.collection, {}, [("created_at", DESCENDING)], skip, limit)


class MongoCourseRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.courses

    async def find_by_id(self, course_id: str) -> Optional[dict]:
        return serialize_mongo(await self.collection.find_one({"course_id": course_id}))

    async def search_published(
        self,
        search: Optional[str],
        min_price: Optional[int],
        max_price: Optional[int],
        skip: int,
        limit: int,
    ) -> Tuple[List[dict], int]:
        query: Dict[str, Any] = {"status": CourseStatus.PUBLISHED.value}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"title": pattern}, {"description": pattern}]
        price = {}
        if min_price is not None:
            price["$gte"] = min_price
        if max_price is not None:
            price["$lte"] = max_price
        if price:
            query["price"] = price
        return await paginate(self.collection, query, [("created_at", DESCENDING)], skip, limit)

    async def list_by_instructor(self, instructor_id: str) -> List[dict]:
        cursor = self.collection.find({"instructor_id": instructor_id}).sort("created_at", DESCENDING)
        return serialize_many(await cursor.to_list(length=None))

    async def create(self, course: dict) -> dict:
        try:
            await self.collection.insert_one(course)
        except DuplicateKeyError:
            raise Conflict(f"Course with slug '{course.get('slug')}' already exists")
        return serialize_mongo(course)

    async def update(self, course_id: str, fields: dict) -> Optional[dict]:
        try:
            doc = await self.collection.find_one_and_update(
                {"course_id": course_id},
                {"$set": {**fields, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise Conflict(f"Course with slug '{fields.get('slug')}' already exists")
        return serialize_mongo(doc)

    async def delete(self, course_id: str) -> bool:
        result = await self.collection.delete_one({"course_id": course_id})
        return result.deleted_count > 0


class MongoLessonRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.lessons

    async def find_in_course(self, lesson_id: str, course_id: str, published_only: bool = False) -> Optional[dict]:
        query = {"lesson_id": lesson_id, "course_id": course_id}
        if published_only:
            query["is_published"] = True
        return serialize_mongo(await self.collection.find_one(query))

    async def find_by_slug(self, course_id: str, slug: str) -> Optional[dict]:
        return serialize_mongo(await self.collection.find_one({"course_id": course_id, "slug": slug}))

    async def list_published(self, course_id: str) -> List[dict]:
        cursor = self.collection.find({"course_id": course_id, "is_published": True}).sort("order", ASCENDING)
        return serialize_many(await cursor.to_list(length=None))

    async def list_by_course(self, course_id: str) -> List[dict]:
        cursor = self.collection.find({"course_id": course_id}).sort("order", ASCENDING)
        return serialize_many(await cursor.to_list(length=None))

    async def count_published(self, course_id: str) -> int:
        return await self.collection.count_documents({"course_id": course_id, "is_published": True})

    async def next_order(self, course_id: str) -> int:
        last = await self.collection.find_one({"course_id": course_id}, sort=[("order", DESCENDING)])
        return last["order"] + 1 if last else 0

    async def create(self, lesson: dict) -> dict:
        try:
            await self.collection.insert_one(lesson)
        except DuplicateKeyError:
            raise Conflict(f"Lesson with slug '{lesson.get('slug')}' already exists in this course")
        return serialize_mongo(lesson)

    async def update(self, lesson_id: str, fields: dict) -> Optional[dict]:
        doc = await self.collection.find_one_and_update(
            {"lesson_id": lesson_id},
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return serialize_mongo(doc)

    async def delete(self, lesson_id: str) -> bool:
        result = await self.collection.delete_one({"lesson_id": lesson_id})
        return result.deleted_count > 0

    async def delete_by_course(self, course_id: str) -> int:
        result = await self.collection.delete_many({"course_id": course_id})
        return result.deleted_count


class MongoEnrollmentRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.enrollments

    async def find(self, user_id: str, course_id: str) -> Optional[dict]:
        return serialize_mongo(await self.collection.find_one({"user_id": user_id, "course_id": course_id}))

    async def find_by_id(self, enrollment_id: str) -> Optional[dict]:
        return serialize_mongo(await self.collection.find_one({"enrollment_id": enrollment_id}))

    async def list_by_user(self, user_id: str) -> List[dict]:
        cursor = self.collection.find({"user_id": user_id}).sort("enrolled_at", DESCENDING)
        return serialize_many(await cursor.to_list(length=None))

    async def list_page(
        self,
        status: Optional[str],
        course_id: Optional[str],
        skip: int,
        limit: int,
    ) -> Tuple[List[dict], int]:
        query = {}
        if status:
            query["status"] = status
        if course_id:
            query["course_id"] = course_id
        return await paginate(self.collection, query, [("enrolled_at", DESCENDING)], skip, limit)

    async def count_by_course(self, course_id: str) -> int:
        return await self.collection.count_documents({"course_id": course_id})

    async def create(self, enrollment: dict) -> dict:
        try:
            await self.collection.insert_one(enrollment)
        except DuplicateKeyError:
            raise Conflict("Already enrolled in this course")
        return serialize_mongo(enrollment)

    async def update(self, enrollment_id: str, fields: dict) -> Optional[dict]:
        doc = await self.collection.find_one_and_update(
            {"enrollment_id": enrollment_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        return serialize_mongo(doc)

    async def delete(self, enrollment_id: str) -> bool:
        result = await self.collection.delete_one({"enrollment_id": enrollment_id})
        return result.deleted_count > 0


class MongoProgressRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.progress
        self.lessons = db.lessons

    async def find(self, user_id: str, lesson_id: str) -> Optional[dict]:
        return serialize_mongo(await self.collection.find_one({"user_id": user_id, "lesson_id": lesson_id}))

    async def upsert(self, user_id: str, lesson_id: str, fields: dict) -> dict:
        """
        Insert-or-update keyed by (user_id, lesson_id)

        Two concurrent first writes can both miss and both try to insert;
        the unique index rejects the loser, which then retries as a plain update.
        """
        now = utcnow()
        update = {
            "$set": {**fields, "updated_at": now},
            "$setOnInsert": {
                **{k: v for k, v in PROGRESS_DEFAULTS.items() if k not in fields},
                "progress_id": generate_id("PRG"),
                "created_at": now,
            },
        }
        key = {"user_id": user_id, "lesson_id": lesson_id}
        try:
            doc = await self.collection.find_one_and_update(
                key, update, upsert=True, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            doc = await self.collection.find_one_and_update(
                key, {"$set": update["$set"]}, return_document=ReturnDocument.AFTER
            )
        return serialize_mongo(doc)

    async def count_completed(self, user_id: str, course_id: str) -> int:
        lesson_ids = await self.lessons.distinct(
            "lesson_id", {"course_id": course_id, "is_published": True}
        )
        if not lesson_ids:
            return 0
        return await self.collection.count_documents({
            "user_id": user_id,
            "is_completed": True,
            "lesson_id": {"$in": lesson_ids},
        })

    async def completed_lesson_ids(self, user_id: str, lesson_ids: Iterable[str]) -> Set[str]:
        lesson_ids = list(lesson_ids)
        if not lesson_ids:
            return set()
        cursor = self.collection.find(
            {"user_id": user_id, "is_completed": True, "lesson_id": {"$in": lesson_ids}},
            {"lesson_id": 1},
        )
        return {doc["lesson_id"] for doc in await cursor.to_list(length=None)}
