"""
MongoDB client, database handle and index setup
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from learnhub.config import Settings

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.MONGO_URL, tz_aware=True)


def get_database(client: AsyncIOMotorClient, settings: Settings) -> AsyncIOMotorDatabase:
    return client[settings.MONGO_DB_NAME]


async def create_indexes(db: AsyncIOMotorDatabase):
    """
    Create database indexes for uniqueness and query performance
    Called during application startup
    """

    # Users
    await db.users.create_index("user_id", unique=True)
    await db.users.create_index("firebase_uid", unique=True)
    await db.users.create_index("email", unique=True)

    # Courses
    await db.courses.create_index("course_id", unique=True)
    await db.courses.create_index("slug", unique=True)
    await db.courses.create_index([("status", 1), ("created_at", -1)])
    await db.courses.create_index("instructor_id")

    # Lessons
    await db.lessons.create_index("lesson_id", unique=True)
    await db.lessons.create_index([("course_id", 1), ("slug", 1)], unique=True)
    await db.lessons.create_index([("course_id", 1), ("is_published", 1), ("order", 1)])

    # Enrollments: one per (user, course)
    await db.enrollments.create_index("enrollment_id", unique=True)
    await db.enrollments.create_index([("user_id", 1), ("course_id", 1)], unique=True)
    await db.enrollments.create_index([("course_id", 1), ("status", 1)])

    # Progress: one per (user, lesson)
    await db.progress.create_index("progress_id", unique=True)
    await db.progress.create_index([("user_id", 1), ("lesson_id", 1)], unique=True)
    await db.progress.create_index([("user_id", 1), ("is_completed", 1)])

    logger.info("Database indexes created")
