import logging
from typing import Dict, List

import httpx
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.auth.auth_guard import PUBLIC, authorize
from learnhub.config import Settings, get_settings
from learnhub.dependencies import get_db
from learnhub.models import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


async def ping_database(db: AsyncIOMotorDatabase) -> str:
    try:
        await db.command("ping")
        return "UP"
    except Exception as e:
        logger.error("Database ping failed: %s", e)
        return "DOWN"


async def ping_urls(urls: List[str], timeout: float) -> Dict[str, dict]:
    """
    Ping external dependencies and record status with latency
    """
    results = {}
    async with httpx.AsyncClient(timeout=timeout) as client:
        for url in urls:
            start = utcnow()
            try:
                resp = await client.get(url)
                status = "UP" if resp.status_code == 200 else "DOWN"
            except httpx.HTTPError as e:
                logger.warning("Health ping to %s failed: %s", url, e)
                status = "DOWN"
            results[url] = {
                "status": status,
                "latency_ms": round((utcnow() - start).total_seconds() * 1000, 1),
            }
    return results


@router.get("/health", dependencies=[Depends(authorize(PUBLIC))])
async def health(
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    database = await ping_database(db)
    record = {
        "status": "ok" if database == "UP" else "degraded",
        "database": database,
        "timestamp": utcnow().isoformat(),
    }

    if settings.detailed_health_checks:
        record["environment"] = settings.ENVIRONMENT
        if settings.HEALTH_PING_URLS:
            record["dependencies"] = await ping_urls(
                settings.HEALTH_PING_URLS, settings.HEALTH_PING_TIMEOUT_SECONDS
            )

    return record
