"""
Learnhub API - course marketplace backend

Run:
    uvicorn learnhub.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnhub.auth.auth_router import router as auth_router
from learnhub.auth.firebase_provider import FirebaseIdentityProvider, init_firebase
from learnhub.config import Settings, get_settings
from learnhub.courses.course_router import router as course_router
from learnhub.database import create_client, create_indexes, get_database
from learnhub.enrollments.enrollment_router import router as enrollment_router
from learnhub.errors import register_exception_handlers
from learnhub.progress.progress_router import router as progress_router
from learnhub.system.health_router import router as health_router
from learnhub.users.users_router import router as users_router

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Starting learnhub (environment=%s)", settings.ENVIRONMENT)

    client = create_client(settings)
    app.state.db = get_database(client, settings)
    await create_indexes(app.state.db)

    app.state.identity_provider = FirebaseIdentityProvider(init_firebase(settings))

    yield

    client.close()
    logger.info("learnhub shut down")


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Learnhub API",
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # ==================== ROUTER REGISTRATION ====================
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(course_router)
    app.include_router(progress_router)
    app.include_router(enrollment_router)
    # ============================================================

    return app


app = create_app()
