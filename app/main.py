"""Main FastAPI application for the Bingo Board API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import admin, auth, cards, comments, friends, group_comments, groups, reactions, users
from app.config import settings
from app.core.errors import register_exception_handlers
from app.database import run_migrations

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup")
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        run_migrations()
    yield
    logger.info("Application shutdown")


# Create FastAPI application instance
app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Include API routers
app.include_router(
    auth.router,
    prefix=f"{settings.API_V1_PREFIX}/auth",
    tags=["Authentication"]
)

app.include_router(
    users.router,
    prefix=f"{settings.API_V1_PREFIX}/users",
    tags=["Users"]
)

app.include_router(
    cards.router,
    prefix=f"{settings.API_V1_PREFIX}/cards",
    tags=["Cards"]
)

app.include_router(
    friends.router,
    prefix=f"{settings.API_V1_PREFIX}/friends",
    tags=["Friends"]
)

app.include_router(
    comments.router,
    prefix=f"{settings.API_V1_PREFIX}/comments",
    tags=["Comments"]
)

app.include_router(
    reactions.router,
    prefix=f"{settings.API_V1_PREFIX}/reactions",
    tags=["Reactions"]
)

app.include_router(
    groups.router,
    prefix=f"{settings.API_V1_PREFIX}/groups",
    tags=["Groups"]
)

app.include_router(
    group_comments.router,
    prefix=f"{settings.API_V1_PREFIX}/groups/{{group_id}}/comments",
    tags=["Group Comments"]
)

app.include_router(
    admin.router,
    prefix=f"{settings.API_V1_PREFIX}/admin",
    tags=["Admin"]
)


@app.get("/")
def root():
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the Bingo Board API",
        "docs": "/docs",
        "version": "1.0.0"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
