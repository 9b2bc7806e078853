"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel

from taskio.api.auth import router as auth_router
from taskio.api.profile import router as profile_router
from taskio.api.rate_limit import FixedWindowCounter, RateLimitMiddleware
from taskio.api.tasks import router as tasks_router
from taskio.config import get_settings
from taskio.db.session import engine
from taskio.errors import register_exception_handlers
from taskio.services.throttle import LoginThrottle

settings = get_settings()


def configure_logging(level: str = "INFO") -> None:
    """Configure logging for the API process.

    Args:
        level: Logging level name (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Set specific loggers
    logging.getLogger("taskio").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration and create database tables on startup."""
    settings.validate()
    # Import models to register them with SQLModel
    from taskio.models import Task, User  # noqa: F401
    SQLModel.metadata.create_all(engine)
    yield

app = FastAPI(
    title="Taskio API",
    description="REST API for user accounts and per-user task management",
    version="1.0.0",
    lifespan=lifespan,
)

# Process-wide shared state, created once and lost on restart
app.state.login_throttle = LoginThrottle(
    max_attempts=settings.LOGIN_MAX_ATTEMPTS,
    lockout=timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES),
)
app.state.rate_limiter = FixedWindowCounter(
    max_requests=settings.RATE_LIMIT_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
)

register_exception_handlers(app)

# CORS origins - the configured frontend plus any extra origins
cors_origins = [settings.FRONTEND_URL, *settings.CORS_ALLOW_ORIGINS]
# Remove duplicates and empty strings
cors_origins = [origin for origin in dict.fromkeys(cors_origins) if origin]

# Added last so CORS wraps the limiter and answers preflights first
app.add_middleware(RateLimitMiddleware, counter=app.state.rate_limiter)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(tasks_router)


@app.get("/")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
