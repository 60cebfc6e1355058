"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from event_explorer.clients.stats_client import NullPopularityProvider, StatsClient
from event_explorer.config import settings
from event_explorer.database import Base, engine
from event_explorer.errors import AppError, app_error_handler, validation_error_handler

# Import routers
from event_explorer.routers import admin_events, categories, events, public_events, requests, users

# Import all models so Base.metadata knows about them
from event_explorer.models.user import User  # noqa: F401
from event_explorer.models.category import Category  # noqa: F401
from event_explorer.models.event import Event  # noqa: F401
from event_explorer.models.request import ParticipationRequest  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Event Explorer",
    description="Event discovery: publication lifecycle and capacity-limited participation requests",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

# Register routers
app.include_router(users.router, prefix="/admin/users", tags=["Admin: Users"])
app.include_router(categories.admin_router, prefix="/admin/categories", tags=["Admin: Categories"])
app.include_router(admin_events.router, prefix="/admin/events", tags=["Admin: Events"])
app.include_router(categories.router, prefix="/categories", tags=["Categories"])
app.include_router(events.router, prefix="/users/{user_id}/events", tags=["Private: Events"])
app.include_router(requests.router, prefix="/users/{user_id}/requests", tags=["Private: Requests"])
app.include_router(public_events.router, prefix="/events", tags=["Public: Events"])


@app.on_event("startup")
def on_startup():
    """Create database tables (SQLite dev mode) and connect the stats client."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    if settings.STATS_ENABLED:
        app.state.popularity = StatsClient(
            base_url=settings.STATS_SERVER_URL,
            app_name=settings.APP_NAME,
            timeout=settings.STATS_TIMEOUT_SECONDS,
            unique=settings.STATS_UNIQUE_VIEWS,
        )
        logger.info("Stats client targeting %s", settings.STATS_SERVER_URL)
    else:
        app.state.popularity = NullPopularityProvider()
        logger.info("Stats disabled, view counts will be zero")


@app.on_event("shutdown")
def on_shutdown():
    provider = getattr(app.state, "popularity", None)
    if isinstance(provider, StatsClient):
        provider.close()


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
