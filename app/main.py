"""FastAPI application factories for the event bus, moderation and query services.

Run one service per process, e.g.:
    uvicorn --factory app.main:create_bus_app --port 4005
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.bus import router as bus_router
from app.api.moderation import router as moderation_router
from app.api.query import router as query_router
from app.config import Settings, get_settings
from app.db.session import create_db_engine
from app.db.store import InMemoryPostStore, PostStore, SqlPostStore
from app.events.dispatcher import EventDispatcher
from app.events.publisher import HttpEventPublisher
from app.events.registry import SubscriberRegistry
from app.events.transport import HttpEventTransport
from app.services.moderation import ModerationService
from app.services.pending import PendingEventBuffer
from app.services.projection import PostProjection
from app.workers.pending_worker import PendingEventWorker
from app.workers.runner import start_worker


def _add_health_check(app: FastAPI, service: str) -> None:
    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": service}


# -----------------------------------------------------------------------------
# Event bus
# -----------------------------------------------------------------------------


def create_bus_app(
    dispatcher: EventDispatcher | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the event bus service.

    Args:
        dispatcher: Prebuilt dispatcher; one using HTTP delivery to the
            configured subscribers is created on startup otherwise
        settings: Settings override
    """
    settings = settings or get_settings()
    settings.validate()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "dispatcher", None) is None
        if owned:
            app.state.dispatcher = EventDispatcher(
                registry=SubscriberRegistry.from_urls(settings.SUBSCRIBER_URLS),
                transport=HttpEventTransport(timeout=settings.DELIVERY_TIMEOUT_SECONDS),
                timeout_seconds=settings.DELIVERY_TIMEOUT_SECONDS,
                history_size=settings.DELIVERY_REPORT_HISTORY,
            )
        yield
        if owned:
            await app.state.dispatcher.close(timeout=settings.DELIVERY_TIMEOUT_SECONDS)

    app = FastAPI(
        title="Blog Event Bus",
        description="Relays every posted event to all registered subscribers",
        version="1.0.0",
        lifespan=lifespan,
    )
    if dispatcher is not None:
        app.state.dispatcher = dispatcher

    app.include_router(bus_router)
    _add_health_check(app, "event-bus")
    return app


# -----------------------------------------------------------------------------
# Moderation
# -----------------------------------------------------------------------------


def create_moderation_app(
    service: ModerationService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the moderation service.

    Args:
        service: Prebuilt moderation service; otherwise one publishing to
            BUS_URL over HTTP is created on startup
        settings: Settings override
    """
    settings = settings or get_settings()
    settings.validate()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "moderation", None) is None
        if owned:
            app.state.moderation = ModerationService(
                publisher=HttpEventPublisher(
                    settings.BUS_URL, timeout=settings.DELIVERY_TIMEOUT_SECONDS
                ),
                disallowed_words=settings.DISALLOWED_WORDS,
            )
        yield
        if owned:
            await app.state.moderation.publisher.aclose()

    app = FastAPI(
        title="Blog Moderation Service",
        description="Classifies submitted comments and publishes CommentModerated",
        version="1.0.0",
        lifespan=lifespan,
    )
    if service is not None:
        app.state.moderation = service

    app.include_router(moderation_router)
    _add_health_check(app, "moderation")
    return app


# -----------------------------------------------------------------------------
# Query
# -----------------------------------------------------------------------------


def build_post_store(settings: Settings) -> PostStore:
    """SQL-backed store when QUERY_DATABASE_URL is set, in-memory otherwise."""
    if settings.QUERY_DATABASE_URL:
        return SqlPostStore(create_db_engine(settings.QUERY_DATABASE_URL))
    return InMemoryPostStore()


def create_query_app(
    projection: PostProjection | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the query service.

    A PendingEventWorker runs for the lifetime of the app, retrying and
    expiring deferred events.

    Args:
        projection: Prebuilt projection; otherwise built from settings
        settings: Settings override
    """
    settings = settings or get_settings()
    settings.validate()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "projection", None) is None:
            app.state.projection = PostProjection(
                store=build_post_store(settings),
                pending=PendingEventBuffer(
                    capacity=settings.PENDING_EVENT_CAPACITY,
                    ttl_seconds=settings.PENDING_EVENT_TTL_SECONDS,
                ),
            )

        stop_event = asyncio.Event()
        worker_task = start_worker(
            PendingEventWorker(app.state.projection),
            settings.PENDING_SWEEP_INTERVAL_SECONDS,
            stop_event,
        )
        yield
        stop_event.set()
        await worker_task

    app = FastAPI(
        title="Blog Query Service",
        description="Posts and comments materialized from the event stream",
        version="1.0.0",
        lifespan=lifespan,
    )
    if projection is not None:
        app.state.projection = projection

    cors_origins = [origin for origin in {settings.FRONTEND_URL, "http://localhost:3000"} if origin]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(query_router)
    _add_health_check(app, "query")
    return app
