import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.database import init_db
from app.dependencies import get_settings
from app.interactions.router import router as interactions_router
from app.notifications.router import router as notifications_router
from app.rate_limit import limiter
from app.search.opensearch import open_client
from app.search.router import router as search_router
from app.social_graph.router import router as social_graph_router
from app.task_queue import close_pool, open_pool
from app.users.router import router as users_router
from shared.logging_setup import configure_logging
from shared.middleware import (
    error_envelope_middleware,
    http_exception_handler,
    request_id_middleware,
)

logger = logging.getLogger(__name__)

# Swagger tag groups displayed in the OpenAPI docs sidebar
_OPENAPI_TAGS = [
    {
        "name": "users",
        "description": "Profile rows: create, edit, privacy toggle, public profile with counts.",
    },
    {
        "name": "social-graph",
        "description": (
            "Follow state machine. Public accounts are followed at once; private "
            "accounts get a pending request the owner approves or rejects."
        ),
    },
    {
        "name": "Interactions",
        "description": (
            "Posts, likes and comments. Each one publishes notification events "
            "after commit and keeps the search index in sync."
        ),
    },
    {
        "name": "Notifications",
        "description": (
            "Recipient-owned notification inbox, delivered asynchronously by the "
            "arq worker. Includes accept/reject for follow requests."
        ),
    },
    {
        "name": "Search",
        "description": "Fuzzy search over users, posts and hashtags (OpenSearch, Postgres fallback).",
    },
    {
        "name": "Health",
        "description": "Liveness and readiness probes.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    init_db(settings.social_database_url)

    # Publishing pool for notification jobs (None when Redis is down)
    app.state.arq_pool = await open_pool(settings.redis_url, settings.notification_queue_name)
    # OpenSearch client (None when disabled or unreachable)
    app.state.opensearch = await open_client(settings)

    yield

    await close_pool(app.state.arq_pool)
    if app.state.opensearch is not None:
        await app.state.opensearch.close()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Social Service",
        description=(
            "Follow graph, asynchronous notifications and search index "
            "synchronization for user, post and hashtag entities."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=_OPENAPI_TAGS,
        lifespan=lifespan,
    )

    # Attach rate limiter state before middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Middleware is applied in reverse-registration order (last added = outermost).
    # CORS must be outermost so ALL responses (including 429s) carry CORS headers.
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(error_envelope_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(users_router, prefix="/api/v1")
    app.include_router(social_graph_router, prefix="/api/v1")
    app.include_router(interactions_router, prefix="/api/v1")
    app.include_router(notifications_router, prefix="/api/v1")
    app.include_router(search_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        """Lightweight liveness probe. Does not hit the database."""
        return {"status": "ok", "service": "social"}

    return app


app = create_app()
