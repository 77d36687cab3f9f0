import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from feedstage.api.deps import get_app_config, get_settings
from feedstage.api.errors import error_counts, install_error_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load config on startup (fail-fast)
    try:
        config = get_app_config()
        logger.info(
            "Config loaded from %s (publishers=%s, api keys=%d)",
            settings.config_path,
            ",".join(config.publishers),
            len(config.api_keys),
        )
    except ValueError as e:
        logger.critical("Config load failed: %s", e)
        sys.exit(1)

    yield


app = FastAPI(
    title="FeedStage API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

install_error_handlers(app)

# --- Routers ---
from feedstage.api.routes import (  # noqa: E402
    auth,
    post_parts,
    posts,
    queue_credentials,
    queue_options,
    queue_posts,
    queue_status,
    queues,
)

app.include_router(auth.router, prefix="/v1/auth", tags=["Auth"])
# sub-resource routers first so /{ident}/... never falls through to the attribute routes
app.include_router(queue_posts.router, prefix="/v1/queues", tags=["Queue Posts"])
app.include_router(queue_status.router, prefix="/v1/queues", tags=["Queue Status"])
app.include_router(queue_options.router, prefix="/v1/queues", tags=["Queue Options"])
app.include_router(queue_credentials.router, prefix="/v1/queues", tags=["Queue Credentials"])
app.include_router(queues.router, prefix="/v1/queues", tags=["Queues"])
app.include_router(post_parts.router, prefix="/v1/posts", tags=["Post Parts"])
app.include_router(posts.router, prefix="/v1/posts", tags=["Posts"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api", "errors": dict(error_counts)}
