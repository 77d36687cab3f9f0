from datetime import UTC, datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from feedstage.adapters.clock import FixedClock
from feedstage.adapters.memory import (
    InMemoryQueueDefinitionService,
    InMemoryStagingPostService,
    InMemoryStore,
)
from feedstage.adapters.publisher import LocalFeedPublisher
from feedstage.api.deps import get_app_config, get_clock, get_current_username, get_store
from feedstage.api.errors import install_error_handlers
from feedstage.api.routes import (
    post_parts,
    posts,
    queue_credentials,
    queue_options,
    queue_posts,
    queue_status,
    queues,
)
from feedstage.components.deploy import DeployComponent
from feedstage.config.models import AppConfig

BASE_URL = "http://localhost:8000"
T0 = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0)


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(publishers=["RSS_20", "ATOM_10"])


@pytest.fixture
def queue_service(store: InMemoryStore, clock: FixedClock) -> InMemoryQueueDefinitionService:
    return InMemoryQueueDefinitionService(store, clock)


@pytest.fixture
def post_service(store: InMemoryStore, clock: FixedClock) -> InMemoryStagingPostService:
    return InMemoryStagingPostService(store, clock)


@pytest.fixture
def publisher(
    store: InMemoryStore, clock: FixedClock, app_config: AppConfig
) -> LocalFeedPublisher:
    return LocalFeedPublisher(store, clock, BASE_URL, app_config.publishers)


@pytest.fixture
def deployer(
    queue_service: InMemoryQueueDefinitionService,
    post_service: InMemoryStagingPostService,
    publisher: LocalFeedPublisher,
) -> DeployComponent:
    return DeployComponent(queues=queue_service, posts=post_service, publisher=publisher)


@pytest.fixture
def api_app(store: InMemoryStore, clock: FixedClock, app_config: AppConfig) -> FastAPI:
    """Queue and post routers on a bare app, authenticated as `me`."""
    app = FastAPI()
    install_error_handlers(app)
    app.include_router(queue_posts.router, prefix="/v1/queues")
    app.include_router(queue_status.router, prefix="/v1/queues")
    app.include_router(queue_options.router, prefix="/v1/queues")
    app.include_router(queue_credentials.router, prefix="/v1/queues")
    app.include_router(queues.router, prefix="/v1/queues")
    app.include_router(post_parts.router, prefix="/v1/posts")
    app.include_router(posts.router, prefix="/v1/posts")

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_app_config] = lambda: app_config
    app.dependency_overrides[get_current_username] = lambda: "me"
    return app


@pytest.fixture
def client(api_app: FastAPI) -> TestClient:
    return TestClient(api_app)


@pytest.fixture
def queue_payload() -> dict:
    return {
        "ident": "testQueue",
        "title": "Test Queue",
        "description": "A queue for tests",
        "generator": "feedstage",
        "language": "en-US",
    }


@pytest.fixture
def post_payload() -> dict:
    return {
        "postTitle": {"type": "text", "value": "Hello"},
        "postDesc": {"type": "text", "value": "First post"},
        "postUrl": "https://example.com/hello",
        "postCategories": ["news"],
    }
