import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer

from feedstage.adapters.auth.api_keys import ConfigApiKeyStore
from feedstage.adapters.clock import SystemClock
from feedstage.adapters.memory import (
    InMemoryQueueCredentialsService,
    InMemoryQueueDefinitionService,
    InMemoryStagingPostService,
    InMemoryStore,
)
from feedstage.adapters.publisher import LocalFeedPublisher
from feedstage.api.auth_utils import decode_access_token
from feedstage.components.deploy import DeployComponent
from feedstage.config.loader import load_config
from feedstage.config.models import AppConfig
from feedstage.ports.services import (
    ApiKeyStore,
    PostPublisher,
    QueueDefinitionService,
    QueueCredentialsService,
    StagingPostService,
)

logger = logging.getLogger(__name__)

API_KEY_HEADER_NAME = "X-FeedStage-API-Key"
API_SECRET_HEADER_NAME = "X-FeedStage-API-Secret"


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.config_path = Path(os.environ.get("FEEDSTAGE_CONFIG", "feedstage.yaml"))
        self.feed_base_url = os.environ.get("FEEDSTAGE_FEED_BASE_URL", "http://localhost:8000")
        self.log_level = os.environ.get("FEEDSTAGE_LOG_LEVEL", "INFO")


@lru_cache
def get_settings() -> Settings:
    return Settings()


@lru_cache
def get_app_config() -> AppConfig:
    return load_config(get_settings().config_path)


# --- Services (process-wide singletons) ---
_store = InMemoryStore()
_clock = SystemClock()


def get_store() -> InMemoryStore:
    return _store


def get_clock() -> SystemClock:
    return _clock


def get_queue_service(
    store: InMemoryStore = Depends(get_store),
    clock: SystemClock = Depends(get_clock),
) -> QueueDefinitionService:
    return InMemoryQueueDefinitionService(store, clock)


def get_post_service(
    store: InMemoryStore = Depends(get_store),
    clock: SystemClock = Depends(get_clock),
) -> StagingPostService:
    return InMemoryStagingPostService(store, clock)


def get_credentials_service(
    store: InMemoryStore = Depends(get_store),
    clock: SystemClock = Depends(get_clock),
) -> QueueCredentialsService:
    return InMemoryQueueCredentialsService(store, clock)


def get_publisher(
    store: InMemoryStore = Depends(get_store),
    clock: SystemClock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
    config: AppConfig = Depends(get_app_config),
) -> PostPublisher:
    return LocalFeedPublisher(store, clock, settings.feed_base_url, config.publishers)


def get_deploy_component(
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
    publisher: PostPublisher = Depends(get_publisher),
) -> DeployComponent:
    return DeployComponent(queues=queues, posts=posts, publisher=publisher)


def get_api_key_store(config: AppConfig = Depends(get_app_config)) -> ApiKeyStore:
    return ConfigApiKeyStore(config.api_keys)


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/v1/auth/token", auto_error=False)

_INVALID_CREDENTIALS = HTTPException(
    status_code=status.HTTP_403_FORBIDDEN,
    detail="Invalid credentials",
)


def get_current_username(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    api_key: Annotated[str | None, Header(alias=API_KEY_HEADER_NAME)] = None,
    api_secret: Annotated[str | None, Header(alias=API_SECRET_HEADER_NAME)] = None,
    key_store: ApiKeyStore = Depends(get_api_key_store),
) -> str:
    # 1. API key + secret headers
    if api_key or api_secret:
        if not api_key or not api_secret:
            logger.info("Unable to locate API key or API secret headers")
            raise _INVALID_CREDENTIALS
        username = key_store.authenticate(api_key, api_secret)
        if username is None:
            raise _INVALID_CREDENTIALS
        return username

    # 2. Bearer token
    if not token:
        raise _INVALID_CREDENTIALS
    payload = decode_access_token(token)
    if not payload:
        raise _INVALID_CREDENTIALS
    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise _INVALID_CREDENTIALS
    return subject


# --- Pagination ---
@dataclass(frozen=True)
class PageParams:
    offset: int | None
    limit: int | None


def get_page_params(
    offset: Annotated[int | None, Query(ge=1, description="1-based first item")] = None,
    limit: Annotated[int | None, Query(ge=1, description="Maximum number of items")] = None,
    config: AppConfig = Depends(get_app_config),
) -> PageParams:
    if limit is not None:
        limit = min(limit, config.pagination.max_limit)
    return PageParams(offset=offset, limit=limit)
