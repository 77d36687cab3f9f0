"""Contracts of the services behind the HTTP layer.

Every method is scoped by the calling username. Lookups of ids the caller does
not own raise DataAccessError; rejected writes raise DataUpdateError; duplicate
queue identifiers and credential usernames raise DataConflictError.
"""

from datetime import datetime
from typing import Any, Protocol

from feedstage.domain.entities import (
    ExportConfig,
    PostConfig,
    PostPubStatus,
    PubResult,
    Queue,
    QueueConfig,
    QueueCredential,
    QueueStatus,
    StagingPost,
)


class QueueDefinitionService(Protocol):
    """Queue (feed definition) persistence."""

    def find_by_user(self, username: str) -> list[Queue]: ...

    def find_by_queue_id(self, username: str, queue_id: int) -> Queue: ...

    def resolve_queue_id(self, username: str, ident: str) -> int: ...

    def resolve_queue_ident(self, username: str, queue_id: int) -> str: ...

    def is_auto_deploy(self, username: str, queue_id: int) -> bool: ...

    def create_queue(self, username: str, config: QueueConfig) -> int: ...

    def update_queue(
        self, username: str, queue_id: int, config: QueueConfig, merge_update: bool
    ) -> Queue: ...

    def update_queue_attribute(
        self, username: str, queue_id: int, attr_name: str, value: Any
    ) -> Any:
        """Set one scalar queue attribute and return the stored value."""
        ...

    def clear_queue_attribute(self, username: str, queue_id: int, attr_name: str) -> None: ...

    def update_export_config(
        self,
        username: str,
        queue_id: int,
        section: str | None,
        config: Any,
        merge_update: bool,
    ) -> ExportConfig:
        """
        Replace or merge the export options.

        section is None for the whole ExportConfig, or "atom_config" /
        "rss_config" for one publisher's block.
        """
        ...

    def clear_export_config(self, username: str, queue_id: int, section: str | None) -> None: ...

    def check_status(self, username: str, queue_id: int) -> QueueStatus: ...

    def delete_by_id(self, username: str, queue_id: int) -> None: ...


class StagingPostService(Protocol):
    """Staging post persistence."""

    def get_staging_posts(self, username: str, queue_ids: list[int]) -> list[StagingPost]: ...

    def find_by_id(self, username: str, post_id: int) -> StagingPost: ...

    def create_post(self, username: str, queue_id: int, config: PostConfig) -> int: ...

    def update_post(
        self, username: str, post_id: int, config: PostConfig, merge_update: bool
    ) -> StagingPost: ...

    def update_post_pub_status(
        self, username: str, post_id: int, new_status: PostPubStatus | None
    ) -> None: ...

    def update_queue_pub_status(
        self, username: str, queue_id: int, new_status: PostPubStatus | None
    ) -> None: ...

    def update_post_attribute(
        self,
        username: str,
        post_id: int,
        attr_name: str,
        value: Any,
        merge_update: bool = False,
    ) -> Any:
        """Set one post attribute (merging nested objects on PATCH) and return it."""
        ...

    def clear_post_attribute(self, username: str, post_id: int, attr_name: str) -> None: ...

    def find_post_part(self, username: str, post_id: int, part: str, ident: str) -> Any: ...

    def add_post_part(self, username: str, post_id: int, part: str, item: Any) -> str: ...

    def update_post_part(
        self,
        username: str,
        post_id: int,
        part: str,
        ident: str,
        item: Any,
        merge_update: bool,
    ) -> Any: ...

    def delete_post_part(self, username: str, post_id: int, part: str, ident: str) -> None: ...

    def delete_by_id(self, username: str, post_id: int) -> None: ...

    def delete_by_queue_id(self, username: str, queue_id: int) -> None: ...


class QueueCredentialsService(Protocol):
    """Basic-auth logins of authenticated queues; duplicates raise DataConflictError."""

    def add_credential(
        self, username: str, queue_id: int, basic_username: str, basic_password: str
    ) -> int: ...

    def find_by_queue_id(self, username: str, queue_id: int) -> list[QueueCredential]: ...

    def find_by_id(self, username: str, queue_id: int, credential_id: int) -> QueueCredential: ...

    def update_password(
        self, username: str, queue_id: int, credential_id: int, basic_password: str
    ) -> None: ...

    def verify(self, queue_id: int, basic_username: str, basic_password: str) -> bool: ...

    def delete_queue_credential(
        self, username: str, queue_id: int, credential_id: int
    ) -> None: ...

    def delete_queue_credentials(self, username: str, queue_id: int) -> None: ...

class PostPublisher(Protocol):
    """Feed rendering and deployment."""

    def publish_feed(
        self,
        username: str,
        queue_id: int,
        posts: list[StagingPost] | None = None,
    ) -> dict[str, PubResult]:
        """Redeploy the queue's feed, applying the pending status of the given posts."""
        ...

    def unpublish_feed(self, username: str, queue_id: int) -> None: ...


class ClockPort(Protocol):
    def now_utc(self) -> datetime: ...


class ApiKeyStore(Protocol):
    """Resolves an API key + secret pair to the owning username."""

    def authenticate(self, api_key: str, api_secret: str) -> str | None: ...
