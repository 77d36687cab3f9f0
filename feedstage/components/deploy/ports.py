"""Deploy component port definitions - protocols for dependencies."""

from typing import Protocol

from feedstage.domain.entities import PostConfig, PostPubStatus, PubResult, Queue, StagingPost


class QueueRepoPort(Protocol):
    """Protocol for the queue operations deploys depend on."""

    def find_by_queue_id(self, username: str, queue_id: int) -> Queue:
        """Retrieve a queue owned by username."""
        ...

    def is_auto_deploy(self, username: str, queue_id: int) -> bool:
        """Whether status changes on the queue's posts deploy immediately."""
        ...

    def delete_by_id(self, username: str, queue_id: int) -> None:
        """Delete a queue and its posts."""
        ...


class PostRepoPort(Protocol):
    """Protocol for the staging post operations deploys depend on."""

    def find_by_id(self, username: str, post_id: int) -> StagingPost:
        """Retrieve a post owned by username."""
        ...

    def get_staging_posts(self, username: str, queue_ids: list[int]) -> list[StagingPost]:
        """List the posts of the given queues."""
        ...

    def create_post(self, username: str, queue_id: int, config: PostConfig) -> int:
        """Create a post and return its id."""
        ...

    def update_post_pub_status(
        self, username: str, post_id: int, new_status: PostPubStatus | None
    ) -> None:
        """Set the pending publication status of one post."""
        ...

    def update_queue_pub_status(
        self, username: str, queue_id: int, new_status: PostPubStatus | None
    ) -> None:
        """Set the pending publication status of every post in a queue."""
        ...

    def delete_by_id(self, username: str, post_id: int) -> None:
        """Delete one post."""
        ...


class PublisherPort(Protocol):
    """Protocol for feed deployment."""

    def publish_feed(
        self,
        username: str,
        queue_id: int,
        posts: list[StagingPost] | None = None,
    ) -> dict[str, PubResult]:
        """Redeploy a queue's feed with the given posts' pending statuses applied."""
        ...

    def unpublish_feed(self, username: str, queue_id: int) -> None:
        """Take a queue's feed down."""
        ...
