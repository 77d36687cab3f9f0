"""Deploy component models - frozen dataclass inputs and outputs."""

from dataclasses import dataclass, field

from feedstage.domain.entities import PostConfig, PubResult, Queue, QueueStatusRequest, StagingPost

DeployResults = dict[str, PubResult]


@dataclass(frozen=True)
class UpdatePostStatusInput:
    """Input for a publication status change on one post."""

    username: str
    post_id: int
    new_status: str | None


@dataclass(frozen=True)
class UpdatePostStatusOutput:
    """Post after the change; deploy_results is None when nothing was deployed."""

    post: StagingPost
    deploy_results: DeployResults | None


@dataclass(frozen=True)
class RedeployPostInput:
    """Input for redeploying a post's queue after the post was edited."""

    username: str
    post_id: int


@dataclass(frozen=True)
class RedeployPostOutput:
    post: StagingPost
    deploy_results: DeployResults | None


@dataclass(frozen=True)
class DeletePostInput:
    username: str
    post_id: int


@dataclass(frozen=True)
class DeletePostOutput:
    post_id: int
    deploy_results: DeployResults | None


@dataclass(frozen=True)
class CreatePostsInput:
    """Input for adding posts to a queue."""

    username: str
    queue_id: int
    configs: list[PostConfig] = field(default_factory=list)


@dataclass(frozen=True)
class CreatePostsOutput:
    post_ids: list[int]
    deploy_results: DeployResults | None


@dataclass(frozen=True)
class DeployQueueInput:
    """Input for redeploying a queue after one of its attributes changed."""

    username: str
    queue_id: int


@dataclass(frozen=True)
class DeployQueueOutput:
    queue: Queue
    deploy_results: DeployResults


@dataclass(frozen=True)
class DeleteQueueInput:
    username: str
    queue_id: int


@dataclass(frozen=True)
class DeleteQueueOutput:
    queue_id: int


@dataclass(frozen=True)
class UpdateQueueStatusInput:
    """Input for a bulk status change across a queue's posts."""

    username: str
    queue_id: int
    request: QueueStatusRequest


@dataclass(frozen=True)
class UpdateQueueStatusOutput:
    queue: Queue
    post_count: int
    deploy_results: DeployResults
