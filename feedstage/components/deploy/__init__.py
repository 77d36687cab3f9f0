"""Deploy component - keeps deployed feeds consistent with post and queue changes."""

from feedstage.components.deploy.component import DeployComponent
from feedstage.components.deploy.models import (
    CreatePostsInput,
    CreatePostsOutput,
    DeletePostInput,
    DeletePostOutput,
    DeleteQueueInput,
    DeleteQueueOutput,
    DeployQueueInput,
    DeployQueueOutput,
    DeployResults,
    RedeployPostInput,
    RedeployPostOutput,
    UpdatePostStatusInput,
    UpdatePostStatusOutput,
    UpdateQueueStatusInput,
    UpdateQueueStatusOutput,
)
from feedstage.components.deploy.ports import PostRepoPort, PublisherPort, QueueRepoPort

__all__ = [
    # Component
    "DeployComponent",
    # Models
    "CreatePostsInput",
    "CreatePostsOutput",
    "DeletePostInput",
    "DeletePostOutput",
    "DeleteQueueInput",
    "DeleteQueueOutput",
    "DeployQueueInput",
    "DeployQueueOutput",
    "DeployResults",
    "RedeployPostInput",
    "RedeployPostOutput",
    "UpdatePostStatusInput",
    "UpdatePostStatusOutput",
    "UpdateQueueStatusInput",
    "UpdateQueueStatusOutput",
    # Ports
    "PostRepoPort",
    "PublisherPort",
    "QueueRepoPort",
]
