"""Deploy component - orchestrates status changes, edits and deletes with feed redeploys."""

import logging

from feedstage.components.deploy.models import (
    CreatePostsInput,
    CreatePostsOutput,
    DeletePostInput,
    DeletePostOutput,
    DeleteQueueInput,
    DeleteQueueOutput,
    DeployQueueInput,
    DeployQueueOutput,
    RedeployPostInput,
    RedeployPostOutput,
    UpdatePostStatusInput,
    UpdatePostStatusOutput,
    UpdateQueueStatusInput,
    UpdateQueueStatusOutput,
)
from feedstage.components.deploy.ports import PostRepoPort, PublisherPort, QueueRepoPort
from feedstage.domain.entities import PostPubStatus
from feedstage.domain.state import decide_transition

logger = logging.getLogger(__name__)

PENDING_STATUSES: frozenset[str] = frozenset({"PUB_PENDING", "DEPUB_PENDING"})

# Type alias for all supported inputs
DeployInput = (
    UpdatePostStatusInput
    | RedeployPostInput
    | DeletePostInput
    | CreatePostsInput
    | DeployQueueInput
    | DeleteQueueInput
    | UpdateQueueStatusInput
)
DeployOutput = (
    UpdatePostStatusOutput
    | RedeployPostOutput
    | DeletePostOutput
    | CreatePostsOutput
    | DeployQueueOutput
    | DeleteQueueOutput
    | UpdateQueueStatusOutput
)


class DeployComponent:
    """Component for operations that must leave the deployed feed consistent."""

    def __init__(
        self,
        queues: QueueRepoPort,
        posts: PostRepoPort,
        publisher: PublisherPort,
    ) -> None:
        self._queues = queues
        self._posts = posts
        self._publisher = publisher

    def run(self, input_data: DeployInput) -> DeployOutput:
        """Main dispatcher - routes to appropriate handler based on input type."""
        if isinstance(input_data, UpdatePostStatusInput):
            return self.run_update_post_status(input_data)
        elif isinstance(input_data, RedeployPostInput):
            return self.run_redeploy_post(input_data)
        elif isinstance(input_data, DeletePostInput):
            return self.run_delete_post(input_data)
        elif isinstance(input_data, CreatePostsInput):
            return self.run_create_posts(input_data)
        elif isinstance(input_data, DeployQueueInput):
            return self.run_deploy_queue(input_data)
        elif isinstance(input_data, DeleteQueueInput):
            return self.run_delete_queue(input_data)
        elif isinstance(input_data, UpdateQueueStatusInput):
            return self.run_update_queue_status(input_data)
        else:
            raise TypeError(f"Unknown input type: {type(input_data)}")

    def run_update_post_status(self, input_data: UpdatePostStatusInput) -> UpdatePostStatusOutput:
        """
        Change a post's publication status.

        Auto-deploy queues redeploy at once with the single updated post;
        rejected transitions raise InvalidTransitionError before anything is written.
        """
        username, post_id = input_data.username, input_data.post_id
        post = self._posts.find_by_id(username, post_id)
        is_auto_deploy = self._queues.is_auto_deploy(username, post.queue_id)
        decision = decide_transition(is_auto_deploy, post.is_published, input_data.new_status)

        # None clears a pending status
        new_status: PostPubStatus | None = input_data.new_status  # type: ignore[assignment]
        self._posts.update_post_pub_status(username, post_id, new_status)
        post = self._posts.find_by_id(username, post_id)

        deploy_results = None
        if decision.redeploy:
            deploy_results = self._publisher.publish_feed(username, post.queue_id, [post])
            post = self._posts.find_by_id(username, post_id)
        return UpdatePostStatusOutput(post=post, deploy_results=deploy_results)

    def run_redeploy_post(self, input_data: RedeployPostInput) -> RedeployPostOutput:
        """Redeploy the post's queue, but only while the post is live."""
        post = self._posts.find_by_id(input_data.username, input_data.post_id)
        if not post.is_published:
            return RedeployPostOutput(post=post, deploy_results=None)
        deploy_results = self._publisher.publish_feed(input_data.username, post.queue_id, [post])
        post = self._posts.find_by_id(input_data.username, input_data.post_id)
        return RedeployPostOutput(post=post, deploy_results=deploy_results)

    def run_delete_post(self, input_data: DeletePostInput) -> DeletePostOutput:
        """Delete a post; a live post is depublished and its feed redeployed first."""
        username, post_id = input_data.username, input_data.post_id
        post = self._posts.find_by_id(username, post_id)
        deploy_results = None
        if post.is_published:
            self._posts.update_post_pub_status(username, post_id, "DEPUB_PENDING")
            post = self._posts.find_by_id(username, post_id)
            deploy_results = self._publisher.publish_feed(username, post.queue_id, [post])
        self._posts.delete_by_id(username, post_id)
        return DeletePostOutput(post_id=post_id, deploy_results=deploy_results)

    def run_create_posts(self, input_data: CreatePostsInput) -> CreatePostsOutput:
        username, queue_id = input_data.username, input_data.queue_id
        post_ids = [
            self._posts.create_post(username, queue_id, config) for config in input_data.configs
        ]
        if not post_ids or not self._queues.is_auto_deploy(username, queue_id):
            return CreatePostsOutput(post_ids=post_ids, deploy_results=None)

        for post_id in post_ids:
            self._posts.update_post_pub_status(username, post_id, "PUB_PENDING")
        created = [self._posts.find_by_id(username, post_id) for post_id in post_ids]
        deploy_results = self._publisher.publish_feed(username, queue_id, created)
        return CreatePostsOutput(post_ids=post_ids, deploy_results=deploy_results)

    def run_deploy_queue(self, input_data: DeployQueueInput) -> DeployQueueOutput:
        deploy_results = self._publisher.publish_feed(input_data.username, input_data.queue_id)
        queue = self._queues.find_by_queue_id(input_data.username, input_data.queue_id)
        return DeployQueueOutput(queue=queue, deploy_results=deploy_results)

    def run_delete_queue(self, input_data: DeleteQueueInput) -> DeleteQueueOutput:
        """Take the feed down before the queue disappears."""
        self._publisher.unpublish_feed(input_data.username, input_data.queue_id)
        self._queues.delete_by_id(input_data.username, input_data.queue_id)
        return DeleteQueueOutput(queue_id=input_data.queue_id)

    def run_update_queue_status(
        self, input_data: UpdateQueueStatusInput
    ) -> UpdateQueueStatusOutput:
        """
        Apply a bulk status request and redeploy the queue once.

        DEPLOY_PENDING deploys whatever is already pending; PUB_ALL and
        DEPUB_ALL mark every post in the queue first.
        """
        username, queue_id = input_data.username, input_data.queue_id
        if input_data.request == "PUB_ALL":
            self._posts.update_queue_pub_status(username, queue_id, "PUB_PENDING")
        elif input_data.request == "DEPUB_ALL":
            self._posts.update_queue_pub_status(username, queue_id, "DEPUB_PENDING")

        posts = self._posts.get_staging_posts(username, [queue_id])
        if input_data.request == "DEPLOY_PENDING":
            posts = [p for p in posts if p.post_pub_status in PENDING_STATUSES]

        deploy_results = self._publisher.publish_feed(username, queue_id, posts)
        queue = self._queues.find_by_queue_id(username, queue_id)
        logger.info(
            "Queue status %s applied to %d posts in queue id=%s",
            input_data.request,
            len(posts),
            queue_id,
        )
        return UpdateQueueStatusOutput(
            queue=queue, post_count=len(posts), deploy_results=deploy_results
        )
