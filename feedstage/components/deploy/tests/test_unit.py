"""
Deploy component unit tests.

Tests for status transitions, conditional redeploys, deletes and bulk status
requests against recording mocks.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from feedstage.components.deploy import (
    CreatePostsInput,
    DeletePostInput,
    DeleteQueueInput,
    DeployComponent,
    DeployQueueInput,
    RedeployPostInput,
    UpdatePostStatusInput,
    UpdateQueueStatusInput,
)
from feedstage.domain.entities import (
    ContentObject,
    ExportConfig,
    PostConfig,
    PubResult,
    Queue,
    StagingPost,
)
from feedstage.domain.errors import InvalidTransitionError

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)

# --- Mock Implementations ---


class MockQueueRepo:
    """Single-queue repository that records calls."""

    def __init__(self, calls: list[tuple], auto_deploy: bool = False) -> None:
        self.calls = calls
        self.queue = Queue(
            id=1,
            username="me",
            ident="testQueue",
            transport_ident="transport-1",
            export_config=ExportConfig(is_auto_deploy=auto_deploy),
        )

    def find_by_queue_id(self, username: str, queue_id: int) -> Queue:
        self.calls.append(("find_queue", queue_id))
        return self.queue

    def is_auto_deploy(self, username: str, queue_id: int) -> bool:
        return self.queue.is_auto_deploy

    def delete_by_id(self, username: str, queue_id: int) -> None:
        self.calls.append(("delete_queue", queue_id))


class MockPostRepo:
    """In-memory posts keyed by id, recording every write."""

    def __init__(self, calls: list[tuple]) -> None:
        self.calls = calls
        self.posts: dict[int, StagingPost] = {}

    def add(self, post_id: int, published: bool = False, status: str | None = None) -> None:
        self.posts[post_id] = StagingPost(
            id=post_id,
            queue_id=1,
            username="me",
            post_title=ContentObject(value=f"post {post_id}"),
            post_desc=ContentObject(value="desc"),
            publish_timestamp=NOW if published else None,
            post_pub_status=status,
        )

    def find_by_id(self, username: str, post_id: int) -> StagingPost:
        return self.posts[post_id]

    def get_staging_posts(self, username: str, queue_ids: list[int]) -> list[StagingPost]:
        return [p for p in self.posts.values() if p.queue_id in queue_ids]

    def create_post(self, username: str, queue_id: int, config: PostConfig) -> int:
        post_id = len(self.posts) + 1
        self.add(post_id)
        self.calls.append(("create_post", post_id))
        return post_id

    def update_post_pub_status(self, username: str, post_id: int, new_status: str | None) -> None:
        self.calls.append(("update_post_pub_status", post_id, new_status))
        self.posts[post_id] = self.posts[post_id].model_copy(
            update={"post_pub_status": new_status}
        )

    def update_queue_pub_status(self, username: str, queue_id: int, new_status: str | None) -> None:
        self.calls.append(("update_queue_pub_status", queue_id, new_status))
        for post_id in list(self.posts):
            self.update_post_pub_status(username, post_id, new_status)

    def delete_by_id(self, username: str, post_id: int) -> None:
        self.calls.append(("delete_post", post_id))
        del self.posts[post_id]


class MockPublisher:
    """Publisher that records the posts it was handed."""

    def __init__(self, calls: list[tuple]) -> None:
        self.calls = calls
        self.published: list[list[StagingPost] | None] = []

    def publish_feed(
        self, username: str, queue_id: int, posts: list[StagingPost] | None = None
    ) -> dict[str, PubResult]:
        self.calls.append(("publish", queue_id))
        self.published.append(posts)
        return {"RSS_20": PubResult(publisher_ident="RSS_20", pub_date=NOW)}

    def unpublish_feed(self, username: str, queue_id: int) -> None:
        self.calls.append(("unpublish", queue_id))


# --- Fixtures ---


@pytest.fixture
def calls() -> list[tuple]:
    return []


@pytest.fixture
def post_repo(calls: list[tuple]) -> MockPostRepo:
    return MockPostRepo(calls)


@pytest.fixture
def publisher(calls: list[tuple]) -> MockPublisher:
    return MockPublisher(calls)


def make_config() -> PostConfig:
    return PostConfig(post_title=ContentObject(value="t"), post_desc=ContentObject(value="a"))


def make_component(
    calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher, auto_deploy: bool
) -> DeployComponent:
    return DeployComponent(
        queues=MockQueueRepo(calls, auto_deploy=auto_deploy),
        posts=post_repo,
        publisher=publisher,
    )


# --- Post status transitions ---


class TestUpdatePostStatus:
    @pytest.mark.parametrize(
        ("auto_deploy", "published", "new_status", "redeploy"),
        [
            (True, True, "DEPUB_PENDING", True),
            (True, False, "PUB_PENDING", True),
            (True, False, None, False),
            (False, True, "DEPUB_PENDING", False),
            (False, True, "PUB_PENDING", False),
            (False, True, None, False),
            (False, False, "PUB_PENDING", False),
            (False, False, None, False),
        ],
    )
    def test_allowed_transitions(
        self,
        calls: list[tuple],
        post_repo: MockPostRepo,
        publisher: MockPublisher,
        auto_deploy: bool,
        published: bool,
        new_status: str | None,
        redeploy: bool,
    ) -> None:
        post_repo.add(1, published=published)
        component = make_component(calls, post_repo, publisher, auto_deploy)

        out = component.run(UpdatePostStatusInput(username="me", post_id=1, new_status=new_status))

        assert (out.deploy_results is not None) == redeploy
        assert (("publish", 1) in calls) == redeploy

    @pytest.mark.parametrize(
        ("auto_deploy", "published", "new_status"),
        [
            (True, True, "PUB_PENDING"),
            (True, True, None),
            (True, False, "DEPUB_PENDING"),
            (False, False, "DEPUB_PENDING"),
            (False, False, "WHATEVER"),
            (True, False, "PUBLISHED"),
        ],
    )
    def test_rejected_transitions_write_nothing(
        self,
        calls: list[tuple],
        post_repo: MockPostRepo,
        publisher: MockPublisher,
        auto_deploy: bool,
        published: bool,
        new_status: str | None,
    ) -> None:
        post_repo.add(1, published=published)
        component = make_component(calls, post_repo, publisher, auto_deploy)

        with pytest.raises(InvalidTransitionError):
            component.run_update_post_status(
                UpdatePostStatusInput(username="me", post_id=1, new_status=new_status)
            )

        assert calls == []

    def test_pending_status_is_written_before_publish(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        post_repo.add(1)
        component = make_component(calls, post_repo, publisher, auto_deploy=True)

        component.run_update_post_status(
            UpdatePostStatusInput(username="me", post_id=1, new_status="PUB_PENDING")
        )

        assert calls == [("update_post_pub_status", 1, "PUB_PENDING"), ("publish", 1)]
        # Only the changed post is handed to the publisher
        assert [p.id for p in publisher.published[0]] == [1]
        assert publisher.published[0][0].post_pub_status == "PUB_PENDING"

    def test_null_status_clears_pending_status(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        post_repo.add(1, status="PUB_PENDING")
        component = make_component(calls, post_repo, publisher, auto_deploy=False)

        out = component.run_update_post_status(
            UpdatePostStatusInput(username="me", post_id=1, new_status=None)
        )

        assert calls == [("update_post_pub_status", 1, None)]
        assert out.post.post_pub_status is None
        assert out.deploy_results is None

    def test_manual_queue_records_depub_for_later(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        post_repo.add(1, published=True)
        component = make_component(calls, post_repo, publisher, auto_deploy=False)

        out = component.run_update_post_status(
            UpdatePostStatusInput(username="me", post_id=1, new_status="DEPUB_PENDING")
        )

        assert out.deploy_results is None
        assert out.post.post_pub_status == "DEPUB_PENDING"


# --- Edits and deletes ---


class TestRedeployPost:
    def test_published_post_redeploys(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        post_repo.add(1, published=True)
        component = make_component(calls, post_repo, publisher, auto_deploy=False)

        out = component.run(RedeployPostInput(username="me", post_id=1))

        assert out.deploy_results is not None
        assert calls == [("publish", 1)]

    def test_unpublished_post_does_not_redeploy(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        post_repo.add(1)
        component = make_component(calls, post_repo, publisher, auto_deploy=True)

        out = component.run(RedeployPostInput(username="me", post_id=1))

        assert out.deploy_results is None
        assert calls == []


class TestDeletePost:
    def test_published_post_is_depublished_before_delete(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        post_repo.add(1, published=True)
        component = make_component(calls, post_repo, publisher, auto_deploy=False)

        out = component.run(DeletePostInput(username="me", post_id=1))

        assert calls == [
            ("update_post_pub_status", 1, "DEPUB_PENDING"),
            ("publish", 1),
            ("delete_post", 1),
        ]
        assert publisher.published[0][0].post_pub_status == "DEPUB_PENDING"
        assert out.deploy_results is not None

    def test_unpublished_post_is_just_deleted(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        post_repo.add(1)
        component = make_component(calls, post_repo, publisher, auto_deploy=True)

        out = component.run(DeletePostInput(username="me", post_id=1))

        assert calls == [("delete_post", 1)]
        assert out.deploy_results is None


class TestCreatePosts:
    def test_auto_deploy_queue_publishes_once(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        component = make_component(calls, post_repo, publisher, auto_deploy=True)
        configs = [make_config() for _ in range(3)]

        out = component.run(CreatePostsInput(username="me", queue_id=1, configs=configs))

        assert out.post_ids == [1, 2, 3]
        assert calls.count(("publish", 1)) == 1
        assert [p.post_pub_status for p in publisher.published[0]] == ["PUB_PENDING"] * 3

    def test_manual_queue_only_stores(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        component = make_component(calls, post_repo, publisher, auto_deploy=False)
        configs = [make_config()]

        out = component.run(CreatePostsInput(username="me", queue_id=1, configs=configs))

        assert out.deploy_results is None
        assert calls == [("create_post", 1)]


# --- Queue operations ---


class TestQueueOperations:
    def test_deploy_queue_publishes_then_refetches(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        component = make_component(calls, post_repo, publisher, auto_deploy=False)

        out = component.run(DeployQueueInput(username="me", queue_id=1))

        assert calls == [("publish", 1), ("find_queue", 1)]
        assert out.queue.ident == "testQueue"
        assert publisher.published == [None]

    def test_delete_queue_unpublishes_first(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        component = make_component(calls, post_repo, publisher, auto_deploy=False)

        component.run(DeleteQueueInput(username="me", queue_id=1))

        assert calls == [("unpublish", 1), ("delete_queue", 1)]


class TestUpdateQueueStatus:
    def test_pub_all_marks_every_post(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        post_repo.add(1)
        post_repo.add(2, published=True)
        component = make_component(calls, post_repo, publisher, auto_deploy=False)

        out = component.run(UpdateQueueStatusInput(username="me", queue_id=1, request="PUB_ALL"))

        assert ("update_queue_pub_status", 1, "PUB_PENDING") in calls
        assert out.post_count == 2
        assert calls.count(("publish", 1)) == 1

    def test_depub_all_marks_every_post(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        post_repo.add(1, published=True)
        component = make_component(calls, post_repo, publisher, auto_deploy=False)

        component.run(UpdateQueueStatusInput(username="me", queue_id=1, request="DEPUB_ALL"))

        assert publisher.published[0][0].post_pub_status == "DEPUB_PENDING"

    def test_deploy_pending_only_passes_pending_posts(
        self, calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
    ) -> None:
        post_repo.add(1, status="PUB_PENDING")
        post_repo.add(2)
        post_repo.add(3, published=True, status="DEPUB_PENDING")
        component = make_component(calls, post_repo, publisher, auto_deploy=False)

        out = component.run(
            UpdateQueueStatusInput(username="me", queue_id=1, request="DEPLOY_PENDING")
        )

        assert [p.id for p in publisher.published[0]] == [1, 3]
        assert out.post_count == 2
        assert not any(c[0] == "update_queue_pub_status" for c in calls)


def test_run_rejects_unknown_input(
    calls: list[tuple], post_repo: MockPostRepo, publisher: MockPublisher
) -> None:
    component = make_component(calls, post_repo, publisher, auto_deploy=False)
    with pytest.raises(TypeError):
        component.run("not an input")  # type: ignore[arg-type]
