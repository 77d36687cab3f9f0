"""Tests for the local feed publisher."""

import pytest

from feedstage.adapters.clock import FixedClock
from feedstage.adapters.memory import (
    InMemoryQueueDefinitionService,
    InMemoryStagingPostService,
    InMemoryStore,
)
from feedstage.adapters.publisher import LocalFeedPublisher
from feedstage.domain.entities import ContentObject, PostConfig, QueueConfig

BASE_URL = "http://localhost:8000"


@pytest.fixture
def queue_id(queue_service: InMemoryQueueDefinitionService) -> int:
    return queue_service.create_queue("me", QueueConfig(ident="testQueue"))


@pytest.fixture
def post_id(post_service: InMemoryStagingPostService, queue_id: int) -> int:
    config = PostConfig(post_title=ContentObject(value="t"), post_desc=ContentObject(value="d"))
    return post_service.create_post("me", queue_id, config)


def test_unknown_channel_rejected(store: InMemoryStore, clock: FixedClock) -> None:
    with pytest.raises(ValueError, match="FAX"):
        LocalFeedPublisher(store, clock, BASE_URL, ["RSS_20", "FAX"])


def test_one_result_per_channel(
    publisher: LocalFeedPublisher,
    queue_service: InMemoryQueueDefinitionService,
    clock: FixedClock,
    queue_id: int,
) -> None:
    results = publisher.publish_feed("me", queue_id)
    transport = queue_service.find_by_queue_id("me", queue_id).transport_ident

    assert set(results) == {"RSS_20", "ATOM_10"}
    assert results["RSS_20"].user_ident_url == f"{BASE_URL}/feed/rss/me/testQueue"
    assert results["ATOM_10"].transport_url == f"{BASE_URL}/feed/atom/{transport}"
    assert results["RSS_20"].pub_date == clock.now_utc()
    assert queue_service.find_by_queue_id("me", queue_id).last_deployed == clock.now_utc()


def test_pending_statuses_are_applied(
    publisher: LocalFeedPublisher,
    post_service: InMemoryStagingPostService,
    clock: FixedClock,
    queue_id: int,
    post_id: int,
) -> None:
    post_service.update_post_pub_status("me", post_id, "PUB_PENDING")
    publisher.publish_feed("me", queue_id, [post_service.find_by_id("me", post_id)])

    published = post_service.find_by_id("me", post_id)
    assert published.publish_timestamp == clock.now_utc()
    assert published.post_pub_status is None
    assert published.status_name == "PUBLISHED"

    post_service.update_post_pub_status("me", post_id, "DEPUB_PENDING")
    publisher.publish_feed("me", queue_id, [post_service.find_by_id("me", post_id)])

    depublished = post_service.find_by_id("me", post_id)
    assert depublished.publish_timestamp is None
    assert depublished.status_name == "UNPUBLISHED"


def test_posts_not_passed_are_untouched(
    publisher: LocalFeedPublisher,
    post_service: InMemoryStagingPostService,
    queue_id: int,
    post_id: int,
) -> None:
    post_service.update_post_pub_status("me", post_id, "PUB_PENDING")
    publisher.publish_feed("me", queue_id)
    assert post_service.find_by_id("me", post_id).status_name == "PUB_PENDING"


def test_unpublish_takes_everything_down(
    publisher: LocalFeedPublisher,
    queue_service: InMemoryQueueDefinitionService,
    post_service: InMemoryStagingPostService,
    queue_id: int,
    post_id: int,
) -> None:
    post_service.update_post_pub_status("me", post_id, "PUB_PENDING")
    publisher.publish_feed("me", queue_id, [post_service.find_by_id("me", post_id)])

    publisher.unpublish_feed("me", queue_id)

    assert not post_service.find_by_id("me", post_id).is_published
    assert queue_service.find_by_queue_id("me", queue_id).last_deployed is None
