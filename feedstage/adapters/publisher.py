"""Local feed publisher.

Applies pending publication statuses and reports one PubResult per enabled
channel. Rendering of the feed documents themselves happens elsewhere; the
URLs returned here are where the rendered feeds are served from.
"""

import logging

from feedstage.adapters.memory import InMemoryStore
from feedstage.domain.entities import PubResult, StagingPost
from feedstage.ports.services import ClockPort

logger = logging.getLogger(__name__)

CHANNEL_PATHS = {
    "RSS_20": "rss",
    "ATOM_10": "atom",
    "JSON": "json",
}

DEFAULT_MAX_PUBLISHED = 20


class LocalFeedPublisher:
    def __init__(
        self,
        store: InMemoryStore,
        clock: ClockPort,
        base_url: str,
        channels: list[str],
    ) -> None:
        unknown = [c for c in channels if c not in CHANNEL_PATHS]
        if unknown:
            raise ValueError(f"Unknown publisher channels: {unknown}")
        self._store = store
        self._clock = clock
        self._base_url = base_url.rstrip("/")
        self._channels = list(channels)

    def publish_feed(
        self,
        username: str,
        queue_id: int,
        posts: list[StagingPost] | None = None,
    ) -> dict[str, PubResult]:
        now = self._clock.now_utc()
        with self._store.lock:
            queue = self._store.require_queue(username, queue_id)
            for post in posts or []:
                current = self._store.posts.get(post.id)
                if current is None or current.queue_id != queue_id:
                    continue
                if current.post_pub_status == "PUB_PENDING":
                    current = current.model_copy(
                        update={"publish_timestamp": now, "post_pub_status": None}
                    )
                elif current.post_pub_status == "DEPUB_PENDING":
                    current = current.model_copy(
                        update={"publish_timestamp": None, "post_pub_status": None}
                    )
                self._store.posts[current.id] = current
            self._store.queues[queue_id] = queue.model_copy(update={"last_deployed": now})
            live = [
                p
                for p in self._store.posts.values()
                if p.queue_id == queue_id and p.is_published
            ]

        max_published = DEFAULT_MAX_PUBLISHED
        if queue.export_config and queue.export_config.max_published:
            max_published = queue.export_config.max_published
        logger.info(
            "Deployed queue id=%s ident=%s: %d live posts (max %d) on %s",
            queue_id,
            queue.ident,
            len(live),
            max_published,
            ",".join(self._channels),
        )

        results: dict[str, PubResult] = {}
        for channel in self._channels:
            path = CHANNEL_PATHS[channel]
            results[channel] = PubResult(
                publisher_ident=channel,
                pub_date=now,
                transport_url=f"{self._base_url}/feed/{path}/{queue.transport_ident}",
                user_ident_url=f"{self._base_url}/feed/{path}/{username}/{queue.ident}",
            )
        return results

    def unpublish_feed(self, username: str, queue_id: int) -> None:
        with self._store.lock:
            queue = self._store.require_queue(username, queue_id)
            for post in list(self._store.posts.values()):
                if post.queue_id == queue_id and post.is_published:
                    self._store.posts[post.id] = post.model_copy(
                        update={"publish_timestamp": None, "post_pub_status": None}
                    )
            self._store.queues[queue_id] = queue.model_copy(update={"last_deployed": None})
        logger.info("Unpublished feed for queue id=%s", queue_id)
