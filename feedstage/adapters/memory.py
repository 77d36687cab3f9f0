"""In-memory queue, staging post and queue credential services.

Suitable for single-process deployments and tests. All services share one
InMemoryStore so that deleting a queue removes its posts and credentials, and
the local publisher can apply pending statuses.
"""

import itertools
import logging
import threading
from collections import Counter
from typing import Any
from uuid import uuid4

from pydantic import BaseModel

from feedstage.adapters.auth.crypto import hash_secret, verify_secret
from feedstage.domain.entities import (
    ExportConfig,
    PostConfig,
    PostPubStatus,
    Queue,
    QueueConfig,
    QueueCredential,
    QueueStatus,
    StagingPost,
    random_ident,
)
from feedstage.domain.errors import DataAccessError, DataConflictError, DataUpdateError
from feedstage.ports.services import ClockPort

logger = logging.getLogger(__name__)

QUEUE_ATTRIBUTES = frozenset(
    {
        "ident",
        "title",
        "description",
        "generator",
        "copyright",
        "language",
        "img_src",
        "is_authenticated",
    }
)

POST_PART_ATTRIBUTES = frozenset(
    {"post_contents", "post_urls", "authors", "contributors", "enclosures"}
)

POST_ATTRIBUTES = POST_PART_ATTRIBUTES | {
    "post_title",
    "post_desc",
    "post_itunes",
    "post_media",
    "post_comment",
    "post_rights",
    "post_categories",
    "expiration_timestamp",
}

# title and description are required on every post
UNCLEARABLE_POST_ATTRIBUTES = frozenset({"post_title", "post_desc"})


def merge_model(current: BaseModel | None, patch: BaseModel) -> BaseModel:
    """
    Overlay the fields the client sent on patch onto current.

    Defaults (generated idents, False flags) and explicit nulls are ignored;
    nested models are merged field by field.
    """
    if current is None:
        return patch
    updates: dict[str, Any] = {}
    for name in patch.model_fields_set:
        value = getattr(patch, name)
        if value is None:
            continue
        existing = getattr(current, name, None)
        if isinstance(value, BaseModel) and isinstance(existing, BaseModel):
            value = merge_model(existing, value)
        updates[name] = value
    return current.model_copy(update=updates)


def merge_parts(current: list[Any], patch: list[Any]) -> list[Any]:
    """Merge list items by ident; unknown idents are appended."""
    merged = list(current)
    positions = {item.ident: i for i, item in enumerate(merged)}
    for item in patch:
        if item.ident in positions:
            i = positions[item.ident]
            merged[i] = merge_model(merged[i], item)
        else:
            positions[item.ident] = len(merged)
            merged.append(item)
    return merged


class InMemoryStore:
    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.queues: dict[int, Queue] = {}
        self.posts: dict[int, StagingPost] = {}
        self.credentials: dict[int, QueueCredential] = {}
        self._queue_ids = itertools.count(1)
        self._post_ids = itertools.count(1)
        self._credential_ids = itertools.count(1)

    def next_queue_id(self) -> int:
        return next(self._queue_ids)

    def next_post_id(self) -> int:
        return next(self._post_ids)

    def next_credential_id(self) -> int:
        return next(self._credential_ids)

    def require_queue(self, username: str, queue_id: int) -> Queue:
        queue = self.queues.get(queue_id)
        if queue is None or queue.username != username:
            raise DataAccessError(f"Queue Id {queue_id} not found for user {username}")
        return queue

    def require_post(self, username: str, post_id: int) -> StagingPost:
        post = self.posts.get(post_id)
        if post is None or post.username != username:
            raise DataAccessError(f"Post Id {post_id} not found for user {username}")
        return post

    def clear(self) -> None:
        """Drop all state - useful for testing."""
        with self.lock:
            self.queues.clear()
            self.posts.clear()
            self.credentials.clear()
            self._queue_ids = itertools.count(1)
            self._post_ids = itertools.count(1)
            self._credential_ids = itertools.count(1)


class InMemoryQueueDefinitionService:
    def __init__(self, store: InMemoryStore, clock: ClockPort) -> None:
        self._store = store
        self._clock = clock

    def _check_ident_free(self, username: str, ident: str, queue_id: int | None) -> None:
        for queue in self._store.queues.values():
            if queue.username == username and queue.ident == ident and queue.id != queue_id:
                raise DataConflictError(f"Duplicate queue identifier: {ident}")

    def _save(self, queue: Queue) -> Queue:
        self._store.queues[queue.id] = queue
        return queue

    def find_by_user(self, username: str) -> list[Queue]:
        with self._store.lock:
            return sorted(
                (q for q in self._store.queues.values() if q.username == username),
                key=lambda q: q.id,
            )

    def find_by_queue_id(self, username: str, queue_id: int) -> Queue:
        with self._store.lock:
            return self._store.require_queue(username, queue_id)

    def resolve_queue_id(self, username: str, ident: str) -> int:
        with self._store.lock:
            for queue in self._store.queues.values():
                if queue.username == username and queue.ident == ident:
                    return queue.id
        raise DataAccessError(f"Queue ident {ident} not found for user {username}")

    def resolve_queue_ident(self, username: str, queue_id: int) -> str:
        return self.find_by_queue_id(username, queue_id).ident

    def is_auto_deploy(self, username: str, queue_id: int) -> bool:
        return self.find_by_queue_id(username, queue_id).is_auto_deploy

    def create_queue(self, username: str, config: QueueConfig) -> int:
        with self._store.lock:
            self._check_ident_free(username, config.ident, None)
            queue = Queue(
                id=self._store.next_queue_id(),
                username=username,
                ident=config.ident,
                title=config.title,
                description=config.description,
                generator=config.generator,
                transport_ident=str(uuid4()),
                export_config=config.options,
                copyright=config.copyright,
                language=config.language,
                img_src=config.img_src,
            )
            self._save(queue)
        logger.info("Created queue id=%s ident=%s for username=%s", queue.id, queue.ident, username)
        return queue.id

    def update_queue(
        self, username: str, queue_id: int, config: QueueConfig, merge_update: bool
    ) -> Queue:
        with self._store.lock:
            queue = self._store.require_queue(username, queue_id)
            self._check_ident_free(username, config.ident, queue_id)
            values = {
                "ident": config.ident,
                "title": config.title,
                "description": config.description,
                "generator": config.generator,
                "export_config": config.options,
                "copyright": config.copyright,
                "language": config.language,
                "img_src": config.img_src,
            }
            if merge_update:
                values = {k: v for k, v in values.items() if v is not None}
                if config.options is not None:
                    values["export_config"] = merge_model(queue.export_config, config.options)
            return self._save(queue.model_copy(update=values))

    def update_queue_attribute(
        self, username: str, queue_id: int, attr_name: str, value: Any
    ) -> Any:
        if attr_name not in QUEUE_ATTRIBUTES:
            raise DataUpdateError(f"Queue attribute {attr_name} is not updatable")
        with self._store.lock:
            queue = self._store.require_queue(username, queue_id)
            if attr_name == "ident":
                self._check_ident_free(username, value, queue_id)
            self._save(queue.model_copy(update={attr_name: value}))
        return value

    def clear_queue_attribute(self, username: str, queue_id: int, attr_name: str) -> None:
        if attr_name not in QUEUE_ATTRIBUTES or attr_name == "ident":
            raise DataUpdateError(f"Queue attribute {attr_name} is not clearable")
        cleared = False if attr_name == "is_authenticated" else None
        with self._store.lock:
            queue = self._store.require_queue(username, queue_id)
            self._save(queue.model_copy(update={attr_name: cleared}))

    def update_export_config(
        self,
        username: str,
        queue_id: int,
        section: str | None,
        config: Any,
        merge_update: bool,
    ) -> ExportConfig:
        with self._store.lock:
            queue = self._store.require_queue(username, queue_id)
            current = queue.export_config or ExportConfig()
            if section is None:
                updated = merge_model(current, config) if merge_update else config
            else:
                block = getattr(current, section)
                new_block = merge_model(block, config) if merge_update else config
                updated = current.model_copy(update={section: new_block})
            self._save(queue.model_copy(update={"export_config": updated}))
            return updated

    def clear_export_config(self, username: str, queue_id: int, section: str | None) -> None:
        with self._store.lock:
            queue = self._store.require_queue(username, queue_id)
            if section is None:
                updated = None
            elif queue.export_config is None:
                return
            else:
                updated = queue.export_config.model_copy(update={section: None})
            self._save(queue.model_copy(update={"export_config": updated}))

    def check_status(self, username: str, queue_id: int) -> QueueStatus:
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            posts = [p for p in self._store.posts.values() if p.queue_id == queue_id]
        counts = Counter(p.status_name for p in posts)
        return QueueStatus(
            published_ct=counts.get("PUBLISHED", 0),
            count_by_status=dict(counts),
        )

    def delete_by_id(self, username: str, queue_id: int) -> None:
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            del self._store.queues[queue_id]
            doomed = [pid for pid, p in self._store.posts.items() if p.queue_id == queue_id]
            for post_id in doomed:
                del self._store.posts[post_id]
            logins = [cid for cid, c in self._store.credentials.items() if c.queue_id == queue_id]
            for credential_id in logins:
                del self._store.credentials[credential_id]
        logger.info("Deleted queue id=%s with %d posts", queue_id, len(doomed))


class InMemoryStagingPostService:
    def __init__(self, store: InMemoryStore, clock: ClockPort) -> None:
        self._store = store
        self._clock = clock

    def _save(self, post: StagingPost, touch: bool = True) -> StagingPost:
        if touch:
            post = post.model_copy(update={"last_updated_timestamp": self._clock.now_utc()})
        self._store.posts[post.id] = post
        return post

    def get_staging_posts(self, username: str, queue_ids: list[int]) -> list[StagingPost]:
        wanted = set(queue_ids)
        with self._store.lock:
            return sorted(
                (
                    p
                    for p in self._store.posts.values()
                    if p.username == username and p.queue_id in wanted
                ),
                key=lambda p: p.id,
            )

    def find_by_id(self, username: str, post_id: int) -> StagingPost:
        with self._store.lock:
            return self._store.require_post(username, post_id)

    def create_post(self, username: str, queue_id: int, config: PostConfig) -> int:
        now = self._clock.now_utc()
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            post = StagingPost(
                id=self._store.next_post_id(),
                queue_id=queue_id,
                username=username,
                post_title=config.post_title,
                post_desc=config.post_desc,
                post_contents=config.post_contents or [],
                post_itunes=config.post_itunes,
                post_url=config.post_url,
                post_urls=config.post_urls or [],
                post_img_url=config.post_img_url,
                post_comment=config.post_comment,
                post_rights=config.post_rights,
                contributors=config.contributors or [],
                authors=config.authors or [],
                post_categories=config.post_categories or [],
                expiration_timestamp=config.expiration_timestamp,
                enclosures=config.enclosures or [],
                import_timestamp=now,
                last_updated_timestamp=now,
            )
            self._store.posts[post.id] = post
        return post.id

    def update_post(
        self, username: str, post_id: int, config: PostConfig, merge_update: bool
    ) -> StagingPost:
        with self._store.lock:
            post = self._store.require_post(username, post_id)
            values: dict[str, Any] = {}
            for name in type(config).model_fields:
                value = getattr(config, name)
                if merge_update:
                    if value is None:
                        continue
                    current = getattr(post, name)
                    if name in POST_PART_ATTRIBUTES:
                        value = merge_parts(current, value)
                    elif isinstance(value, BaseModel):
                        value = merge_model(current, value)
                elif value is None and isinstance(getattr(post, name), list):
                    value = []
                values[name] = value
            return self._save(post.model_copy(update=values))

    def update_post_pub_status(
        self, username: str, post_id: int, new_status: PostPubStatus | None
    ) -> None:
        with self._store.lock:
            post = self._store.require_post(username, post_id)
            self._save(post.model_copy(update={"post_pub_status": new_status}))

    def update_queue_pub_status(
        self, username: str, queue_id: int, new_status: PostPubStatus | None
    ) -> None:
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            for post in list(self._store.posts.values()):
                if post.queue_id == queue_id:
                    self._save(post.model_copy(update={"post_pub_status": new_status}))

    def update_post_attribute(
        self,
        username: str,
        post_id: int,
        attr_name: str,
        value: Any,
        merge_update: bool = False,
    ) -> Any:
        if attr_name not in POST_ATTRIBUTES:
            raise DataUpdateError(f"Post attribute {attr_name} is not updatable")
        with self._store.lock:
            post = self._store.require_post(username, post_id)
            if merge_update:
                current = getattr(post, attr_name)
                if attr_name in POST_PART_ATTRIBUTES:
                    value = merge_parts(current, value)
                elif attr_name == "post_categories":
                    value = current + [c for c in value if c not in current]
                elif isinstance(value, BaseModel):
                    value = merge_model(current, value)
            self._save(post.model_copy(update={attr_name: value}))
        return value

    def clear_post_attribute(self, username: str, post_id: int, attr_name: str) -> None:
        if attr_name not in POST_ATTRIBUTES or attr_name in UNCLEARABLE_POST_ATTRIBUTES:
            raise DataUpdateError(f"Post attribute {attr_name} is not clearable")
        with self._store.lock:
            post = self._store.require_post(username, post_id)
            cleared = [] if isinstance(getattr(post, attr_name), list) else None
            self._save(post.model_copy(update={attr_name: cleared}))

    def _require_part(self, attr_name: str) -> None:
        if attr_name not in POST_PART_ATTRIBUTES:
            raise DataUpdateError(f"Post attribute {attr_name} is not a collection")

    def find_post_part(self, username: str, post_id: int, part: str, ident: str) -> Any:
        self._require_part(part)
        with self._store.lock:
            post = self._store.require_post(username, post_id)
        for item in getattr(post, part):
            if item.ident == ident:
                return item
        raise DataAccessError(f"No {part} item {ident} on post Id {post_id}")

    def add_post_part(self, username: str, post_id: int, part: str, item: Any) -> str:
        self._require_part(part)
        with self._store.lock:
            post = self._store.require_post(username, post_id)
            items = list(getattr(post, part))
            taken = {i.ident for i in items}
            while item.ident in taken:
                item = item.model_copy(update={"ident": random_ident()})
            items.append(item)
            self._save(post.model_copy(update={part: items}))
        return item.ident

    def update_post_part(
        self,
        username: str,
        post_id: int,
        part: str,
        ident: str,
        item: Any,
        merge_update: bool,
    ) -> Any:
        self._require_part(part)
        with self._store.lock:
            post = self._store.require_post(username, post_id)
            items = list(getattr(post, part))
            for i, current in enumerate(items):
                if current.ident == ident:
                    updated = merge_model(current, item) if merge_update else item
                    items[i] = updated.model_copy(update={"ident": ident})
                    self._save(post.model_copy(update={part: items}))
                    return items[i]
        raise DataAccessError(f"No {part} item {ident} on post Id {post_id}")

    def delete_post_part(self, username: str, post_id: int, part: str, ident: str) -> None:
        self._require_part(part)
        with self._store.lock:
            post = self._store.require_post(username, post_id)
            items = [i for i in getattr(post, part) if i.ident != ident]
            if len(items) == len(getattr(post, part)):
                raise DataAccessError(f"No {part} item {ident} on post Id {post_id}")
            self._save(post.model_copy(update={part: items}))

    def delete_by_id(self, username: str, post_id: int) -> None:
        with self._store.lock:
            self._store.require_post(username, post_id)
            del self._store.posts[post_id]

    def delete_by_queue_id(self, username: str, queue_id: int) -> None:
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            doomed = [pid for pid, p in self._store.posts.items() if p.queue_id == queue_id]
            for post_id in doomed:
                del self._store.posts[post_id]
        logger.info("Deleted %d posts from queue id=%s", len(doomed), queue_id)


class InMemoryQueueCredentialsService:
    """Basic-auth logins per queue. Passwords are kept as argon2 hashes only."""

    def __init__(self, store: InMemoryStore, clock: ClockPort) -> None:
        self._store = store
        self._clock = clock

    def _require_credential(
        self, username: str, queue_id: int, credential_id: int
    ) -> QueueCredential:
        credential = self._store.credentials.get(credential_id)
        if credential is None or credential.username != username or credential.queue_id != queue_id:
            raise DataAccessError(
                f"Credential Id {credential_id} not found on queue Id {queue_id}"
            )
        return credential

    def add_credential(
        self, username: str, queue_id: int, basic_username: str, basic_password: str
    ) -> int:
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            for existing in self._store.credentials.values():
                if existing.queue_id == queue_id and existing.basic_username == basic_username:
                    raise DataConflictError(
                        f"Duplicate credential {basic_username} on queue Id {queue_id}"
                    )
            credential = QueueCredential(
                id=self._store.next_credential_id(),
                queue_id=queue_id,
                username=username,
                basic_username=basic_username,
                basic_password_hash=hash_secret(basic_password),
                created=self._clock.now_utc(),
            )
            self._store.credentials[credential.id] = credential
        logger.info("Added credential id=%s to queue id=%s", credential.id, queue_id)
        return credential.id

    def find_by_queue_id(self, username: str, queue_id: int) -> list[QueueCredential]:
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            return sorted(
                (c for c in self._store.credentials.values() if c.queue_id == queue_id),
                key=lambda c: c.id,
            )

    def find_by_id(self, username: str, queue_id: int, credential_id: int) -> QueueCredential:
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            return self._require_credential(username, queue_id, credential_id)

    def update_password(
        self, username: str, queue_id: int, credential_id: int, basic_password: str
    ) -> None:
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            credential = self._require_credential(username, queue_id, credential_id)
            self._store.credentials[credential_id] = credential.model_copy(
                update={
                    "basic_password_hash": hash_secret(basic_password),
                    "last_updated": self._clock.now_utc(),
                }
            )

    def verify(self, queue_id: int, basic_username: str, basic_password: str) -> bool:
        """Check a feed reader's basic-auth login against the queue's credentials."""
        with self._store.lock:
            hashes = [
                c.basic_password_hash
                for c in self._store.credentials.values()
                if c.queue_id == queue_id and c.basic_username == basic_username
            ]
        return any(verify_secret(basic_password, h) for h in hashes)

    def delete_queue_credential(self, username: str, queue_id: int, credential_id: int) -> None:
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            self._require_credential(username, queue_id, credential_id)
            del self._store.credentials[credential_id]

    def delete_queue_credentials(self, username: str, queue_id: int) -> None:
        with self._store.lock:
            self._store.require_queue(username, queue_id)
            doomed = [cid for cid, c in self._store.credentials.items() if c.queue_id == queue_id]
            for credential_id in doomed:
                del self._store.credentials[credential_id]
        logger.info("Deleted %d credentials from queue id=%s", len(doomed), queue_id)
