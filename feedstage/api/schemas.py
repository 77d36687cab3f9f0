"""Request and response models of the HTTP API (camelCase on the wire)."""

from datetime import datetime

from pydantic import ConfigDict, Field, field_validator

from feedstage.domain.entities import (
    CamelModel,
    ContentObject,
    ExportConfig,
    PostEnclosure,
    PostITunes,
    PostPerson,
    PostPubStatus,
    PostUrl,
    PubResult,
    Queue,
    QueueCredential,
    QueueStatus,
    StagingPost,
    Timestamp,
    format_timestamp,
)

# --- Requests ---


class PostStatusUpdateRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    new_status: str | None = Field(default=None, max_length=64)

    @field_validator("new_status")
    @classmethod
    def blank_means_none(cls, v: str | None) -> str | None:
        """A blank status clears the pending status, like null."""
        if v is None or not v.strip():
            return None
        return v.strip()


class QueueAuthUpdateRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    is_required: bool


# --- Responses ---


class ErrorDetails(CamelModel):
    timestamp: Timestamp
    message: str
    details: str | None = None


class ResponseMessage(CamelModel):
    message: str


class DeployResponse(CamelModel):
    """Outcome of one publisher channel."""

    timestamp: Timestamp
    publisher_ident: str = Field(max_length=64)
    url: str | None = None
    errors: list[str] | None = None

    @classmethod
    def from_pub_result(cls, result: PubResult) -> "DeployResponse":
        return cls(
            timestamp=result.pub_date,
            publisher_ident=result.publisher_ident,
            url=result.user_ident_url or result.transport_url,
            errors=result.errors or None,
        )


def to_deploy_responses(
    results: dict[str, PubResult] | None,
) -> dict[str, DeployResponse] | None:
    if results is None:
        return None
    return {ident: DeployResponse.from_pub_result(r) for ident, r in results.items()}


class QueueDTO(CamelModel):
    ident: str = Field(min_length=1, max_length=256)
    title: str | None = Field(default=None, max_length=512)
    description: str | None = Field(default=None, max_length=1024)
    generator: str | None = Field(default=None, max_length=512)
    transport_ident: str = Field(min_length=1, max_length=256)
    options: ExportConfig | None = None
    copyright: str | None = Field(default=None, max_length=1024)
    language: str | None = Field(default=None, max_length=16)
    queue_img_src: str | None = Field(default=None, max_length=10240)
    last_deployed: Timestamp | None = None
    is_authenticated: bool | None = None

    @classmethod
    def from_queue(cls, queue: Queue) -> "QueueDTO":
        return cls(
            ident=queue.ident,
            title=queue.title,
            description=queue.description,
            generator=queue.generator,
            transport_ident=queue.transport_ident,
            options=queue.export_config,
            copyright=queue.copyright,
            language=queue.language,
            queue_img_src=queue.img_src,
            last_deployed=queue.last_deployed,
            is_authenticated=queue.is_authenticated,
        )


class PostDTO(CamelModel):
    id: int
    queue_ident: str = Field(min_length=1)
    post_title: ContentObject
    post_desc: ContentObject
    post_contents: list[ContentObject] | None = None
    post_itunes: PostITunes | None = Field(default=None, alias="postITunes")
    post_url: str | None = Field(default=None, max_length=1024)
    post_urls: list[PostUrl] | None = None
    post_img_url: str | None = None
    import_timestamp: Timestamp | None = None
    post_comment: str | None = Field(default=None, max_length=2048)
    post_rights: str | None = Field(default=None, max_length=1024)
    contributors: list[PostPerson] | None = None
    authors: list[PostPerson] | None = None
    post_categories: list[str] | None = None
    publish_timestamp: Timestamp | None = None
    expiration_timestamp: Timestamp | None = None
    enclosures: list[PostEnclosure] | None = None
    last_updated_timestamp: Timestamp | None = None
    published: bool
    post_pub_status: PostPubStatus | None = None
    # only reported when true
    is_archived: bool | None = None

    @classmethod
    def from_post(cls, post: StagingPost, queue_ident: str) -> "PostDTO":
        return cls(
            id=post.id,
            queue_ident=queue_ident,
            post_title=post.post_title,
            post_desc=post.post_desc,
            post_contents=post.post_contents,
            post_itunes=post.post_itunes,
            post_url=post.post_url,
            post_urls=post.post_urls,
            post_img_url=post.post_img_url,
            import_timestamp=post.import_timestamp,
            post_comment=post.post_comment,
            post_rights=post.post_rights,
            contributors=post.contributors,
            authors=post.authors,
            post_categories=post.post_categories,
            publish_timestamp=post.publish_timestamp,
            expiration_timestamp=post.expiration_timestamp,
            enclosures=post.enclosures,
            last_updated_timestamp=post.last_updated_timestamp,
            published=post.is_published,
            post_pub_status=post.post_pub_status,
            is_archived=True if post.is_archived else None,
        )


class QueueCredentialDTO(CamelModel):
    """A queue credential as reported to its owner; the password is never sent back."""

    id: int
    queue_id: int
    basic_username: str
    created: Timestamp
    last_updated: Timestamp | None = None

    @classmethod
    def from_credential(cls, credential: QueueCredential) -> "QueueCredentialDTO":
        return cls(
            id=credential.id,
            queue_id=credential.queue_id,
            basic_username=credential.basic_username,
            created=credential.created,
            last_updated=credential.last_updated,
        )

class QueueConfigResponse(CamelModel):
    queue_dto: QueueDTO = Field(alias="queueDTO")
    deploy_responses: dict[str, DeployResponse] | None = None

    @classmethod
    def build(
        cls, queue: Queue, results: dict[str, PubResult] | None
    ) -> "QueueConfigResponse":
        return cls(
            queue_dto=QueueDTO.from_queue(queue),
            deploy_responses=to_deploy_responses(results),
        )


class PostConfigResponse(CamelModel):
    post_dto: PostDTO = Field(alias="postDTO")
    deployed: bool
    deploy_responses: dict[str, DeployResponse] | None = None

    @classmethod
    def build(
        cls, post: StagingPost, queue_ident: str, results: dict[str, PubResult] | None
    ) -> "PostConfigResponse":
        return cls(
            post_dto=PostDTO.from_post(post, queue_ident),
            deployed=results is not None,
            deploy_responses=to_deploy_responses(results),
        )


class PostCreateResponse(CamelModel):
    post_ids: list[int]
    deployed: bool
    deploy_responses: dict[str, DeployResponse] | None = None


class DeleteResponse(CamelModel):
    message: str
    deploy_responses: dict[str, DeployResponse] | None = None


class PartCreatedResponse(CamelModel):
    message: str
    ident: str


class QueueStatusResponse(CamelModel):
    published_ct: int
    count_by_status: dict[str, int]

    @classmethod
    def from_status(cls, status: QueueStatus) -> "QueueStatusResponse":
        return cls(published_ct=status.published_ct, count_by_status=status.count_by_status)


def timestamp_value(value: datetime | None) -> str | None:
    """Scalar rendering of an optional timestamp field."""
    return None if value is None else format_timestamp(value)
