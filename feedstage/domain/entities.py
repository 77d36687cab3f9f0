import secrets
import string
from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# --- Enums / Literals ---
PostPubStatus = Literal["PUB_PENDING", "DEPUB_PENDING"]
QueueStatusRequest = Literal["DEPLOY_PENDING", "PUB_ALL", "DEPUB_ALL"]
PostStatusFilter = Literal["PUB_PENDING", "DEPUB_PENDING", "PUBLISHED", "UNPUBLISHED"]

_IDENT_ALPHABET = string.ascii_letters + string.digits


def random_ident(length: int = 8) -> str:
    return "".join(secrets.choice(_IDENT_ALPHABET) for _ in range(length))


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    """Format as yyyy-MM-ddTHH:mm:ss.SSS+00:00."""
    return as_utc(value).isoformat(timespec="milliseconds")


Timestamp = Annotated[
    datetime, PlainSerializer(format_timestamp, return_type=str, when_used="json")
]


class CamelModel(BaseModel):
    """Base for value objects exchanged with clients in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Post parts ---


class ContentObject(CamelModel):
    ident: str = Field(default_factory=random_ident, max_length=256)
    type: str | None = Field(default=None, max_length=64)
    value: str | None = None


class PostPerson(CamelModel):
    ident: str = Field(default_factory=random_ident, max_length=256)
    name: str | None = Field(default=None, max_length=256)
    email: str | None = Field(default=None, max_length=512)
    uri: str | None = Field(default=None, max_length=1024)


class PostUrl(CamelModel):
    ident: str = Field(default_factory=random_ident, max_length=256)
    title: str | None = Field(default=None, max_length=255)
    type: str | None = Field(default=None, max_length=64)
    href: str | None = Field(default=None, max_length=1024)
    hreflang: str | None = Field(default=None, max_length=64)
    rel: str | None = Field(default=None, max_length=64)


class PostEnclosure(CamelModel):
    ident: str = Field(default_factory=random_ident, max_length=256)
    url: str | None = Field(default=None, max_length=1024)
    type: str | None = Field(default=None, max_length=64)
    length: int | None = Field(default=None, ge=0)


class PostITunes(CamelModel):
    author: str | None = None
    subtitle: str | None = None
    summary: str | None = None
    image_uri: str | None = None
    keywords: list[str] | None = None
    explicit: bool = False
    block: bool = False
    close_captioned: bool = False
    duration: int | None = Field(default=None, ge=0)
    episode: int | None = None
    season: int | None = None
    order: int | None = None
    episode_type: str | None = None
    title: str | None = None


# --- Media RSS (post media) ---


class PostMediaThumbnail(CamelModel):
    url: str | None = Field(default=None, max_length=1024)
    height: int | None = Field(default=None, ge=0)
    width: int | None = Field(default=None, ge=0)
    time: str | None = Field(default=None, max_length=64)


class PostMediaCredit(CamelModel):
    role: str | None = Field(default=None, max_length=256)
    scheme: str | None = Field(default=None, max_length=1024)
    value: str | None = Field(default=None, max_length=256)


class PostMediaMetadata(CamelModel):
    title: str | None = Field(default=None, max_length=512)
    title_type: str | None = Field(default=None, max_length=64)
    description: str | None = Field(default=None, max_length=4096)
    description_type: str | None = Field(default=None, max_length=64)
    keywords: list[str] | None = None
    thumbnails: list[PostMediaThumbnail] | None = None
    credits: list[PostMediaCredit] | None = None
    copyright: str | None = Field(default=None, max_length=1024)
    copyright_url: str | None = Field(default=None, max_length=1024)
    rating: str | None = Field(default=None, max_length=256)


class PostMediaContent(CamelModel):
    url: str | None = Field(default=None, max_length=1024)
    type: str | None = Field(default=None, max_length=64)
    medium: str | None = Field(default=None, max_length=64)
    expression: str | None = Field(default=None, max_length=64)
    is_default: bool | None = None
    file_size: int | None = Field(default=None, ge=0)
    bitrate: float | None = Field(default=None, ge=0)
    framerate: float | None = Field(default=None, ge=0)
    duration: int | None = Field(default=None, ge=0)
    height: int | None = Field(default=None, ge=0)
    width: int | None = Field(default=None, ge=0)
    language: str | None = Field(default=None, max_length=16)
    metadata: PostMediaMetadata | None = None


class PostMediaGroup(CamelModel):
    default_content_index: int | None = Field(default=None, ge=0)
    contents: list[PostMediaContent] | None = None
    metadata: PostMediaMetadata | None = None


class PostMedia(CamelModel):
    """Media RSS descriptor of a post (media:content, media:group and their metadata)."""

    post_media_metadata: PostMediaMetadata | None = None
    post_media_contents: list[PostMediaContent] | None = None
    post_media_groups: list[PostMediaGroup] | None = None


# --- Queue export options ---


class Atom10Config(CamelModel):
    author_name: str | None = None
    author_email: str | None = None
    author_uri: str | None = None
    contributor_name: str | None = None
    contributor_email: str | None = None
    contributor_uri: str | None = None
    category_term: str | None = None
    category_label: str | None = None
    category_scheme: str | None = None


class RSS20Config(CamelModel):
    managing_editor: str | None = None
    web_master: str | None = None
    category_value: str | None = None
    category_domain: str | None = None
    docs: str | None = None
    cloud_domain: str | None = None
    cloud_protocol: str | None = None
    cloud_register_procedure: str | None = None
    cloud_port: int | None = None
    ttl: int | None = None
    rating: str | None = None
    text_input_title: str | None = None
    text_input_description: str | None = None
    text_input_name: str | None = None
    text_input_link: str | None = None
    skip_hours: str | None = None
    skip_days: str | None = None


class ExportConfig(CamelModel):
    atom_config: Atom10Config | None = None
    rss_config: RSS20Config | None = None
    max_published: int | None = Field(default=None, ge=1)
    is_auto_deploy: bool | None = None


# --- Client-supplied configuration ---


class QueueConfig(CamelModel):
    model_config = ConfigDict(extra="forbid")

    ident: str = Field(min_length=1, max_length=256)
    title: str | None = Field(default=None, max_length=512)
    description: str | None = Field(default=None, max_length=1024)
    generator: str | None = Field(default=None, max_length=512)
    options: ExportConfig | None = None
    copyright: str | None = Field(default=None, max_length=1024)
    language: str | None = Field(default=None, max_length=16)
    img_src: str | None = Field(default=None, max_length=10240)


class QueueCredentialConfig(CamelModel):
    model_config = ConfigDict(extra="forbid")

    basic_username: str = Field(min_length=1, max_length=100)
    basic_password: str = Field(min_length=1, max_length=256)


class PostConfig(CamelModel):
    model_config = ConfigDict(extra="forbid")

    post_title: ContentObject
    post_desc: ContentObject
    post_contents: list[ContentObject] | None = None
    post_itunes: PostITunes | None = Field(default=None, alias="postITunes")
    post_url: str | None = Field(default=None, max_length=1024)
    post_urls: list[PostUrl] | None = None
    post_img_url: str | None = Field(default=None, max_length=10240)
    post_comment: str | None = Field(default=None, max_length=2048)
    post_rights: str | None = Field(default=None, max_length=1024)
    contributors: list[PostPerson] | None = None
    authors: list[PostPerson] | None = None
    post_categories: list[str] | None = None
    expiration_timestamp: datetime | None = None
    enclosures: list[PostEnclosure] | None = None


# --- Aggregates ---


class Queue(BaseModel):
    id: int
    username: str
    ident: str
    title: str | None = None
    description: str | None = None
    generator: str | None = None
    transport_ident: str
    export_config: ExportConfig | None = None
    copyright: str | None = None
    language: str | None = None
    img_src: str | None = None
    is_authenticated: bool = False
    is_enabled: bool = True
    last_deployed: datetime | None = None

    @property
    def is_auto_deploy(self) -> bool:
        return bool(self.export_config and self.export_config.is_auto_deploy)


class StagingPost(BaseModel):
    id: int
    queue_id: int
    username: str
    post_title: ContentObject
    post_desc: ContentObject
    post_contents: list[ContentObject] = Field(default_factory=list)
    post_itunes: PostITunes | None = None
    post_media: PostMedia | None = None
    post_url: str | None = None
    post_urls: list[PostUrl] = Field(default_factory=list)
    post_img_url: str | None = None
    post_comment: str | None = None
    post_rights: str | None = None
    contributors: list[PostPerson] = Field(default_factory=list)
    authors: list[PostPerson] = Field(default_factory=list)
    post_categories: list[str] = Field(default_factory=list)
    enclosures: list[PostEnclosure] = Field(default_factory=list)
    import_timestamp: datetime | None = None
    publish_timestamp: datetime | None = None
    expiration_timestamp: datetime | None = None
    last_updated_timestamp: datetime | None = None
    post_pub_status: PostPubStatus | None = None
    is_archived: bool = False

    @property
    def is_published(self) -> bool:
        return self.publish_timestamp is not None

    @property
    def status_name(self) -> str:
        """PUBLISHED, then the pending pub status, then UNPUBLISHED."""
        if self.is_published:
            return "PUBLISHED"
        if self.post_pub_status:
            return self.post_pub_status
        return "UNPUBLISHED"


class QueueCredential(BaseModel):
    """Basic-auth login for an authenticated queue's feed; only the password hash is kept."""

    id: int
    queue_id: int
    username: str
    basic_username: str
    basic_password_hash: str
    created: datetime
    last_updated: datetime | None = None


# --- Publication ---


class PubResult(BaseModel):
    publisher_ident: str
    pub_date: datetime
    transport_url: str | None = None
    user_ident_url: str | None = None
    errors: list[str] = Field(default_factory=list)


class QueueStatus(BaseModel):
    published_ct: int
    count_by_status: dict[str, int]
