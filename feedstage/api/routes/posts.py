"""
Staging Post API Routes.

Posts and their individual attributes. Edits to a post that is currently
published redeploy its queue's feed with that post; edits to unpublished posts
are only stored. Scalar attributes (comment, rights, timestamps, status, queue)
are content-negotiated between JSON and text/plain. The iTunes and Media RSS
descriptors merge field by field on PATCH.
"""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status

from feedstage.api.audit import Stopwatch, log_audit
from feedstage.api.deps import (
    PageParams,
    get_current_username,
    get_deploy_component,
    get_page_params,
    get_post_service,
    get_queue_service,
)
from feedstage.api.etag import check_if_none_match, compute_etag, not_modified
from feedstage.api.negotiation import lenient_scalar_body, negotiate, scalar_body
from feedstage.api.paginator import paginate
from feedstage.api.responses import render
from feedstage.api.schemas import (
    DeleteResponse,
    PostConfigResponse,
    PostDTO,
    PostStatusUpdateRequest,
    timestamp_value,
    to_deploy_responses,
)
from feedstage.components.deploy import (
    DeletePostInput,
    DeployComponent,
    RedeployPostInput,
    UpdatePostStatusInput,
)
from feedstage.domain.entities import ContentObject, PostConfig, PostITunes, PostMedia, as_utc
from feedstage.ports.services import QueueDefinitionService, StagingPostService

router = APIRouter()

AcceptHeader = Annotated[str | None, Header()]

SCALAR_LIMITS = {
    "post_comment": 2048,
    "post_rights": 1024,
}


# --- Helpers ---


def _redeploy(
    deployer: DeployComponent,
    queues: QueueDefinitionService,
    username: str,
    post_id: int,
) -> PostConfigResponse:
    out = deployer.run_redeploy_post(RedeployPostInput(username=username, post_id=post_id))
    queue_ident = queues.resolve_queue_ident(username, out.post.queue_id)
    return PostConfigResponse.build(out.post, queue_ident, out.deploy_results)


def _fetch_attribute(
    posts: StagingPostService, username: str, post_id: int, attr_name: str
) -> Any:
    stopwatch = Stopwatch()
    value = getattr(posts.find_by_id(username, post_id), attr_name)
    log_audit("staging-post-attribute-fetch", username, stopwatch, id=post_id, attrName=attr_name)
    return value


def _update_attribute(
    posts: StagingPostService,
    queues: QueueDefinitionService,
    deployer: DeployComponent,
    username: str,
    post_id: int,
    attr_name: str,
    value: Any,
    is_patch: bool = False,
) -> PostConfigResponse:
    stopwatch = Stopwatch()
    posts.update_post_attribute(username, post_id, attr_name, value, merge_update=is_patch)
    response = _redeploy(deployer, queues, username, post_id)
    log_audit("staging-post-attribute-update", username, stopwatch, id=post_id, attrName=attr_name)
    return response


def _update_scalar(
    posts: StagingPostService,
    deployer: DeployComponent,
    username: str,
    post_id: int,
    attr_name: str,
    value: Any,
) -> Any:
    stopwatch = Stopwatch()
    stored = posts.update_post_attribute(username, post_id, attr_name, value)
    deployer.run_redeploy_post(RedeployPostInput(username=username, post_id=post_id))
    log_audit("staging-post-attribute-update", username, stopwatch, id=post_id, attrName=attr_name)
    return stored


def _clear_attribute(
    posts: StagingPostService,
    deployer: DeployComponent,
    username: str,
    post_id: int,
    attr_name: str,
    message: str,
) -> DeleteResponse:
    stopwatch = Stopwatch()
    posts.clear_post_attribute(username, post_id, attr_name)
    out = deployer.run_redeploy_post(RedeployPostInput(username=username, post_id=post_id))
    log_audit("staging-post-attribute-delete", username, stopwatch, id=post_id, attrName=attr_name)
    return DeleteResponse(message=message, deploy_responses=to_deploy_responses(out.deploy_results))


def _checked_scalar(attr_name: str, value: str | None) -> str | None:
    limit = SCALAR_LIMITS[attr_name]
    if value is not None and len(value) > limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Post {attr_name} exceeds {limit} characters",
        )
    return value


def parse_timestamp(value: str | None) -> datetime | None:
    """ISO-8601 timestamp, taken as UTC when it has no offset; None if unparseable."""
    if not value:
        return None
    try:
        return as_utc(datetime.fromisoformat(value.strip()))
    except ValueError:
        return None


# --- Post ---


@router.get("/{post_id}")
def get_post(
    post_id: int,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    stopwatch = Stopwatch()
    post = posts.find_by_id(username, post_id)
    dto = PostDTO.from_post(post, queues.resolve_queue_ident(username, post.queue_id))
    etag = compute_etag(dto)
    if check_if_none_match(request, etag):
        return not_modified(etag)
    log_audit("staging-post-fetch", username, stopwatch, queueIdCt=1, stagingPostCt=1)
    return render(dto, headers={"ETag": etag})


@router.api_route(
    "/{post_id}",
    methods=["PUT", "PATCH"],
    response_model=PostConfigResponse,
    response_model_exclude_none=True,
)
def update_post(
    post_id: int,
    config: PostConfig,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> PostConfigResponse:
    """Replace (PUT) or merge (PATCH) the post; live posts are redeployed."""
    stopwatch = Stopwatch()
    posts.update_post(username, post_id, config, merge_update=request.method == "PATCH")
    response = _redeploy(deployer, queues, username, post_id)
    log_audit("staging-post-update", username, stopwatch, id=post_id)
    return response


@router.delete("/{post_id}", response_model=DeleteResponse, response_model_exclude_none=True)
def delete_post(
    post_id: int,
    username: str = Depends(get_current_username),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> DeleteResponse:
    """Delete a post. A live post is depublished and its feed redeployed first."""
    stopwatch = Stopwatch()
    out = deployer.run_delete_post(DeletePostInput(username=username, post_id=post_id))
    log_audit("staging-post-delete", username, stopwatch, deleteCt=1)
    return DeleteResponse(
        message=f"Deleted post Id {post_id}",
        deploy_responses=to_deploy_responses(out.deploy_results),
    )


# --- Status ---


@router.get("/{post_id}/status")
def get_post_status(
    post_id: int,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    """PUBLISHED, PUB_PENDING, DEPUB_PENDING or UNPUBLISHED."""
    stopwatch = Stopwatch()
    post = posts.find_by_id(username, post_id)
    log_audit("staging-post-attribute-fetch", username, stopwatch, id=post_id, attrName="status")
    return negotiate(post.status_name, accept)


@router.api_route(
    "/{post_id}/status",
    methods=["PUT", "PATCH"],
    response_model=PostConfigResponse,
    response_model_exclude_none=True,
)
def update_post_status(
    post_id: int,
    body: PostStatusUpdateRequest,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> PostConfigResponse:
    stopwatch = Stopwatch()
    out = deployer.run_update_post_status(
        UpdatePostStatusInput(username=username, post_id=post_id, new_status=body.new_status)
    )
    queue_ident = queues.resolve_queue_ident(username, out.post.queue_id)
    log_audit(
        "staging-post-pub-status-update",
        username,
        stopwatch,
        id=post_id,
        newStatus=body.new_status,
        deployed=out.deploy_results is not None,
    )
    return PostConfigResponse.build(out.post, queue_ident, out.deploy_results)


# --- Queue ---


@router.get("/{post_id}/queue")
def get_post_queue(
    post_id: int,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    """Ident of the queue the post belongs to."""
    queue_id = _fetch_attribute(posts, username, post_id, "queue_id")
    return negotiate(queues.resolve_queue_ident(username, queue_id), accept)


# --- Title / description ---


@router.get("/{post_id}/title")
def get_post_title(
    post_id: int,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    return render(_fetch_attribute(posts, username, post_id, "post_title"))


@router.api_route(
    "/{post_id}/title",
    methods=["PUT", "PATCH"],
    response_model=PostConfigResponse,
    response_model_exclude_none=True,
)
def update_post_title(
    post_id: int,
    title: ContentObject,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> PostConfigResponse:
    return _update_attribute(
        posts, queues, deployer, username, post_id, "post_title", title,
        is_patch=request.method == "PATCH",
    )


@router.get("/{post_id}/description")
def get_post_description(
    post_id: int,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    return render(_fetch_attribute(posts, username, post_id, "post_desc"))


@router.api_route(
    "/{post_id}/description",
    methods=["PUT", "PATCH"],
    response_model=PostConfigResponse,
    response_model_exclude_none=True,
)
def update_post_description(
    post_id: int,
    description: ContentObject,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> PostConfigResponse:
    return _update_attribute(
        posts, queues, deployer, username, post_id, "post_desc", description,
        is_patch=request.method == "PATCH",
    )


# --- iTunes ---


@router.get("/{post_id}/itunes")
def get_post_itunes(
    post_id: int,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    itunes = _fetch_attribute(posts, username, post_id, "post_itunes")
    if itunes is None:
        return Response(content="null", media_type="application/json")
    return render(itunes)


@router.api_route(
    "/{post_id}/itunes",
    methods=["PUT", "PATCH"],
    response_model=PostConfigResponse,
    response_model_exclude_none=True,
)
def update_post_itunes(
    post_id: int,
    itunes: PostITunes,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> PostConfigResponse:
    return _update_attribute(
        posts, queues, deployer, username, post_id, "post_itunes", itunes,
        is_patch=request.method == "PATCH",
    )


@router.delete("/{post_id}/itunes", response_model=DeleteResponse, response_model_exclude_none=True)
def delete_post_itunes(
    post_id: int,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> DeleteResponse:
    return _clear_attribute(
        posts, deployer, username, post_id, "post_itunes",
        f"Deleted iTunes descriptor from post Id {post_id}",
    )


# --- Media ---


@router.get("/{post_id}/media")
def get_post_media(
    post_id: int,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    media = _fetch_attribute(posts, username, post_id, "post_media")
    if media is None:
        return Response(content="null", media_type="application/json")
    return render(media)


@router.api_route(
    "/{post_id}/media",
    methods=["PUT", "PATCH"],
    response_model=PostConfigResponse,
    response_model_exclude_none=True,
)
def update_post_media(
    post_id: int,
    media: PostMedia,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> PostConfigResponse:
    return _update_attribute(
        posts, queues, deployer, username, post_id, "post_media", media,
        is_patch=request.method == "PATCH",
    )


@router.delete("/{post_id}/media", response_model=DeleteResponse, response_model_exclude_none=True)
def delete_post_media(
    post_id: int,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> DeleteResponse:
    return _clear_attribute(
        posts, deployer, username, post_id, "post_media",
        f"Deleted media from post Id {post_id}",
    )


# --- Comment / rights ---


@router.get("/{post_id}/comment")
def get_post_comment(
    post_id: int,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    return negotiate(_fetch_attribute(posts, username, post_id, "post_comment"), accept)


@router.api_route("/{post_id}/comment", methods=["PUT", "PATCH"])
def update_post_comment(
    post_id: int,
    value: str | None = Depends(scalar_body),
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> Response:
    stored = _update_scalar(
        posts, deployer, username, post_id, "post_comment",
        _checked_scalar("post_comment", value),
    )
    return negotiate(stored, accept)


@router.delete(
    "/{post_id}/comment", response_model=DeleteResponse, response_model_exclude_none=True
)
def delete_post_comment(
    post_id: int,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> DeleteResponse:
    return _clear_attribute(
        posts, deployer, username, post_id, "post_comment",
        f"Deleted comment string from post Id {post_id}",
    )


@router.get("/{post_id}/rights")
def get_post_rights(
    post_id: int,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    return negotiate(_fetch_attribute(posts, username, post_id, "post_rights"), accept)


@router.api_route("/{post_id}/rights", methods=["PUT", "PATCH"])
def update_post_rights(
    post_id: int,
    value: str | None = Depends(scalar_body),
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> Response:
    stored = _update_scalar(
        posts, deployer, username, post_id, "post_rights",
        _checked_scalar("post_rights", value),
    )
    return negotiate(stored, accept)


@router.delete("/{post_id}/rights", response_model=DeleteResponse, response_model_exclude_none=True)
def delete_post_rights(
    post_id: int,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> DeleteResponse:
    return _clear_attribute(
        posts, deployer, username, post_id, "post_rights",
        f"Deleted rights string from post Id {post_id}",
    )


# --- Categories ---


@router.get("/{post_id}/categories")
def get_post_categories(
    post_id: int,
    page: PageParams = Depends(get_page_params),
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> list[str]:
    categories = _fetch_attribute(posts, username, post_id, "post_categories")
    return paginate(categories, page.offset, page.limit)


@router.api_route(
    "/{post_id}/categories",
    methods=["PUT", "PATCH"],
    response_model=PostConfigResponse,
    response_model_exclude_none=True,
)
def update_post_categories(
    post_id: int,
    categories: list[str],
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> PostConfigResponse:
    """PUT replaces the categories; PATCH appends the ones not already present."""
    return _update_attribute(
        posts, queues, deployer, username, post_id, "post_categories", categories,
        is_patch=request.method == "PATCH",
    )


@router.delete(
    "/{post_id}/categories", response_model=DeleteResponse, response_model_exclude_none=True
)
def delete_post_categories(
    post_id: int,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> DeleteResponse:
    return _clear_attribute(
        posts, deployer, username, post_id, "post_categories",
        f"Deleted categories from post Id {post_id}",
    )


# --- Timestamps ---


@router.get("/{post_id}/expiration")
def get_post_expiration(
    post_id: int,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    value = _fetch_attribute(posts, username, post_id, "expiration_timestamp")
    return negotiate(timestamp_value(value), accept)


@router.api_route("/{post_id}/expiration", methods=["PUT", "PATCH"])
def update_post_expiration(
    post_id: int,
    value: str | None = Depends(lenient_scalar_body),
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> Response:
    """Set the expiration time; an unparseable timestamp is a bare 400."""
    expiration = parse_timestamp(value)
    if expiration is None:
        return Response(status_code=status.HTTP_400_BAD_REQUEST)
    stored = _update_scalar(posts, deployer, username, post_id, "expiration_timestamp", expiration)
    return negotiate(timestamp_value(stored), accept)


@router.delete(
    "/{post_id}/expiration", response_model=DeleteResponse, response_model_exclude_none=True
)
def delete_post_expiration(
    post_id: int,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> DeleteResponse:
    return _clear_attribute(
        posts, deployer, username, post_id, "expiration_timestamp",
        f"Deleted expiration timestamp string from post Id {post_id}",
    )


@router.get("/{post_id}/published")
def get_post_published(
    post_id: int,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    value = _fetch_attribute(posts, username, post_id, "publish_timestamp")
    return negotiate(timestamp_value(value), accept)


@router.get("/{post_id}/updated")
def get_post_updated(
    post_id: int,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    value = _fetch_attribute(posts, username, post_id, "last_updated_timestamp")
    return negotiate(timestamp_value(value), accept)
