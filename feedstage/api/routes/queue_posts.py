"""Posts of one queue: create in bulk, list, delete all."""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status

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
from feedstage.api.paginator import paginate
from feedstage.api.responses import render
from feedstage.api.schemas import (
    PostCreateResponse,
    PostDTO,
    ResponseMessage,
    to_deploy_responses,
)
from feedstage.components.deploy import CreatePostsInput, DeployComponent
from feedstage.domain.entities import PostConfig, PostStatusFilter
from feedstage.ports.services import QueueDefinitionService, StagingPostService

router = APIRouter()


@router.post(
    "/{ident}/posts",
    status_code=status.HTTP_201_CREATED,
    response_model=PostCreateResponse,
    response_model_exclude_none=True,
)
def create_posts(
    ident: str,
    configs: Annotated[list[PostConfig], Body(min_length=1)],
    response: Response,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> PostCreateResponse:
    """Create posts; on auto-deploy queues they are published right away."""
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    out = deployer.run_create_posts(
        CreatePostsInput(username=username, queue_id=queue_id, configs=configs)
    )
    response.headers["Location"] = f"/v1/posts/{queue_id}"
    log_audit(
        "staging-post-create",
        username,
        stopwatch,
        postConfigRequestCt=len(configs),
        stagingPostCt=len(out.post_ids),
    )
    return PostCreateResponse(
        post_ids=out.post_ids,
        deployed=out.deploy_results is not None,
        deploy_responses=to_deploy_responses(out.deploy_results),
    )


@router.get("/{ident}/posts")
def get_posts(
    ident: str,
    request: Request,
    post_status: Annotated[PostStatusFilter | None, Query(alias="status")] = None,
    page: PageParams = Depends(get_page_params),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
) -> Response:
    """List a queue's posts (ETag-conditional, paginated, optionally filtered by status)."""
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    found = posts.get_staging_posts(username, [queue_id])
    if post_status is not None:
        found = [p for p in found if p.status_name == post_status]
    dtos = [PostDTO.from_post(p, ident) for p in paginate(found, page.offset, page.limit)]
    etag = compute_etag(dtos)
    if check_if_none_match(request, etag):
        return not_modified(etag)
    log_audit("staging-post-fetch", username, stopwatch, queueIdCt=1, stagingPostCt=len(dtos))
    return render(dtos, headers={"ETag": etag})


@router.delete("/{ident}/posts", response_model=ResponseMessage)
def delete_posts(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    posts: StagingPostService = Depends(get_post_service),
) -> ResponseMessage:
    """Delete every post in the queue. The feed is not redeployed."""
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    posts.delete_by_queue_id(username, queue_id)
    log_audit("staging-post-delete", username, stopwatch, queueId=queue_id)
    return ResponseMessage(message=f"Deleted posts from queue Id {queue_id}")
