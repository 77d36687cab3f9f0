"""
Post part collections: contents, urls, authors, contributors, enclosures.

Each collection is addressable as a whole and item by item (by the item's
ident). The five collections share the same route shapes, so they are
registered from one table.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel

from feedstage.api.audit import Stopwatch, log_audit
from feedstage.api.deps import (
    PageParams,
    get_current_username,
    get_deploy_component,
    get_page_params,
    get_post_service,
    get_queue_service,
)
from feedstage.api.paginator import paginate
from feedstage.api.responses import render
from feedstage.api.schemas import (
    DeleteResponse,
    PartCreatedResponse,
    PostConfigResponse,
    to_deploy_responses,
)
from feedstage.components.deploy import DeployComponent, RedeployPostInput
from feedstage.domain.entities import ContentObject, PostEnclosure, PostPerson, PostUrl
from feedstage.ports.services import QueueDefinitionService, StagingPostService

router = APIRouter()

# path segment -> (post attribute, item model, label used in messages)
POST_PARTS: dict[str, tuple[str, type[BaseModel], str]] = {
    "contents": ("post_contents", ContentObject, "content"),
    "urls": ("post_urls", PostUrl, "URL"),
    "authors": ("authors", PostPerson, "author"),
    "contributors": ("contributors", PostPerson, "contributor"),
    "enclosures": ("enclosures", PostEnclosure, "enclosure"),
}


def _redeploy(
    deployer: DeployComponent, username: str, post_id: int
) -> dict[str, Any] | None:
    out = deployer.run_redeploy_post(RedeployPostInput(username=username, post_id=post_id))
    return out.deploy_results


def _register(segment: str, attr_name: str, item_model: type[BaseModel], label: str) -> None:
    collection_path = f"/{{post_id}}/{segment}"
    item_path = f"/{{post_id}}/{segment}/{{item_ident}}"

    def audit(action: str, username: str, stopwatch: Stopwatch, post_id: int) -> None:
        log_audit(
            f"staging-post-attribute-{action}", username, stopwatch, id=post_id, attrName=attr_name
        )

    def list_parts(
        post_id: int,
        page: PageParams = Depends(get_page_params),
        username: str = Depends(get_current_username),
        posts: StagingPostService = Depends(get_post_service),
    ) -> Response:
        stopwatch = Stopwatch()
        items = getattr(posts.find_by_id(username, post_id), attr_name)
        audit("fetch", username, stopwatch, post_id)
        return render(paginate(items, page.offset, page.limit))

    def add_part(
        post_id: int,
        item: item_model,  # type: ignore[valid-type]
        username: str = Depends(get_current_username),
        posts: StagingPostService = Depends(get_post_service),
        deployer: DeployComponent = Depends(get_deploy_component),
    ) -> PartCreatedResponse:
        stopwatch = Stopwatch()
        ident = posts.add_post_part(username, post_id, attr_name, item)
        _redeploy(deployer, username, post_id)
        audit("update", username, stopwatch, post_id)
        message = f"Added {label} {ident} to post Id {post_id}"
        return PartCreatedResponse(message=message, ident=ident)

    def update_parts(
        post_id: int,
        items: list[item_model],  # type: ignore[valid-type]
        request: Request,
        username: str = Depends(get_current_username),
        queues: QueueDefinitionService = Depends(get_queue_service),
        posts: StagingPostService = Depends(get_post_service),
        deployer: DeployComponent = Depends(get_deploy_component),
    ) -> PostConfigResponse:
        """PUT replaces the collection; PATCH merges items by ident."""
        stopwatch = Stopwatch()
        posts.update_post_attribute(
            username, post_id, attr_name, items, merge_update=request.method == "PATCH"
        )
        out = deployer.run_redeploy_post(RedeployPostInput(username=username, post_id=post_id))
        queue_ident = queues.resolve_queue_ident(username, out.post.queue_id)
        audit("update", username, stopwatch, post_id)
        return PostConfigResponse.build(out.post, queue_ident, out.deploy_results)

    def delete_parts(
        post_id: int,
        username: str = Depends(get_current_username),
        posts: StagingPostService = Depends(get_post_service),
        deployer: DeployComponent = Depends(get_deploy_component),
    ) -> DeleteResponse:
        stopwatch = Stopwatch()
        posts.clear_post_attribute(username, post_id, attr_name)
        results = _redeploy(deployer, username, post_id)
        audit("delete", username, stopwatch, post_id)
        return DeleteResponse(
            message=f"Deleted {segment} from post Id {post_id}",
            deploy_responses=to_deploy_responses(results),
        )

    def get_part(
        post_id: int,
        item_ident: str,
        username: str = Depends(get_current_username),
        posts: StagingPostService = Depends(get_post_service),
    ) -> Response:
        stopwatch = Stopwatch()
        item = posts.find_post_part(username, post_id, attr_name, item_ident)
        audit("fetch", username, stopwatch, post_id)
        return render(item)

    def update_part(
        post_id: int,
        item_ident: str,
        item: item_model,  # type: ignore[valid-type]
        request: Request,
        username: str = Depends(get_current_username),
        posts: StagingPostService = Depends(get_post_service),
        deployer: DeployComponent = Depends(get_deploy_component),
    ) -> Response:
        stopwatch = Stopwatch()
        updated = posts.update_post_part(
            username, post_id, attr_name, item_ident, item,
            merge_update=request.method == "PATCH",
        )
        _redeploy(deployer, username, post_id)
        audit("update", username, stopwatch, post_id)
        return render(updated)

    def delete_part(
        post_id: int,
        item_ident: str,
        username: str = Depends(get_current_username),
        posts: StagingPostService = Depends(get_post_service),
        deployer: DeployComponent = Depends(get_deploy_component),
    ) -> DeleteResponse:
        stopwatch = Stopwatch()
        posts.delete_post_part(username, post_id, attr_name, item_ident)
        results = _redeploy(deployer, username, post_id)
        audit("delete", username, stopwatch, post_id)
        return DeleteResponse(
            message=f"Deleted {label} {item_ident} from post Id {post_id}",
            deploy_responses=to_deploy_responses(results),
        )

    name = segment.rstrip("s")
    router.add_api_route(
        collection_path, list_parts, methods=["GET"], name=f"list_post_{segment}"
    )
    router.add_api_route(
        collection_path,
        add_part,
        methods=["POST"],
        status_code=status.HTTP_201_CREATED,
        response_model=PartCreatedResponse,
        name=f"add_post_{name}",
    )
    router.add_api_route(
        collection_path,
        update_parts,
        methods=["PUT", "PATCH"],
        response_model=PostConfigResponse,
        response_model_exclude_none=True,
        name=f"update_post_{segment}",
    )
    router.add_api_route(
        collection_path,
        delete_parts,
        methods=["DELETE"],
        response_model=DeleteResponse,
        response_model_exclude_none=True,
        name=f"delete_post_{segment}",
    )
    router.add_api_route(item_path, get_part, methods=["GET"], name=f"get_post_{name}")
    router.add_api_route(
        item_path, update_part, methods=["PUT", "PATCH"], name=f"update_post_{name}"
    )
    router.add_api_route(
        item_path,
        delete_part,
        methods=["DELETE"],
        response_model=DeleteResponse,
        response_model_exclude_none=True,
        name=f"delete_post_{name}",
    )


for _segment, (_attr_name, _item_model, _label) in POST_PARTS.items():
    _register(_segment, _attr_name, _item_model, _label)
