"""
Queue API Routes.

CRUD over queues and their scalar attributes. Every queue mutation redeploys
the queue's feed and reports the per-channel outcome in a QueueConfigResponse.
Scalar attribute GETs are content-negotiated (JSON or text/plain).
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status

from feedstage.api.audit import Stopwatch, log_audit
from feedstage.api.deps import (
    PageParams,
    get_current_username,
    get_deploy_component,
    get_page_params,
    get_queue_service,
)
from feedstage.api.etag import check_if_none_match, compute_etag, not_modified
from feedstage.api.negotiation import negotiate, scalar_body
from feedstage.api.paginator import paginate
from feedstage.api.responses import render
from feedstage.api.schemas import (
    QueueAuthUpdateRequest,
    QueueConfigResponse,
    QueueDTO,
    ResponseMessage,
    timestamp_value,
)
from feedstage.components.deploy import DeleteQueueInput, DeployComponent, DeployQueueInput
from feedstage.domain.entities import QueueConfig
from feedstage.ports.services import QueueDefinitionService

router = APIRouter()

# max length of each string attribute settable through its own sub-resource
ATTRIBUTE_LIMITS = {
    "ident": 256,
    "title": 512,
    "description": 1024,
    "generator": 512,
    "copyright": 1024,
    "language": 16,
    "img_src": 10240,
}

AcceptHeader = Annotated[str | None, Header()]


# --- Helpers ---


def _finalize_update(
    deployer: DeployComponent, username: str, queue_id: int, attr_name: str
) -> QueueConfigResponse:
    stopwatch = Stopwatch()
    out = deployer.run_deploy_queue(DeployQueueInput(username=username, queue_id=queue_id))
    log_audit("queue-attribute-update", username, stopwatch, id=queue_id, attrName=attr_name)
    return QueueConfigResponse.build(out.queue, out.deploy_results)


def _get_attribute(
    queues: QueueDefinitionService,
    username: str,
    ident: str,
    attr_name: str,
    accept: str | None,
) -> Response:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    value = getattr(queues.find_by_queue_id(username, queue_id), attr_name)
    log_audit("queue-attribute-fetch", username, stopwatch, id=queue_id, attrName=attr_name)
    return negotiate("" if value is None else value, accept)


def _checked_value(attr_name: str, value: str | None) -> str | None:
    limit = ATTRIBUTE_LIMITS[attr_name]
    if value is not None and len(value) > limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Queue {attr_name} exceeds {limit} characters",
        )
    return value


def _update_attribute(
    queues: QueueDefinitionService,
    deployer: DeployComponent,
    username: str,
    ident: str,
    attr_name: str,
    value: Any,
) -> QueueConfigResponse:
    queue_id = queues.resolve_queue_id(username, ident)
    queues.update_queue_attribute(username, queue_id, attr_name, value)
    return _finalize_update(deployer, username, queue_id, attr_name)


def _clear_attribute(
    queues: QueueDefinitionService,
    deployer: DeployComponent,
    username: str,
    ident: str,
    attr_name: str,
) -> QueueConfigResponse:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    queues.clear_queue_attribute(username, queue_id, attr_name)
    out = deployer.run_deploy_queue(DeployQueueInput(username=username, queue_id=queue_id))
    log_audit("queue-attribute-delete", username, stopwatch, id=queue_id, attrName=attr_name)
    return QueueConfigResponse.build(out.queue, out.deploy_results)


# --- Collection ---


@router.get("")
def get_queues(
    request: Request,
    page: PageParams = Depends(get_page_params),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    """List the caller's queues (ETag-conditional, paginated)."""
    stopwatch = Stopwatch()
    found = paginate(queues.find_by_user(username), page.offset, page.limit)
    dtos = [QueueDTO.from_queue(q) for q in found]
    etag = compute_etag(dtos)
    if check_if_none_match(request, etag):
        return not_modified(etag)
    log_audit("queue-fetch", username, stopwatch, queueCt=len(dtos))
    return render(dtos, headers={"ETag": etag})


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def create_queue(
    config: QueueConfig,
    response: Response,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    """Create a queue and deploy its (empty) feed; Location is the RSS feed URL."""
    stopwatch = Stopwatch()
    queue_id = queues.create_queue(username, config)
    out = deployer.run_deploy_queue(DeployQueueInput(username=username, queue_id=queue_id))
    rss = out.deploy_results.get("RSS_20")
    if rss is not None and rss.user_ident_url:
        response.headers["Location"] = rss.user_ident_url
    log_audit("queue-create", username, stopwatch, id=queue_id)
    return QueueConfigResponse.build(out.queue, out.deploy_results)


# --- Single queue ---


@router.get("/{ident}")
def get_queue(
    ident: str,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    dto = QueueDTO.from_queue(queues.find_by_queue_id(username, queue_id))
    etag = compute_etag(dto)
    if check_if_none_match(request, etag):
        return not_modified(etag)
    log_audit("queue-fetch", username, stopwatch, queueCt=1)
    return render(dto, headers={"ETag": etag})


@router.api_route(
    "/{ident}",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_queue(
    ident: str,
    config: QueueConfig,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    """Replace (PUT) or merge (PATCH) the queue definition, then redeploy."""
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    queues.update_queue(username, queue_id, config, merge_update=request.method == "PATCH")
    out = deployer.run_deploy_queue(DeployQueueInput(username=username, queue_id=queue_id))
    log_audit("queue-update", username, stopwatch, id=queue_id)
    return QueueConfigResponse.build(out.queue, out.deploy_results)


@router.delete("/{ident}", response_model=ResponseMessage)
def delete_queue(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> ResponseMessage:
    """Unpublish the queue's feed, then delete the queue and its posts."""
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    deployer.run_delete_queue(DeleteQueueInput(username=username, queue_id=queue_id))
    log_audit("queue-delete", username, stopwatch, deleteCt=1)
    return ResponseMessage(message=f"Deleted queue Id {queue_id}")


# --- Attributes: GET ---


@router.get("/{ident}/title")
def get_queue_title(
    ident: str,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    return _get_attribute(queues, username, ident, "title", accept)


@router.get("/{ident}/description")
def get_queue_description(
    ident: str,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    return _get_attribute(queues, username, ident, "description", accept)


@router.get("/{ident}/generator")
def get_queue_generator(
    ident: str,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    return _get_attribute(queues, username, ident, "generator", accept)


@router.get("/{ident}/transport")
def get_queue_transport(
    ident: str,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    return _get_attribute(queues, username, ident, "transport_ident", accept)


@router.get("/{ident}/copyright")
def get_queue_copyright(
    ident: str,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    return _get_attribute(queues, username, ident, "copyright", accept)


@router.get("/{ident}/language")
def get_queue_language(
    ident: str,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    return _get_attribute(queues, username, ident, "language", accept)


@router.get("/{ident}/imgsrc")
def get_queue_image_source(
    ident: str,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    return _get_attribute(queues, username, ident, "img_src", accept)


@router.get("/{ident}/deployed")
def get_queue_deployed_timestamp(
    ident: str,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    """Time of the last deploy, or null if the feed was never deployed."""
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    queue = queues.find_by_queue_id(username, queue_id)
    log_audit("queue-attribute-fetch", username, stopwatch, id=queue_id, attrName="deployed")
    return negotiate(timestamp_value(queue.last_deployed), accept)


@router.get("/{ident}/auth")
def get_queue_auth_requirement(
    ident: str,
    accept: AcceptHeader = None,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> Response:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    queue = queues.find_by_queue_id(username, queue_id)
    log_audit("queue-attribute-fetch", username, stopwatch, id=queue_id, attrName="auth")
    return negotiate(queue.is_authenticated, accept, text=str(queue.is_authenticated).lower())


# --- Attributes: PUT / PATCH ---


@router.api_route(
    "/{ident}/ident",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_queue_ident(
    ident: str,
    value: str | None = Depends(scalar_body),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    if not value or not value.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Queue ident must not be blank",
        )
    return _update_attribute(
        queues, deployer, username, ident, "ident", _checked_value("ident", value)
    )


@router.api_route(
    "/{ident}/title",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_queue_title(
    ident: str,
    value: str | None = Depends(scalar_body),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _update_attribute(
        queues, deployer, username, ident, "title", _checked_value("title", value)
    )


@router.api_route(
    "/{ident}/description",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_queue_description(
    ident: str,
    value: str | None = Depends(scalar_body),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _update_attribute(
        queues, deployer, username, ident, "description", _checked_value("description", value)
    )


@router.api_route(
    "/{ident}/generator",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_queue_generator(
    ident: str,
    value: str | None = Depends(scalar_body),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _update_attribute(
        queues, deployer, username, ident, "generator", _checked_value("generator", value)
    )


@router.api_route(
    "/{ident}/copyright",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_queue_copyright(
    ident: str,
    value: str | None = Depends(scalar_body),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _update_attribute(
        queues, deployer, username, ident, "copyright", _checked_value("copyright", value)
    )


@router.api_route(
    "/{ident}/language",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_queue_language(
    ident: str,
    value: str | None = Depends(scalar_body),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _update_attribute(
        queues, deployer, username, ident, "language", _checked_value("language", value)
    )


@router.api_route(
    "/{ident}/imgsrc",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_queue_image_source(
    ident: str,
    value: str | None = Depends(scalar_body),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _update_attribute(
        queues, deployer, username, ident, "img_src", _checked_value("img_src", value)
    )


@router.api_route(
    "/{ident}/auth",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_queue_auth_requirement(
    ident: str,
    body: QueueAuthUpdateRequest,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _update_attribute(
        queues, deployer, username, ident, "is_authenticated", body.is_required
    )


# --- Attributes: DELETE ---


@router.delete(
    "/{ident}/title", response_model=QueueConfigResponse, response_model_exclude_none=True
)
def delete_queue_title(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _clear_attribute(queues, deployer, username, ident, "title")


@router.delete(
    "/{ident}/description", response_model=QueueConfigResponse, response_model_exclude_none=True
)
def delete_queue_description(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _clear_attribute(queues, deployer, username, ident, "description")


@router.delete(
    "/{ident}/generator", response_model=QueueConfigResponse, response_model_exclude_none=True
)
def delete_queue_generator(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _clear_attribute(queues, deployer, username, ident, "generator")


@router.delete(
    "/{ident}/copyright", response_model=QueueConfigResponse, response_model_exclude_none=True
)
def delete_queue_copyright(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _clear_attribute(queues, deployer, username, ident, "copyright")


@router.delete(
    "/{ident}/language", response_model=QueueConfigResponse, response_model_exclude_none=True
)
def delete_queue_language(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _clear_attribute(queues, deployer, username, ident, "language")


@router.delete(
    "/{ident}/imgsrc", response_model=QueueConfigResponse, response_model_exclude_none=True
)
def delete_queue_image_source(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _clear_attribute(queues, deployer, username, ident, "img_src")


@router.delete(
    "/{ident}/auth", response_model=QueueConfigResponse, response_model_exclude_none=True
)
def delete_queue_auth_requirement(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    """Reset the queue to not require feed authentication."""
    return _clear_attribute(queues, deployer, username, ident, "is_authenticated")
