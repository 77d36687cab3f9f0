"""
Queue publication status.

GET reports how many posts sit in each status. PUT/PATCH applies a bulk
request (DEPLOY_PENDING, PUB_ALL, DEPUB_ALL) and redeploys the feed once for
the whole affected set.
"""

from typing import get_args

from fastapi import APIRouter, Depends, HTTPException, status

from feedstage.api.audit import Stopwatch, log_audit
from feedstage.api.deps import get_current_username, get_deploy_component, get_queue_service
from feedstage.api.negotiation import scalar_body
from feedstage.api.schemas import QueueConfigResponse, QueueStatusResponse
from feedstage.components.deploy import DeployComponent, UpdateQueueStatusInput
from feedstage.domain.entities import QueueStatusRequest
from feedstage.ports.services import QueueDefinitionService

router = APIRouter()

QUEUE_STATUS_REQUESTS: tuple[str, ...] = get_args(QueueStatusRequest)


@router.get("/{ident}/status", response_model=QueueStatusResponse)
def get_queue_status(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> QueueStatusResponse:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    queue_status = queues.check_status(username, queue_id)
    log_audit("queue-attribute-fetch", username, stopwatch, id=queue_id, attrName="status")
    return QueueStatusResponse.from_status(queue_status)


@router.api_route(
    "/{ident}/status",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_queue_status(
    ident: str,
    value: str | None = Depends(scalar_body),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    stopwatch = Stopwatch()
    request_name = (value or "").strip()
    if request_name not in QUEUE_STATUS_REQUESTS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Queue status must be one of {', '.join(QUEUE_STATUS_REQUESTS)}",
        )
    queue_id = queues.resolve_queue_id(username, ident)
    out = deployer.run_update_queue_status(
        UpdateQueueStatusInput(
            username=username,
            queue_id=queue_id,
            request=request_name,  # type: ignore[arg-type]
        )
    )
    log_audit(
        "queue-status-update",
        username,
        stopwatch,
        id=queue_id,
        queueStatusUpdateRequest=request_name,
        rowsUpdated=out.post_count,
    )
    return QueueConfigResponse.build(out.queue, out.deploy_results)
