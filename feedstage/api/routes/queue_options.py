"""Queue export options: the whole ExportConfig and its ATOM / RSS blocks."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from feedstage.api.audit import Stopwatch, log_audit
from feedstage.api.deps import get_current_username, get_deploy_component, get_queue_service
from feedstage.api.responses import dump
from feedstage.api.schemas import QueueConfigResponse
from feedstage.components.deploy import DeployComponent, DeployQueueInput
from feedstage.domain.entities import Atom10Config, ExportConfig, RSS20Config
from feedstage.ports.services import QueueDefinitionService

router = APIRouter()


def _fetch_options(
    queues: QueueDefinitionService, username: str, ident: str, section: str | None
) -> JSONResponse:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    options = queues.find_by_queue_id(username, queue_id).export_config
    value: BaseModel | None = options
    if options is not None and section is not None:
        value = getattr(options, section)
    attr_name = section or "options"
    log_audit("queue-attribute-fetch", username, stopwatch, id=queue_id, attrName=attr_name)
    return JSONResponse(content=None if value is None else dump(value))


def _update_options(
    queues: QueueDefinitionService,
    deployer: DeployComponent,
    username: str,
    ident: str,
    section: str | None,
    config: BaseModel,
    is_patch: bool,
) -> QueueConfigResponse:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    queues.update_export_config(username, queue_id, section, config, merge_update=is_patch)
    out = deployer.run_deploy_queue(DeployQueueInput(username=username, queue_id=queue_id))
    attr_name = section or "options"
    log_audit("queue-attribute-update", username, stopwatch, id=queue_id, attrName=attr_name)
    return QueueConfigResponse.build(out.queue, out.deploy_results)


def _clear_options(
    queues: QueueDefinitionService,
    deployer: DeployComponent,
    username: str,
    ident: str,
    section: str | None,
) -> QueueConfigResponse:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    queues.clear_export_config(username, queue_id, section)
    out = deployer.run_deploy_queue(DeployQueueInput(username=username, queue_id=queue_id))
    attr_name = section or "options"
    log_audit("queue-attribute-delete", username, stopwatch, id=queue_id, attrName=attr_name)
    return QueueConfigResponse.build(out.queue, out.deploy_results)


# --- Whole export config ---


@router.get("/{ident}/options")
def get_export_options(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> JSONResponse:
    return _fetch_options(queues, username, ident, None)


@router.api_route(
    "/{ident}/options",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_export_options(
    ident: str,
    config: ExportConfig,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _update_options(
        queues, deployer, username, ident, None, config, request.method == "PATCH"
    )


@router.delete(
    "/{ident}/options", response_model=QueueConfigResponse, response_model_exclude_none=True
)
def delete_export_options(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _clear_options(queues, deployer, username, ident, None)


# --- ATOM 1.0 block ---


@router.get("/{ident}/options/atomConfig")
def get_atom_options(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> JSONResponse:
    return _fetch_options(queues, username, ident, "atom_config")


@router.api_route(
    "/{ident}/options/atomConfig",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_atom_options(
    ident: str,
    config: Atom10Config,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _update_options(
        queues, deployer, username, ident, "atom_config", config, request.method == "PATCH"
    )


@router.delete(
    "/{ident}/options/atomConfig",
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def delete_atom_options(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _clear_options(queues, deployer, username, ident, "atom_config")


# --- RSS 2.0 block ---


@router.get("/{ident}/options/rssConfig")
def get_rss_options(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
) -> JSONResponse:
    return _fetch_options(queues, username, ident, "rss_config")


@router.api_route(
    "/{ident}/options/rssConfig",
    methods=["PUT", "PATCH"],
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def update_rss_options(
    ident: str,
    config: RSS20Config,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _update_options(
        queues, deployer, username, ident, "rss_config", config, request.method == "PATCH"
    )


@router.delete(
    "/{ident}/options/rssConfig",
    response_model=QueueConfigResponse,
    response_model_exclude_none=True,
)
def delete_rss_options(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    deployer: DeployComponent = Depends(get_deploy_component),
) -> QueueConfigResponse:
    return _clear_options(queues, deployer, username, ident, "rss_config")
