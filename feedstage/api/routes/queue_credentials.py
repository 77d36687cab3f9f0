"""
Queue credentials.

Basic-auth logins that feed readers present to an authenticated queue. Only
the argon2 hash of each password is stored, and responses never carry it.
Credential changes do not redeploy the feed.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from feedstage.api.audit import Stopwatch, log_audit
from feedstage.api.deps import (
    PageParams,
    get_credentials_service,
    get_current_username,
    get_page_params,
    get_queue_service,
)
from feedstage.api.etag import check_if_none_match, compute_etag, not_modified
from feedstage.api.negotiation import scalar_body
from feedstage.api.paginator import paginate
from feedstage.api.responses import render
from feedstage.api.schemas import QueueCredentialDTO, ResponseMessage
from feedstage.domain.entities import QueueCredentialConfig
from feedstage.ports.services import QueueCredentialsService, QueueDefinitionService

router = APIRouter()

PASSWORD_MAX_LENGTH = 256


@router.post(
    "/{ident}/credentials",
    status_code=status.HTTP_201_CREATED,
    response_model=ResponseMessage,
)
def add_credential(
    ident: str,
    config: QueueCredentialConfig,
    response: Response,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    credentials: QueueCredentialsService = Depends(get_credentials_service),
) -> ResponseMessage:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    credential_id = credentials.add_credential(
        username, queue_id, config.basic_username, config.basic_password
    )
    response.headers["Location"] = f"/v1/queues/{ident}/credentials/{credential_id}"
    log_audit("queue-credential-create", username, stopwatch, id=credential_id, queueId=queue_id)
    return ResponseMessage(message=f"Added credential Id {credential_id} to queue Id {queue_id}")


@router.get("/{ident}/credentials")
def get_credentials(
    ident: str,
    request: Request,
    page: PageParams = Depends(get_page_params),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    credentials: QueueCredentialsService = Depends(get_credentials_service),
) -> Response:
    """List a queue's credentials (ETag-conditional, paginated)."""
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    found = paginate(credentials.find_by_queue_id(username, queue_id), page.offset, page.limit)
    dtos = [QueueCredentialDTO.from_credential(c) for c in found]
    etag = compute_etag(dtos)
    if check_if_none_match(request, etag):
        return not_modified(etag)
    log_audit(
        "queue-credential-fetch", username, stopwatch, queueId=queue_id, credentialCt=len(dtos)
    )
    return render(dtos, headers={"ETag": etag})


@router.get("/{ident}/credentials/{credential_id}")
def get_credential(
    ident: str,
    credential_id: int,
    request: Request,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    credentials: QueueCredentialsService = Depends(get_credentials_service),
) -> Response:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    dto = QueueCredentialDTO.from_credential(
        credentials.find_by_id(username, queue_id, credential_id)
    )
    etag = compute_etag(dto)
    if check_if_none_match(request, etag):
        return not_modified(etag)
    log_audit("queue-credential-fetch", username, stopwatch, queueId=queue_id, credentialCt=1)
    return render(dto, headers={"ETag": etag})


@router.api_route(
    "/{ident}/credentials/{credential_id}",
    methods=["PUT", "PATCH"],
    response_model=ResponseMessage,
)
def update_credential_password(
    ident: str,
    credential_id: int,
    password: str | None = Depends(scalar_body),
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    credentials: QueueCredentialsService = Depends(get_credentials_service),
) -> ResponseMessage:
    """Replace the password; the body is the new password as JSON or text/plain."""
    stopwatch = Stopwatch()
    if not password or not password.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Password must not be blank"
        )
    if len(password) > PASSWORD_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password exceeds {PASSWORD_MAX_LENGTH} characters",
        )
    queue_id = queues.resolve_queue_id(username, ident)
    credentials.update_password(username, queue_id, credential_id, password)
    log_audit("queue-credential-update", username, stopwatch, id=credential_id, queueId=queue_id)
    return ResponseMessage(
        message=f"Updated password for credential Id {credential_id} on queue Id {queue_id}"
    )


@router.delete("/{ident}/credentials", response_model=ResponseMessage)
def delete_credentials(
    ident: str,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    credentials: QueueCredentialsService = Depends(get_credentials_service),
) -> ResponseMessage:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    credentials.delete_queue_credentials(username, queue_id)
    log_audit("queue-credential-delete", username, stopwatch, queueId=queue_id)
    return ResponseMessage(message=f"Deleted all credentials from queue Id {queue_id}")


@router.delete("/{ident}/credentials/{credential_id}", response_model=ResponseMessage)
def delete_credential(
    ident: str,
    credential_id: int,
    username: str = Depends(get_current_username),
    queues: QueueDefinitionService = Depends(get_queue_service),
    credentials: QueueCredentialsService = Depends(get_credentials_service),
) -> ResponseMessage:
    stopwatch = Stopwatch()
    queue_id = queues.resolve_queue_id(username, ident)
    credentials.delete_queue_credential(username, queue_id, credential_id)
    log_audit("queue-credential-delete", username, stopwatch, id=credential_id, queueId=queue_id)
    return ResponseMessage(
        message=f"Deleted credential with Id {credential_id} from queue Id {queue_id}"
    )
