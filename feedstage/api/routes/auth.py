from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from feedstage.api.auth_utils import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token
from feedstage.api.deps import get_api_key_store, get_current_username
from feedstage.ports.services import ApiKeyStore

router = APIRouter()


class Token(BaseModel):
    access_token: str
    token_type: str


@router.post("/token", response_model=Token)
def issue_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    key_store: ApiKeyStore = Depends(get_api_key_store),
) -> Token:
    """Exchange an API key (username field) and secret (password field) for a bearer token."""
    username = key_store.authenticate(form_data.username, form_data.password)
    if username is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect API key or secret",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(
        username, expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return Token(access_token=access_token, token_type="bearer")


@router.get("/me")
def read_current_user(username: str = Depends(get_current_username)) -> dict[str, str]:
    return {"username": username}
