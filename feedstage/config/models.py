from pydantic import BaseModel, Field, field_validator

from feedstage.adapters.auth.crypto import is_secret_hash


class ApiKeyEntry(BaseModel):
    username: str
    api_key: str
    # argon2 hash, see `feedstage hash-secret`
    api_secret_hash: str

    @field_validator("api_secret_hash")
    @classmethod
    def validate_secret_hash(cls, v: str) -> str:
        if not is_secret_hash(v):
            raise ValueError("api_secret_hash is not an argon2 hash (use `feedstage hash-secret`)")
        return v


class PaginationConfig(BaseModel):
    max_limit: int = Field(default=500, ge=1)


class AppConfig(BaseModel):
    publishers: list[str] = Field(default_factory=lambda: ["RSS_20", "ATOM_10"])
    api_keys: list[ApiKeyEntry] = Field(default_factory=list)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
