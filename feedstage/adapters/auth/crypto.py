"""argon2 hashing for API secrets (and queue credential passwords)."""

from passlib.context import CryptContext

secret_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_secret(secret: str) -> str:
    result: str = secret_context.hash(secret)
    return result


def verify_secret(plain_secret: str, hashed_secret: str) -> bool:
    result: bool = secret_context.verify(plain_secret, hashed_secret)
    return result


def is_secret_hash(value: str) -> bool:
    """True when value looks like a hash this context can verify."""
    return secret_context.identify(value) is not None
