import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext

from jobly.core.auth import Identity, identity_from_claims
from jobly.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def create_token(identity: Identity, settings: Settings) -> str:
    claims = identity.to_claims()
    claims["iat"] = datetime.now(timezone.utc)
    if settings.token_expire_minutes:
        claims["exp"] = datetime.now(timezone.utc) + timedelta(minutes=settings.token_expire_minutes)
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str, *, secret_key: str, algorithm: str) -> Identity | None:
    """Return the identity carried by a valid token, or None for anything else."""
    try:
        claims = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError as exc:
        logger.debug("rejected bearer token: %s", exc)
        return None
    return identity_from_claims(claims)


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


@lru_cache
def _password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, *, rounds: int) -> str:
    # bcrypt only looks at the first 72 bytes.
    return _password_context(rounds).hash(password.encode("utf-8")[:72])


def verify_password(password: str, password_hash: str) -> bool:
    return _password_context(4).verify(password.encode("utf-8")[:72], password_hash)


async def get_identity(
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Identity | None:
    token = extract_bearer_token(authorization)
    if token is None:
        return None
    return verify_token(token, secret_key=settings.secret_key, algorithm=settings.jwt_algorithm)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_authenticated(identity: Identity | None = Depends(get_identity)) -> Identity:
    if identity is None:
        raise _unauthorized()
    return identity


async def require_admin(identity: Identity | None = Depends(get_identity)) -> Identity:
    if identity is None or not identity.is_admin:
        raise _unauthorized()
    return identity


async def require_self_or_admin(username: str, identity: Identity | None = Depends(get_identity)) -> Identity:
    if identity is None or not identity.can_act_for(username):
        raise _unauthorized()
    return identity
