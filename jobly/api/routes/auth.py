from fastapi import APIRouter, Depends, HTTPException, status

from jobly.core.auth import Identity
from jobly.core.config import Settings, get_settings
from jobly.core.security import create_token, require_authenticated
from jobly.schemas.users import TokenOut, TokenRequest, UserRegisterRequest
from jobly.services.repository import (
    RepositoryAuthenticationError,
    RepositoryConflictError,
    RepositoryUnavailableError,
    get_repository,
)

router = APIRouter()


@router.post("/token", response_model=TokenOut)
async def issue_token(
    payload: TokenRequest,
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> TokenOut:
    try:
        row = await repository.authenticate_user(username=payload.username, password=payload.password)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryAuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    identity = Identity(username=row["username"], is_admin=row["isAdmin"])
    return TokenOut(token=create_token(identity, settings))


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserRegisterRequest,
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> TokenOut:
    try:
        row = await repository.register_user(**payload.model_dump(), is_admin=False)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    identity = Identity(username=row["username"], is_admin=row["isAdmin"])
    return TokenOut(token=create_token(identity, settings))


@router.get("/me")
async def whoami(identity: Identity = Depends(require_authenticated)) -> dict[str, object]:
    return identity.to_claims()
