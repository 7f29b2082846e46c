from fastapi import APIRouter, Depends, HTTPException, status

from jobly.core.auth import Identity
from jobly.core.config import Settings, get_settings
from jobly.core.security import create_token, require_admin, require_self_or_admin
from jobly.schemas.users import UserCreateRequest, UserCreatedOut, UserOut, UserPatchRequest
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()


@router.post("", response_model=UserCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest,
    _admin=Depends(require_admin),
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> UserCreatedOut:
    try:
        row = await repository.register_user(**payload.model_dump())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    user = UserOut(**row)
    token = create_token(Identity(username=user.username, is_admin=user.is_admin), settings)
    return UserCreatedOut(user=user, token=token)


@router.get("", response_model=list[UserOut])
async def list_users(_admin=Depends(require_admin), repository=Depends(get_repository)) -> list[UserOut]:
    try:
        rows = await repository.list_users()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    return [UserOut(**row) for row in rows]


@router.get("/{username}", response_model=UserOut)
async def get_user(
    username: str,
    _identity=Depends(require_self_or_admin),
    repository=Depends(get_repository),
) -> UserOut:
    try:
        row = await repository.get_user(username)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return UserOut(**row)


@router.patch("/{username}", response_model=UserOut)
async def patch_user(
    username: str,
    payload: UserPatchRequest,
    _identity=Depends(require_self_or_admin),
    repository=Depends(get_repository),
) -> UserOut:
    try:
        row = await repository.update_user(username, payload.model_dump(by_alias=True, exclude_unset=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return UserOut(**row)


@router.delete("/{username}")
async def delete_user(
    username: str,
    _identity=Depends(require_self_or_admin),
    repository=Depends(get_repository),
) -> dict[str, str]:
    try:
        await repository.remove_user(username)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return {"deleted": username}
