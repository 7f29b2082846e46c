from fastapi import APIRouter, Depends, HTTPException, Query, status

from jobly.core.security import require_admin
from jobly.schemas.companies import CompanyCreateRequest, CompanyDetailOut, CompanyOut, CompanyPatchRequest
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()


@router.post("", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyCreateRequest,
    _admin=Depends(require_admin),
    repository=Depends(get_repository),
) -> CompanyOut:
    try:
        row = await repository.create_company(**payload.model_dump())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return CompanyOut(**row)


@router.get("", response_model=list[CompanyOut])
async def list_companies(
    repository=Depends(get_repository),
    name: str | None = Query(default=None),
    min_employees: int | None = Query(default=None, alias="minEmployees", ge=0),
    max_employees: int | None = Query(default=None, alias="maxEmployees", ge=0),
) -> list[CompanyOut]:
    criteria = {"name": name, "min_employees": min_employees, "max_employees": max_employees}
    try:
        rows = await repository.list_companies(criteria)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return [CompanyOut(**row) for row in rows]


@router.get("/{handle}", response_model=CompanyDetailOut)
async def get_company(handle: str, repository=Depends(get_repository)) -> CompanyDetailOut:
    try:
        row = await repository.get_company(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return CompanyDetailOut(**row)


@router.patch("/{handle}", response_model=CompanyOut)
async def patch_company(
    handle: str,
    payload: CompanyPatchRequest,
    _admin=Depends(require_admin),
    repository=Depends(get_repository),
) -> CompanyOut:
    try:
        row = await repository.update_company(handle, payload.model_dump(by_alias=True, exclude_unset=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return CompanyOut(**row)


@router.delete("/{handle}")
async def delete_company(
    handle: str,
    _admin=Depends(require_admin),
    repository=Depends(get_repository),
) -> dict[str, str]:
    try:
        await repository.remove_company(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return {"deleted": handle}
