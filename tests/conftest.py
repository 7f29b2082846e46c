from __future__ import annotations

import os

os.environ.setdefault("JOBLY_OTEL_ENABLED", "false")
os.environ.setdefault("JOBLY_SECRET_KEY", "test-secret-key")
os.environ.setdefault("JOBLY_BCRYPT_WORK_FACTOR", "4")

from collections.abc import Mapping  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from jobly.core.auth import Identity  # noqa: E402
from jobly.core.config import get_settings  # noqa: E402
from jobly.core.security import create_token  # noqa: E402
from jobly.main import app  # noqa: E402
from jobly.services.errors import (  # noqa: E402
    RepositoryAuthenticationError,
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryValidationError,
)
from jobly.services.repository import get_repository  # noqa: E402
from jobly.services.sql import build_company_query, sql_for_partial_update  # noqa: E402


class FakeRepository:
    """In-memory stand-in for PostgresRepository used by the route tests."""

    def __init__(self) -> None:
        self.companies: dict[str, dict[str, Any]] = {
            handle: {
                "handle": handle,
                "name": handle.upper(),
                "description": f"Desc{handle[-1]}",
                "numEmployees": int(handle[-1]),
                "logoUrl": f"http://{handle}.img",
            }
            for handle in ("c1", "c2", "c3")
        }
        self.jobs: dict[int, dict[str, Any]] = {
            1: {"title": "Job 1", "salary": 100, "equity": "0.1", "company_handle": "c1"},
            2: {"title": "Job 2", "salary": 200, "equity": "0", "company_handle": "c1"},
            3: {"title": "Job 3", "salary": 300, "equity": None, "company_handle": "c2"},
        }
        self.users: dict[str, dict[str, Any]] = {
            "u1": {
                "username": "u1",
                "firstName": "U1F",
                "lastName": "U1L",
                "email": "user1@user.com",
                "isAdmin": False,
            },
            "u2": {
                "username": "u2",
                "firstName": "U2F",
                "lastName": "U2L",
                "email": "user2@user.com",
                "isAdmin": False,
            },
        }
        self.passwords: dict[str, str] = {"u1": "password1", "u2": "password2"}
        self.list_criteria: list[Mapping[str, Any] | None] = []

    async def create_company(self, *, handle: str, name: str, description: str | None = None,
                             num_employees: int | None = None, logo_url: str | None = None) -> dict[str, Any]:
        if handle in self.companies:
            raise RepositoryConflictError(f"Duplicate company: {handle}")
        if handle != handle.lower():
            raise RepositoryValidationError("company violates column constraints")
        self._check_unique_name(name, handle)
        row = {
            "handle": handle,
            "name": name,
            "description": description,
            "numEmployees": num_employees,
            "logoUrl": logo_url,
        }
        self.companies[handle] = row
        return dict(row)

    async def list_companies(self, criteria: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        build_company_query("select handle from companies", criteria)
        self.list_criteria.append(criteria)
        name = (criteria or {}).get("name")
        rows = [row for row in self.companies.values() if not name or name.lower() in row["name"].lower()]
        return sorted(rows, key=lambda row: row["name"])

    async def get_company(self, handle: str) -> dict[str, Any]:
        if handle not in self.companies:
            raise RepositoryNotFoundError(f"No company: {handle}")
        job_ids = [job_id for job_id, job in self.jobs.items() if job["company_handle"] == handle]
        return {**self.companies[handle], "jobs": job_ids}

    async def update_company(self, handle: str, data: Mapping[str, Any]) -> dict[str, Any]:
        sql_for_partial_update(data, {})
        if handle not in self.companies:
            raise RepositoryNotFoundError(f"No company: {handle}")
        if "name" in data:
            self._check_unique_name(data["name"], handle)
        self.companies[handle].update(data)
        return dict(self.companies[handle])

    async def remove_company(self, handle: str) -> None:
        if self.companies.pop(handle, None) is None:
            raise RepositoryNotFoundError(f"No company: {handle}")

    def _check_unique_name(self, name: str, handle: str) -> None:
        if any(row["name"] == name and other != handle for other, row in self.companies.items()):
            raise RepositoryConflictError(f"Duplicate company name: {name}")

    async def create_job(self, *, title: str, company_handle: str, salary: int | None = None,
                         equity: Any = None) -> dict[str, Any]:
        if company_handle not in self.companies:
            raise RepositoryValidationError(f"No company: {company_handle}")
        row = {
            "title": title,
            "salary": salary,
            "equity": str(equity) if equity is not None else None,
            "company_handle": company_handle,
        }
        self.jobs[max(self.jobs, default=0) + 1] = row
        return dict(row)

    async def list_jobs(self, criteria: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        self.list_criteria.append(criteria)
        title = (criteria or {}).get("title")
        rows = [row for row in self.jobs.values() if not title or title.lower() in row["title"].lower()]
        return sorted(rows, key=lambda row: row["title"])

    async def get_job(self, job_id: int) -> dict[str, Any]:
        if job_id not in self.jobs:
            raise RepositoryNotFoundError(f"No job with id {job_id}")
        return dict(self.jobs[job_id])

    async def update_job(self, job_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        sql_for_partial_update(data, {})
        if job_id not in self.jobs:
            raise RepositoryNotFoundError(f"No job with id {job_id}")
        changes = dict(data)
        if changes.get("equity") is not None:
            changes["equity"] = str(changes["equity"])
        self.jobs[job_id].update(changes)
        return dict(self.jobs[job_id])

    async def remove_job(self, job_id: int) -> None:
        if self.jobs.pop(job_id, None) is None:
            raise RepositoryNotFoundError(f"No job with id {job_id}")

    async def register_user(self, *, username: str, password: str, first_name: str, last_name: str,
                            email: str, is_admin: bool = False) -> dict[str, Any]:
        if username in self.users:
            raise RepositoryConflictError(f"Duplicate username: {username}")
        row = {
            "username": username,
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "isAdmin": is_admin,
        }
        self.users[username] = row
        self.passwords[username] = password
        return dict(row)

    async def authenticate_user(self, *, username: str, password: str) -> dict[str, Any]:
        if self.passwords.get(username) != password:
            raise RepositoryAuthenticationError("Invalid username/password")
        return dict(self.users[username])

    async def list_users(self) -> list[dict[str, Any]]:
        return [dict(self.users[username]) for username in sorted(self.users)]

    async def get_user(self, username: str) -> dict[str, Any]:
        if username not in self.users:
            raise RepositoryNotFoundError(f"No user: {username}")
        return dict(self.users[username])

    async def update_user(self, username: str, data: Mapping[str, Any]) -> dict[str, Any]:
        sql_for_partial_update(data, {})
        if username not in self.users:
            raise RepositoryNotFoundError(f"No user: {username}")
        changes = dict(data)
        if "password" in changes:
            self.passwords[username] = changes.pop("password")
        self.users[username].update(changes)
        return dict(self.users[username])

    async def remove_user(self, username: str) -> None:
        if self.users.pop(username, None) is None:
            raise RepositoryNotFoundError(f"No user: {username}")


@pytest.fixture
def fake_repo() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def client(fake_repo: FakeRepository) -> TestClient:
    app.dependency_overrides[get_repository] = lambda: fake_repo
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _bearer(identity: Identity) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_token(identity, get_settings())}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return _bearer(Identity(username="admin", is_admin=True))


@pytest.fixture
def u1_headers() -> dict[str, str]:
    return _bearer(Identity(username="u1", is_admin=False))
