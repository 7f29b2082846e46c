from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from jobly.core.config import get_settings
from jobly.core.security import hash_password, verify_password
from jobly.services.errors import (
    RepositoryAuthenticationError,
    RepositoryConflictError,
    RepositoryError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)
from jobly.services.sql import build_company_query, build_job_query, sql_for_partial_update

__all__ = [
    "PostgresRepository",
    "RepositoryAuthenticationError",
    "RepositoryConflictError",
    "RepositoryError",
    "RepositoryNotFoundError",
    "RepositoryUnavailableError",
    "RepositoryValidationError",
    "get_repository",
]

logger = logging.getLogger(__name__)

COMPANY_COLUMNS = """
              handle,
              name,
              description,
              num_employees as "numEmployees",
              logo_url as "logoUrl"
"""
COMPANY_ALIASES = {"numEmployees": "num_employees", "logoUrl": "logo_url"}
COMPANY_UPDATE_FIELDS = {"name", "description", "numEmployees", "logoUrl"}

JOB_COLUMNS = "title, salary, equity, company_handle"
JOB_ALIASES: dict[str, str] = {}
JOB_UPDATE_FIELDS = {"title", "salary", "equity"}

USER_COLUMNS = """
              username,
              first_name as "firstName",
              last_name as "lastName",
              email,
              is_admin as "isAdmin"
"""
USER_ALIASES = {"firstName": "first_name", "lastName": "last_name", "isAdmin": "is_admin"}
# is_admin changes only through user creation by an admin or scripts/bootstrap_admin.py.
USER_UPDATE_FIELDS = {"firstName", "lastName", "email", "password"}


class PostgresRepository:
    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int,
        max_pool_size: int,
        bcrypt_work_factor: int,
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.bcrypt_work_factor = bcrypt_work_factor
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    # Companies

    async def create_company(
        self,
        *,
        handle: str,
        name: str,
        description: str | None = None,
        num_employees: int | None = None,
        logo_url: str | None = None,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        duplicate = await pool.fetchrow("select handle from companies where handle = $1", handle)
        if duplicate:
            raise RepositoryConflictError(f"Duplicate company: {handle}")

        try:
            row = await pool.fetchrow(
                f"""
                insert into companies (handle, name, description, num_employees, logo_url)
                values ($1, $2, $3, $4, $5)
                returning {COMPANY_COLUMNS}
                """,
                handle,
                name,
                description,
                num_employees,
                logo_url,
            )
        except pg_exc.UniqueViolationError as exc:
            if getattr(exc, "constraint_name", None) == "companies_pkey":
                raise RepositoryConflictError(f"Duplicate company: {handle}") from exc
            raise RepositoryConflictError(f"Duplicate company name: {name}") from exc
        except (pg_exc.CheckViolationError, pg_exc.NotNullViolationError) as exc:
            raise RepositoryValidationError("company violates column constraints") from exc

        logger.info("company created handle=%s", handle)
        return self._company_row_to_dict(row)

    async def list_companies(self, criteria: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        query, params = build_company_query(f"select {COMPANY_COLUMNS} from companies", criteria)
        pool = await self._get_pool()
        rows = await pool.fetch(query, *params)
        return [self._company_row_to_dict(row) for row in rows]

    async def get_company(self, handle: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            select
              c.handle,
              c.name,
              c.description,
              c.num_employees as "numEmployees",
              c.logo_url as "logoUrl",
              coalesce(array_agg(j.id order by j.id) filter (where j.id is not null), '{}') as jobs
            from companies c
            left join jobs j on j.company_handle = c.handle
            where c.handle = $1
            group by c.handle
            """,
            handle,
        )
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")

        company = self._company_row_to_dict(row)
        company["jobs"] = list(row["jobs"] or [])
        return company

    async def update_company(self, handle: str, data: Mapping[str, Any]) -> dict[str, Any]:
        self._validate_update_fields(data, COMPANY_UPDATE_FIELDS)
        set_clause, values = sql_for_partial_update(data, COMPANY_ALIASES)
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                update companies
                set {set_clause}
                where handle = ${len(values) + 1}
                returning {COMPANY_COLUMNS}
                """,
                *values,
                handle,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Duplicate company name: {data.get('name')}") from exc
        except (pg_exc.CheckViolationError, pg_exc.NotNullViolationError) as exc:
            raise RepositoryValidationError("company violates column constraints") from exc
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")

        logger.info("company updated handle=%s fields=%s", handle, sorted(data))
        return self._company_row_to_dict(row)

    async def remove_company(self, handle: str) -> None:
        pool = await self._get_pool()
        row = await pool.fetchrow("delete from companies where handle = $1 returning handle", handle)
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")
        logger.info("company removed handle=%s", handle)

    # Jobs

    async def create_job(
        self,
        *,
        title: str,
        company_handle: str,
        salary: int | None = None,
        equity: Any = None,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                insert into jobs (title, salary, equity, company_handle)
                values ($1, $2, $3, $4)
                returning {JOB_COLUMNS}
                """,
                title,
                salary,
                self._coerce_equity(equity),
                company_handle,
            )
        except pg_exc.ForeignKeyViolationError as exc:
            raise RepositoryValidationError(f"No company: {company_handle}") from exc
        except (pg_exc.CheckViolationError, pg_exc.NotNullViolationError) as exc:
            raise RepositoryValidationError("job violates column constraints") from exc

        logger.info("job created company_handle=%s", company_handle)
        return self._job_row_to_dict(row)

    async def list_jobs(self, criteria: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        query, params = build_job_query(f"select {JOB_COLUMNS} from jobs", criteria)
        pool = await self._get_pool()
        rows = await pool.fetch(query, *params)
        return [self._job_row_to_dict(row) for row in rows]

    async def get_job(self, job_id: int) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(f"select {JOB_COLUMNS} from jobs where id = $1", job_id)
        if not row:
            raise RepositoryNotFoundError(f"No job with id {job_id}")
        return self._job_row_to_dict(row)

    async def update_job(self, job_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        self._validate_update_fields(data, JOB_UPDATE_FIELDS)
        changes = dict(data)
        if "equity" in changes:
            changes["equity"] = self._coerce_equity(changes["equity"])

        set_clause, values = sql_for_partial_update(changes, JOB_ALIASES)
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                update jobs
                set {set_clause}
                where id = ${len(values) + 1}
                returning {JOB_COLUMNS}
                """,
                *values,
                job_id,
            )
        except (pg_exc.CheckViolationError, pg_exc.NotNullViolationError) as exc:
            raise RepositoryValidationError("job violates column constraints") from exc
        if not row:
            raise RepositoryNotFoundError(f"No job with id {job_id}")

        logger.info("job updated id=%s fields=%s", job_id, sorted(data))
        return self._job_row_to_dict(row)

    async def remove_job(self, job_id: int) -> None:
        pool = await self._get_pool()
        row = await pool.fetchrow("delete from jobs where id = $1 returning id", job_id)
        if not row:
            raise RepositoryNotFoundError(f"No job with id {job_id}")
        logger.info("job removed id=%s", job_id)

    # Users

    async def register_user(
        self,
        *,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        email: str,
        is_admin: bool = False,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        duplicate = await pool.fetchrow("select username from users where username = $1", username)
        if duplicate:
            raise RepositoryConflictError(f"Duplicate username: {username}")

        try:
            row = await pool.fetchrow(
                f"""
                insert into users (username, password, first_name, last_name, email, is_admin)
                values ($1, $2, $3, $4, $5, $6)
                returning {USER_COLUMNS}
                """,
                username,
                hash_password(password, rounds=self.bcrypt_work_factor),
                first_name,
                last_name,
                email,
                is_admin,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Duplicate username: {username}") from exc

        logger.info("user registered username=%s is_admin=%s", username, is_admin)
        return self._user_row_to_dict(row)

    async def authenticate_user(self, *, username: str, password: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"select {USER_COLUMNS}, password from users where username = $1",
            username,
        )
        if not row or not verify_password(password, row["password"]):
            raise RepositoryAuthenticationError("Invalid username/password")
        return self._user_row_to_dict(row)

    async def list_users(self) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(f"select {USER_COLUMNS} from users order by username")
        return [self._user_row_to_dict(row) for row in rows]

    async def get_user(self, username: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(f"select {USER_COLUMNS} from users where username = $1", username)
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")
        return self._user_row_to_dict(row)

    async def update_user(self, username: str, data: Mapping[str, Any]) -> dict[str, Any]:
        self._validate_update_fields(data, USER_UPDATE_FIELDS)
        changes = dict(data)
        if changes.get("password") is not None:
            changes["password"] = hash_password(changes["password"], rounds=self.bcrypt_work_factor)

        set_clause, values = sql_for_partial_update(changes, USER_ALIASES)
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                update users
                set {set_clause}
                where username = ${len(values) + 1}
                returning {USER_COLUMNS}
                """,
                *values,
                username,
            )
        except (pg_exc.CheckViolationError, pg_exc.NotNullViolationError) as exc:
            raise RepositoryValidationError("user violates column constraints") from exc
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")

        logger.info("user updated username=%s fields=%s", username, sorted(changes))
        return self._user_row_to_dict(row)

    async def remove_user(self, username: str) -> None:
        pool = await self._get_pool()
        row = await pool.fetchrow("delete from users where username = $1 returning username", username)
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")
        logger.info("user removed username=%s", username)

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("JOBLY_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=15,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc

    @staticmethod
    def _validate_update_fields(data: Mapping[str, Any], allowed: set[str]) -> None:
        unknown = set(data) - allowed
        if unknown:
            raise RepositoryValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")

    @staticmethod
    def _coerce_equity(value: Any) -> Decimal | None:
        if value is None:
            return None
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise RepositoryValidationError(f"invalid equity: {value!r}") from exc

    @staticmethod
    def _company_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "handle": row["handle"],
            "name": row["name"],
            "description": row["description"],
            "numEmployees": row["numEmployees"],
            "logoUrl": row["logoUrl"],
        }

    @staticmethod
    def _job_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        equity = row["equity"]
        return {
            "title": row["title"],
            "salary": row["salary"],
            "equity": str(equity) if equity is not None else None,
            "company_handle": row["company_handle"],
        }

    @staticmethod
    def _user_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "username": row["username"],
            "firstName": row["firstName"],
            "lastName": row["lastName"],
            "email": row["email"],
            "isAdmin": bool(row["isAdmin"]),
        }


@lru_cache
def get_repository() -> PostgresRepository:
    settings = get_settings()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        bcrypt_work_factor=settings.bcrypt_work_factor,
    )
