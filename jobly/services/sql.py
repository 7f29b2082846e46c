"""SQL fragments shared by the repository.

Everything here is pure string building: values are never interpolated into
the SQL text, they are returned alongside it as positional bind values for
asyncpg (``$1``, ``$2`` ...).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from jobly.services.errors import RepositoryValidationError


def resolve_column(field: str, aliases: Mapping[str, str]) -> str:
    return aliases.get(field, field)


def sql_for_partial_update(data: Mapping[str, Any], aliases: Mapping[str, str]) -> tuple[str, list[Any]]:
    """Build the body of an ``UPDATE ... SET`` statement.

    ``{"firstName": "Aliya", "age": 32}`` with ``{"firstName": "first_name"}``
    becomes ``'"first_name"=$1, "age"=$2'`` and ``["Aliya", 32]``. Placeholders
    follow the iteration order of ``data``, so callers binding further values
    (the row key) continue at ``len(values) + 1``.
    """
    if not data:
        raise RepositoryValidationError("no data")

    columns = [f'"{resolve_column(field, aliases)}"=${index}' for index, field in enumerate(data, start=1)]
    return ", ".join(columns), list(data.values())


class FilterQuery:
    def __init__(self) -> None:
        self.conditions: list[str] = []
        self.params: list[Any] = []

    def bind(self, value: Any) -> str:
        self.params.append(value)
        return f"${len(self.params)}"

    def where(self, condition: str) -> None:
        self.conditions.append(condition)

    def render(self, base_query: str, order_by: str) -> tuple[str, list[Any]]:
        query = base_query.rstrip()
        if self.conditions:
            query += " WHERE " + " AND ".join(self.conditions)
        query += f" ORDER BY {order_by}"
        return query, list(self.params)


def _contains_pattern(value: str) -> str:
    """Match ``value`` as a plain substring under ILIKE's default backslash escape."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _criterion(criteria: Mapping[str, Any] | None, key: str) -> Any:
    if not criteria:
        return None
    return criteria.get(key)


def build_company_query(base_query: str, criteria: Mapping[str, Any] | None) -> tuple[str, list[Any]]:
    """Filter companies by ``min_employees``, ``max_employees`` and ``name``, in that order."""
    min_employees = _criterion(criteria, "min_employees")
    max_employees = _criterion(criteria, "max_employees")
    name = _criterion(criteria, "name")

    if min_employees is not None and max_employees is not None and min_employees > max_employees:
        raise RepositoryValidationError("minEmployees cannot be larger than maxEmployees")

    query = FilterQuery()
    if min_employees is not None:
        query.where(f"num_employees >= {query.bind(min_employees)}")
    if max_employees is not None:
        query.where(f"num_employees <= {query.bind(max_employees)}")
    if name is not None:
        query.where(f"name ILIKE {query.bind(_contains_pattern(name))}")
    return query.render(base_query, "name")


def build_job_query(base_query: str, criteria: Mapping[str, Any] | None) -> tuple[str, list[Any]]:
    """Filter jobs by ``min_salary``, ``has_equity`` and ``title``, in that order.

    ``has_equity`` only narrows the result when it is true.
    """
    min_salary = _criterion(criteria, "min_salary")
    has_equity = _criterion(criteria, "has_equity")
    title = _criterion(criteria, "title")

    query = FilterQuery()
    if min_salary is not None:
        query.where(f"salary >= {query.bind(min_salary)}")
    if has_equity is True:
        query.where("equity > 0")
    if title is not None:
        query.where(f"title ILIKE {query.bind(_contains_pattern(title))}")
    return query.render(base_query, "title")
