"""Employee list: in-memory search and column sort over the fetched list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time
from enum import Enum
from typing import Any

from skillviewer.core.errors import SkillViewerError
from skillviewer.models.base import parse_date
from skillviewer.models.employee import Employee, EmployeeForm
from skillviewer.services import resources
from skillviewer.services.api_client import ApiClient
from skillviewer.services.labels import label_to_status
from skillviewer.services.screen_state import Loadable, ViewModel
from skillviewer.services.validation import ensure_unique_email, require_fields

logger = logging.getLogger(__name__)

REQUIRED_EMPLOYEE_FIELDS = ("email", "first_name", "last_name", "department", "position", "status", "hire_date")


class SortColumn(str, Enum):
    EMPLOYEE_ID = "employeeId"
    NAME = "name"
    DEPARTMENT = "department"
    POSITION = "position"
    STATUS = "status"
    HIRE_DATE = "hireDate"
    SKILL_COUNT = "skillCount"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass
class SortState:
    column: SortColumn = SortColumn.EMPLOYEE_ID
    direction: SortDirection = SortDirection.ASC

    def toggle(self, column: SortColumn) -> None:
        if column == self.column:
            self.direction = SortDirection.DESC if self.direction is SortDirection.ASC else SortDirection.ASC
        else:
            self.column = column
            self.direction = SortDirection.ASC


@dataclass
class SearchFilters:
    employee_id: str = ""
    name: str = ""
    department: str = ""
    position: str = ""
    status: str = ""
    skill_name: str = ""
    hire_date_from: str = ""
    hire_date_to: str = ""


def _matches_name(emp: Employee, needle: str) -> bool:
    return (
        needle in emp.first_name.lower()
        or needle in emp.last_name.lower()
        or needle in f"{emp.last_name} {emp.first_name}".lower()
    )


def _has_skill_named(emp: Employee, needle: str) -> bool:
    return any(es.skill is not None and needle in es.skill.name.lower() for es in emp.skills)


def filter_employees(employees: list[Employee], filters: SearchFilters) -> list[Employee]:
    result = list(employees)

    if filters.employee_id:
        needle = filters.employee_id.lower()
        result = [e for e in result if needle in (e.employee_id or "").lower()]
    if filters.name:
        needle = filters.name.lower()
        result = [e for e in result if _matches_name(e, needle)]
    if filters.department:
        result = [e for e in result if e.department == filters.department]
    if filters.position:
        result = [e for e in result if e.position == filters.position]
    if filters.status:
        result = [e for e in result if e.status == filters.status]
    if filters.skill_name:
        needle = filters.skill_name.lower()
        result = [e for e in result if _has_skill_named(e, needle)]

    date_from = parse_date(filters.hire_date_from)
    if date_from is not None:
        result = [e for e in result if (d := parse_date(e.hire_date)) is not None and d >= date_from]

    date_to = parse_date(filters.hire_date_to)
    if date_to is not None:
        # The "to" day is inclusive up to its last instant.
        end_of_day = datetime.combine(date_to.date(), time.max)
        result = [e for e in result if (d := parse_date(e.hire_date)) is not None and d <= end_of_day]

    return result


def _sort_value(emp: Employee, column: SortColumn) -> Any:
    if column is SortColumn.NAME:
        value: Any = f"{emp.last_name} {emp.first_name}"
    elif column is SortColumn.HIRE_DATE:
        parsed = parse_date(emp.hire_date)
        value = parsed.timestamp() if parsed else float("-inf")
    elif column is SortColumn.SKILL_COUNT:
        value = len(emp.skills)
    elif column is SortColumn.EMPLOYEE_ID:
        # Some records carry only the numeric id.
        value = emp.employee_id if emp.employee_id is not None else str(emp.id)
    else:
        value = getattr(emp, column.value) or ""
    return value.lower() if isinstance(value, str) else value


def sort_employees(employees: list[Employee], state: SortState) -> list[Employee]:
    return sorted(
        employees,
        key=lambda e: _sort_value(e, state.column),
        reverse=state.direction is SortDirection.DESC,
    )


def distinct_options(employees: list[Employee]) -> dict[str, list[str]]:
    """Department, position and status choices in first-seen order."""
    return {
        "departments": list(dict.fromkeys(e.department for e in employees if e.department)),
        "positions": list(dict.fromkeys(e.position for e in employees if e.position)),
        "statuses": list(dict.fromkeys(e.status for e in employees)),
    }


class EmployeeListView(ViewModel):
    def __init__(self, client: ApiClient) -> None:
        super().__init__()
        self.client = client
        self.employees: Loadable[list[Employee]] = Loadable()
        self.filters = SearchFilters()
        self.sort = SortState()

    async def load(self) -> None:
        await self.employees.run(
            lambda: resources.employees.list(self.client),
            error_message="社員データの取得中にエラーが発生しました。",
        )

    @property
    def visible(self) -> list[Employee]:
        return sort_employees(filter_employees(self.employees.data or [], self.filters), self.sort)

    @property
    def options(self) -> dict[str, list[str]]:
        return distinct_options(self.employees.data or [])

    def search(self, **changes: str) -> list[Employee]:
        for name, value in changes.items():
            if not hasattr(self.filters, name):
                raise AttributeError(f"Unknown search field: {name}")
            setattr(self.filters, name, value)
        return self.visible

    def reset_search(self) -> list[Employee]:
        self.filters = SearchFilters()
        return self.visible

    def sort_by(self, column: SortColumn | str) -> list[Employee]:
        self.sort.toggle(SortColumn(column))
        return self.visible

    async def create_employee(self, form: EmployeeForm) -> bool:
        try:
            require_fields(form.model_dump(), REQUIRED_EMPLOYEE_FIELDS, "すべての項目を入力してください")
            ensure_unique_email(form.email, self.employees.data or [])
            payload = form.model_copy(update={"status": label_to_status(form.status)}).to_payload(exclude_none=True)
            await resources.employees.create(self.client, payload, fallback="社員の追加に失敗しました。")
        except SkillViewerError as e:
            return self.fail(e)

        self.alert("成功", "社員を追加しました")
        await self.load()
        return True
