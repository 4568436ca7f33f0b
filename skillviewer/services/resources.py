"""One CRUD accessor per remote collection."""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from skillviewer.core.errors import ApiTransportError
from skillviewer.models.customer import Company, Customer
from skillviewer.models.employee import Assignment, Case, Employee, EmployeeAssignment, EmployeeSkill
from skillviewer.models.skill import Skill
from skillviewer.models.task import Activity, ActivityPage, Task, UserRef
from skillviewer.services.api_client import NO_RETRY, ApiClient, RetryPolicy

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class Resource(Generic[ModelT]):
    def __init__(self, path: str, model: type[ModelT], list_key: str | None = None) -> None:
        self.path = path
        self.model = model
        self.list_key = list_key

    def item_path(self, item_id: int | str) -> str:
        return f"{self.path}/{item_id}"

    def parse_list(self, data: Any) -> list[ModelT]:
        items = data.get(self.list_key) if self.list_key and isinstance(data, dict) else data
        try:
            return [self.model.model_validate(item) for item in items or []]
        except ValidationError as e:
            logger.error("Malformed %s list: %s", self.path, e)
            raise ApiTransportError("データの形式が不正です", response_data=data) from e

    def parse_item(self, data: Any) -> ModelT | None:
        """Write endpoints echo the record only sometimes; anything partial reads as None."""
        if not isinstance(data, dict):
            return None
        try:
            return self.model.model_validate(data)
        except ValidationError:
            logger.debug("%s returned a partial record", self.path)
            return None

    async def list(
        self,
        client: ApiClient,
        params: dict[str, Any] | None = None,
        fallback: str = "一覧の取得に失敗しました",
    ) -> list[ModelT]:
        data = await client.get(self.path, params=params, fallback=fallback)
        return self.parse_list(data)

    async def get(self, client: ApiClient, item_id: int | str, fallback: str = "データの取得に失敗しました") -> ModelT:
        data = await client.get(self.item_path(item_id), fallback=fallback)
        try:
            return self.model.model_validate(data)
        except ValidationError as e:
            logger.error("Malformed %s record: %s", self.item_path(item_id), e)
            raise ApiTransportError(fallback, response_data=data) from e

    async def create(
        self,
        client: ApiClient,
        payload: dict[str, Any],
        fallback: str = "登録に失敗しました",
    ) -> ModelT | None:
        data = await client.post(self.path, payload, fallback=fallback)
        return self.parse_item(data)

    async def update(
        self,
        client: ApiClient,
        item_id: int | str,
        payload: dict[str, Any],
        fallback: str = "更新に失敗しました",
        policy: RetryPolicy = NO_RETRY,
    ) -> ModelT | None:
        data = await client.request_with_retry(
            "PUT", self.item_path(item_id), policy, json_body=payload, fallback=fallback
        )
        return self.parse_item(data)

    async def delete(self, client: ApiClient, item_id: int | str, fallback: str = "削除に失敗しました") -> None:
        await client.delete(self.item_path(item_id), fallback=fallback)


class EmployeeAssignmentResource(Resource[EmployeeAssignment]):
    """Join records keyed by (employeeId, assignmentId) rather than by id."""

    async def for_employee(self, client: ApiClient, employee_id: int) -> list[EmployeeAssignment]:
        return await self.list(
            client,
            params={"employeeId": employee_id},
            fallback="課題割り当ての取得に失敗しました",
        )

    async def update_link(self, client: ApiClient, payload: dict[str, Any]) -> EmployeeAssignment | None:
        data = await client.put(self.path, payload, fallback="課題割り当ての更新に失敗しました")
        return self.parse_item(data)

    async def unlink(self, client: ApiClient, employee_id: int, assignment_id: int) -> None:
        await client.delete(
            self.path,
            {"employeeId": employee_id, "assignmentId": assignment_id},
            fallback="課題の割り当て解除に失敗しました",
        )


class ActivityResource(Resource[Activity]):
    """Activity log, served as ``{"activities": [...], "pagination": {...}}``."""

    async def page(
        self,
        client: ApiClient,
        params: dict[str, Any] | None = None,
        fallback: str = "アクティビティの取得に失敗しました",
    ) -> ActivityPage:
        data = await client.get(self.path, params=params, fallback=fallback)
        try:
            return ActivityPage.model_validate(data or {})
        except ValidationError as e:
            logger.error("Malformed %s page: %s", self.path, e)
            raise ApiTransportError("データの形式が不正です", response_data=data) from e


employees = Resource("/api/employees", Employee)
skills = Resource("/api/skills", Skill)
employee_skills = Resource("/api/employee-skills", EmployeeSkill)
assignments = Resource("/api/assignments", Assignment)
employee_assignments = EmployeeAssignmentResource("/api/employee-assignments", EmployeeAssignment)
tasks = Resource("/api/tasks", Task, list_key="tasks")
activities = ActivityResource("/api/activities", Activity, list_key="activities")
users = Resource("/api/users", UserRef, list_key="users")
customers = Resource("/api/customers", Customer)
companies = Resource("/api/companies", Company)
cases = Resource("/api/cases", Case)
