"""Task and activity-log records."""

from __future__ import annotations

from enum import Enum
from typing import Any

from skillviewer.models.base import ApiModel
from skillviewer.models.employee import EmployeeRef


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class UserRef(ApiModel):
    id: int
    name: str | None = None
    email: str | None = None


class Tag(ApiModel):
    id: str
    name: str
    color: str | None = None


class TaskAssignment(ApiModel):
    id: int | None = None
    task_id: int | None = None
    user_id: int | None = None
    assigned_at: str | None = None
    user: UserRef


class Task(ApiModel):
    id: int
    title: str
    description: str = ""
    status: str = TaskStatus.PENDING.value
    priority: str = TaskPriority.MEDIUM.value
    due_date: str | None = None
    completed_at: str | None = None
    is_send_mail: bool = False
    created_at: str | None = None
    updated_at: str | None = None
    related_employee_id: int | None = None
    created_by_id: int | None = None
    assignments: list[TaskAssignment] = []
    created_by: UserRef | None = None
    related_employee: EmployeeRef | None = None
    tags: list[Tag] = []


class TaskForm(ApiModel):
    title: str = ""
    description: str = ""
    priority: str = TaskPriority.MEDIUM.value
    status: str = TaskStatus.PENDING.value
    due_date: str = ""
    related_employee_id: int | None = None
    assigned_user_ids: list[int] = []
    tags: list[str] = []
    is_send_mail: bool = False

    @classmethod
    def from_task(cls, task: Task) -> TaskForm:
        return cls(
            title=task.title,
            description=task.description,
            priority=task.priority,
            status=task.status,
            due_date=task.due_date or "",
            related_employee_id=task.related_employee_id,
            assigned_user_ids=[a.user.id for a in task.assignments],
            tags=[t.name for t in task.tags],
            is_send_mail=task.is_send_mail,
        )


class ActivityTaskRef(ApiModel):
    id: int
    title: str
    status: str | None = None
    priority: str | None = None


class Activity(ApiModel):
    id: int
    type: str
    title: str = ""
    description: str = ""
    metadata: Any = None
    created_at: str | None = None
    user_id: int | None = None
    task_id: int | None = None
    employee_id: int | None = None
    user: UserRef | None = None
    task: ActivityTaskRef | None = None
    employee: EmployeeRef | None = None


class Pagination(ApiModel):
    total: int = 0
    limit: int = 0
    page: int | None = None


class ActivityPage(ApiModel):
    activities: list[Activity] = []
    pagination: Pagination | None = None
