from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from skillviewer.core.config import settings
from skillviewer.core.errors import ApiError, SkillViewerError
from skillviewer.models.base import parse_date
from skillviewer.models.employee import Employee
from skillviewer.models.task import Activity, Tag, Task, TaskForm, TaskStatus, UserRef
from skillviewer.services import resources
from skillviewer.services.api_client import ApiClient, RetryPolicy
from skillviewer.services.screen_state import EditState, Loadable, ViewModel
from skillviewer.services.validation import require_fields

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "タイトル、説明、期限は必須です"
REQUIRED_TASK_FIELDS = ("title", "description", "due_date")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_overdue(task: Task, now: datetime | None = None) -> bool:
    due = parse_date(task.due_date)
    return task.status != TaskStatus.COMPLETED and due is not None and due < (now or _utcnow())


@dataclass(frozen=True)
class TaskStats:
    total: int
    pending: int
    in_progress: int
    overdue: int


def task_stats(tasks: list[Task], now: datetime | None = None) -> TaskStats:
    return TaskStats(
        total=len(tasks),
        pending=sum(1 for t in tasks if t.status == TaskStatus.PENDING),
        in_progress=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
        overdue=sum(1 for t in tasks if is_overdue(t, now)),
    )


def collect_tags(tasks: list[Task]) -> list[Tag]:
    """Tags used by any task, unique by id, first-seen order."""
    seen: dict[str, Tag] = {}
    for task in tasks:
        for tag in task.tags:
            seen.setdefault(tag.id, tag)
    return list(seen.values())


class TaskFormOptions:
    """Choices for the related-employee, assignee and tag pickers."""

    def __init__(self) -> None:
        self.employees: list[Employee] = []
        self.users: list[UserRef] = []
        self.tags: list[Tag] = []

    async def load(self, client: ApiClient, tasks: list[Task] | None = None) -> None:
        try:
            self.employees = await resources.employees.list(client)
            self.users = await resources.users.list(client)
            if tasks is None:
                tasks = await resources.tasks.list(client)
        except SkillViewerError as e:
            logger.warning("Could not load task form options: %s", e.message)
            return
        self.tags = collect_tags(tasks)


class TaskListView(ViewModel):
    def __init__(self, client: ApiClient) -> None:
        super().__init__()
        self.client = client
        self.tasks: Loadable[list[Task]] = Loadable()
        self.form: EditState[TaskForm] = EditState()
        self.options = TaskFormOptions()

    async def load(self) -> None:
        await self.tasks.run(lambda: resources.tasks.list(self.client))

    def stats(self, now: datetime | None = None) -> TaskStats:
        return task_stats(self.tasks.data or [], now)

    @property
    def available_tags(self) -> list[Tag]:
        return collect_tags(self.tasks.data or [])

    async def open_form(self) -> None:
        self.form.open(TaskForm())
        await self.options.load(self.client, self.tasks.data or [])

    async def create_task(self, form: TaskForm | None = None) -> bool:
        form = form or self.form.form
        if form is None:
            return False
        try:
            require_fields(form.model_dump(), REQUIRED_TASK_FIELDS, REQUIRED_MESSAGE)
            # The API records the TASK_CREATED activity itself.
            await resources.tasks.create(self.client, form.to_payload(), fallback="タスク作成に失敗しました")
        except SkillViewerError as e:
            return self.fail(e)

        self.alert("成功", "タスクを作成しました")
        self.form.close()
        await self.load()
        return True


class TaskDetailView(ViewModel):
    def __init__(self, client: ApiClient, task: Task, retry_policy: RetryPolicy | None = None) -> None:
        super().__init__()
        self.client = client
        self.current_task = task
        self.retry_policy = retry_policy or RetryPolicy.from_settings(settings)
        self.activities: Loadable[list[Activity]] = Loadable()
        self.edit: EditState[TaskForm] = EditState()
        self.options = TaskFormOptions()
        self.deleted = False

    async def load(self) -> None:
        await self.activities.run(self._fetch_activities)

    async def _fetch_activities(self) -> list[Activity]:
        everything = await resources.activities.list(
            self.client, params={"page": 1, "limit": settings.ACTIVITY_STATS_LIMIT}
        )
        return [a for a in everything if a.task_id == self.current_task.id]

    async def start_edit(self) -> None:
        self.edit.open(TaskForm.from_task(self.current_task))
        await self.options.load(self.client)

    def cancel_edit(self) -> None:
        self.edit.close()

    def _activity_payload(self, form: TaskForm) -> dict[str, Any]:
        return {
            "type": "TASK_UPDATED",
            "title": f"タスクを更新しました: {form.title}",
            "description": f"タスク「{form.title}」が更新されました",
            "taskId": self.current_task.id,
            "employeeId": form.related_employee_id,
            "metadata": {"tags": form.tags, "assignedUserIds": form.assigned_user_ids},
        }

    async def save(self) -> bool:
        form = self.edit.form
        if form is None:
            return False
        try:
            require_fields(form.model_dump(), REQUIRED_TASK_FIELDS, REQUIRED_MESSAGE)
            await resources.tasks.update(
                self.client,
                self.current_task.id,
                form.to_payload(),
                fallback="タスク更新に失敗しました",
                policy=self.retry_policy,
            )
        except ApiError as e:
            return self.fail(e, f"タスク更新に失敗しました ({e.status_code}): {e.message}" if e.status_code else None)
        except SkillViewerError as e:
            return self.fail(e)

        try:
            await resources.activities.create(self.client, self._activity_payload(form))
        except ApiError as e:
            logger.warning("Task %s saved but its activity was not recorded: %s", self.current_task.id, e.message)

        self.alert("成功", "タスクを更新しました")
        self.edit.close()
        await self.refresh_task()
        await self.load()
        return True

    async def refresh_task(self) -> None:
        try:
            tasks = await resources.tasks.list(self.client)
        except SkillViewerError as e:
            logger.warning("Failed to fetch updated task %s: %s", self.current_task.id, e.message)
            return
        for task in tasks:
            if task.id == self.current_task.id:
                self.current_task = task
                return

    async def delete(self) -> bool:
        try:
            await resources.tasks.delete(self.client, self.current_task.id, fallback="タスク削除に失敗しました")
        except SkillViewerError as e:
            return self.fail(e)
        self.deleted = True
        self.alert("成功", "タスクを削除しました")
        return True
