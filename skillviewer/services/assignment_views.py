from __future__ import annotations

import logging

from skillviewer.core.errors import ApiError, FormValidationError, SkillViewerError
from skillviewer.models.employee import Assignment, EmployeeAssignment, EmployeeRef
from skillviewer.services import resources
from skillviewer.services.api_client import ApiClient
from skillviewer.services.screen_state import EditState, Loadable, ViewModel
from skillviewer.services.validation import require_fields, validate_difficulty

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "全ての項目を入力してください"


def _assignment_payload(name: str, difficulty: str | int, content: str) -> dict[str, str | int]:
    require_fields(
        {"name": name, "difficulty": str(difficulty), "content": content},
        ("name", "difficulty", "content"),
        REQUIRED_MESSAGE,
    )
    return {"name": name, "difficulty": validate_difficulty(difficulty), "content": content}


class AssignmentListView(ViewModel):
    def __init__(self, client: ApiClient) -> None:
        super().__init__()
        self.client = client
        self.assignments: Loadable[list[Assignment]] = Loadable()

    async def load(self) -> None:
        await self.assignments.run(lambda: resources.assignments.list(self.client))

    async def create_assignment(self, name: str, difficulty: str | int, content: str) -> bool:
        try:
            payload = _assignment_payload(name, difficulty, content)
            await resources.assignments.create(self.client, payload, fallback="追加失敗")
        except FormValidationError as e:
            return self.fail(e)
        except SkillViewerError as e:
            return self.fail(e, "課題の追加に失敗しました")

        self.alert("成功", "課題を追加しました")
        await self.load()
        return True


class AssignmentDetailView(ViewModel):
    def __init__(self, client: ApiClient, assignment_id: int) -> None:
        super().__init__()
        self.client = client
        self.assignment_id = assignment_id
        self.assignment: Loadable[Assignment] = Loadable()
        self.edit: EditState[Assignment] = EditState()
        self.current: list[EmployeeAssignment] = []
        self.past: list[EmployeeAssignment] = []
        self.members_loading = True
        self.deleted = False

    async def load(self) -> None:
        await self.assignment.run(lambda: resources.assignments.get(self.client, self.assignment_id))
        await self.load_members()

    async def load_members(self) -> None:
        """Walk every employee's links one request at a time.

        An employee whose links cannot be fetched is skipped.
        """
        self.members_loading = True
        links: list[EmployeeAssignment] = []
        try:
            employees = await resources.employees.list(self.client)
            for emp in employees:
                try:
                    emp_links = await resources.employee_assignments.for_employee(self.client, emp.id)
                except ApiError as e:
                    logger.debug("Skipping employee %s: %s", emp.id, e.message)
                    continue
                ref = EmployeeRef(id=emp.id, first_name=emp.first_name, last_name=emp.last_name, email=emp.email)
                links.extend(
                    link.model_copy(update={"employee": ref})
                    for link in emp_links
                    if link.assignment_id == self.assignment_id
                )
        except SkillViewerError as e:
            logger.warning("Could not load members of assignment %s: %s", self.assignment_id, e.message)
        finally:
            self.members_loading = False

        self.current = [link for link in links if not link.is_completed]
        self.past = [link for link in links if link.is_completed]

    def start_edit(self) -> None:
        if self.assignment.data is not None:
            self.edit.open(self.assignment.data.model_copy())

    async def update(self) -> bool:
        form = self.edit.form
        if form is None:
            return False
        try:
            payload = _assignment_payload(form.name, form.difficulty, form.content)
            updated = await resources.assignments.update(self.client, self.assignment_id, payload, fallback="更新エラー")
        except SkillViewerError as e:
            return self.fail(e)

        self.assignment.data = updated or form
        self.edit.close()
        self.alert("成功", "課題を更新しました")
        return True

    async def delete(self) -> bool:
        try:
            await resources.assignments.delete(self.client, self.assignment_id, fallback="削除エラー")
        except SkillViewerError as e:
            return self.fail(e)
        self.deleted = True
        self.alert("成功", "課題を削除しました")
        return True
