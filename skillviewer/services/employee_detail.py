"""Employee detail: one employee composed from several independently edited resources.

The profile, the skill links, the assignment links and the case history are
fetched separately and each has its own edit state. Saving one of them talks
only to that resource's endpoint and re-fetches only that resource; nothing is
rolled back elsewhere when a save fails.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from skillviewer.core.errors import FormValidationError, SkillViewerError
from skillviewer.models.base import ApiModel, date_only
from skillviewer.models.employee import (
    Assignment,
    Case,
    Employee,
    EmployeeAssignment,
    EmployeeForm,
    EmployeeSkill,
)
from skillviewer.models.skill import Skill
from skillviewer.services import resources
from skillviewer.services.api_client import ApiClient
from skillviewer.services.labels import label_to_status, status_to_label
from skillviewer.services.screen_state import EditState, Loadable, ViewModel
from skillviewer.services.validation import (
    require_fields,
    validate_proficiency,
    validate_years_of_experience,
)

logger = logging.getLogger(__name__)


class SkillForm(ApiModel):
    id: int | None = None
    skill_id: int | None = None
    proficiency: int | str = 1
    years_of_exp: str | float = ""
    certified: bool = False
    cert_details: str = ""
    last_used: str = ""

    @classmethod
    def from_link(cls, link: EmployeeSkill) -> SkillForm:
        return cls(
            id=link.id,
            skill_id=link.owned_skill_id,
            proficiency=link.proficiency,
            years_of_exp="" if link.years_of_exp is None else str(link.years_of_exp),
            certified=link.certified,
            cert_details=link.cert_details or "",
            last_used=date_only(link.last_used),
        )

    def payload(self) -> dict[str, Any]:
        return {
            "proficiency": validate_proficiency(self.proficiency),
            "yearsOfExp": validate_years_of_experience(self.years_of_exp),
            "certified": self.certified,
            "certDetails": self.cert_details or None,
            "lastUsed": self.last_used or None,
        }


class AssignmentLinkForm(ApiModel):
    assignment_id: int | None = None
    start_date: str = ""
    end_date: str = ""
    is_completed: bool = False

    @classmethod
    def from_link(cls, link: EmployeeAssignment) -> AssignmentLinkForm:
        return cls(
            assignment_id=link.assignment_id,
            start_date=date_only(link.start_date),
            end_date=date_only(link.end_date),
            is_completed=link.is_completed,
        )


def profile_form(employee: Employee) -> EmployeeForm:
    """Edit snapshot of the profile, status shown as its display label."""
    return EmployeeForm(
        employee_id=employee.employee_id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        email=employee.email or "",
        department=employee.department or "",
        position=employee.position or "",
        status=status_to_label(employee.status),
        hire_date=date_only(employee.hire_date),
        memo=employee.memo or "",
    )


class EmployeeDetailView(ViewModel):
    def __init__(self, client: ApiClient, employee_id: int, employee: Employee | None = None) -> None:
        super().__init__()
        self.client = client
        self.employee_id = employee_id
        self.deleted = False

        self.employee: Loadable[Employee] = Loadable()
        self.profile: EditState[EmployeeForm] = EditState()
        if employee is not None:
            self._set_employee(employee)

        self.employee_skills: Loadable[list[EmployeeSkill]] = Loadable()
        self.skill_catalog: Loadable[list[Skill]] = Loadable()
        self.new_skill: EditState[SkillForm] = EditState()
        self.skill_edit: EditState[SkillForm] = EditState()

        self.employee_assignments: Loadable[list[EmployeeAssignment]] = Loadable()
        self.assignment_catalog: Loadable[list[Assignment]] = Loadable()
        self.new_assignment: EditState[AssignmentLinkForm] = EditState()
        self.assignment_edit: EditState[AssignmentLinkForm] = EditState()

        self.case_edit: EditState[Case] = EditState()

    @property
    def current_employee(self) -> Employee | None:
        return self.employee.data

    def _set_employee(self, employee: Employee) -> None:
        self.employee.data = employee
        self.profile.form = profile_form(employee)

    def _fail(self, state: EditState, error: SkillViewerError, message: str | None = None) -> bool:
        state.error = message or error.message
        return self.fail(error, message)

    # -- loading -----------------------------------------------------------

    async def load(self) -> None:
        employee = await self.employee.run(
            lambda: resources.employees.get(self.client, self.employee_id),
            error_message="社員データの取得中にエラーが発生しました。",
        )
        if employee is None:
            return
        self._set_employee(employee)

        await self.employee_skills.run(lambda: self.fetch_skill_links(employee))
        await self.employee_assignments.run(
            lambda: resources.employee_assignments.for_employee(self.client, self.employee_id)
        )
        await self.skill_catalog.run(lambda: resources.skills.list(self.client))
        await self.assignment_catalog.run(lambda: resources.assignments.list(self.client))

    async def fetch_skill_links(self, employee: Employee) -> list[EmployeeSkill]:
        """Fetch every skill link listed on the employee, all requests in flight at once.

        The first failing request cancels the rest and its error is raised.
        """
        link_ids = [es.id for es in employee.skills]
        if not link_ids:
            return []
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(resources.employee_skills.get(self.client, link_id)) for link_id in link_ids]
        except* SkillViewerError as group:
            raise group.exceptions[0] from None
        links = [task.result() for task in tasks]
        logger.debug("Fetched %d skill links for employee %s", len(links), self.employee_id)
        return links

    async def refresh_skills(self) -> None:
        async def _fetch() -> list[EmployeeSkill]:
            fresh = await resources.employees.get(self.client, self.employee_id)
            current = self.current_employee
            if current is not None:
                self.employee.data = current.model_copy(update={"skills": fresh.skills})
            return await self.fetch_skill_links(fresh)

        await self.employee_skills.run(_fetch)

    async def refresh_assignments(self) -> None:
        await self.employee_assignments.run(
            lambda: resources.employee_assignments.for_employee(self.client, self.employee_id)
        )

    async def refresh_cases(self) -> None:
        try:
            fresh = await resources.employees.get(self.client, self.employee_id)
        except SkillViewerError as e:
            self.fail(e, "社員データの取得中にエラーが発生しました。")
            return
        current = self.current_employee
        if current is not None:
            self.employee.data = current.model_copy(update={"cases": fresh.cases})

    # -- derived option lists ----------------------------------------------

    @property
    def owned_skill_ids(self) -> set[int]:
        if self.employee_skills.data is not None:
            return {es.owned_skill_id for es in self.employee_skills.data if es.owned_skill_id is not None}
        if self.current_employee is not None:
            return self.current_employee.owned_skill_ids
        return set()

    @property
    def available_skills(self) -> list[Skill]:
        owned = self.owned_skill_ids
        return [skill for skill in self.skill_catalog.data or [] if skill.id not in owned]

    @property
    def linked_assignment_ids(self) -> set[int]:
        return {ea.assignment_id for ea in self.employee_assignments.data or []}

    @property
    def available_assignments(self) -> list[Assignment]:
        linked = self.linked_assignment_ids
        return [a for a in self.assignment_catalog.data or [] if a.id not in linked]

    # -- profile -----------------------------------------------------------

    def start_profile_edit(self) -> None:
        if self.current_employee is not None:
            self.profile.open(profile_form(self.current_employee))

    def cancel_profile(self) -> None:
        self.profile.editing = False
        self.profile.error = None
        if self.current_employee is not None:
            self.profile.form = profile_form(self.current_employee)

    async def save_profile(self) -> bool:
        form = self.profile.form
        current = self.current_employee
        if form is None or current is None:
            return False

        status = label_to_status(form.status)
        payload = form.model_copy(update={"status": status}).to_payload(exclude_none=True)
        try:
            await resources.employees.update(
                self.client,
                self.employee_id,
                payload,
                fallback="社員情報の更新に失敗しました。",
            )
        except SkillViewerError as e:
            return self._fail(self.profile, e, "更新処理中にエラーが発生しました")

        updated = current.model_copy(
            update={
                "employee_id": form.employee_id if form.employee_id is not None else current.employee_id,
                "first_name": form.first_name,
                "last_name": form.last_name,
                "email": form.email,
                "department": form.department,
                "position": form.position,
                "status": status,
                "hire_date": form.hire_date,
                "memo": form.memo,
            }
        )
        self._set_employee(updated)
        self.profile.editing = False
        self.profile.error = None
        self.alert("保存完了", "社員情報が更新されました")
        return True

    async def delete_employee(self) -> bool:
        try:
            await resources.employees.delete(self.client, self.employee_id, fallback="削除に失敗しました")
        except SkillViewerError as e:
            return self.fail(e, "削除処理中にエラーが発生しました")
        self.deleted = True
        self.alert("削除完了", "社員データを削除しました")
        return True

    # -- skills ------------------------------------------------------------

    def start_add_skill(self) -> None:
        self.new_skill.open(SkillForm())

    def start_skill_edit(self, link: EmployeeSkill) -> None:
        self.skill_edit.open(SkillForm.from_link(link))

    def cancel_skill_edit(self) -> None:
        self.skill_edit.close()

    async def add_skill(self) -> bool:
        form = self.new_skill.form
        if form is None:
            return False
        try:
            if form.skill_id is None:
                raise FormValidationError("スキルを選択してください", field="skillId")
            if form.skill_id in self.owned_skill_ids:
                raise FormValidationError("このスキルはすでに登録されています", field="skillId")
            payload = {"employeeId": self.employee_id, "skillId": form.skill_id, **form.payload()}
            await resources.employee_skills.create(self.client, payload, fallback="スキルの追加に失敗しました。")
        except SkillViewerError as e:
            return self._fail(self.new_skill, e)

        self.new_skill.close()
        await self.refresh_skills()
        return True

    async def update_skill(self) -> bool:
        form = self.skill_edit.form
        if form is None or form.id is None:
            return False
        try:
            await resources.employee_skills.update(
                self.client, form.id, form.payload(), fallback="スキルの更新に失敗しました。"
            )
        except SkillViewerError as e:
            return self._fail(self.skill_edit, e)

        self.skill_edit.close()
        await self.refresh_skills()
        return True

    async def delete_skill(self, link_id: int) -> bool:
        try:
            await resources.employee_skills.delete(self.client, link_id, fallback="スキルの削除に失敗しました。")
        except SkillViewerError as e:
            return self.fail(e, "スキルの削除中にエラーが発生しました。")
        await self.refresh_skills()
        return True

    # -- assignment links --------------------------------------------------

    def start_assign(self) -> None:
        self.new_assignment.open(AssignmentLinkForm())

    def start_assignment_edit(self, link: EmployeeAssignment) -> None:
        self.assignment_edit.open(AssignmentLinkForm.from_link(link))

    def _link_payload(self, form: AssignmentLinkForm) -> dict[str, Any]:
        require_fields(form.model_dump(), ("assignment_id", "start_date"), "課題と開始日は必須です")
        return {
            "employeeId": self.employee_id,
            "assignmentId": form.assignment_id,
            "startDate": form.start_date,
            "endDate": form.end_date or None,
            "isCompleted": form.is_completed,
        }

    async def assign_assignment(self) -> bool:
        form = self.new_assignment.form
        if form is None:
            return False
        try:
            if form.assignment_id in self.linked_assignment_ids:
                raise FormValidationError("この課題はすでに割り当てられています", field="assignmentId")
            payload = self._link_payload(form)
            await resources.employee_assignments.create(self.client, payload, fallback="課題の割り当てに失敗しました。")
        except SkillViewerError as e:
            return self._fail(self.new_assignment, e)

        self.new_assignment.close()
        await self.refresh_assignments()
        return True

    async def update_assignment(self) -> bool:
        form = self.assignment_edit.form
        if form is None:
            return False
        try:
            await resources.employee_assignments.update_link(self.client, self._link_payload(form))
        except SkillViewerError as e:
            return self._fail(self.assignment_edit, e)

        self.assignment_edit.close()
        await self.refresh_assignments()
        return True

    async def unassign_assignment(self, assignment_id: int) -> bool:
        try:
            await resources.employee_assignments.unlink(self.client, self.employee_id, assignment_id)
        except SkillViewerError as e:
            return self.fail(e)
        await self.refresh_assignments()
        return True

    # -- case history ------------------------------------------------------

    def start_case_edit(self, case: Case | None = None) -> None:
        self.case_edit.open(case.model_copy() if case is not None else Case())

    async def submit_case(self) -> bool:
        case = self.case_edit.form
        if case is None:
            return False
        payload = {**case.to_payload(exclude={"id"}), "employeeId": self.employee_id}
        try:
            if case.id is not None:
                await resources.cases.update(self.client, case.id, payload, fallback="案件の更新に失敗しました。")
            else:
                await resources.cases.create(self.client, payload, fallback="案件の追加に失敗しました。")
        except SkillViewerError as e:
            message = "案件の更新中にエラーが発生しました。" if case.id is not None else "案件の追加中にエラーが発生しました。"
            return self._fail(self.case_edit, e, message)

        self.case_edit.close()
        await self.refresh_cases()
        return True

    async def delete_case(self, case_id: int) -> bool:
        try:
            await resources.cases.delete(self.client, case_id, fallback="案件の削除に失敗しました。")
        except SkillViewerError as e:
            return self.fail(e, "案件の削除中にエラーが発生しました。")
        await self.refresh_cases()
        return True
