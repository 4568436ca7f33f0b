from __future__ import annotations

import asyncio

import pytest

from skillviewer.core.errors import ApiResponseError
from skillviewer.models.employee import Case, Employee
from skillviewer.services.employee_detail import AssignmentLinkForm, EmployeeDetailView, SkillForm, profile_form
from skillviewer.services.screen_state import LoadState

EMPLOYEE = {
    "id": 5,
    "employeeId": "E005",
    "firstName": "Taro",
    "lastName": "Yamada",
    "email": "taro@example.com",
    "department": "開発",
    "position": "エンジニア",
    "status": "ONSITE",
    "hireDate": "2020-04-01T00:00:00.000Z",
    "skills": [{"id": 51}, {"id": 52}],
    "cases": [{"id": 900, "companyName": "ACME", "description": "API開発"}],
}

SKILL_LINKS = {
    51: {"id": 51, "employeeId": 5, "skillId": 1, "proficiency": 3, "yearsOfExp": 2, "skill": {"id": 1, "name": "Python"}},
    52: {"id": 52, "employeeId": 5, "skillId": 2, "proficiency": 2, "yearsOfExp": 0.5, "skill": {"id": 2, "name": "Go"}},
}

CATALOG = [
    {"id": 1, "name": "Python", "category": "言語"},
    {"id": 2, "name": "Go", "category": "言語"},
    {"id": 3, "name": "AWS", "category": "クラウド"},
]

ASSIGNMENT_LINKS = [{"employeeId": 5, "assignmentId": 10, "startDate": "2024-01-01", "isCompleted": False}]

ASSIGNMENTS = [
    {"id": 10, "name": "API設計", "difficulty": 3},
    {"id": 11, "name": "DB設計", "difficulty": 4},
]


def _routes():
    return {
        ("GET", "/api/employees/5"): EMPLOYEE,
        ("GET", "/api/employee-skills/51"): SKILL_LINKS[51],
        ("GET", "/api/employee-skills/52"): SKILL_LINKS[52],
        ("GET", "/api/employee-assignments"): ASSIGNMENT_LINKS,
        ("GET", "/api/skills"): CATALOG,
        ("GET", "/api/assignments"): ASSIGNMENTS,
    }


async def _loaded_view(api) -> EmployeeDetailView:
    view = EmployeeDetailView(api, 5)
    await view.load()
    return view


@pytest.mark.anyio
async def test_load_aggregates_resources(fake_api):
    view = await _loaded_view(fake_api(_routes()))

    assert view.current_employee.first_name == "Taro"
    assert [link.id for link in view.employee_skills.data] == [51, 52]
    assert [s.id for s in view.available_skills] == [3]
    assert [a.id for a in view.available_assignments] == [11]
    assert view.profile.form.status == "現場"
    assert view.profile.form.hire_date == "2020-04-01"


@pytest.mark.anyio
async def test_available_skills_never_contain_owned(fake_api):
    view = await _loaded_view(fake_api(_routes()))
    owned = view.owned_skill_ids
    assert owned == {1, 2}
    assert all(s.id not in owned for s in view.available_skills)


@pytest.mark.anyio
async def test_one_failing_skill_link_fails_the_batch(fake_api):
    api = fake_api(_routes())
    api.routes[("GET", "/api/employee-skills/52")] = ApiResponseError("x", 500)
    view = await _loaded_view(api)

    assert view.employee_skills.state is LoadState.ERROR
    assert view.current_employee is not None
    assert view.employee_assignments.state is LoadState.SUCCESS


@pytest.mark.anyio
async def test_failed_profile_save_leaves_employee_unchanged(fake_api):
    api = fake_api(_routes())
    api.routes[("PUT", "/api/employees/5")] = ApiResponseError("x", 500, {"error": "DB error"})
    view = await _loaded_view(api)
    before = view.current_employee.model_copy()

    view.start_profile_edit()
    view.profile.form.first_name = "Jiro"
    assert not await view.save_profile()

    assert view.current_employee == before
    assert view.profile.editing
    assert view.last_alert.title == "エラー"
    assert view.last_alert.message == "更新処理中にエラーが発生しました"


@pytest.mark.anyio
async def test_profile_save_sends_enum_status_and_applies_form(fake_api):
    api = fake_api(_routes())
    api.routes[("PUT", "/api/employees/5")] = {"id": 5}
    view = await _loaded_view(api)

    view.start_profile_edit()
    view.profile.form.status = "研修中"
    view.profile.form.position = "リーダー"
    assert await view.save_profile()

    _, _, body, _ = api.calls_to("PUT", "/api/employees/5")[0]
    assert body["status"] == "TRAINING"
    assert view.current_employee.status == "TRAINING"
    assert view.current_employee.position == "リーダー"
    assert not view.profile.editing
    assert view.last_alert.title == "保存完了"


@pytest.mark.anyio
async def test_profile_cancel_restores_snapshot(fake_api):
    view = await _loaded_view(fake_api(_routes()))

    view.start_profile_edit()
    view.profile.form.last_name = "Sato"
    view.cancel_profile()

    assert not view.profile.editing
    assert view.profile.form.last_name == "Yamada"


@pytest.mark.anyio
async def test_invalid_years_blocks_add_without_request(fake_api):
    api = fake_api(_routes())
    view = await _loaded_view(api)

    view.start_add_skill()
    view.new_skill.form = SkillForm(skill_id=3, proficiency=2, years_of_exp="0.15")
    assert not await view.add_skill()

    assert api.calls_to("POST", "/api/employee-skills") == []
    assert view.new_skill.error == "経験年数は0.1以上、0.1単位の数値で入力してください"


@pytest.mark.anyio
async def test_add_skill_posts_and_refreshes(fake_api):
    api = fake_api(_routes())
    api.routes[("POST", "/api/employee-skills")] = {"id": 53}
    view = await _loaded_view(api)

    view.start_add_skill()
    view.new_skill.form = SkillForm(skill_id=3, proficiency="4", years_of_exp="0.3", certified=True)
    assert await view.add_skill()

    _, _, body, _ = api.calls_to("POST", "/api/employee-skills")[0]
    assert body == {
        "employeeId": 5,
        "skillId": 3,
        "proficiency": 4,
        "yearsOfExp": 0.3,
        "certified": True,
        "certDetails": None,
        "lastUsed": None,
    }
    assert not view.new_skill.editing
    assert len(api.calls_to("GET", "/api/employees/5")) == 2


@pytest.mark.anyio
async def test_update_skill_uses_link_id(fake_api):
    api = fake_api(_routes())
    api.routes[("PUT", "/api/employee-skills/52")] = {"id": 52}
    view = await _loaded_view(api)

    view.start_skill_edit(view.employee_skills.data[1])
    assert view.skill_edit.form.skill_id == 2
    view.skill_edit.form.years_of_exp = "1.5"
    assert await view.update_skill()

    _, _, body, _ = api.calls_to("PUT", "/api/employee-skills/52")[0]
    assert body["yearsOfExp"] == 1.5
    assert not view.skill_edit.editing


@pytest.mark.anyio
async def test_assign_rejects_linked_assignment(fake_api):
    api = fake_api(_routes())
    view = await _loaded_view(api)

    view.start_assign()
    view.new_assignment.form = AssignmentLinkForm(assignment_id=10, start_date="2024-05-01")
    assert not await view.assign_assignment()
    assert api.calls_to("POST", "/api/employee-assignments") == []


@pytest.mark.anyio
async def test_unassign_sends_keys_in_body(fake_api):
    api = fake_api(_routes())
    api.routes[("DELETE", "/api/employee-assignments")] = None
    view = await _loaded_view(api)

    assert await view.unassign_assignment(10)

    _, _, body, _ = api.calls_to("DELETE", "/api/employee-assignments")[0]
    assert body == {"employeeId": 5, "assignmentId": 10}


@pytest.mark.anyio
async def test_new_case_is_posted_with_employee_id(fake_api):
    api = fake_api(_routes())
    api.routes[("POST", "/api/cases")] = {"id": 901}
    view = await _loaded_view(api)

    view.start_case_edit()
    view.case_edit.form = Case(company_name="Globex", description="移行支援", start_date="2024-06-01")
    assert await view.submit_case()

    _, _, body, _ = api.calls_to("POST", "/api/cases")[0]
    assert body["employeeId"] == 5
    assert body["companyName"] == "Globex"
    assert "id" not in body


def test_profile_form_maps_status_label():
    form = profile_form(Employee(id=1, status="SEARCHING", hire_date="2023-02-03T09:00:00Z"))
    assert form.status == "現場探し中"
    assert form.hire_date == "2023-02-03"


@pytest.mark.anyio
async def test_add_skill_rejects_owned_skill_without_request(fake_api):
    api = fake_api(_routes())
    api.routes[("POST", "/api/employee-skills")] = {"id": 53}
    view = await _loaded_view(api)

    view.start_add_skill()
    view.new_skill.form = SkillForm(skill_id=1, proficiency=2, years_of_exp="1")
    assert not await view.add_skill()

    assert api.calls_to("POST", "/api/employee-skills") == []
    assert view.new_skill.editing
    assert view.new_skill.error == "このスキルはすでに登録されています"
    assert view.last_error.field == "skillId"


@pytest.mark.anyio
async def test_failing_skill_link_cancels_pending_requests(fake_api):
    api = fake_api(_routes())
    api.routes[("GET", "/api/employee-skills/52")] = ApiResponseError("x", 500)
    cancelled = []
    fake_request = api.request

    async def slow_request(method, path, **kwargs):
        if path == "/api/employee-skills/51":
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(path)
                raise
        return await fake_request(method, path, **kwargs)

    api.request = slow_request
    view = EmployeeDetailView(api, 5)

    with pytest.raises(ApiResponseError):
        await view.fetch_skill_links(Employee.model_validate(EMPLOYEE))

    assert cancelled == ["/api/employee-skills/51"]


@pytest.mark.anyio
async def test_focus_fetches_everything_again(fake_api):
    api = fake_api(_routes())
    view = await _loaded_view(api)

    api.routes[("GET", "/api/employees/5")] = {**EMPLOYEE, "lastName": "Sato", "skills": [{"id": 51}]}
    await view.focus()

    assert view.current_employee.last_name == "Sato"
    assert [link.id for link in view.employee_skills.data] == [51]
    assert len(api.calls_to("GET", "/api/employees/5")) == 2
    assert len(api.calls_to("GET", "/api/employee-assignments")) == 2
    assert len(api.calls_to("GET", "/api/skills")) == 2


@pytest.mark.anyio
async def test_delete_skill_refreshes_only_skills(fake_api):
    api = fake_api(_routes())
    api.routes[("DELETE", "/api/employee-skills/52")] = None
    view = await _loaded_view(api)

    api.routes[("GET", "/api/employees/5")] = {**EMPLOYEE, "skills": [{"id": 51}]}
    assert await view.delete_skill(52)

    assert [link.id for link in view.employee_skills.data] == [51]
    assert [s.id for s in view.available_skills] == [2, 3]
    assert len(api.calls_to("GET", "/api/employee-assignments")) == 1
    assert len(api.calls_to("GET", "/api/skills")) == 1


@pytest.mark.anyio
async def test_failed_skill_delete_leaves_other_sections(fake_api):
    api = fake_api(_routes())
    api.routes[("DELETE", "/api/employee-skills/52")] = ApiResponseError("x", 500)
    view = await _loaded_view(api)
    skills_before = view.employee_skills.data
    assignments_before = view.employee_assignments.data

    assert not await view.delete_skill(52)

    assert view.employee_skills.data == skills_before
    assert view.employee_assignments.data == assignments_before
    assert view.last_alert.message == "スキルの削除中にエラーが発生しました。"
    assert len(api.calls_to("GET", "/api/employees/5")) == 1


@pytest.mark.anyio
async def test_update_assignment_puts_link_and_refreshes_assignments(fake_api):
    api = fake_api(_routes())
    api.routes[("PUT", "/api/employee-assignments")] = {"employeeId": 5, "assignmentId": 10}
    view = await _loaded_view(api)

    api.routes[("GET", "/api/employee-assignments")] = [{**ASSIGNMENT_LINKS[0], "isCompleted": True}]
    view.start_assignment_edit(view.employee_assignments.data[0])
    view.assignment_edit.form.is_completed = True
    assert await view.update_assignment()

    _, _, body, _ = api.calls_to("PUT", "/api/employee-assignments")[0]
    assert body == {
        "employeeId": 5,
        "assignmentId": 10,
        "startDate": "2024-01-01",
        "endDate": None,
        "isCompleted": True,
    }
    assert view.employee_assignments.data[0].is_completed
    assert not view.assignment_edit.editing
    assert len(api.calls_to("GET", "/api/employees/5")) == 1
    assert len(api.calls_to("GET", "/api/employee-skills/51")) == 1


@pytest.mark.anyio
async def test_failed_assignment_update_keeps_edit_open(fake_api):
    api = fake_api(_routes())
    api.routes[("PUT", "/api/employee-assignments")] = ApiResponseError("課題割り当ての更新に失敗しました", 500)
    view = await _loaded_view(api)
    skills_before = view.employee_skills.data

    view.start_assignment_edit(view.employee_assignments.data[0])
    assert not await view.update_assignment()

    assert view.assignment_edit.editing
    assert view.assignment_edit.error == "課題割り当ての更新に失敗しました"
    assert view.employee_skills.data == skills_before
    assert len(api.calls_to("GET", "/api/employee-assignments")) == 1


@pytest.mark.anyio
async def test_delete_case_refreshes_only_cases(fake_api):
    api = fake_api(_routes())
    api.routes[("DELETE", "/api/cases/900")] = None
    view = await _loaded_view(api)
    view.start_profile_edit()
    view.profile.form.first_name = "Jiro"

    api.routes[("GET", "/api/employees/5")] = {**EMPLOYEE, "firstName": "Other", "cases": []}
    assert await view.delete_case(900)

    assert view.current_employee.cases == []
    assert view.current_employee.first_name == "Taro"
    assert view.profile.form.first_name == "Jiro"
    assert len(api.calls_to("GET", "/api/employee-skills/51")) == 1
    assert len(api.calls_to("GET", "/api/employee-assignments")) == 1


@pytest.mark.anyio
async def test_failed_case_delete_keeps_cases(fake_api):
    api = fake_api(_routes())
    api.routes[("DELETE", "/api/cases/900")] = ApiResponseError("x", 500)
    view = await _loaded_view(api)

    assert not await view.delete_case(900)

    assert [c.id for c in view.current_employee.cases] == [900]
    assert view.last_alert.message == "案件の削除中にエラーが発生しました。"
    assert len(api.calls_to("GET", "/api/employees/5")) == 1
