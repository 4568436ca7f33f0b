from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from skillviewer.core.dependencies import get_api_client, http_error, raise_for_action, raise_for_load
from skillviewer.core.errors import SkillViewerError
from skillviewer.models.employee import EmployeeForm
from skillviewer.services import resources
from skillviewer.services.api_client import ApiClient
from skillviewer.services.employee_detail import EmployeeDetailView, SkillForm
from skillviewer.services.employee_list import EmployeeListView, SearchFilters, SortColumn, SortDirection, SortState
from skillviewer.services.labels import status_to_label

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("")
async def list_employees(
    employee_id: str = "",
    name: str = "",
    department: str = "",
    position: str = "",
    status: str = "",
    skill_name: str = "",
    hire_date_from: str = "",
    hire_date_to: str = "",
    sort: SortColumn = SortColumn.EMPLOYEE_ID,
    direction: SortDirection = SortDirection.ASC,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = EmployeeListView(client)
    await view.load()
    raise_for_load(view.employees)

    view.filters = SearchFilters(
        employee_id=employee_id,
        name=name,
        department=department,
        position=position,
        status=status,
        skill_name=skill_name,
        hire_date_from=hire_date_from,
        hire_date_to=hire_date_to,
    )
    view.sort = SortState(sort, direction)
    return {
        "employees": view.visible,
        "total": len(view.employees.data or []),
        "options": view.options,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_employee(
    form: EmployeeForm,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = EmployeeListView(client)
    # Existing e-mails are needed for the duplicate check.
    await view.load()
    raise_for_load(view.employees)

    ok = await view.create_employee(form)
    raise_for_action(ok, view)
    return {"message": view.last_alert.message if view.last_alert else ""}


@router.get("/{employee_id}")
async def get_employee(
    employee_id: int,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = EmployeeDetailView(client, employee_id)
    await view.load()
    raise_for_load(view.employee)

    employee = view.current_employee
    sections = {
        "skills": view.employee_skills,
        "assignments": view.employee_assignments,
        "skillCatalog": view.skill_catalog,
        "assignmentCatalog": view.assignment_catalog,
    }
    return {
        "employee": employee,
        "statusLabel": status_to_label(employee.status) if employee else None,
        "skills": view.employee_skills.data or [],
        "assignments": view.employee_assignments.data or [],
        "availableSkills": view.available_skills,
        "availableAssignments": view.available_assignments,
        "errors": {name: state.error for name, state in sections.items() if state.error},
    }


@router.put("/{employee_id}")
async def update_employee(
    employee_id: int,
    form: EmployeeForm,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    try:
        current = await resources.employees.get(client, employee_id)
    except SkillViewerError as err:
        logger.exception("Failed to get employee %s", employee_id)
        raise http_error(err) from err

    view = EmployeeDetailView(client, employee_id, employee=current)
    view.profile.open(form)
    ok = await view.save_profile()
    raise_for_action(ok, view)
    return view.current_employee


@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: int,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = EmployeeDetailView(client, employee_id)
    ok = await view.delete_employee()
    raise_for_action(ok, view)
    return {"deleted": employee_id}


@router.post("/{employee_id}/skills", status_code=status.HTTP_201_CREATED)
async def add_employee_skill(
    employee_id: int,
    form: SkillForm,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = EmployeeDetailView(client, employee_id)
    view.new_skill.open(form)
    ok = await view.add_skill()
    raise_for_action(ok, view)
    return {"skills": view.employee_skills.data or []}


@router.put("/{employee_id}/skills/{skill_link_id}")
async def update_employee_skill(
    employee_id: int,
    skill_link_id: int,
    form: SkillForm,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = EmployeeDetailView(client, employee_id)
    view.skill_edit.open(form.model_copy(update={"id": skill_link_id}))
    ok = await view.update_skill()
    raise_for_action(ok, view)
    return {"skills": view.employee_skills.data or []}


@router.delete("/{employee_id}/skills/{skill_link_id}")
async def delete_employee_skill(
    employee_id: int,
    skill_link_id: int,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = EmployeeDetailView(client, employee_id)
    ok = await view.delete_skill(skill_link_id)
    raise_for_action(ok, view)
    return {"skills": view.employee_skills.data or []}
