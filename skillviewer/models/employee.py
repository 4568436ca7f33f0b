"""Employee records and their join records as served by the skill viewer API."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from skillviewer.models.base import ApiModel
from skillviewer.models.skill import Skill


class EmployeeStatus(str, Enum):
    ONSITE = "ONSITE"
    OFFICE = "OFFICE"
    TRAINING = "TRAINING"
    SEARCHING = "SEARCHING"


class EmployeeRef(ApiModel):
    """Minimal employee info embedded in tasks, activities and assignments."""

    id: int
    first_name: str = ""
    last_name: str = ""
    email: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}".strip()


class EmployeeSkill(ApiModel):
    id: int
    employee_id: int | None = None
    skill_id: int | None = None
    proficiency: int = Field(default=1, ge=1, le=5)
    years_of_exp: float | None = None
    certified: bool = False
    cert_details: str | None = None
    last_used: str | None = None
    skill: Skill | None = None

    @property
    def owned_skill_id(self) -> int | None:
        if self.skill is not None:
            return self.skill.id
        return self.skill_id


class Assignment(ApiModel):
    id: int
    name: str
    content: str = ""
    difficulty: int = Field(default=1, ge=1, le=5)
    created_at: str | None = None
    updated_at: str | None = None


class EmployeeAssignment(ApiModel):
    id: int | None = None
    employee_id: int
    assignment_id: int
    start_date: str | None = None
    end_date: str | None = None
    is_completed: bool = False
    assigned_at: str | None = None
    assignment: Assignment | None = None
    employee: EmployeeRef | None = None


class Case(ApiModel):
    id: int | None = None
    company_name: str = ""
    description: str = ""
    start_date: str | None = None
    end_date: str | None = None


class Employee(EmployeeRef):
    employee_id: str | None = None
    email: str | None = ""
    department: str | None = ""
    position: str | None = ""
    status: str = EmployeeStatus.OFFICE.value
    hire_date: str | None = None
    memo: str | None = None
    skills: list[EmployeeSkill] = []
    assignments: list[EmployeeAssignment] = []
    cases: list[Case] = []

    @property
    def owned_skill_ids(self) -> set[int]:
        return {es.owned_skill_id for es in self.skills if es.owned_skill_id is not None}


class EmployeeForm(ApiModel):
    """Editable profile fields, with the status held as its display label."""

    employee_id: str | None = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    department: str = ""
    position: str = ""
    status: str = ""
    hire_date: str = ""
    memo: str | None = None
