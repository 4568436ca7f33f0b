"""Form checks run before any request leaves the client."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from skillviewer.core.errors import FormValidationError
from skillviewer.models.employee import Employee

MIN_YEARS_OF_EXPERIENCE = 0.1

YEARS_OF_EXPERIENCE_MESSAGE = "経験年数は0.1以上、0.1単位の数値で入力してください"
DIFFICULTY_MESSAGE = "難易度は1～5の整数で入力してください"
PROFICIENCY_MESSAGE = "習熟度は1～5の整数で入力してください"
DUPLICATE_EMAIL_MESSAGE = "このメールアドレスはすでに登録されています"


def validate_years_of_experience(value: Any) -> float:
    if isinstance(value, bool):
        raise FormValidationError(YEARS_OF_EXPERIENCE_MESSAGE, field="yearsOfExp")
    try:
        years = float(str(value).strip())
    except ValueError as e:
        raise FormValidationError(YEARS_OF_EXPERIENCE_MESSAGE, field="yearsOfExp") from e

    if not math.isfinite(years) or years < MIN_YEARS_OF_EXPERIENCE:
        raise FormValidationError(YEARS_OF_EXPERIENCE_MESSAGE, field="yearsOfExp")

    # 0.3 * 10 is 3.0000000000000004 in binary floating point.
    tenths = years * 10
    if not math.isclose(tenths, round(tenths), abs_tol=1e-9):
        raise FormValidationError(YEARS_OF_EXPERIENCE_MESSAGE, field="yearsOfExp")
    return round(tenths) / 10


def _int_in_range(value: Any, low: int, high: int, message: str, field: str) -> int:
    if isinstance(value, bool):
        raise FormValidationError(message, field=field)
    try:
        number = float(str(value).strip())
    except ValueError as e:
        raise FormValidationError(message, field=field) from e
    if not number.is_integer() or not low <= number <= high:
        raise FormValidationError(message, field=field)
    return int(number)


def validate_difficulty(value: Any) -> int:
    return _int_in_range(value, 1, 5, DIFFICULTY_MESSAGE, "difficulty")


def validate_proficiency(value: Any) -> int:
    return _int_in_range(value, 1, 5, PROFICIENCY_MESSAGE, "proficiency")


def require_fields(data: Mapping[str, Any], names: Iterable[str], message: str) -> None:
    for name in names:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise FormValidationError(message, field=name)


def ensure_unique_email(email: str, employees: Iterable[Employee]) -> None:
    if any(emp.email == email for emp in employees):
        raise FormValidationError(DUPLICATE_EMAIL_MESSAGE, field="email")
