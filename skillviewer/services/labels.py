"""Display labels for the enum values the API sends."""

from __future__ import annotations

from skillviewer.models.employee import EmployeeStatus
from skillviewer.models.task import TaskPriority, TaskStatus

STATUS_LABELS: dict[str, str] = {
    EmployeeStatus.ONSITE.value: "現場",
    EmployeeStatus.OFFICE.value: "内勤",
    EmployeeStatus.TRAINING.value: "研修中",
    EmployeeStatus.SEARCHING.value: "現場探し中",
}

LABEL_STATUSES: dict[str, str] = {label: status for status, label in STATUS_LABELS.items()}

TASK_STATUS_LABELS: dict[str, str] = {
    TaskStatus.PENDING.value: "未対応",
    TaskStatus.IN_PROGRESS.value: "進行中",
    TaskStatus.COMPLETED.value: "完了",
    TaskStatus.CANCELLED.value: "キャンセル",
}

TASK_PRIORITY_LABELS: dict[str, str] = {
    TaskPriority.LOW.value: "低",
    TaskPriority.MEDIUM.value: "中",
    TaskPriority.HIGH.value: "高",
    TaskPriority.URGENT.value: "緊急",
}

ACTIVITY_TYPE_LABELS: dict[str, str] = {
    "TASK_CREATED": "タスク作成",
    "TASK_UPDATED": "タスク更新",
    "TASK_COMPLETED": "タスク完了",
    "USER_LOGIN": "ログイン",
    "USER_LOGOUT": "ログアウト",
    "TASK_ASSIGNED": "タスク割り当て",
    "OTHER": "その他",
}

TASK_RELATED_ACTIVITY_TYPES = frozenset({"TASK_CREATED", "TASK_UPDATED", "TASK_COMPLETED", "TASK_ASSIGNED"})


def status_to_label(status: str) -> str:
    # Unknown statuses are shown as sent.
    return STATUS_LABELS.get(status, status)


def label_to_status(label: str) -> str:
    if label in STATUS_LABELS:
        return label
    return LABEL_STATUSES.get(label, label)


def task_status_label(status: str) -> str:
    return TASK_STATUS_LABELS.get(status, status)


def task_priority_label(priority: str) -> str:
    return TASK_PRIORITY_LABELS.get(priority, priority)


def activity_type_label(activity_type: str) -> str:
    return ACTIVITY_TYPE_LABELS.get(activity_type, ACTIVITY_TYPE_LABELS["OTHER"])
