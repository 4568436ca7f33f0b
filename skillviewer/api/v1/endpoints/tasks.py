from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from skillviewer.core.dependencies import get_api_client, http_error, raise_for_action, raise_for_load
from skillviewer.core.errors import SkillViewerError
from skillviewer.models.task import Task, TaskForm
from skillviewer.services import resources
from skillviewer.services.api_client import ApiClient
from skillviewer.services.task_views import TaskDetailView, TaskListView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


async def _find_task(client: ApiClient, task_id: int) -> Task:
    try:
        tasks = await resources.tasks.list(client)
    except SkillViewerError as err:
        logger.exception("Failed to list tasks")
        raise http_error(err) from err

    for task in tasks:
        if task.id == task_id:
            return task
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Task {task_id} not found",
    )


@router.get("")
async def list_tasks(client: ApiClient = Depends(get_api_client)):  # noqa: B008
    view = TaskListView(client)
    await view.load()
    raise_for_load(view.tasks)
    return {
        "tasks": view.tasks.data or [],
        "stats": asdict(view.stats()),
        "tags": view.available_tags,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    form: TaskForm,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = TaskListView(client)
    ok = await view.create_task(form)
    raise_for_action(ok, view)
    return {"tasks": view.tasks.data or []}


@router.get("/{task_id}")
async def get_task(
    task_id: int,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = TaskDetailView(client, await _find_task(client, task_id))
    await view.load()
    return {"task": view.current_task, "activities": view.activities.data or []}


@router.put("/{task_id}")
async def update_task(
    task_id: int,
    form: TaskForm,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = TaskDetailView(client, await _find_task(client, task_id))
    view.edit.open(form)
    ok = await view.save()
    raise_for_action(ok, view)
    return {"task": view.current_task, "activities": view.activities.data or []}


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = TaskDetailView(client, await _find_task(client, task_id))
    ok = await view.delete()
    raise_for_action(ok, view)
    return {"deleted": task_id}
