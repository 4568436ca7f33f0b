from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from skillviewer.core.dependencies import get_api_client, raise_for_load
from skillviewer.services.activity_views import ActivityListView
from skillviewer.services.api_client import ApiClient
from skillviewer.services.labels import activity_type_label

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("")
async def list_activities(
    page: int = Query(1, ge=1),
    client: ApiClient = Depends(get_api_client),  # noqa: B008
):
    view = ActivityListView(client)
    await view.fetch_page(page)
    raise_for_load(view.activities)
    await view.load_stats()

    activities = view.activities.data or []
    return {
        "activities": [
            {**a.model_dump(by_alias=True, mode="json"), "typeLabel": activity_type_label(a.type)}
            for a in activities
        ],
        "page": view.page,
        "totalPages": view.total_pages,
        "stats": asdict(view.stats),
    }
