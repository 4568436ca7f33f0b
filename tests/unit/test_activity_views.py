from __future__ import annotations

from datetime import date

import pytest

from skillviewer.core.errors import ApiResponseError, ApiTransportError
from skillviewer.models.task import Activity, ActivityPage
from skillviewer.services.activity_views import ActivityDetailView, ActivityListView, activity_stats, total_pages
from skillviewer.services.screen_state import LoadState


def _activities(n: int, start: int = 1) -> list[dict]:
    return [{"id": i, "type": "TASK_CREATED", "title": f"a{i}"} for i in range(start, start + n)]


def test_total_pages_from_pagination():
    page = ActivityPage.model_validate({"activities": _activities(20), "pagination": {"total": 45, "limit": 20}})
    assert total_pages(page, 1, 20) == 3


def test_total_pages_guess_without_pagination():
    full = ActivityPage.model_validate({"activities": _activities(20)})
    short = ActivityPage.model_validate({"activities": _activities(5)})
    assert total_pages(full, 2, 20) == 3
    assert total_pages(short, 2, 20) == 2


def test_activity_stats():
    activities = [
        Activity(id=1, type="TASK_CREATED", created_at="2025-06-01T08:00:00.000Z"),
        Activity(id=2, type="TASK_ASSIGNED", created_at="2025-05-31T23:59:00.000Z"),
        Activity(id=3, type="USER_LOGIN", created_at="2025-06-01T01:00:00.000Z"),
        Activity(id=4, type="OTHER"),
    ]
    stats = activity_stats(activities, today=date(2025, 6, 1))
    assert (stats.total, stats.task_related, stats.today) == (4, 2, 2)


@pytest.mark.anyio
async def test_paging_is_bounded(fake_api):
    def page_reply(_body, params):
        page = params["page"]
        return {"activities": _activities(20, start=(page - 1) * 20 + 1), "pagination": {"total": 40, "limit": 20, "page": page}}

    api = fake_api({("GET", "/api/activities"): page_reply})
    view = ActivityListView(api, page_size=20)
    await view.fetch_page(1)

    assert view.total_pages == 2
    assert not await view.previous_page()
    assert await view.next_page()
    assert view.page == 2
    assert view.activities.data[0].id == 21
    assert not await view.next_page()

    _, _, _, params = api.calls[1]
    assert params == {"page": 2, "pageSize": 20}


@pytest.mark.anyio
async def test_load_collects_stats_from_large_page(fake_api):
    api = fake_api({("GET", "/api/activities"): {"activities": _activities(3)}})
    view = ActivityListView(api)
    await view.load()

    assert view.stats.total == 3
    assert view.stats.task_related == 3
    _, _, _, params = api.calls[-1]
    assert params == {"page": 1, "limit": 10000}


@pytest.mark.anyio
async def test_detail_opens_linked_employee(fake_api):
    api = fake_api({("GET", "/api/employees/9"): {"id": 9, "firstName": "Taro", "lastName": "Yamada"}})
    view = ActivityDetailView(api, Activity(id=1, type="TASK_UPDATED", employee={"id": 9}))

    employee = await view.open_employee()

    assert view.type_label == "タスク更新"
    assert employee.last_name == "Yamada"


@pytest.mark.anyio
async def test_detail_employee_fetch_failure_alerts(fake_api):
    api = fake_api({("GET", "/api/employees/9"): ApiResponseError("x", 404)})
    view = ActivityDetailView(api, Activity(id=1, type="X", employee={"id": 9}))

    assert await view.open_employee() is None
    assert view.type_label == "その他"
    assert view.last_alert.message == "従業員情報の取得に失敗しました"


@pytest.mark.anyio
async def test_detail_without_employee_does_nothing(fake_api):
    api = fake_api()
    view = ActivityDetailView(api, Activity(id=1, type="USER_LOGIN"))
    assert await view.open_employee() is None
    assert api.calls == []


@pytest.mark.anyio
async def test_malformed_page_sets_error_state(fake_api):
    api = fake_api({("GET", "/api/activities"): {"activities": [{"title": "x"}]}})
    view = ActivityListView(api)

    await view.fetch_page(1)

    assert view.activities.state is LoadState.ERROR
    assert view.activities.error == "データの形式が不正です"
    assert isinstance(view.activities.failure, ApiTransportError)
    assert view.page == 1


@pytest.mark.anyio
async def test_stats_total_prefers_server_count(fake_api):
    api = fake_api(
        {("GET", "/api/activities"): {"activities": _activities(3), "pagination": {"total": 250, "limit": 10000}}}
    )
    view = ActivityListView(api)

    stats = await view.load_stats()

    assert stats.total == 250
    assert stats.task_related == 3


@pytest.mark.anyio
async def test_stats_keep_previous_values_on_failure(fake_api):
    api = fake_api({("GET", "/api/activities"): ApiResponseError("x", 500)})
    view = ActivityListView(api)

    stats = await view.load_stats()

    assert (stats.total, stats.task_related, stats.today) == (0, 0, 0)
