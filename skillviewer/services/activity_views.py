from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone

from skillviewer.core.config import settings
from skillviewer.core.errors import SkillViewerError
from skillviewer.models.base import parse_date
from skillviewer.models.employee import Employee
from skillviewer.models.task import Activity, ActivityPage
from skillviewer.services import resources
from skillviewer.services.api_client import ApiClient
from skillviewer.services.labels import TASK_RELATED_ACTIVITY_TYPES, activity_type_label
from skillviewer.services.screen_state import Loadable, ViewModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityStats:
    total: int
    task_related: int
    today: int


def total_pages(page: ActivityPage, page_number: int, page_size: int) -> int:
    """Page count from the server's pagination block, or a guess when it is absent."""
    if page.pagination is not None and page.pagination.limit > 0:
        return math.ceil(page.pagination.total / page.pagination.limit)
    return page_number if len(page.activities) < page_size else page_number + 1


def activity_stats(activities: list[Activity], today: date | None = None, total: int | None = None) -> ActivityStats:
    """``total`` is the server-side count when known; otherwise the fetched rows are counted."""
    today = today or datetime.now(timezone.utc).date()
    created_today = 0
    for activity in activities:
        created = parse_date(activity.created_at)
        if created is not None and created.date() == today:
            created_today += 1
    return ActivityStats(
        total=total if total is not None else len(activities),
        task_related=sum(1 for a in activities if a.type in TASK_RELATED_ACTIVITY_TYPES),
        today=created_today,
    )


class ActivityListView(ViewModel):
    def __init__(self, client: ApiClient, page_size: int | None = None) -> None:
        super().__init__()
        self.client = client
        self.page_size = page_size or settings.ACTIVITY_PAGE_SIZE
        self.page = 1
        self.total_pages = 1
        self.activities: Loadable[list[Activity]] = Loadable()
        self.stats = ActivityStats(total=0, task_related=0, today=0)

    async def load(self) -> None:
        await self.fetch_page(1)
        await self.load_stats()

    async def fetch_page(self, page_number: int) -> None:
        async def fetch() -> list[Activity]:
            page = await resources.activities.page(
                self.client, params={"page": page_number, "pageSize": self.page_size}
            )
            self.total_pages = total_pages(page, page_number, self.page_size)
            self.page = page_number
            return page.activities

        await self.activities.run(fetch)

    async def load_stats(self, today: date | None = None) -> ActivityStats:
        try:
            everything = await resources.activities.page(
                self.client, params={"page": 1, "limit": settings.ACTIVITY_STATS_LIMIT}
            )
        except SkillViewerError as e:
            logger.warning("Activity stats unavailable: %s", e.message)
            return self.stats
        total = everything.pagination.total if everything.pagination is not None else None
        self.stats = activity_stats(everything.activities, today, total)
        return self.stats

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    async def next_page(self) -> bool:
        if not self.has_next:
            return False
        await self.fetch_page(self.page + 1)
        return True

    async def previous_page(self) -> bool:
        if not self.has_previous:
            return False
        await self.fetch_page(self.page - 1)
        return True


class ActivityDetailView(ViewModel):
    def __init__(self, client: ApiClient, activity: Activity) -> None:
        super().__init__()
        self.client = client
        self.activity = activity

    async def load(self) -> None:
        return None

    @property
    def type_label(self) -> str:
        return activity_type_label(self.activity.type)

    async def open_employee(self) -> Employee | None:
        """Fetch the full record of the employee this entry links to."""
        if self.activity.employee is None:
            return None
        try:
            return await resources.employees.get(self.client, self.activity.employee.id)
        except SkillViewerError as e:
            self.fail(e, "従業員情報の取得に失敗しました")
            return None
