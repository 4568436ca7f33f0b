from __future__ import annotations

from skillviewer.core.errors import ApiResponseError
from skillviewer.models.employee import Employee
from skillviewer.services import resources
from skillviewer.services.api_client import ApiClient
from skillviewer.services.screen_state import Loadable, ViewModel


class DashboardView(ViewModel):
    def __init__(self, client: ApiClient) -> None:
        super().__init__()
        self.client = client
        self.employees: Loadable[list[Employee]] = Loadable()

    async def _fetch(self) -> list[Employee]:
        try:
            return await resources.employees.list(self.client)
        except ApiResponseError as e:
            raise ApiResponseError(f"ステータスエラー: {e.status_code}", e.status_code, e.response_data) from e

    async def load(self) -> None:
        await self.employees.run(self._fetch)

    @property
    def error(self) -> str | None:
        return self.employees.error
