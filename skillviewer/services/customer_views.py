from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel

from skillviewer.core.errors import ApiResponseError, FormValidationError, SkillViewerError
from skillviewer.models.customer import Company, Customer
from skillviewer.services import resources
from skillviewer.services.api_client import ApiClient
from skillviewer.services.screen_state import EditState, Loadable, ViewModel
from skillviewer.services.validation import require_fields

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "名前、メールアドレス、企業は必須です"


class CustomerForm(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    position: str = ""
    department: str = ""
    notes: str = ""
    # Picker values arrive as strings.
    company_id: str = ""

    def payload(self) -> dict[str, Any]:
        require_fields(self.model_dump(), ("name", "email", "company_id"), REQUIRED_MESSAGE)
        try:
            company_id = int(self.company_id)
        except ValueError as e:
            raise FormValidationError(REQUIRED_MESSAGE, "company_id") from e
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "position": self.position,
            "department": self.department,
            "notes": self.notes,
            "companyId": company_id,
        }


class CompanyListView(ViewModel):
    def __init__(self, client: ApiClient) -> None:
        super().__init__()
        self.client = client
        self.companies: Loadable[list[Company]] = Loadable()

    async def load(self) -> None:
        await self.companies.run(lambda: resources.companies.list(self.client))


class CompanyDetailView(ViewModel):
    def __init__(self, client: ApiClient, company: Company) -> None:
        super().__init__()
        self.client = client
        self.company = company

    async def load(self) -> None:
        return None


class CustomerListView(ViewModel):
    def __init__(self, client: ApiClient) -> None:
        super().__init__()
        self.client = client
        self.customers: Loadable[list[Customer]] = Loadable()
        self.companies: list[Company] = []
        self.form: EditState[CustomerForm] = EditState()

    async def load(self) -> None:
        await self.customers.run(lambda: resources.customers.list(self.client))

    async def toggle_form(self) -> None:
        if self.form.editing:
            self.form.close()
            return
        self.form.open(CustomerForm())
        try:
            self.companies = await resources.companies.list(self.client)
        except SkillViewerError as e:
            logger.warning("Company choices unavailable: %s", e.message)

    async def create_customer(self, form: CustomerForm | None = None) -> bool:
        form = form or self.form.form
        if form is None:
            return False
        try:
            await resources.customers.create(self.client, form.payload(), fallback="顧客作成に失敗しました")
        except ApiResponseError as e:
            return self.fail(e, f"顧客作成に失敗しました: {e.response_data or ''}")
        except SkillViewerError as e:
            return self.fail(e)

        self.alert("成功", "顧客を追加しました")
        self.form.close()
        await self.load()
        return True


class CustomerDetailView(ViewModel):
    def __init__(self, client: ApiClient, customer: Customer) -> None:
        super().__init__()
        self.client = client
        self.customer = customer

    async def load(self) -> None:
        return None

    @property
    def company(self) -> Company | None:
        return self.customer.company
