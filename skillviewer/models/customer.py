from __future__ import annotations

from skillviewer.models.base import ApiModel


class Company(ApiModel):
    id: int
    name: str
    industry: str | None = None
    size: str | None = None
    website: str | None = None
    address: str | None = None
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class Customer(ApiModel):
    id: int
    name: str
    email: str = ""
    phone: str | None = None
    position: str | None = None
    department: str | None = None
    notes: str | None = None
    company_id: int | None = None
    company: Company | None = None
