from __future__ import annotations

from skillviewer.models.base import ApiModel


class Skill(ApiModel):
    id: int
    name: str
    category: str = ""
    description: str | None = None
