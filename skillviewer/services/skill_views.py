from __future__ import annotations

import logging

from skillviewer.core.errors import SkillViewerError
from skillviewer.models.skill import Skill
from skillviewer.services import resources
from skillviewer.services.api_client import ApiClient
from skillviewer.services.screen_state import EditState, Loadable, ViewModel
from skillviewer.services.validation import require_fields

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "スキル名とカテゴリは必須です"


def _skill_payload(name: str, category: str, description: str | None) -> dict[str, str | None]:
    require_fields({"name": name, "category": category}, ("name", "category"), REQUIRED_MESSAGE)
    return {"name": name, "category": category, "description": description}


class SkillListView(ViewModel):
    def __init__(self, client: ApiClient) -> None:
        super().__init__()
        self.client = client
        self.skills: Loadable[list[Skill]] = Loadable()

    async def load(self) -> None:
        await self.skills.run(lambda: resources.skills.list(self.client))

    async def create_skill(self, name: str, category: str, description: str = "") -> bool:
        try:
            payload = _skill_payload(name, category, description)
            await resources.skills.create(self.client, payload, fallback="登録失敗")
        except SkillViewerError as e:
            return self.fail(e)

        self.alert("成功", "スキルを追加しました")
        await self.load()
        return True


class SkillDetailView(ViewModel):
    def __init__(self, client: ApiClient, skill: Skill) -> None:
        super().__init__()
        self.client = client
        self.current_skill = skill
        self.edit: EditState[Skill] = EditState()
        self.deleted = False

    async def load(self) -> None:
        # Detail screens show the record they were opened with.
        return None

    def start_edit(self) -> None:
        self.edit.open(self.current_skill.model_copy())

    def cancel_edit(self) -> None:
        self.edit.close()

    async def update(self) -> bool:
        form = self.edit.form
        if form is None:
            return False
        try:
            payload = _skill_payload(form.name, form.category, form.description)
            await resources.skills.update(self.client, self.current_skill.id, payload, fallback="更新失敗")
        except SkillViewerError as e:
            return self.fail(e, "更新処理中にエラーが発生しました")

        self.current_skill = form
        self.edit.close()
        self.alert("保存完了", "スキル情報が更新されました")
        return True

    async def delete(self) -> bool:
        try:
            await resources.skills.delete(self.client, self.current_skill.id, fallback="削除失敗")
        except SkillViewerError as e:
            return self.fail(e, "削除処理中にエラーが発生しました")
        self.deleted = True
        self.alert("削除完了", "スキルを削除しました")
        return True
