"""Loading/error/success state shared by every view-model."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from skillviewer.core.errors import MissingTokenError, SkillViewerError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MISSING_TOKEN_MESSAGE = "トークンが見つかりません"
ERROR_TITLE = "エラー"


class LoadState(str, Enum):
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Loadable(Generic[T]):
    state: LoadState = LoadState.LOADING
    data: T | None = None
    error: str | None = None
    failure: SkillViewerError | None = None

    @property
    def loading(self) -> bool:
        return self.state is LoadState.LOADING

    async def run(self, fetch: Callable[[], Awaitable[T]], error_message: str | None = None) -> T | None:
        """Run one fetch. A failure keeps the previous data and sets a static error text."""
        self.state = LoadState.LOADING
        try:
            result = await fetch()
        except MissingTokenError as e:
            self.state = LoadState.ERROR
            self.error = MISSING_TOKEN_MESSAGE
            self.failure = e
            return None
        except SkillViewerError as e:
            logger.warning("Load failed: %s", e.message)
            self.state = LoadState.ERROR
            self.error = error_message or e.message
            self.failure = e
            return None
        self.data = result
        self.error = None
        self.failure = None
        self.state = LoadState.SUCCESS
        return result


@dataclass(frozen=True)
class Alert:
    title: str
    message: str


@dataclass
class EditState(Generic[T]):
    """An ``isEditing`` flag paired with the form being edited."""

    editing: bool = False
    form: T | None = None
    error: str | None = None

    def open(self, form: T) -> None:
        self.editing = True
        self.form = form
        self.error = None

    def close(self) -> None:
        self.editing = False
        self.form = None
        self.error = None


@dataclass
class ViewModel:
    alerts: list[Alert] = field(default_factory=list)
    last_error: SkillViewerError | None = None

    def alert(self, title: str, message: str) -> Alert:
        alert = Alert(title, message)
        if title == ERROR_TITLE:
            logger.warning("%s: %s", title, message)
        else:
            logger.info("%s: %s", title, message)
        self.alerts.append(alert)
        return alert

    def fail(self, error: SkillViewerError, message: str | None = None) -> bool:
        """Surface a failed action as a blocking alert. Always returns False."""
        self.last_error = error
        self.alert(ERROR_TITLE, message or error.message)
        return False

    @property
    def last_alert(self) -> Alert | None:
        return self.alerts[-1] if self.alerts else None

    async def load(self) -> None:
        raise NotImplementedError

    async def focus(self) -> None:
        """Screen regained visibility: fetch everything again from scratch."""
        await self.load()
