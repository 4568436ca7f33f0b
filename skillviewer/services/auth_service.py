"""Sign-in, sign-up and logout against the skill viewer API."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from skillviewer.core.config import Settings
from skillviewer.core.errors import ApiResponseError, ApiTransportError, SkillViewerError
from skillviewer.core.session import Session
from skillviewer.core.token_store import FileTokenStore, InMemoryTokenStore, TokenStore
from skillviewer.models.auth import LoginResult, User
from skillviewer.services.api_client import ApiClient

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "サインイン中にネットワークエラーが発生しました"
SIGNUP_NETWORK_ERROR_MESSAGE = "サインアップ中にエラーが発生しました"
UNKNOWN_ERROR_MESSAGE = "不明なエラーが発生しました"


class LoginError(SkillViewerError):
    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        super().__init__(message, details={"field_errors": field_errors or {}})
        self.field_errors = field_errors or {}


def parse_login_error(data: Any) -> LoginError:
    """Read the sign-in error body.

    The server reports validation failures per field
    (``{"error": {"password": {"_errors": [...]}}}``), plain failures as a
    string ``error`` and everything else as ``message``.
    """
    field_errors: dict[str, str] = {}
    message = ""

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            for name in ("password", "email"):
                entry = error.get(name)
                errors = entry.get("_errors") if isinstance(entry, dict) else None
                if isinstance(errors, list) and errors:
                    field_errors[name] = f"エラー: {errors[0]}"
        elif isinstance(error, str):
            message = error
        if not message and isinstance(data.get("message"), str):
            message = data["message"]

    if not message:
        message = next(iter(field_errors.values()), UNKNOWN_ERROR_MESSAGE)
    return LoginError(message, field_errors)


class AuthService:
    def __init__(self, settings: Settings, store: TokenStore | None = None) -> None:
        self.settings = settings
        self.store = store if store is not None else FileTokenStore(settings.TOKEN_STORE_PATH)
        self.client = ApiClient(settings.API_BASE_URL, timeout=settings.API_TIMEOUT_SECONDS)

    def current_session(self) -> Session | None:
        """Already signed in when a token was persisted earlier."""
        return Session.restore(self.store)

    async def login(self, email: str, password: str) -> LoginResult:
        try:
            data = await self.client.post(
                self.settings.SIGNIN_PATH,
                {"email": email, "password": password},
                auth=False,
            )
        except ApiResponseError as e:
            raise parse_login_error(e.response_data) from e
        except ApiTransportError as e:
            raise LoginError(NETWORK_ERROR_MESSAGE) from e

        if not isinstance(data, dict) or not data.get("token"):
            raise LoginError(UNKNOWN_ERROR_MESSAGE)

        try:
            result = LoginResult.model_validate(data)
        except ValidationError as e:
            raise LoginError(UNKNOWN_ERROR_MESSAGE) from e
        Session.start(result.token, result.user, self.store)
        logger.info("Logged in as %s", email)
        return result

    async def signup(self, name: str, email: str, password: str) -> None:
        try:
            await self.client.post(
                self.settings.SIGNUP_PATH,
                {"email": email, "password": password, "name": name},
                auth=False,
            )
        except ApiResponseError as e:
            error = e.response_data.get("error") if isinstance(e.response_data, dict) else None
            raise LoginError(error if isinstance(error, str) else UNKNOWN_ERROR_MESSAGE) from e
        except ApiTransportError as e:
            raise LoginError(SIGNUP_NETWORK_ERROR_MESSAGE) from e
        logger.info("Signed up %s", email)

    def logout(self, session: Session | None = None) -> None:
        if session is not None:
            session.invalidate()
        self.store.clear()
        logger.info("Logged out")


def session_for(token: str, user: User | None = None) -> Session:
    """Request-scoped session that persists nothing beyond the request."""
    return Session(token, user, InMemoryTokenStore())
