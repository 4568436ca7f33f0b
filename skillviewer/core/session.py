"""Login session: created at sign-in, invalidated at logout."""

from __future__ import annotations

import logging
import time
from typing import Any

from jose import jwt
from jose.exceptions import JWTError

from skillviewer.core.errors import MissingTokenError
from skillviewer.core.token_store import TOKEN_KEY, USER_KEY, TokenStore
from skillviewer.models.auth import User

logger = logging.getLogger(__name__)


class Session:
    def __init__(
        self,
        token: str,
        user: User | None = None,
        store: TokenStore | None = None,
    ) -> None:
        if not token:
            raise MissingTokenError()
        self._token: str | None = token
        self.user = user
        self.store = store

    @classmethod
    def start(cls, token: str, user: User | None, store: TokenStore) -> Session:
        store.set_item(TOKEN_KEY, token)
        if user is not None:
            store.set_item(USER_KEY, user.model_dump(by_alias=True))
        logger.info("Session started for %s", user.email if user else "unknown user")
        return cls(token, user, store)

    @classmethod
    def restore(cls, store: TokenStore) -> Session | None:
        token = store.get_item(TOKEN_KEY)
        if not token:
            return None
        raw_user = store.get_item(USER_KEY)
        user = User.model_validate(raw_user) if isinstance(raw_user, dict) else None
        return cls(token, user, store)

    @property
    def active(self) -> bool:
        return self._token is not None

    def bearer_token(self) -> str:
        if self._token is None:
            raise MissingTokenError()
        return self._token

    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.bearer_token()}"}

    def claims(self) -> dict[str, Any]:
        if self._token is None:
            return {}
        try:
            return jwt.get_unverified_claims(self._token)
        except JWTError:
            return {}

    @property
    def expires_at(self) -> int | None:
        exp = self.claims().get("exp")
        return int(exp) if isinstance(exp, int | float) else None

    @property
    def is_expired(self) -> bool:
        exp = self.expires_at
        return exp is not None and exp <= time.time()

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == "ADMIN"

    def invalidate(self) -> None:
        self._token = None
        self.user = None
        if self.store is not None:
            self.store.remove_item(TOKEN_KEY)
            self.store.remove_item(USER_KEY)
