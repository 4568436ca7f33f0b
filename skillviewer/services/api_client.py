from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

import aiohttp

from skillviewer.core.config import Settings
from skillviewer.core.errors import (
    ApiError,
    ApiResponseError,
    ApiTransportError,
    MissingTokenError,
    server_message,
)
from skillviewer.core.session import Session

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "通信中にエラーが発生しました"


@dataclass(frozen=True)
class RetryPolicy:
    """How often a failed request is repeated and how long to wait in between."""

    max_attempts: int = 1
    delay: float = 0.0
    backoff: float = 1.0

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            max_attempts=max(1, settings.TASK_UPDATE_MAX_ATTEMPTS),
            delay=settings.TASK_UPDATE_RETRY_DELAY_SECONDS,
            backoff=settings.TASK_UPDATE_RETRY_BACKOFF,
        )

    def delay_for(self, retry_index: int) -> float:
        return self.delay * (self.backoff**retry_index)


NO_RETRY = RetryPolicy()


class ApiClient:
    def __init__(self, base_url: str, session: Session | None = None, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout

    def _headers(self, auth: bool) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if auth:
            if self.session is None:
                raise MissingTokenError()
            headers.update(self.session.authorization_header())
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        fallback: str = DEFAULT_FAILURE_MESSAGE,
        auth: bool = True,
    ) -> Any:
        headers = self._headers(auth)
        url = f"{self.base_url}{path}"

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as http:
                async with http.request(
                    method, url, headers=headers, json=json_body, params=params
                ) as response:
                    status = response.status
                    text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise ApiTransportError(fallback) from e

        ok = 200 <= status < 300
        data: Any = None
        if text:
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                if ok:
                    logger.error("%s %s returned a body that is not JSON", method, path)
                    raise ApiTransportError(fallback, status, text) from e
                data = text

        if not ok:
            logger.warning("%s %s -> %d: %s", method, path, status, text[:200])
            raise ApiResponseError(server_message(data, fallback), status, data)

        return data

    async def request_with_retry(
        self,
        method: str,
        path: str,
        policy: RetryPolicy,
        **kwargs: Any,
    ) -> Any:
        attempt = 0
        while True:
            try:
                return await self.request(method, path, **kwargs)
            except ApiError as e:
                attempt += 1
                if attempt >= policy.max_attempts:
                    if attempt > 1:
                        logger.error("%s %s failed after %d attempts: %s", method, path, attempt, e.message)
                    raise
                wait = policy.delay_for(attempt - 1)
                logger.warning(
                    "%s %s failed (attempt %d/%d, status=%s), retrying in %.1fs",
                    method,
                    path,
                    attempt,
                    policy.max_attempts,
                    e.status_code,
                    wait,
                )
                await asyncio.sleep(wait)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, json_body: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", path, json_body=json_body, **kwargs)

    async def put(self, path: str, json_body: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", path, json_body=json_body, **kwargs)

    async def delete(self, path: str, json_body: Any = None, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, json_body=json_body, **kwargs)


class ApiClientFactory:
    """Holds the remote API settings for the lifetime of the app."""

    def __init__(self) -> None:
        self.initialized = False
        self.base_url = ""
        self.timeout = 30.0

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.API_BASE_URL:
            logger.warning("API_BASE_URL missing, ApiClientFactory not initialized")
            return

        self.base_url = settings.API_BASE_URL.rstrip("/")
        self.timeout = settings.API_TIMEOUT_SECONDS
        self.initialized = True
        logger.info("ApiClientFactory initialized (base_url=%s)", self.base_url)

    async def close(self) -> None:
        self.initialized = False
        self.base_url = ""

    def for_session(self, session: Session | None) -> ApiClient:
        if not self.initialized:
            raise RuntimeError("ApiClientFactory not initialized")
        return ApiClient(self.base_url, session=session, timeout=self.timeout)

    async def check_connection(self) -> bool:
        if not self.initialized:
            return False

        try:
            timeout = aiohttp.ClientTimeout(total=10)
            async with aiohttp.ClientSession(timeout=timeout) as http:
                async with http.get(self.base_url) as response:
                    return response.status < 500
        except Exception:
            logger.exception("Remote API connection check failed")
            return False


api_client_factory = ApiClientFactory()
