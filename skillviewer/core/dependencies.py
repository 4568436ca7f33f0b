from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, status

from skillviewer.core.errors import (
    ApiResponseError,
    FormValidationError,
    MissingTokenError,
    SkillViewerError,
)
from skillviewer.core.session import Session
from skillviewer.services.api_client import ApiClient, api_client_factory
from skillviewer.services.auth_service import session_for
from skillviewer.services.screen_state import Loadable, ViewModel

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_session(authorization: str | None = Header(None)) -> Session:
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized("Not authenticated")

    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise _unauthorized("Not authenticated")

    session = session_for(token)
    if session.is_expired:
        raise _unauthorized("Token is expired")
    return session


async def get_api_client(session: Session = Depends(get_session)) -> ApiClient:  # noqa: B008
    try:
        return api_client_factory.for_session(session)
    except RuntimeError as e:
        logger.error("Remote API client unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Remote API not configured",
        ) from e


def http_error(error: SkillViewerError, message: str | None = None) -> HTTPException:
    """Map a client-side failure onto the status the caller should see."""
    detail = message or error.message
    if isinstance(error, MissingTokenError):
        return _unauthorized(detail)
    if isinstance(error, FormValidationError):
        return HTTPException(status_code=422, detail=error.to_dict())
    if isinstance(error, ApiResponseError) and error.status_code and 400 <= error.status_code < 500:
        return HTTPException(status_code=error.status_code, detail=detail)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


def raise_for_load(loadable: Loadable) -> None:
    if loadable.failure is not None:
        raise http_error(loadable.failure) from loadable.failure


def raise_for_action(ok: bool, view: ViewModel) -> None:
    if ok:
        return
    error = view.last_error or SkillViewerError("Request failed")
    alert = view.last_alert
    raise http_error(error, alert.message if alert else None) from error
