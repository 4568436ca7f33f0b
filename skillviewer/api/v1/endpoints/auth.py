from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from skillviewer.core.config import settings
from skillviewer.core.dependencies import get_session
from skillviewer.core.errors import ApiTransportError
from skillviewer.core.session import Session
from skillviewer.core.token_store import InMemoryTokenStore
from skillviewer.models.auth import LoginRequest, LoginResult, SignupRequest
from skillviewer.services.auth_service import AuthService, LoginError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _login_failed(err: LoginError) -> HTTPException:
    code = status.HTTP_502_BAD_GATEWAY if isinstance(err.__cause__, ApiTransportError) else status.HTTP_401_UNAUTHORIZED
    return HTTPException(
        status_code=code,
        detail={"message": err.message, "field_errors": err.field_errors},
    )


@router.post("/login", response_model=LoginResult)
async def login(body: LoginRequest):
    service = AuthService(settings, InMemoryTokenStore())
    try:
        return await service.login(body.email, body.password)
    except LoginError as err:
        logger.warning("Login failed for %s: %s", body.email, err.message)
        raise _login_failed(err) from err


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest):
    service = AuthService(settings, InMemoryTokenStore())
    try:
        await service.signup(body.name, body.email, body.password)
    except LoginError as err:
        logger.warning("Signup failed for %s: %s", body.email, err.message)
        code = status.HTTP_502_BAD_GATEWAY if isinstance(err.__cause__, ApiTransportError) else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=err.message) from err
    return {"message": "登録が完了しました"}


@router.post("/logout")
async def logout(session: Session = Depends(get_session)):  # noqa: B008
    AuthService(settings, session.store or InMemoryTokenStore()).logout(session)
    return {"status": "logged_out"}
