from __future__ import annotations

from fastapi import APIRouter, Depends

from skillviewer.core.config import settings
from skillviewer.core.dependencies import get_session
from skillviewer.core.session import Session
from skillviewer.services.api_client import api_client_factory

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    services: dict[str, str] = {}

    try:
        if api_client_factory.initialized:
            ok = await api_client_factory.check_connection()
            services["remote_api"] = "ok" if ok else "error"
        else:
            services["remote_api"] = "not_configured"
    except Exception:
        services["remote_api"] = "error"

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/protected")
async def health_protected(session: Session = Depends(get_session)):  # noqa: B008
    return {"status": "ok", "claims": session.claims(), "expires_at": session.expires_at}


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}
