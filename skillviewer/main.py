from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from skillviewer.api.v1.router import api_router
from skillviewer.core.config import settings
from skillviewer.services.api_client import api_client_factory

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    try:
        await api_client_factory.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize ApiClientFactory, continuing without remote API")
    yield
    await api_client_factory.close()


app = FastAPI(
    title="Skill Viewer API",
    description="Admin panel backend for the employee skill viewer",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Skill Viewer API"}
