"""FastAPI application factory.

Main entry point for the StudyHub Web API.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyhub.config.app_config import load_app_config
from studyhub.flows.base import list_flows
from studyhub.web.deps import AppServices, build_services
from studyhub.web.errors import register_exception_handlers
from studyhub.web.routes import (
    ai_router,
    auth_router,
    health_router,
    materials_router,
    notifications_router,
    profile_router,
    summaries_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    services: AppServices = app.state.services
    logger.info(
        "api_startup",
        documents=services.config.backend.documents,
        storage=services.config.backend.storage,
        llm_provider=services.config.llm.get("provider", "gemini"),
        flows=[f.name for f in list_flows()],
    )
    yield


def create_app(services: AppServices | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        services: Prebuilt services (tests inject fakes). Built from the
            app config when omitted.

    Returns:
        Configured FastAPI app instance
    """
    if services is None:
        services = build_services(load_app_config())

    app = FastAPI(
        title="StudyHub API",
        description="Learning assistant API: accounts, materials and AI study flows",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.services = services

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(materials_router)
    app.include_router(summaries_router)
    app.include_router(ai_router)
    app.include_router(notifications_router)

    return app
