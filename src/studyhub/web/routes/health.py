"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from studyhub.flows.base import list_flows
from studyhub.web.deps import AppServices, get_services
from studyhub.web.schemas import HealthResponse

API_VERSION = "0.1.0"

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(services: AppServices = Depends(get_services)) -> HealthResponse:
    """Report the configured backends; makes no upstream calls."""
    backend = services.config.backend
    return HealthResponse(
        status="ok",
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        documents=backend.documents,
        storage=backend.storage,
        flows=len(list_flows()),
    )
