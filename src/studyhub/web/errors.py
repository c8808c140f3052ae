"""Exception handlers mapping domain errors to JSON responses.

Every error body has the shape ``{"detail", "code", "severity"}``.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from studyhub.auth.errors import AuthError
from studyhub.core.materials import MaterialError, MaterialNotFoundError
from studyhub.db.documents import DocumentNotFoundError
from studyhub.flows.base import FlowInputError, FlowOutputError
from studyhub.llm.client import LLMConnectionError, LLMError
from studyhub.notifications.push import (
    DeliveryError,
    NotificationError,
    RecipientNotFoundError,
)
from studyhub.storage.object_storage import ObjectNotFoundError

logger = structlog.get_logger(__name__)


def error_response(
    status_code: int, detail: str, code: str, severity: str = "error"
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "code": code, "severity": severity},
    )


async def _auth_error(request: Request, exc: AuthError) -> JSONResponse:
    return error_response(exc.status_code, exc.message, exc.code, exc.severity)


async def _flow_input_error(request: Request, exc: FlowInputError) -> JSONResponse:
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc), "flow/invalid-input")


async def _flow_output_error(request: Request, exc: FlowOutputError) -> JSONResponse:
    logger.error("flow.output_rejected", path=request.url.path, error=str(exc))
    return error_response(status.HTTP_502_BAD_GATEWAY, str(exc), "flow/invalid-output")


async def _llm_error(request: Request, exc: LLMError) -> JSONResponse:
    logger.error("llm.request_failed", path=request.url.path, error=str(exc))
    if isinstance(exc, LLMConnectionError):
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, str(exc), "llm/unavailable"
        )
    return error_response(status.HTTP_502_BAD_GATEWAY, str(exc), "llm/error")


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, str(exc), "not-found")


async def _material_error(request: Request, exc: MaterialError) -> JSONResponse:
    if isinstance(exc, MaterialNotFoundError):
        return error_response(status.HTTP_404_NOT_FOUND, str(exc), "material/not-found")
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc), "material/rejected")


async def _notification_error(request: Request, exc: NotificationError) -> JSONResponse:
    if isinstance(exc, RecipientNotFoundError):
        return error_response(status.HTTP_404_NOT_FOUND, str(exc), "notification/no-recipient")
    if isinstance(exc, DeliveryError):
        return error_response(status.HTTP_502_BAD_GATEWAY, str(exc), "notification/send-failed")
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc), "notification/invalid")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, _auth_error)
    app.add_exception_handler(FlowInputError, _flow_input_error)
    app.add_exception_handler(FlowOutputError, _flow_output_error)
    app.add_exception_handler(LLMError, _llm_error)
    app.add_exception_handler(MaterialError, _material_error)
    app.add_exception_handler(DocumentNotFoundError, _not_found)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(NotificationError, _notification_error)
