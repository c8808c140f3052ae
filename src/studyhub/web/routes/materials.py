"""Study material endpoints."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from studyhub.auth.service import AuthSession
from studyhub.core import materials
from studyhub.web.deps import AppServices, get_current_user, get_services
from studyhub.web.schemas import (
    MaterialListResponse,
    MaterialResponse,
    UploadResponse,
    UploadResultResponse,
)

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.get("", response_model=MaterialListResponse)
def list_materials(
    user: AuthSession = Depends(get_current_user),
    services: AppServices = Depends(get_services),
) -> MaterialListResponse:
    """List the signed-in user's materials."""
    records = materials.list_materials(services.store, user.uid)
    return MaterialListResponse(
        materials=[MaterialResponse.model_validate(r) for r in records],
        count=len(records),
    )


@router.post("", response_model=UploadResponse)
def upload_materials(
    files: list[UploadFile] = File(...),
    material_type: str | None = Form(default=None),
    topic: str | None = Form(default=None),
    user: AuthSession = Depends(get_current_user),
    services: AppServices = Depends(get_services),
) -> UploadResponse:
    """Upload one or more files. Each file gets its own status in the response."""
    uploads = [
        materials.UploadFile(
            filename=f.filename or "file",
            content_type=f.content_type or "application/octet-stream",
            data=f.file.read(),
        )
        for f in files
    ]

    report = materials.upload_materials(
        services.store,
        services.storage,
        user.uid,
        uploads,
        material_type=material_type or None,
        topic=topic or None,
        max_bytes=services.config.limits.max_upload_bytes,
    )
    return UploadResponse(
        uploaded=report.uploaded_count,
        total=report.total,
        results=[UploadResultResponse.model_validate(r) for r in report.results],
    )


@router.delete("/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_material(
    material_id: str,
    user: AuthSession = Depends(get_current_user),
    services: AppServices = Depends(get_services),
) -> None:
    materials.delete_material(services.store, services.storage, user.uid, material_id)
