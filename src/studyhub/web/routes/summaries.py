"""Saved summary endpoints."""

from fastapi import APIRouter, Depends

from studyhub.auth.service import AuthSession
from studyhub.db.summaries_repository import get_user_summaries
from studyhub.web.deps import AppServices, get_current_user, get_services
from studyhub.web.schemas import SummaryListResponse, SummaryResponse

router = APIRouter(prefix="/api/summaries", tags=["summaries"])


@router.get("", response_model=SummaryListResponse)
def list_summaries(
    user: AuthSession = Depends(get_current_user),
    services: AppServices = Depends(get_services),
) -> SummaryListResponse:
    docs = get_user_summaries(services.store, user.uid)
    summaries = [
        SummaryResponse(
            id=d["id"],
            title=d.get("title", "Summary"),
            summary=d.get("summary", ""),
            original_content_id=d.get("originalContentId"),
            created_at=d.get("createdAt"),
        )
        for d in docs
    ]
    return SummaryListResponse(summaries=summaries, count=len(summaries))
