"""AI flow endpoints.

Each endpoint runs one flow with one model call. Schema failures in the
model output surface as 502 responses through the exception handlers.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from studyhub.auth.service import AuthSession
from studyhub.core.data_uri import to_data_uri
from studyhub.core.summaries import summarize_and_save
from studyhub.flows.base import list_flows
from studyhub.flows.extract_content import ExtractContentFlow
from studyhub.flows.generate_flashcards import generate_flashcards
from studyhub.flows.generate_quiz import generate_quiz
from studyhub.llm.client import LLMClient
from studyhub.web.deps import AppServices, get_llm_client, get_optional_user, get_services
from studyhub.web.schemas import (
    ExtractRequest,
    ExtractResponse,
    FlashcardsRequest,
    FlashcardsResponse,
    FlowInfo,
    FlowListResponse,
    QuizRequest,
    QuizResponse,
    SummarizeRequest,
    SummarizeResponse,
)

router = APIRouter(prefix="/api/ai", tags=["ai"])


def _extract(
    file_data_uri: str, services: AppServices, client: LLMClient
) -> ExtractResponse:
    flow = ExtractContentFlow(max_bytes=services.config.limits.max_extract_bytes)
    output = flow.run({"file_data_uri": file_data_uri}, client=client)
    return ExtractResponse(
        extracted_text=output.extracted_text,
        method=output.method,
        detected_language=output.detected_language,
    )


@router.get("/flows", response_model=FlowListResponse)
async def flows() -> FlowListResponse:
    """List the registered AI flows and their schemas."""
    items = [FlowInfo(**flow.describe()) for flow in list_flows()]
    return FlowListResponse(flows=items, count=len(items))


@router.post("/extract", response_model=ExtractResponse)
def extract(
    request: ExtractRequest,
    services: AppServices = Depends(get_services),
    client: LLMClient = Depends(get_llm_client),
) -> ExtractResponse:
    """Extract text from a document sent as a data URI."""
    return _extract(request.file_data_uri, services, client)


@router.post("/extract/upload", response_model=ExtractResponse)
def extract_upload(
    file: UploadFile = File(...),
    services: AppServices = Depends(get_services),
    client: LLMClient = Depends(get_llm_client),
) -> ExtractResponse:
    """Extract text from an uploaded file."""
    data = file.file.read()
    mime_type = file.content_type or "application/octet-stream"
    return _extract(to_data_uri(data, mime_type), services, client)


@router.post("/summarize", response_model=SummarizeResponse)
def summarize(
    request: SummarizeRequest,
    user: AuthSession | None = Depends(get_optional_user),
    services: AppServices = Depends(get_services),
    client: LLMClient = Depends(get_llm_client),
) -> SummarizeResponse:
    """Summarize text. The summary is saved when the caller is signed in."""
    result = summarize_and_save(
        request.content,
        source_name=request.source_name,
        user_id=user.uid if user else None,
        store=services.store,
        client=client,
    )
    return SummarizeResponse(
        summary=result.summary, saved=result.saved, summary_id=result.summary_id
    )


@router.post("/quiz", response_model=QuizResponse)
def quiz(
    request: QuizRequest, client: LLMClient = Depends(get_llm_client)
) -> QuizResponse:
    output = generate_quiz(
        topic=request.topic,
        difficulty=request.difficulty,
        number_of_questions=request.number_of_questions,
        context_text=request.context_text,
        client=client,
    )
    return QuizResponse(questions=output.questions, count=len(output.questions))


@router.post("/flashcards", response_model=FlashcardsResponse)
def flashcards(
    request: FlashcardsRequest, client: LLMClient = Depends(get_llm_client)
) -> FlashcardsResponse:
    output = generate_flashcards(request.topic_or_document, client=client)
    return FlashcardsResponse(flashcards=output.flashcards, count=len(output.flashcards))
