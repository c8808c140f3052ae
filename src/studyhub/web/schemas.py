"""Pydantic schemas for the Web API.

Request bodies carry the form-level limits of the web client (minimum
lengths, question count range). Flow outputs reuse the flow schemas.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from studyhub.flows.schemas import (
    QUIZ_DEFAULT_QUESTIONS,
    QUIZ_MAX_QUESTIONS,
    QUIZ_MIN_QUESTIONS,
    Difficulty,
    Flashcard,
    QuizQuestion,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    documents: str
    storage: str
    flows: int


class ErrorResponse(BaseModel):
    detail: str
    code: str
    severity: Literal["error", "warning"] = "error"


class StatusResponse(BaseModel):
    status: str = "ok"
    message: str = ""


# =============================================================================
# AUTH SCHEMAS
# =============================================================================


class SignUpRequest(BaseModel):
    """Request body for creating an account."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., min_length=6)


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., min_length=1)


class OAuthRequest(BaseModel):
    """Credential obtained by the client from Google or Microsoft."""

    id_token: str | None = None
    access_token: str | None = None


class PasswordResetRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=200)


class SessionResponse(BaseModel):
    uid: str
    email: str | None = None
    id_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
    is_new_user: bool = False
    profile: dict[str, Any] = Field(default_factory=dict)

    model_config = {"from_attributes": True}


# =============================================================================
# PROFILE SCHEMAS
# =============================================================================


class Preferences(BaseModel):
    email_notifications: bool = Field(default=True, alias="emailNotifications")
    push_notifications: bool = Field(default=False, alias="pushNotifications")
    dark_mode: bool = Field(default=False, alias="darkMode")

    model_config = {"populate_by_name": True}


class ProfileUpdate(BaseModel):
    """Editable profile fields. Omitted fields are left unchanged."""

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    display_name: str | None = Field(default=None, max_length=200)
    preferences: Preferences | None = None

    def to_document(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.first_name is not None:
            data["firstName"] = self.first_name
        if self.last_name is not None:
            data["lastName"] = self.last_name
        if self.display_name is not None:
            data["displayName"] = self.display_name
        if self.preferences is not None:
            data["preferences"] = self.preferences.model_dump(by_alias=True)
        return data


# =============================================================================
# MATERIAL SCHEMAS
# =============================================================================


class MaterialResponse(BaseModel):
    id: str
    name: str
    type: str
    uploader_uid: str
    created_at: str | None = None
    topic: str | None = None
    url: str | None = None
    file_path: str | None = None
    content_type: str | None = None
    size: int | None = None

    model_config = {"from_attributes": True}


class MaterialListResponse(BaseModel):
    materials: list[MaterialResponse]
    count: int


class UploadResultResponse(BaseModel):
    filename: str
    status: Literal["uploaded", "rejected", "failed"]
    material: MaterialResponse | None = None
    error: str | None = None

    model_config = {"from_attributes": True}


class UploadResponse(BaseModel):
    uploaded: int
    total: int
    results: list[UploadResultResponse]


# =============================================================================
# SUMMARY SCHEMAS
# =============================================================================


class SummaryResponse(BaseModel):
    id: str
    title: str
    summary: str
    original_content_id: str | None = None
    created_at: str | None = None


class SummaryListResponse(BaseModel):
    summaries: list[SummaryResponse]
    count: int


# =============================================================================
# AI FLOW SCHEMAS
# =============================================================================


class FlowInfo(BaseModel):
    name: str
    description: str
    prompt: str
    input_schema: dict[str, Any]
    output_schema: dict[str, Any]


class FlowListResponse(BaseModel):
    flows: list[FlowInfo]
    count: int


class ExtractRequest(BaseModel):
    file_data_uri: str = Field(..., min_length=5)


class ExtractResponse(BaseModel):
    extracted_text: str
    method: Literal["model", "local"] = "model"
    detected_language: str | None = None


class SummarizeRequest(BaseModel):
    content: str = Field(..., min_length=50)
    source_name: str | None = Field(default=None, max_length=300)


class SummarizeResponse(BaseModel):
    summary: str
    saved: bool = False
    summary_id: str | None = None


class QuizRequest(BaseModel):
    topic: str = Field(..., min_length=3)
    difficulty: Difficulty = "medium"
    number_of_questions: int = Field(
        default=QUIZ_DEFAULT_QUESTIONS, ge=QUIZ_MIN_QUESTIONS, le=QUIZ_MAX_QUESTIONS
    )
    context_text: str | None = None


class QuizResponse(BaseModel):
    questions: list[QuizQuestion]
    count: int


class FlashcardsRequest(BaseModel):
    topic_or_document: str = Field(..., min_length=50)


class FlashcardsResponse(BaseModel):
    flashcards: list[Flashcard]
    count: int


# =============================================================================
# NOTIFICATION SCHEMAS
# =============================================================================


class DeviceTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class DeviceTokenResponse(BaseModel):
    token_count: int


class SendNotificationRequest(BaseModel):
    """Push notification to a user (defaults to the sender)."""

    uid: str | None = None
    title: str | None = Field(default=None, max_length=200)
    body: str | None = Field(default=None, max_length=1000)
    link: str | None = None
    icon: str | None = None
    data: dict[str, str] | None = None


class SendNotificationResponse(BaseModel):
    success_count: int
    failure_count: int
