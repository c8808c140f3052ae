"""Content extraction flow.

Extracts the text of a document given as a base64 data URI. Providers
that accept inline media receive the document as a content part; for the
others the text is extracted locally.
"""

from __future__ import annotations

from typing import Any

import structlog

from studyhub.core.data_uri import parse_data_uri
from studyhub.core.document_text import (
    DocumentTextError,
    UnsupportedDocumentError,
    extract_text,
)
from studyhub.flows.base import Flow, FlowInputError, register_flow
from studyhub.flows.schemas import ExtractContentInput, ExtractContentOutput
from studyhub.llm.client import LLMClient, LLMResponseError, media_part, text_part
from studyhub.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)

DEFAULT_MAX_BYTES = 5 * 1024 * 1024


class UnsupportedMediaError(FlowInputError):
    """Document type can be neither sent to the model nor extracted locally."""

    pass


class ExtractContentFlow(Flow[ExtractContentInput, ExtractContentOutput]):
    name = "extractContent"
    template = "extract_content"
    description = "Extract the text content of a document."
    input_model = ExtractContentInput
    output_model = ExtractContentOutput
    temperature = 0.0

    def __init__(self, max_bytes: int = DEFAULT_MAX_BYTES):
        self.max_bytes = max_bytes

    def validate_input(self, payload: Any) -> ExtractContentInput:
        data = super().validate_input(payload)
        document = parse_data_uri(data.file_data_uri)
        if document.size > self.max_bytes:
            raise FlowInputError(
                f"Document is {document.size} bytes, the limit is "
                f"{self.max_bytes // (1024 * 1024)}MB"
            )
        return data

    def call_model(self, data: ExtractContentInput, client: LLMClient) -> Any:
        document = parse_data_uri(data.file_data_uri)

        if not client.supports_media():
            return self._extract_locally(document.data, document.mime_type)

        system_prompt = get_prompt(f"{self.prompt_key}/system")
        user_text = get_prompt(f"{self.prompt_key}/user", mime_type=document.mime_type)
        content = [
            text_part(user_text),
            media_part(document.mime_type, document.encoded),
        ]
        try:
            return client.simple_json(
                system_prompt=system_prompt,
                user_message=content,
                temperature=self.temperature,
            )
        except LLMResponseError as e:
            raise self.output_error(f"{self.name} returned no valid JSON: {e}") from e

    def _extract_locally(self, data: bytes, mime_type: str) -> dict[str, Any]:
        logger.info("extract_content.local_fallback", mime_type=mime_type)
        try:
            result = extract_text(data, mime_type)
        except UnsupportedDocumentError as e:
            raise UnsupportedMediaError(
                f"'{mime_type}' needs a media-capable model provider"
            ) from e
        except DocumentTextError as e:
            raise FlowInputError(str(e)) from e

        return {
            "extracted_text": result.text,
            "method": "local",
            "detected_language": result.detected_language,
        }


extract_content_flow = register_flow(ExtractContentFlow())


def extract_content(
    file_data_uri: str,
    client: LLMClient | None = None,
) -> ExtractContentOutput:
    """Extract text from a data URI document."""
    return extract_content_flow.run({"file_data_uri": file_data_uri}, client=client)
