"""Summarization flow."""

from __future__ import annotations

from studyhub.flows.base import Flow, register_flow
from studyhub.flows.schemas import SummarizeContentInput, SummarizeContentOutput
from studyhub.llm.client import LLMClient


class SummarizeContentFlow(Flow[SummarizeContentInput, SummarizeContentOutput]):
    name = "summarizeContent"
    template = "summarize_content"
    description = "Summarize free text for quick review."
    input_model = SummarizeContentInput
    output_model = SummarizeContentOutput
    temperature = 0.3


summarize_content_flow = register_flow(SummarizeContentFlow())


def summarize_content(content: str, client: LLMClient | None = None) -> SummarizeContentOutput:
    return summarize_content_flow.run({"content": content}, client=client)
