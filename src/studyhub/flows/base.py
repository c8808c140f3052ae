"""Declarative flow definition.

A flow binds a prompt template (system + user Markdown files under
``prompts/templates/flows/<name>/``) to an input and an output schema.
Running a flow validates the input, renders the template, makes exactly
one model call and validates the output.
"""

from __future__ import annotations

import time
from typing import Any, ClassVar, Generic, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from studyhub.config.app_config import load_app_config
from studyhub.llm.client import LLMClient, LLMConfig, LLMResponseError
from studyhub.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


class FlowError(Exception):
    """Base error for AI flows."""

    pass


class FlowInputError(FlowError):
    """Flow input failed schema validation."""

    pass


class FlowOutputError(FlowError):
    """Model output could not be parsed or failed schema validation."""

    pass


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "value"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def default_client() -> LLMClient:
    """Build an LLM client from the app configuration."""
    return LLMClient(config=LLMConfig.from_dict(load_app_config().llm))


class Flow(Generic[InputT, OutputT]):
    """A named, schema-validated binding to a prompt template."""

    name: ClassVar[str]
    template: ClassVar[str]
    description: ClassVar[str] = ""
    input_model: ClassVar[type[BaseModel]]
    output_model: ClassVar[type[BaseModel]]
    output_error: ClassVar[type[FlowOutputError]] = FlowOutputError
    temperature: ClassVar[float | None] = None

    @property
    def prompt_key(self) -> str:
        return f"flows/{self.template}"

    def validate_input(self, payload: InputT | dict[str, Any]) -> InputT:
        """Validate raw input against the input schema."""
        if isinstance(payload, self.input_model):
            return payload
        try:
            return self.input_model.model_validate(payload)
        except ValidationError as e:
            raise FlowInputError(
                f"Invalid input for {self.name}: {_describe_validation_error(e)}"
            ) from e

    def prompt_variables(self, data: InputT) -> dict[str, str]:
        """Template variables for the user prompt."""
        return {k: "" if v is None else str(v) for k, v in data.model_dump().items()}

    def render(self, data: InputT) -> tuple[str, str | list[dict[str, Any]]]:
        """Render system and user prompts."""
        system_prompt = get_prompt(f"{self.prompt_key}/system")
        user_prompt = get_prompt(f"{self.prompt_key}/user", **self.prompt_variables(data))
        return system_prompt, user_prompt

    def parse_output(self, raw: Any) -> OutputT:
        """Validate the model's JSON payload against the output schema."""
        try:
            return self.output_model.model_validate(raw)
        except ValidationError as e:
            raise self.output_error(
                f"{self.name} returned an invalid payload: {_describe_validation_error(e)}"
            ) from e

    def call_model(self, data: InputT, client: LLMClient) -> Any:
        """Make the single model call for this flow."""
        system_prompt, user_message = self.render(data)
        try:
            return client.simple_json(
                system_prompt=system_prompt,
                user_message=user_message,
                temperature=self.temperature,
            )
        except LLMResponseError as e:
            raise self.output_error(f"{self.name} returned no valid JSON: {e}") from e

    def run(
        self,
        payload: InputT | dict[str, Any],
        client: LLMClient | None = None,
    ) -> OutputT:
        """Validate input, call the model once and validate the output.

        Raises:
            FlowInputError: If the input does not match the input schema
            FlowOutputError: If the model output does not match the output schema
            LLMError: If the model call itself fails
        """
        data = self.validate_input(payload)

        if client is None:
            client = default_client()

        start_time = time.time()
        raw = self.call_model(data, client)
        output = self.parse_output(raw)

        logger.info(
            "flow.completed",
            flow=self.name,
            provider=client.config.provider,
            time_ms=int((time.time() - start_time) * 1000),
        )
        return output

    def describe(self) -> dict[str, Any]:
        """Describe the flow and its schemas."""
        return {
            "name": self.name,
            "description": self.description,
            "prompt": self.prompt_key,
            "input_schema": self.input_model.model_json_schema(),
            "output_schema": self.output_model.model_json_schema(),
        }


# =============================================================================
# REGISTRY
# =============================================================================

_FLOWS: dict[str, Flow] = {}


def register_flow(flow: Flow) -> Flow:
    """Register a flow instance under its name."""
    _FLOWS[flow.name] = flow
    return flow


def get_flow(name: str) -> Flow:
    """Get a registered flow by name.

    Raises:
        KeyError: If no flow is registered under ``name``
    """
    if name not in _FLOWS:
        raise KeyError(f"Flow not found: {name}")
    return _FLOWS[name]


def list_flows() -> list[Flow]:
    """List registered flows sorted by name."""
    return [_FLOWS[name] for name in sorted(_FLOWS)]
