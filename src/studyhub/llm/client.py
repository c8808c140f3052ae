"""Chat-completions client for the hosted study model.

All providers are reached through the OpenAI-compatible API, so one SDK
client covers them. What differs per provider (endpoint, key variable,
JSON mode, inline media) lives in ``PROVIDERS``.

Supported providers:
- gemini: Google Gemini (OpenAI-compatible endpoint, default)
- openai: OpenAI API
- lmstudio: Local LM Studio server
"""

from __future__ import annotations

import json
import os
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import openai
import structlog
import yaml
from openai import OpenAI

from studyhub.config.app_config import get_config_path

logger = structlog.get_logger(__name__)

Provider = Literal["gemini", "openai", "lmstudio"]
JsonPayload = dict[str, Any] | list[Any]


@dataclass(frozen=True)
class ProviderProfile:
    """Endpoint and capabilities of one provider."""

    base_url: str
    api_key_env: str | None = None
    fixed_api_key: str | None = None
    supports_json_object: bool = True
    supports_media: bool = True

    def resolve_api_key(self, env_name: str | None = None) -> str | None:
        name = env_name or self.api_key_env
        if name:
            return os.environ.get(name)
        return self.fixed_api_key


PROVIDERS: dict[str, ProviderProfile] = {
    "gemini": ProviderProfile(
        base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
        api_key_env="GEMINI_API_KEY",
    ),
    "openai": ProviderProfile(
        base_url="https://api.openai.com/v1",
        api_key_env="OPENAI_API_KEY",
    ),
    # LM Studio ignores the key and rejects response_format json_object
    "lmstudio": ProviderProfile(
        base_url="http://localhost:1234/v1",
        fixed_api_key="lm-studio",
        supports_json_object=False,
        supports_media=False,
    ),
}

DEFAULT_PROVIDER: Provider = "gemini"
DEFAULT_MODEL = "gemini-2.0-flash"

REPAIR_INSTRUCTION = (
    "Your previous reply was not valid JSON. Reply again with the same content "
    "as a single valid JSON value, without markdown fences or commentary."
)

# Reasoning models may wrap their thoughts in tags before the payload
_REASONING_BLOCK = re.compile(
    r"<(think|thinking|analysis|reasoning)>.*?</\1>", re.DOTALL | re.IGNORECASE
)
_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)

AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}


class LLMError(Exception):
    """Model call failed."""

    pass


class LLMConnectionError(LLMError):
    """Provider could not be reached."""

    pass


class LLMResponseError(LLMError):
    """Provider answered with something unusable."""

    pass


def parse_json_payload(text: str) -> JsonPayload | None:
    """Find the JSON value in a model reply.

    Tries the whole reply, then a fenced code block, then the first
    object or array that decodes cleanly. Returns None when nothing does.
    """
    cleaned = _REASONING_BLOCK.sub("", text).strip()

    candidates = [cleaned]
    fenced = _FENCED_BLOCK.search(cleaned)
    if fenced:
        candidates.append(fenced.group(1).strip())

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    decoder = json.JSONDecoder()
    for match in re.finditer(r"[\[{]", cleaned):
        try:
            value, _end = decoder.raw_decode(cleaned, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, (dict, list)):
            return value

    return None


@dataclass
class LLMConfig:
    """Model settings, usually the ``llm`` section of the app config."""

    provider: Provider = DEFAULT_PROVIDER
    base_url: str = PROVIDERS[DEFAULT_PROVIDER].base_url
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout: int = 120
    api_key: str | None = None
    # None means "use the provider default"
    supports_json_object: bool | None = None
    supports_media: bool | None = None

    @property
    def profile(self) -> ProviderProfile:
        return PROVIDERS.get(self.provider, PROVIDERS[DEFAULT_PROVIDER])

    def use_provider(self, provider: Provider) -> None:
        """Switch to another provider's endpoint and key."""
        self.provider = provider
        self.base_url = self.profile.base_url
        self.api_key = self.profile.resolve_api_key()

    @classmethod
    def from_dict(cls, llm_config: dict[str, Any]) -> LLMConfig:
        provider = llm_config.get("provider", DEFAULT_PROVIDER)
        profile = PROVIDERS.get(provider, PROVIDERS[DEFAULT_PROVIDER])

        return cls(
            provider=provider,
            base_url=llm_config.get("base_url") or profile.base_url,
            model=llm_config.get("model", DEFAULT_MODEL),
            temperature=llm_config.get("temperature", 0.7),
            max_tokens=llm_config.get("max_tokens", 4096),
            timeout=llm_config.get("timeout", 120),
            api_key=profile.resolve_api_key(llm_config.get("api_key_env")),
            supports_json_object=llm_config.get("supports_json_object"),
            supports_media=llm_config.get("supports_media"),
        )

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> LLMConfig:
        """Read only the ``llm:`` section of a config file."""
        path = config_path or get_config_path()
        if not path.exists():
            logger.warning("config_not_found", path=str(path))
            return cls.from_dict({})

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data.get("llm") or {})


@dataclass
class Message:
    """A chat message; ``content`` may be a list of content parts."""

    role: Literal["system", "user", "assistant"]
    content: str | list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}


def text_part(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


def media_part(mime_type: str, base64_data: str, filename: str = "document") -> dict[str, Any]:
    """Content part for an inline document.

    Images go as ``image_url``, known audio formats as ``input_audio``
    and everything else (PDF, Word, video) as a ``file``.
    """
    data_uri = f"data:{mime_type};base64,{base64_data}"
    if mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": data_uri}}
    if mime_type in AUDIO_FORMATS:
        return {
            "type": "input_audio",
            "input_audio": {"data": base64_data, "format": AUDIO_FORMATS[mime_type]},
        }
    return {"type": "file", "file": {"filename": filename, "file_data": data_uri}}


@dataclass
class LLMResponse:
    content: str
    model: str
    provider: Provider
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0

    @property
    def prompt_tokens(self) -> int:
        return self.usage.get("prompt_tokens", 0)

    @property
    def completion_tokens(self) -> int:
        return self.usage.get("completion_tokens", 0)

    @property
    def total_tokens(self) -> int:
        return self.usage.get("total_tokens", 0)


def _is_connection_failure(error: Exception) -> bool:
    if isinstance(error, (openai.APIConnectionError, openai.APITimeoutError)):
        return True
    return "connect" in str(error).lower()


class LLMClient:
    """One configured model endpoint.

    Example:
        client = LLMClient(config=LLMConfig.from_dict(load_app_config().llm))
        data = client.simple_json("Return JSON.", "Summarize: ...")
    """

    def __init__(
        self,
        config: LLMConfig | None = None,
        provider: Provider | None = None,
        model: str | None = None,
    ):
        self.config = config or LLMConfig.from_yaml()
        if provider is not None:
            self.config.use_provider(provider)
        if model is not None:
            self.config.model = model

        self._client = OpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key or "not-needed",
            timeout=self.config.timeout,
        )
        logger.info(
            "llm_client_initialized",
            provider=self.config.provider,
            model=self.config.model,
        )

    def _supports_json_object(self) -> bool:
        if self.config.supports_json_object is not None:
            return self.config.supports_json_object
        return self.config.profile.supports_json_object

    def supports_media(self) -> bool:
        """Whether documents can be sent to the model as content parts."""
        if self.config.supports_media is not None:
            return self.config.supports_media
        return self.config.profile.supports_media

    def chat(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Send one chat completion request.

        Raises:
            LLMConnectionError: If the provider cannot be reached
            LLMResponseError: If the reply has no choices
            LLMError: For any other provider failure
        """
        request: dict[str, Any] = {
            "model": self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }
        if json_mode and self._supports_json_object():
            request["response_format"] = {"type": "json_object"}

        started = time.time()
        try:
            completion = self._client.chat.completions.create(**request)
        except Exception as e:
            if _is_connection_failure(e):
                raise LLMConnectionError(
                    f"Could not connect to {self.config.provider} at {self.config.base_url}: {e}"
                ) from e
            raise LLMError(f"{self.config.provider} request failed: {e}") from e

        if not completion.choices:
            raise LLMResponseError("Empty response from model")

        usage: dict[str, int] = {}
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens,
            }

        response = LLMResponse(
            content=completion.choices[0].message.content or "",
            model=completion.model,
            provider=self.config.provider,
            usage=usage,
            latency_ms=int((time.time() - started) * 1000),
        )
        logger.debug(
            "llm_response",
            provider=response.provider,
            model=response.model,
            tokens=response.total_tokens,
            latency_ms=response.latency_ms,
        )
        return response

    def chat_json(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        max_retries: int = 0,
    ) -> JsonPayload:
        """Chat expecting a JSON object or array back.

        Args:
            max_retries: Follow-up requests asking the model to repair an
                unparseable reply. Flows use 0: one request, one answer.

        Raises:
            LLMResponseError: If no reply contains valid JSON
        """
        conversation = list(messages)
        reply = ""

        for attempt in range(max_retries + 1):
            reply = self.chat(
                conversation, temperature=temperature, max_tokens=max_tokens, json_mode=True
            ).content
            payload = parse_json_payload(reply)
            if payload is not None:
                if attempt:
                    logger.info("json_repaired", provider=self.config.provider, attempt=attempt)
                return payload

            logger.warning(
                "json_parse_failed",
                provider=self.config.provider,
                attempt=attempt,
                preview=reply[:100],
            )
            conversation = conversation + [
                Message(role="assistant", content=reply[:1000]),
                Message(role="user", content=REPAIR_INSTRUCTION),
            ]

        raise LLMResponseError(f"Could not get valid JSON: {reply[:200]}")

    def simple_json(
        self,
        system_prompt: str,
        user_message: str | list[dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> JsonPayload:
        """Single-turn JSON request: one system and one user message."""
        return self.chat_json(
            [
                Message(role="system", content=system_prompt),
                Message(role="user", content=user_message),
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )

    def is_available(self) -> bool:
        """True if the provider answers a model listing."""
        try:
            self._client.models.list()
        except Exception as e:
            logger.debug("llm_unavailable", provider=self.config.provider, error=str(e))
            return False
        return True
