"""Client for OpenAI-compatible generative-text services.

Supported providers:
- gemini: Google Gemini through its OpenAI-compatible endpoint (default)
- openai: OpenAI API
- lmstudio: Local LM Studio server

Requests are sent once; there is no retry or caching layer.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog
from openai import OpenAI

from lumina.config.app_config import AppConfig, load_app_config
from lumina.utils.text_utils import extract_json_object

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

SCHEMA_INSTRUCTION = """Respond ONLY with a JSON object that matches this JSON Schema:
{schema}
Do not wrap the JSON in markdown or add explanations."""


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: str = "gemini"
    base_url: str | None = "https://generativelanguage.googleapis.com/v1beta/openai/"
    model: str = "gemini-2.5-flash"
    temperature: float = 0.7
    max_tokens: int = 8192
    timeout: int = 180
    api_key: str | None = None
    supports_json_schema: bool = True

    @classmethod
    def from_app_config(
        cls,
        config: AppConfig | None = None,
        provider: str | None = None,
        model: str | None = None,
    ) -> LLMConfig:
        """Build client settings from the application config.

        Args:
            config: Loaded AppConfig (loads the default one if omitted)
            provider: Override the configured default provider
            model: Override the provider's default model

        Raises:
            LLMError: If the provider is not configured
        """
        if config is None:
            config = load_app_config()

        name = provider or config.generator.default_provider
        pconfig = config.providers.get(name)
        if pconfig is None:
            raise LLMError(f"Unknown provider: {name}")

        return cls(
            provider=name,
            base_url=pconfig.base_url,
            model=model or pconfig.default_model,
            temperature=config.generator.temperature,
            max_tokens=config.generator.max_tokens,
            timeout=config.generator.timeout,
            api_key=pconfig.get_api_key(),
            supports_json_schema=pconfig.supports_json_schema,
        )


@dataclass
class Message:
    """A chat message."""

    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for API call."""
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    provider: str
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        """Get total token count."""
        return self.usage.get("total_tokens", 0)


class LLMError(Exception):
    """Error during LLM interaction."""

    pass


class LLMConnectionError(LLMError):
    """Error connecting to LLM server."""

    pass


class LLMResponseError(LLMError):
    """Error in LLM response."""

    pass


# =============================================================================
# LLM CLIENT
# =============================================================================


class LLMClient:
    """Unified client for OpenAI-compatible chat completion APIs."""

    def __init__(self, config: LLMConfig | None = None):
        """Initialize LLM client.

        Args:
            config: LLM configuration (built from the app config if not provided)
        """
        if config is None:
            config = LLMConfig.from_app_config()

        self.config = config
        self._client = OpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key or "not-needed",
            timeout=self.config.timeout,
        )

        logger.info(
            "llm_client_initialized",
            provider=self.config.provider,
            model=self.config.model,
            base_url=self.config.base_url,
        )

    def chat(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Send a chat completion request.

        Raises:
            LLMConnectionError: If cannot connect to server
            LLMError: If the service rejects the request
            LLMResponseError: If response has no choices
        """
        request_kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": self.config.max_tokens if max_tokens is None else max_tokens,
        }
        if response_format is not None:
            request_kwargs["response_format"] = response_format

        start_time = time.time()

        try:
            response = self._client.chat.completions.create(**request_kwargs)
        except Exception as e:
            error_msg = str(e)
            if "Connection" in error_msg or "connect" in error_msg.lower():
                raise LLMConnectionError(
                    f"Could not connect to {self.config.provider} at {self.config.base_url}: {e}"
                ) from e
            raise LLMError(f"LLM call failed: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            raise LLMResponseError("Empty response from LLM")

        content = response.choices[0].message.content or ""

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.debug(
            "llm_response",
            provider=self.config.provider,
            model=response.model,
            tokens=usage.get("total_tokens", 0),
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=content,
            model=response.model,
            provider=self.config.provider,
            usage=usage,
            latency_ms=latency_ms,
        )

    def chat_json(
        self,
        messages: list[Message],
        schema: dict[str, Any],
        schema_name: str = "response",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Send a chat request whose reply must be a JSON object.

        Providers with structured output get the schema as a json_schema
        response_format; others get it appended to the system prompt.

        Returns:
            Parsed JSON as dictionary

        Raises:
            LLMResponseError: If the reply does not contain a JSON object
        """
        response_format = None
        if self.config.supports_json_schema:
            response_format = {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": schema},
            }
        else:
            instruction = SCHEMA_INSTRUCTION.format(schema=json.dumps(schema, indent=2))
            messages = [Message(role="system", content=instruction), *messages]

        response = self.chat(
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format=response_format,
        )

        parsed = extract_json_object(response.content)
        if parsed is None:
            logger.warning(
                "json_parse_failed",
                content=response.content[:100],
                provider=self.config.provider,
            )
            raise LLMResponseError(
                f"Could not parse JSON from response: {response.content[:200]}..."
            )
        return parsed

