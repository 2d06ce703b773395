"""Completion Service - OpenAI and Anthropic chat completions.

This module provides a unified async interface for the final answer call:
- Provider abstraction (OpenAI/Anthropic)
- A single attempt per request, bounded by a timeout (no retries)
- Response validation (choices present, content is non-blank text)
- Error handling with PipelineFailure conversion
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Literal, cast

import httpx
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from taskrag.config import get_settings
from taskrag.schemas import ErrorCodes, PipelineFailure


logger = logging.getLogger(__name__)


class InvalidCompletionError(ValueError):
    """The provider answered, but not with usable text."""


class MissingAPIKeyError(ValueError):
    """No API key is configured for the selected provider."""


class CompletionService:
    """Unified completion service supporting OpenAI and Anthropic providers.

    Every network error, timeout or malformed response is converted to a
    PipelineFailure; nothing raises past ``generate``.
    """

    def __init__(
        self,
        *,
        client: AsyncOpenAI | AsyncAnthropic | None = None,
        provider: Literal["openai", "anthropic"] | None = None,
    ) -> None:
        """Initialize the service with the configured provider.

        Args:
            client: Pre-built SDK client (tests inject fakes here).
            provider: Overrides the configured provider.
        """
        self._settings = get_settings()
        self._provider: Literal["openai", "anthropic"] = (
            provider or self._settings.llm_provider
        )
        self._model = self._settings.llm_model
        self._timeout = self._settings.llm_timeout_seconds
        self._client = client

    def _get_client(self) -> AsyncOpenAI | AsyncAnthropic:
        """Get or create the SDK client (lazy initialization with caching)."""
        if self._client is not None:
            return self._client

        if self._provider == "openai" and not self._settings.openai_api_key:
            raise MissingAPIKeyError(
                "OpenAI provider selected but OPENAI_API_KEY not configured"
            )
        if self._provider == "anthropic" and not self._settings.anthropic_api_key:
            raise MissingAPIKeyError(
                "Anthropic provider selected but ANTHROPIC_API_KEY not configured"
            )

        if self._provider == "openai":
            self._client = AsyncOpenAI(
                api_key=self._settings.openai_api_key,
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                max_retries=0,
            )
        else:  # anthropic
            self._client = AsyncAnthropic(
                api_key=self._settings.anthropic_api_key,
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                max_retries=0,
            )
        return self._client

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str | PipelineFailure:
        """Generate text from prompt using the configured provider.

        Args:
            prompt: User prompt text
            system: Optional system prompt
            temperature: Sampling temperature (0.0-2.0). Defaults to settings
            max_tokens: Output-length budget. Defaults to settings.

        Returns:
            Non-blank generated text, or PipelineFailure on error
        """
        temp = (
            temperature if temperature is not None else self._settings.llm_temperature
        )
        tokens = (
            max_tokens
            if max_tokens is not None
            else self._settings.completion_max_tokens
        )

        if self._provider == "openai":
            call = self._generate_openai(prompt, system, temp, tokens)
        else:
            call = self._generate_anthropic(prompt, system, temp, tokens)

        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.error(
                "Completion request timeout",
                extra={
                    "stage": "completion",
                    "provider": self._provider,
                    "timeout_seconds": self._timeout,
                },
            )
            return PipelineFailure(
                stage="completion",
                error_code=ErrorCodes.TIMEOUT,
                message=f"Completion request timed out after {self._timeout}s",
                recoverable=True,
                details={"provider": self._provider, "error": str(exc)},
            )
        except MissingAPIKeyError as exc:
            logger.error(
                "Completion provider not configured",
                extra={"stage": "completion", "provider": self._provider},
            )
            return PipelineFailure(
                stage="completion",
                error_code=ErrorCodes.COMPLETION_AUTH,
                message=str(exc),
                details={"provider": self._provider},
            )
        except InvalidCompletionError as exc:
            logger.warning(
                "Completion response rejected",
                extra={"stage": "completion", "reason": str(exc)},
            )
            return PipelineFailure(
                stage="completion",
                error_code=ErrorCodes.COMPLETION_INVALID,
                message=str(exc),
                details={"provider": self._provider},
            )
        except httpx.HTTPStatusError as exc:
            return self._handle_http_error(exc)
        except Exception as exc:
            logger.exception(
                "Unexpected completion error",
                extra={"stage": "completion", "provider": self._provider},
            )
            return PipelineFailure(
                stage="completion",
                error_code=ErrorCodes.COMPLETION_FAILED,
                message=f"Unexpected completion error: {type(exc).__name__}",
                details={"error": str(exc)},
            )

    async def _generate_openai(
        self,
        prompt: str,
        system: str | None,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Generate text using the OpenAI chat completions API."""
        client = cast(AsyncOpenAI, self._get_client())

        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        logger.info(
            "OpenAI API call",
            extra={
                "stage": "completion",
                "model": self._model,
                "max_tokens": max_tokens,
            },
        )

        response = await client.chat.completions.create(
            model=self._model,
            messages=messages,  # type: ignore[arg-type]
            temperature=temperature,
            max_tokens=max_tokens,
        )

        choices = getattr(response, "choices", None)
        if not choices:
            raise InvalidCompletionError("Completion returned no choices")
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)

        usage = getattr(response, "usage", None)
        if usage:
            logger.info(
                "OpenAI token usage",
                extra={
                    "stage": "completion",
                    "input_tokens": usage.prompt_tokens,
                    "output_tokens": usage.completion_tokens,
                    "total_tokens": usage.total_tokens,
                },
            )

        return _validated_text(content)

    async def _generate_anthropic(
        self,
        prompt: str,
        system: str | None,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Generate text using the Anthropic messages API."""
        client = cast(AsyncAnthropic, self._get_client())

        logger.info(
            "Anthropic API call",
            extra={
                "stage": "completion",
                "model": self._model,
                "max_tokens": max_tokens,
            },
        )

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if system:
            kwargs["system"] = system

        response = await client.messages.create(**kwargs)

        blocks = getattr(response, "content", None) or []
        texts = [
            block.text
            for block in blocks
            if getattr(block, "type", None) == "text"
        ]
        if not texts:
            raise InvalidCompletionError("Completion returned no text blocks")
        return _validated_text("".join(texts))

    def _handle_http_error(self, exc: httpx.HTTPStatusError) -> PipelineFailure:
        """Convert HTTP errors to PipelineFailure objects."""
        status = exc.response.status_code

        if status in (401, 403):
            logger.error(
                "Completion authentication failed",
                extra={
                    "stage": "completion",
                    "provider": self._provider,
                    "status_code": status,
                },
            )
            return PipelineFailure(
                stage="completion",
                error_code=ErrorCodes.COMPLETION_AUTH,
                message="Invalid completion API key or insufficient permissions",
                details={"provider": self._provider, "status_code": status},
            )

        return PipelineFailure(
            stage="completion",
            error_code=ErrorCodes.COMPLETION_FAILED,
            message=f"Completion HTTP error: {status}",
            recoverable=status == 429 or 500 <= status < 600,
            details={
                "provider": self._provider,
                "status_code": status,
                "response": exc.response.text[:500],
            },
        )


def _validated_text(content: Any) -> str:
    if not isinstance(content, str) or not content.strip():
        raise InvalidCompletionError("Completion content is missing or blank")
    return content


__all__ = ["CompletionService", "InvalidCompletionError"]
