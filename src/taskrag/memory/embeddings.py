"""Embedding codec for queries and indexed tasks.

Turns text into a validated float32 vector through the OpenAI embeddings
API and serializes it to the byte layout stored next to every task:
little-endian IEEE-754 float32 values, packed with no padding and no length
prefix (length is ``len(blob) // 4``).
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from taskrag.config import get_settings
from taskrag.schemas import ErrorCodes, PipelineFailure


if TYPE_CHECKING:
    from collections.abc import Iterable

    from openai import AsyncOpenAI


logger = logging.getLogger(__name__)

FLOAT32_LE = np.dtype("<f4")
_FLOAT32_MAX = float(np.finfo(np.float32).max)


@dataclass(frozen=True, slots=True)
class Accepted:
    """An embedding element that parsed to a finite float32 value."""

    value: float


@dataclass(frozen=True, slots=True)
class Rejected:
    """An embedding element that cannot be part of a valid vector."""

    reason: str


ParsedElement = Accepted | Rejected


def parse_element(value: Any) -> ParsedElement:
    """Classify a single raw embedding element."""
    if value is None:
        return Accepted(0.0)
    # bool is an int subclass but never a valid coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return Rejected(f"non-numeric element of type {type(value).__name__}")
    number = float(value)
    if not math.isfinite(number):
        return Rejected(f"non-finite element {number!r}")
    if abs(number) > _FLOAT32_MAX:
        return Rejected(f"element {number!r} overflows float32")
    return Accepted(number)


def parse_vector(values: Iterable[Any]) -> list[float] | None:
    """Validate a raw embedding in one pass; None on the first rejected element."""
    vector: list[float] = []
    for raw in values:
        parsed = parse_element(raw)
        if isinstance(parsed, Rejected):
            logger.debug("Embedding element rejected: %s", parsed.reason)
            return None
        vector.append(parsed.value)
    return vector


def pack_vector(values: list[float]) -> bytes:
    """Serialize a vector to packed little-endian float32 bytes."""
    return np.asarray(values, dtype=FLOAT32_LE).tobytes()


def unpack_vector(blob: bytes) -> list[float]:
    """Inverse of pack_vector."""
    if len(blob) % FLOAT32_LE.itemsize:
        raise ValueError(
            f"Embedding blob length {len(blob)} is not a multiple of "
            f"{FLOAT32_LE.itemsize}"
        )
    result: list[float] = np.frombuffer(blob, dtype=FLOAT32_LE).tolist()
    return result


class EmbeddingCodec:
    """Generate and serialize embeddings using the OpenAI embeddings API.

    The same codec embeds user queries and indexed task records so both
    sides of a similarity search share one model and one byte layout.
    """

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        *,
        model: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the codec.

        Args:
            client: OpenAI-compatible async client. Built lazily when omitted.
            model: Embedding model name. Defaults to settings.
            timeout_seconds: Bound on each provider call. Defaults to settings.
        """
        settings = get_settings()
        self._client = client
        self.model = model or settings.embedding_model
        self._timeout = (
            timeout_seconds
            if timeout_seconds is not None
            else settings.embedding_timeout_seconds
        )

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the OpenAI client."""
        if self._client is None:
            import httpx
            from openai import AsyncOpenAI

            settings = get_settings()
            if not settings.openai_api_key:
                raise ValueError("OPENAI_API_KEY not configured for embeddings")
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                max_retries=0,
            )
        return self._client

    async def embed_text(self, text: Any) -> list[float] | PipelineFailure:
        """Request an embedding for ``text`` and validate it.

        Args:
            text: The text to embed. Anything that is not a str is rejected
                without calling the provider.

        Returns:
            The validated vector, or PipelineFailure.
        """
        if not isinstance(text, str):
            return _failure(
                ErrorCodes.EMBEDDING_INVALID,
                f"Cannot embed input of type {type(text).__name__}",
            )

        try:
            response = await asyncio.wait_for(
                self.client.embeddings.create(model=self.model, input=text),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Embedding request timed out",
                extra={"stage": "embedding", "timeout_seconds": self._timeout},
            )
            return _failure(
                ErrorCodes.TIMEOUT,
                f"Embedding request timed out after {self._timeout}s",
                recoverable=True,
            )
        except Exception as exc:
            logger.warning(
                "Embedding provider call failed",
                extra={"stage": "embedding", "error": str(exc)},
            )
            return _failure(
                ErrorCodes.EMBEDDING_FAILED,
                f"Embedding provider error: {type(exc).__name__}",
                recoverable=True,
            )

        raw = _extract_embedding(response)
        if raw is None:
            return _failure(
                ErrorCodes.EMBEDDING_INVALID,
                "Embedding response is missing a flat embedding array",
            )

        vector = parse_vector(raw)
        if vector is None:
            return _failure(
                ErrorCodes.EMBEDDING_INVALID,
                "Embedding contains non-numeric or non-finite elements",
            )
        return vector

    async def encode(self, text: Any) -> bytes | PipelineFailure:
        """Embed ``text`` and return its serialized byte form."""
        vector = await self.embed_text(text)
        if isinstance(vector, PipelineFailure):
            return vector
        return pack_vector(vector)

    @staticmethod
    def decode(blob: bytes) -> list[float]:
        """Decode a serialized embedding back to floats."""
        return unpack_vector(blob)


def _extract_embedding(response: Any) -> list[Any] | None:
    """Pull ``data[0].embedding`` out of an SDK object or a plain dict."""
    data = _field(response, "data")
    if not isinstance(data, (list, tuple)) or not data:
        return None
    first = data[0]
    if not first:
        return None
    embedding = _field(first, "embedding")
    if not isinstance(embedding, list):
        return None
    return embedding


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _failure(
    error_code: str, message: str, *, recoverable: bool = False
) -> PipelineFailure:
    return PipelineFailure(
        stage="embedding",
        error_code=error_code,
        message=message,
        recoverable=recoverable,
    )


__all__ = [
    "Accepted",
    "EmbeddingCodec",
    "ParsedElement",
    "Rejected",
    "pack_vector",
    "parse_element",
    "parse_vector",
    "unpack_vector",
]
