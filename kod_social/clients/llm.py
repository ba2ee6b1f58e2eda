"""Text-generation collaborator used to draft profile bios."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import httpx

from ..config import Settings
from ..errors import BioGenerationFailed

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    text: str
    model: str


class LLMClient(Protocol):
    def complete(
        self,
        *,
        messages: Sequence[dict[str, str]],
        temperature: float = 0.7,
    ) -> CompletionResult:
        """Return a completion from the underlying model."""
        ...


def build_generate_payload(messages: Sequence[dict[str, str]], temperature: float) -> dict[str, Any]:
    return {
        "contents": [
            {"role": message.get("role", "user"), "parts": [{"text": message.get("content", "")}]}
            for message in messages
        ],
        "generationConfig": {"temperature": temperature},
    }


def first_candidate_text(result: Any) -> str:
    """Text of the first part of the first candidate, or ``""`` when absent."""

    if not isinstance(result, dict):
        return ""
    candidates = result.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts") or []
    if not parts or not isinstance(parts[0], dict):
        return ""
    text = parts[0].get("text")
    return text if isinstance(text, str) else ""


class GeminiClient(LLMClient):
    """HTTP client for a ``models/{model}:generateContent`` endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        model: str,
        api_key: str | None = None,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self._model = model
        self._api_key = api_key
        self._timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiClient":
        return cls(
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            api_key=settings.llm_api_key,
            timeout=settings.llm_timeout,
        )

    def complete(
        self,
        *,
        messages: Sequence[dict[str, str]],
        temperature: float = 0.7,
    ) -> CompletionResult:
        payload = build_generate_payload(messages, temperature)
        params = {"key": self._api_key} if self._api_key else None

        try:
            response = self._client.post(self._endpoint, params=params, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.error("GeminiClient timeout | model=%s timeout=%s", self._model, self._timeout)
            raise BioGenerationFailed("Text generation timed out") from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code if exc.response is not None else "unknown"
            logger.error("GeminiClient HTTP status error | model=%s status=%s", self._model, status_code)
            raise BioGenerationFailed("Text generation service returned an error") from exc
        except httpx.HTTPError as exc:
            logger.error("GeminiClient transport error | model=%s error=%s", self._model, type(exc).__name__)
            raise BioGenerationFailed("Text generation service is unreachable") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise BioGenerationFailed("Text generation returned malformed JSON") from exc

        text = first_candidate_text(body).strip()
        if not text:
            logger.error("GeminiClient returned no candidates | model=%s", self._model)
            raise BioGenerationFailed("Text generation returned no candidates")
        return CompletionResult(text=text, model=self._model)

    def close(self) -> None:
        self._client.close()


def build_llm_client(settings: Settings) -> GeminiClient:
    return GeminiClient.from_settings(settings)


__all__ = [
    "CompletionResult",
    "LLMClient",
    "GeminiClient",
    "build_generate_payload",
    "build_llm_client",
    "first_candidate_text",
]
