"""LLM client — HTTP connection to a text-completion backend.

The pipeline injects an LLM callable matching the protocol:

    async def __call__(self, stage: str, prompt: str) -> str: ...

`stage` identifies which step is calling ("obstacle", "obstacles", "card",
"cards", "resolve"). Implementations use it for logging and to pick a
completion length; the output itself carries no structural guarantee, all
validation happens in llmings.parsers.

Two implementations are provided:

    HttpLLM   — real HTTP client, supports KoboldCpp, OpenAI-compatible
                 completions and OpenAI-compatible chat backends.
    EchoLLM   — returns the prompt back unchanged. Useful for smoke-testing
                 the wiring without a running model.

Tests use StubLLM (defined in the test helpers) instead.
"""

from __future__ import annotations

import logging
from typing import Literal, Protocol

import httpx

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, stage: str, prompt: str) -> str: ...


# Completion budget per stage, in tokens.
STAGE_MAX_TOKENS: dict[str, int] = {
    "obstacle": 200,
    "obstacles": 800,
    "card": 60,
    "cards": 240,
    "resolve": 260,
}


# ---------------------------------------------------------------------------
# HttpLLM: connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["koboldcpp", "openai", "openai_chat"]


class HttpLLM:
    """Async HTTP client for text-completion backends.

    Supported formats:
      "koboldcpp"    — POST /api/v1/generate      {"prompt": ..., "max_length": ...}
                       Response: {"results": [{"text": "..."}]}
      "openai"       — POST /v1/completions       {"model": ..., "prompt": ...}
                       Response: {"choices": [{"text": "..."}]}
      "openai_chat"  — POST /v1/chat/completions  {"model": ..., "messages": [...]}
                       Response: {"choices": [{"message": {"content": "..."}}]}

    Args:
        provider_url:    Base URL of the backend, e.g. "http://localhost:5001".
        api_key:         Bearer token, or empty string if not required.
        provider_format: Wire format to use. Defaults to "koboldcpp".
        model:           Model identifier, used only by the openai formats.
        timeout:         HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "koboldcpp",
        model: str = "",
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, stage: str, prompt: str) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        max_tokens = STAGE_MAX_TOKENS.get(stage)

        if self._format == "openai_chat":
            url = f"{self._base_url}/v1/chat/completions"
            body: dict = {"messages": [{"role": "system", "content": prompt}]}
            if self._model:
                body["model"] = self._model
            if max_tokens:
                body["max_tokens"] = max_tokens
            return url, body

        if self._format == "openai":
            url = f"{self._base_url}/v1/completions"
            body = {"prompt": prompt}
            if self._model:
                body["model"] = self._model
            if max_tokens:
                body["max_tokens"] = max_tokens
            return url, body

        # koboldcpp (default)
        url = f"{self._base_url}/api/v1/generate"
        body = {"prompt": prompt}
        if max_tokens:
            body["max_length"] = max_tokens
        return url, body

    def _parse_response(self, data: dict) -> str:
        """Extract the completion text from the response body."""
        if self._format == "openai_chat":
            choices = data.get("choices")
            first = choices[0] if choices else None
            message = first.get("message") if isinstance(first, dict) else None
            if not isinstance(message, dict) or "content" not in message:
                raise RequestFailure("Unexpected response format from OpenAI-compatible chat backend")
            return message["content"] or ""

        if self._format == "openai":
            choices = data.get("choices")
            if not choices or "text" not in choices[0]:
                raise RequestFailure("Unexpected response format from OpenAI-compatible backend")
            return choices[0]["text"]

        # koboldcpp
        results = data.get("results")
        if not results or "text" not in results[0]:
            raise RequestFailure("Unexpected response format from KoboldCpp backend")
        return results[0]["text"]

    async def __call__(self, stage: str, prompt: str) -> str:
        url, body = self._build_request(stage, prompt)
        logger.debug("llm call stage=%s url=%s prompt_len=%d", stage, url, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise RequestFailure(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise RequestFailure(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise RequestFailure(f"LLM backend timed out after {self._timeout}s") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise RequestFailure("LLM backend returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise RequestFailure("Unexpected response format from LLM backend")

        text = self._parse_response(data).strip()
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


# ---------------------------------------------------------------------------
# EchoLLM: returns the prompt unchanged; useful for smoke tests
# ---------------------------------------------------------------------------

class EchoLLM:
    """Returns the prompt text as-is. No network calls.

    Every step degrades gracefully on echoed text: obstacles fall back to
    freeform parsing, the resolution falls back to a failure verdict. Per-member
    cards take the first prompt line as summary.
    """

    async def __call__(self, stage: str, prompt: str) -> str:
        logger.debug("EchoLLM stage=%s prompt_len=%d", stage, len(prompt))
        return prompt


# ---------------------------------------------------------------------------
# RequestFailure: raised by HttpLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class RequestFailure(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
