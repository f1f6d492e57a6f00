"""Ollama completion provider.

Talks to a local or remote Ollama server through its non-streaming
``/api/generate`` endpoint.

Usage:
    provider = OllamaProvider(base_url="http://localhost:11434", timeout=120)
    result = await provider.complete("question", "system prompt", "qwen2.5-coder:7b")
"""
import logging
from typing import Optional

import httpx

from .base import CompletionProvider, CompletionResult

logger = logging.getLogger(__name__)


class OllamaProvider(CompletionProvider):
    """CompletionProvider backed by an Ollama server.

    Attributes:
        base_url: Server root, e.g. ``http://localhost:11434``.
        timeout: Per-request timeout in seconds.
    """

    DEFAULT_BASE_URL = "http://localhost:11434"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the Ollama provider.

        Args:
            base_url: Server root URL. Defaults to ``http://localhost:11434``.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def complete(self, prompt: str, system_prompt: str, model: str) -> CompletionResult:
        """Generate a completion via ``POST /api/generate``.

        Raises:
            httpx.HTTPStatusError: If the server answers with an error status.
            httpx.HTTPError: On connection failures and timeouts.
            ValueError: If the response body lacks a ``response`` field.
        """
        client = self._get_client()
        logger.debug(
            "[OllamaProvider] generate model=%s prompt_chars=%d system_chars=%d",
            model, len(prompt), len(system_prompt),
        )
        resp = await client.post(
            "/api/generate",
            json={
                "model": model,
                "prompt": prompt,
                "system": system_prompt,
                "stream": False,
            },
        )
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict) or "response" not in data:
            raise ValueError("Ollama response is missing the 'response' field")
        return CompletionResult(content=data["response"], model=data.get("model", model))

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
