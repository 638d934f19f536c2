"""Ollama-based extraction provider for self-hosted multimodal models.

Uses a local Ollama server (e.g., llava) so documents never leave the
premises. Requires Ollama server running at settings.ollama_base_url.
See: https://ollama.ai/
"""

import logging
from typing import Any

import httpx

from quotedesk.extraction.base import CompletionRequest, ExtractionProvider
from quotedesk.shared.config import Settings

logger = logging.getLogger(__name__)


class OllamaExtractionProvider(ExtractionProvider):
    """Ollama-based extraction provider for self-hosted LLM inference."""

    retryable_errors = (httpx.TransportError,)

    def __init__(self, settings: Settings) -> None:
        """Initialize Ollama extraction provider.

        Args:
            settings: Application settings
        """
        super().__init__(settings)
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._model = settings.ollama_model
        self._client = httpx.Client(timeout=settings.extraction_timeout_seconds)

    @property
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier 'ollama'
        """
        return "ollama"

    def is_available(self) -> bool:
        """Check if Ollama server is running and model is available.

        Returns:
            True if Ollama server responds and model is pulled
        """
        try:
            response = self._client.get(f"{self._base_url}/api/tags")
            if response.status_code != 200:
                return False
            models = response.json().get("models", [])
            model_names = [m.get("name", "").split(":")[0] for m in models]
            return self._model.split(":")[0] in model_names
        except httpx.HTTPError as e:
            logger.debug(f"Ollama availability check failed: {e}")
            return False

    def is_retryable(self, error: BaseException) -> bool:
        """Retry transport failures, rate limiting and server errors.

        Other 4xx responses (e.g., model not pulled) fail immediately.
        """
        if isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
            return status_code == 429 or status_code >= 500
        return super().is_retryable(error)

    def _complete(self, request: CompletionRequest) -> str | None:
        """Call the Ollama generate endpoint once.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status
        """
        body: dict[str, Any] = {
            "model": self._model,
            "system": request.system_prompt,
            "prompt": request.user_text,
            "stream": False,
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
            },
        }
        if request.json_response:
            body["format"] = "json"
        if request.image_base64:
            body["images"] = [request.image_base64]

        response = self._client.post(f"{self._base_url}/api/generate", json=body)
        response.raise_for_status()
        result: str = response.json().get("response", "")
        return result.strip() or None
