"""OpenAI-based extraction provider for quote/invoice documents.

Sends document images (or pasted text) to a multimodal chat model with a
JSON-object response format and decodes the reply into the canonical record.

Transient API errors (connection drops, timeouts, rate limits, 5xx) are
retried with exponential backoff by the base class.
"""

import os
from typing import Any

import openai
from openai import OpenAI

from quotedesk.extraction.base import CompletionRequest, ExtractionProvider
from quotedesk.shared.config import Settings


class OpenAIExtractionProvider(ExtractionProvider):
    """OpenAI-based extraction provider using a vision-capable chat model.

    Requires OPENAI_API_KEY environment variable.
    """

    retryable_errors = (
        openai.APIConnectionError,  # includes APITimeoutError
        openai.RateLimitError,
        openai.InternalServerError,
    )

    def __init__(self, settings: Settings) -> None:
        """Initialize OpenAI extraction provider.

        Args:
            settings: Application settings
        """
        super().__init__(settings)
        self._client: OpenAI | None = None

    @property
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier 'openai'
        """
        return "openai"

    def is_available(self) -> bool:
        """Check if OpenAI API key is configured.

        Returns:
            True if OPENAI_API_KEY environment variable is set
        """
        return os.getenv("OPENAI_API_KEY") is not None

    def _configuration_error(self) -> str | None:
        if not self.is_available():
            return "OPENAI_API_KEY environment variable not set"
        return None

    def _get_client(self) -> OpenAI:
        api_key = os.getenv("OPENAI_API_KEY")
        if self._client is None or self._client.api_key != api_key:
            # Retries are handled by tenacity in the base class
            self._client = OpenAI(
                api_key=api_key,
                timeout=self.settings.extraction_timeout_seconds,
                max_retries=0,
            )
        return self._client

    def _build_messages(self, request: CompletionRequest) -> list[dict[str, Any]]:
        user_content: list[dict[str, Any]] = [{"type": "text", "text": request.user_text}]
        if request.image_base64:
            user_content.append(
                {
                    "type": "image_url",
                    "image_url": {
                        "url": f"data:{request.mime_type};base64,{request.image_base64}",
                        "detail": self.settings.vision_detail,
                    },
                }
            )
        return [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": user_content},
        ]

    def _complete(self, request: CompletionRequest) -> str | None:
        """Call the chat completions API once.

        Returns:
            Trimmed message content, or None if the model returned nothing
        """
        kwargs: dict[str, Any] = {}
        if request.json_response:
            kwargs["response_format"] = {"type": "json_object"}

        response = self._get_client().chat.completions.create(  # type: ignore[call-overload]
            model=self.settings.vision_model,
            messages=self._build_messages(request),
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            **kwargs,
        )

        if not response.choices:
            return None
        content = response.choices[0].message.content
        return content.strip() if content else None
