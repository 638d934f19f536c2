"""Abstract base class for document extraction providers.

Enables switching between completion services (OpenAI, Ollama) while every
provider shares the same request shape, retry policy, cancellation handling
and response decoding.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    stop_when_event_set,
    wait_exponential_jitter,
)

from quotedesk.extraction.cancellation import CancellationToken
from quotedesk.extraction.normalizer import decode_extraction
from quotedesk.extraction.prompts import (
    DEFAULT_IMAGE_PROMPT,
    DEFAULT_TEXT_PROMPT,
    VISION_EXTRACTION_PROMPT,
)
from quotedesk.extraction.schema import VisionExtractionResult
from quotedesk.shared.config import Settings

logger = logging.getLogger(__name__)

PARSE_ERROR = (
    "Failed to parse AI response. The image may be unclear or not a business document."
)
EMPTY_RESPONSE_ERROR = "No response from vision AI"
CANCELLED_ERROR = "Extraction was cancelled"


class CompletionRequest(BaseModel):
    """One call to the text-completion service.

    Attributes:
        system_prompt: Instructions describing the expected JSON
        user_text: User-facing prompt or document text
        image_base64: Base64 document image, if any
        mime_type: MIME type of the image (e.g., image/png)
        max_tokens: Completion token budget
        temperature: Sampling temperature
        json_response: Ask the service for a JSON object response
    """

    system_prompt: str
    user_text: str
    image_base64: str | None = None
    mime_type: str | None = None
    max_tokens: int
    temperature: float
    json_response: bool = True


def parse_json_payload(response_text: str) -> Any:
    """Extract and parse JSON from a completion.

    Handles markdown code fences and prose around the object.

    Raises:
        json.JSONDecodeError: If no valid JSON found
    """
    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", response_text)
    if fenced:
        return json.loads(fenced.group(1).strip())

    try:
        return json.loads(response_text.strip())
    except json.JSONDecodeError:
        braces = re.search(r"\{[\s\S]*\}", response_text)
        if braces:
            return json.loads(braces.group(0))
        raise


class ExtractionProvider(ABC):
    """Abstract base class for document extraction providers.

    Subclasses only implement the raw completion call; decoding, retries and
    failure reporting live here so every provider reports errors the same way.
    Failures never raise: they come back as VisionExtractionResult with
    success=False and a human-readable error.
    """

    # Exception types worth another attempt (connection drops, rate limits)
    retryable_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, settings: Settings) -> None:
        """Initialize provider with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    def is_retryable(self, error: BaseException) -> bool:
        """Whether a failed completion call is worth another attempt."""
        return isinstance(error, self.retryable_errors)

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier (e.g., 'openai', 'ollama')
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is available/configured.

        Returns:
            True if provider can be used, False otherwise
        """

    @abstractmethod
    def _complete(self, request: CompletionRequest) -> str | None:
        """Send one request to the completion service.

        Returns:
            Raw response text, or None when the service returned nothing
        """

    def _configuration_error(self) -> str | None:
        """Describe missing configuration that makes any call pointless."""
        return None

    def build_request(
        self,
        user_text: str,
        image_base64: str | None = None,
        mime_type: str | None = None,
    ) -> CompletionRequest:
        return CompletionRequest(
            system_prompt=VISION_EXTRACTION_PROMPT,
            user_text=user_text,
            image_base64=image_base64,
            mime_type=mime_type,
            max_tokens=self.settings.vision_max_tokens,
            temperature=self.settings.vision_temperature,
        )

    def extract_from_image(
        self,
        image_base64: str,
        mime_type: str,
        additional_prompt: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> VisionExtractionResult:
        """Extract structured document data from an image.

        Args:
            image_base64: Base64-encoded image bytes
            mime_type: Image MIME type
            additional_prompt: Extra user instruction sent with the image
            cancel_token: Token the caller sets to abandon the call

        Returns:
            Normalized VisionExtractionResult
        """
        if not image_base64 or not image_base64.strip():
            return self._failure("Empty document provided")

        request = self.build_request(
            additional_prompt or DEFAULT_IMAGE_PROMPT, image_base64, mime_type or "image/png"
        )
        return self.extract(request, cancel_token)

    def extract_from_text(
        self, text: str, cancel_token: CancellationToken | None = None
    ) -> VisionExtractionResult:
        """Extract structured document data from plain text (e.g., pasted invoice)."""
        if not text or not text.strip():
            return self._failure("Empty text provided")

        return self.extract(self.build_request(f"{DEFAULT_TEXT_PROMPT}\n\n{text}"), cancel_token)

    def extract(
        self, request: CompletionRequest, cancel_token: CancellationToken | None = None
    ) -> VisionExtractionResult:
        """Run a completion request and decode its response.

        Args:
            request: Prepared completion request
            cancel_token: Token the caller sets to abandon the call

        Returns:
            Normalized VisionExtractionResult, provider set to this provider
        """
        config_error = self._configuration_error()
        if config_error:
            return self._failure(config_error)

        token = cancel_token or CancellationToken()
        if token.cancelled:
            return self._failure(CANCELLED_ERROR)

        try:
            content = self._complete_with_retry(request, token)
        except Exception as e:
            if token.cancelled:
                return self._failure(CANCELLED_ERROR)
            logger.error(f"{self.provider_name} extraction call failed: {e}")
            return self._failure(f"Extraction failed: {str(e)}")

        if token.cancelled:
            logger.info(f"Discarding {self.provider_name} response: {token.reason}")
            return self._failure(CANCELLED_ERROR)

        if not content:
            return self._failure(EMPTY_RESPONSE_ERROR)

        try:
            payload = parse_json_payload(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse JSON from {self.provider_name} response: {e}")
            return self._failure(PARSE_ERROR, raw_text=content)

        decoded = decode_extraction(payload)
        if decoded.decode_error:
            logger.warning(f"Unusable {self.provider_name} payload: {decoded.decode_error}")
            return self._failure(PARSE_ERROR, raw_text=content)
        if decoded.guessed:
            logger.debug(f"Defaulted fields from {self.provider_name}: {decoded.defaulted}")

        result = decoded.result
        result.provider = self.provider_name
        return result

    def _complete_with_retry(
        self, request: CompletionRequest, token: CancellationToken
    ) -> str | None:
        """Call the completion service with exponential backoff.

        Stops early when the token is cancelled; the last error is re-raised
        once attempts run out.
        """
        wait = self.settings.extraction_retry_wait_seconds
        retryer = Retrying(
            retry=retry_if_exception(self.is_retryable),
            wait=wait_exponential_jitter(initial=wait, max=60, jitter=wait),
            stop=stop_after_attempt(self.settings.extraction_max_attempts)
            | stop_when_event_set(token.event),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(self._complete, request)

    def _failure(self, error: str, raw_text: str | None = None) -> VisionExtractionResult:
        return VisionExtractionResult(
            success=False,
            error=error,
            raw_text=raw_text,
            provider=self.provider_name,
        )
