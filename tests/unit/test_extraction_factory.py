"""Unit tests for extraction provider selection.

Tests cover:
- The default provider table
- Settings-driven provider creation
- Injected provider tables
- Unavailable and unknown providers
"""

import logging
from unittest.mock import patch

import pytest

from quotedesk.extraction.base import CompletionRequest, ExtractionProvider
from quotedesk.extraction.factory import (
    DEFAULT_PROVIDERS,
    create_extraction_provider,
    provider_class_for,
)
from quotedesk.extraction.ollama_provider import OllamaExtractionProvider
from quotedesk.extraction.openai_provider import OpenAIExtractionProvider
from quotedesk.shared.config import Settings


class CannedProvider(ExtractionProvider):
    """Provider that answers every call with one fixed quote."""

    @property
    def provider_name(self) -> str:
        return "canned"

    def is_available(self) -> bool:
        return True

    def _complete(self, request: CompletionRequest) -> str | None:
        return (
            '{"success": true, "documentType": "quote", "confidence": 0.8, '
            '"data": {"client": {"name": "Acme"}, "currency": "USD", '
            '"items": [{"description": "Logo", "amount": 500}]}}'
        )


@pytest.fixture
def settings() -> Settings:
    """Default settings."""
    return Settings(_env_file=None)


class TestProviderTable:
    """Test provider lookup."""

    def test_default_table(self) -> None:
        """Both configurable backends are present."""
        assert provider_class_for("openai") is OpenAIExtractionProvider
        assert provider_class_for("ollama") is OllamaExtractionProvider

    def test_default_table_is_read_only(self) -> None:
        """The shared table cannot be changed in place."""
        with pytest.raises(TypeError):
            DEFAULT_PROVIDERS["canned"] = CannedProvider  # type: ignore[index]

    def test_unknown_provider(self) -> None:
        """Unknown names raise ValueError listing the choices."""
        with pytest.raises(ValueError, match="Unknown extraction provider: 'azure'") as exc_info:
            provider_class_for("azure")

        assert "Available providers: ollama, openai" in str(exc_info.value)


class TestCreateExtractionProvider:
    """Test provider creation from settings."""

    def test_openai_by_default(self, settings: Settings) -> None:
        """The OpenAI provider is built from default settings."""
        provider = create_extraction_provider(settings)

        assert isinstance(provider, OpenAIExtractionProvider)
        assert provider.settings is settings

    def test_ollama_when_configured(self, caplog: pytest.LogCaptureFixture) -> None:
        """A running Ollama server is used without warnings."""
        settings = Settings(_env_file=None, extraction_provider="ollama")

        with patch.object(OllamaExtractionProvider, "is_available", return_value=True):
            with caplog.at_level(logging.INFO):
                provider = create_extraction_provider(settings)

        assert isinstance(provider, OllamaExtractionProvider)
        assert "Using ollama extraction provider" in caplog.text
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_warns_when_unavailable(
        self,
        settings: Settings,
        caplog: pytest.LogCaptureFixture,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A provider without its API key is returned with a warning."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with caplog.at_level(logging.WARNING):
            provider = create_extraction_provider(settings)

        assert provider.is_available() is False
        assert "Extraction provider 'openai' is unavailable" in caplog.text

    def test_injected_table(self, settings: Settings) -> None:
        """A caller-supplied table adds providers without touching the default."""
        canned_settings = settings.model_copy(update={"extraction_provider": "canned"})

        provider = create_extraction_provider(canned_settings, {"canned": CannedProvider})
        result = provider.extract_from_text("Quote for Acme: logo design, $500")

        assert isinstance(provider, CannedProvider)
        assert result.success is True
        assert result.provider == "canned"
        assert result.data is not None
        assert result.data.client is not None
        assert result.data.client.name == "Acme"
        assert "canned" not in DEFAULT_PROVIDERS

    def test_injected_table_replaces_default(self, settings: Settings) -> None:
        """Names outside the supplied table are unknown."""
        with pytest.raises(ValueError, match="Available providers: canned"):
            create_extraction_provider(settings, {"canned": CannedProvider})
