"""Extraction provider selection.

settings.extraction_provider names an entry in a read-only provider table.
Callers that need another provider (a test double, a new backend) pass their
own table instead of changing module state, the same way requirement tables
are handed to DocumentValidator.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType

from quotedesk.extraction.base import ExtractionProvider
from quotedesk.extraction.ollama_provider import OllamaExtractionProvider
from quotedesk.extraction.openai_provider import OpenAIExtractionProvider
from quotedesk.shared.config import Settings

logger = logging.getLogger(__name__)

ProviderTable = Mapping[str, type[ExtractionProvider]]

DEFAULT_PROVIDERS: ProviderTable = MappingProxyType(
    {
        "openai": OpenAIExtractionProvider,
        "ollama": OllamaExtractionProvider,
    }
)


def provider_class_for(
    name: str, providers: ProviderTable = DEFAULT_PROVIDERS
) -> type[ExtractionProvider]:
    """Look up the provider class configured under a name.

    Raises:
        ValueError: If the table has no such provider
    """
    try:
        return providers[name]
    except KeyError:
        available = ", ".join(sorted(providers))
        raise ValueError(
            f"Unknown extraction provider: '{name}'. Available providers: {available}"
        ) from None


def create_extraction_provider(
    settings: Settings, providers: ProviderTable | None = None
) -> ExtractionProvider:
    """Build the provider named by settings.extraction_provider.

    An unavailable provider (no API key, Ollama not running) is still returned;
    its extraction calls report the problem as a failed result.

    Args:
        settings: Application settings
        providers: Provider table (defaults to DEFAULT_PROVIDERS)

    Returns:
        Provider instance bound to settings

    Raises:
        ValueError: If the configured name is not in the table
    """
    table = providers if providers is not None else DEFAULT_PROVIDERS
    name = settings.extraction_provider
    provider = provider_class_for(name, table)(settings)

    if not provider.is_available():
        logger.warning(f"Extraction provider '{name}' is unavailable; uploads will fail")
    logger.info(f"Using {provider.provider_name} extraction provider")
    return provider
