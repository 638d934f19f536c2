"""Logging setup shared by the API and command-line entry points."""

import logging
import sys

from quotedesk.shared.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> logging.Logger:
    """Configure the root logger from settings.

    Installs a single stdout handler; calling it again only updates the level.

    Args:
        settings: Application settings (uses log_level)

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    root.setLevel(settings.log_level)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    # Third-party clients are chatty at DEBUG
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    return root
