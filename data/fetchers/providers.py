"""
Bar Provider Selection
======================
Builds the bar client named by AppConfig.provider.
"""

import logging
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from config import AppConfig, SUPPORTED_PROVIDERS
from utils.errors import ConfigurationError

logger = logging.getLogger(__name__)


def create_bar_client(config: AppConfig):
    """
    Create the bar client for the configured provider.

    Returns:
        PolygonClient or AlpacaClient

    Raises:
        ConfigurationError: unknown provider
    """
    if config.provider == "polygon":
        from data.fetchers.polygon_client import PolygonClient
        logger.info(f"Bar provider: polygon (adjusted={config.polygon_adjusted})")
        return PolygonClient(
            config.polygon_api_key,
            adjusted=config.polygon_adjusted,
            timeout=config.request_timeout,
        )

    if config.provider == "alpaca":
        # Lazy import - only load alpaca-py when selected
        from data.fetchers.alpaca_client import AlpacaClient
        logger.info("Bar provider: alpaca (raw bars)")
        return AlpacaClient(config.alpaca_api_key, config.alpaca_secret_key)

    raise ConfigurationError(
        f"Unknown bar provider: {config.provider}. Options: {list(SUPPORTED_PROVIDERS)}",
        config_key="BAR_PROVIDER",
    )
