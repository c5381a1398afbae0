"""Marketplace configuration — env-driven.

Centralized config using pydantic-settings for environment variable
support. Reads from .env file and NFTMARKET_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from nftmarketplace.core.units import parse_ether


class MarketplaceConfig(BaseSettings):
    """Marketplace configuration with environment variable overrides.

    All settings can be overridden via NFTMARKET_* environment variables
    or a .env file in the project root.

    Examples
    --------
    Override via environment::

        export NFTMARKET_ENVIRONMENT=staging
        export NFTMARKET_LOG_LEVEL=DEBUG
        export NFTMARKET_JOURNAL_PATH=/data/journal.db

    Or via .env file::

        NFTMARKET_LISTING_PRICE=0.25
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="NFTMARKET_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Event journal (SQLite)
    journal_path: Path = Path(".nftmarketplace/journal.db")

    # Sample collection provisioned by ``deploy()``
    collection_name: str = "Dogie"
    collection_symbol: str = "DOG"
    token_uri: str = (
        "ipfs://bafybeig37ioir76s7mg5oobetncojcm3c3hxasyd4rvid4jqhy4gkaheg4"
        "/?filename=0-PUG.json"
    )

    # Amounts, as decimal ether strings
    listing_price: str = "0.1"
    account_funding: str = "10000"

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    @property
    def listing_price_wei(self) -> int:
        """Default listing price in wei."""
        return parse_ether(self.listing_price)

    @property
    def account_funding_wei(self) -> int:
        """Starting wallet balance for provisioned accounts, in wei."""
        return parse_ether(self.account_funding)


# Module-level singleton — import as `from nftmarketplace.config import config`
config = MarketplaceConfig()
