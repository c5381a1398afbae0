"""Marketplace data models — all Pydantic v2, all frozen (immutable)."""

from nftmarketplace.models.assets import ZERO_ADDRESS, AssetKey, Listing
from nftmarketplace.models.events import (
    EVENT_TYPE_MAP,
    ItemBought,
    ItemCanceled,
    ItemListed,
    MarketEvent,
    MarketEventKind,
)
from nftmarketplace.models.journal import JournalEntry

__all__ = [
    # assets
    "ZERO_ADDRESS",
    "AssetKey",
    "Listing",
    # events
    "MarketEventKind",
    "MarketEvent",
    "ItemListed",
    "ItemCanceled",
    "ItemBought",
    "EVENT_TYPE_MAP",
    # journal
    "JournalEntry",
]
