"""Marketplace notifications consumed by off-core tooling and indexers.

Each event is a frozen Pydantic model.  ``ItemListed`` is emitted both for
a fresh listing and for a price update; indexers treat the two identically.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from nftmarketplace.models.assets import AssetKey


class MarketEventKind(str, Enum):
    """The three notifications the listing ledger produces."""

    ITEM_LISTED = "item_listed"
    ITEM_CANCELED = "item_canceled"
    ITEM_BOUGHT = "item_bought"


class MarketEvent(BaseModel):
    """Base fields shared by all marketplace events.

    ``market`` is the address of the emitting ledger; ``registry`` and
    ``token_id`` together form the asset key.  The payload_hash is set by
    the ``EventBus`` when the event is published.
    """

    model_config = ConfigDict(frozen=True)

    schema_version: str = "2026-10"
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_kind: MarketEventKind
    market: str
    registry: str
    token_id: int
    payload_hash: str = ""
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def asset_key(self) -> AssetKey:
        return AssetKey(registry=self.registry, token_id=self.token_id)


class ItemListed(MarketEvent):
    """An asset was listed, or an existing listing was re-priced."""

    event_kind: MarketEventKind = MarketEventKind.ITEM_LISTED
    seller: str
    price: int


class ItemCanceled(MarketEvent):
    """A listing was withdrawn by its owner."""

    event_kind: MarketEventKind = MarketEventKind.ITEM_CANCELED


class ItemBought(MarketEvent):
    """A listed asset was sold; ``price`` is the listing price, not the payment."""

    event_kind: MarketEventKind = MarketEventKind.ITEM_BOUGHT
    buyer: str
    price: int


# Registry for deserialization by event_kind
EVENT_TYPE_MAP: dict[MarketEventKind, type[MarketEvent]] = {
    MarketEventKind.ITEM_LISTED: ItemListed,
    MarketEventKind.ITEM_CANCELED: ItemCanceled,
    MarketEventKind.ITEM_BOUGHT: ItemBought,
}
