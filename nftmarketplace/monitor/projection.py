"""ListingProjection — pure read-only indexer view over the EventJournal.

The projection rebuilds what an off-chain indexer would know from the
published events alone.  It never maintains its own state: every call
re-reads the journal.

Replay rules:
- ``item_listed``   sets (or replaces) the listing; a re-price is
  indistinguishable from a fresh listing.
- ``item_canceled`` removes the listing.
- ``item_bought``   removes the listing and counts a sale for its seller.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from nftmarketplace.core.event_journal import EventJournal, JournalIntegrityError
from nftmarketplace.models.assets import AssetKey, Listing
from nftmarketplace.models.events import MarketEventKind
from nftmarketplace.models.journal import JournalEntry


class ProjectedListing(BaseModel):
    """A listing as seen by an indexer, with when it was last (re)listed."""

    model_config = ConfigDict(frozen=True)

    asset_key: AssetKey
    listing: Listing
    listed_at: datetime


class MarketSnapshot(BaseModel):
    """A frozen, point-in-time view of one marketplace.

    Computed fresh on every ``snapshot()`` call; never persisted.
    """

    model_config = ConfigDict(frozen=True)

    market: str
    listings: list[ProjectedListing] = []
    sales_by_seller: dict[str, int] = {}  # seller -> volume at listing price
    event_count: int = 0
    chain_valid: bool = True
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def active_count(self) -> int:
        return len(self.listings)

    @property
    def total_volume(self) -> int:
        return sum(self.sales_by_seller.values())


class ListingProjection:
    """Read-only projection of active listings from the journal.

    Parameters
    ----------
    journal:
        The EventJournal to project from.
    """

    def __init__(self, journal: EventJournal) -> None:
        self._journal = journal

    def active_listings(self, market: str) -> dict[AssetKey, Listing]:
        """Replay the journal and return the listings still open."""
        return {
            projected.asset_key: projected.listing
            for projected in self._replay(self._journal.get_entries(market))[0]
        }

    def snapshot(self, market: str) -> MarketSnapshot:
        """Produce a point-in-time snapshot of one marketplace."""
        entries = self._journal.get_entries(market)
        listings, sales = self._replay(entries)
        return MarketSnapshot(
            market=market,
            listings=listings,
            sales_by_seller=sales,
            event_count=len(entries),
            chain_valid=self._check_chain_valid(market),
            last_updated=entries[-1].recorded_at if entries else datetime.now(timezone.utc),
        )

    @staticmethod
    def _replay(
        entries: list[JournalEntry],
    ) -> tuple[list[ProjectedListing], dict[str, int]]:
        open_listings: dict[AssetKey, ProjectedListing] = {}
        sales: dict[str, int] = {}

        for entry in entries:
            key = AssetKey(registry=entry.registry, token_id=entry.token_id)

            if entry.event_kind == MarketEventKind.ITEM_LISTED:
                open_listings[key] = ProjectedListing(
                    asset_key=key,
                    listing=Listing(
                        seller=entry.event["seller"], price=entry.event["price"]
                    ),
                    listed_at=entry.recorded_at,
                )
            elif entry.event_kind == MarketEventKind.ITEM_CANCELED:
                open_listings.pop(key, None)
            elif entry.event_kind == MarketEventKind.ITEM_BOUGHT:
                sold = open_listings.pop(key, None)
                if sold is not None:
                    seller = sold.listing.seller
                    sales[seller] = sales.get(seller, 0) + entry.event["price"]

        ordered = sorted(
            open_listings.values(),
            key=lambda p: (p.asset_key.registry, p.asset_key.token_id),
        )
        return ordered, sales

    def _check_chain_valid(self, market: str) -> bool:
        """Check hash chain integrity without raising."""
        try:
            return self._journal.verify_chain(market)
        except (JournalIntegrityError, ValueError):
            return False
