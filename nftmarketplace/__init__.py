"""nftmarketplace: fixed-price NFT listing ledger.

v0.1.0:
  - Listing ledger with atomic, re-entrancy-safe list/cancel/update/buy
  - Buyer payments collected through the gateway, refunded on rollback
  - Pull-based seller payouts (proceeds zeroed before release)
  - Protocol-based asset registry and payment gateway collaborators
  - Hash-chained SQLite event journal and listing projection
  - Typer + Rich CLI (demo, mint-and-list, events, listings, verify)
"""

__version__ = "0.1.0"
__description__ = "Fixed-price NFT listing ledger with pull-based seller payouts"

from nftmarketplace.core.listing_ledger import ListingLedger
from nftmarketplace.models.assets import AssetKey, Listing

__all__ = ["ListingLedger", "AssetKey", "Listing", "__version__"]
