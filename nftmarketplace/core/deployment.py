"""Local provisioning — wires a marketplace and its collaborators in-process.

``deploy()`` plays the role the deploy scripts play on a development
network: it creates a sample NFT collection, a wallet book with funded
named accounts, an event bus (optionally journaled to SQLite) and the
listing ledger itself.  ``mint_and_list()`` is the mint → approve → list
sequence sellers run against a fresh deployment.
"""

from __future__ import annotations

import logging
import uuid

from pydantic import BaseModel, ConfigDict

from nftmarketplace.config import MarketplaceConfig
from nftmarketplace.core.event_bus import EventBus
from nftmarketplace.core.event_journal import EventJournal
from nftmarketplace.core.hasher import derive_address
from nftmarketplace.core.listing_ledger import ListingLedger
from nftmarketplace.core.payments import Wallets
from nftmarketplace.core.registry import BasicNft
from nftmarketplace.models.assets import AssetKey

logger = logging.getLogger(__name__)

# Named accounts, in signer order.
DEFAULT_ACCOUNT_NAMES: tuple[str, ...] = ("deployer", "player", "user")


class Deployment(BaseModel):
    """Everything ``deploy()`` provisioned, addressable by name."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    salt: str
    accounts: dict[str, str]
    wallets: Wallets
    basic_nft: BasicNft
    event_bus: EventBus
    marketplace: ListingLedger
    journal: EventJournal | None = None

    def account(self, name: str) -> str:
        """Return the address of a named account."""
        try:
            return self.accounts[name]
        except KeyError:
            raise KeyError(f"No account named {name!r}") from None


def deploy(
    config: MarketplaceConfig | None = None,
    *,
    salt: str | None = None,
    journal: EventJournal | None = None,
    account_names: tuple[str, ...] = DEFAULT_ACCOUNT_NAMES,
) -> Deployment:
    """Provision a marketplace and its collaborators.

    Parameters
    ----------
    config:
        Collection metadata and account funding.  Defaults to
        ``MarketplaceConfig()``.
    salt:
        Seed for every derived address.  The same salt yields the same
        addresses; a random one is used when omitted.
    journal:
        When given, every published event is appended to it.
    account_names:
        Named accounts to create and fund.
    """
    config = config or MarketplaceConfig()
    salt = salt or uuid.uuid4().hex[:12]

    accounts = {name: derive_address(f"{salt}:account:{name}") for name in account_names}

    wallets = Wallets()
    for address in accounts.values():
        wallets.fund(address, config.account_funding_wei)

    basic_nft = BasicNft(
        derive_address(f"{salt}:contract:BasicNft"),
        name=config.collection_name,
        symbol=config.collection_symbol,
        token_uri=config.token_uri,
    )
    logger.info("Deployed BasicNft (%s) at %s.", basic_nft.symbol, basic_nft.address)

    event_bus = EventBus()
    if journal is not None:
        event_bus.register_global_handler(journal.append)

    marketplace = ListingLedger(
        derive_address(f"{salt}:contract:NftMarketplace"),
        registries={basic_nft.address: basic_nft},
        payments=wallets,
        event_bus=event_bus,
    )
    logger.info("Deployed NftMarketplace at %s.", marketplace.address)

    return Deployment(
        salt=salt,
        accounts=accounts,
        wallets=wallets,
        basic_nft=basic_nft,
        event_bus=event_bus,
        marketplace=marketplace,
        journal=journal,
    )


def mint_and_list(deployment: Deployment, seller: str, price: int) -> AssetKey:
    """Mint a token to *seller*, approve the marketplace, and list it."""
    nft = deployment.basic_nft
    marketplace = deployment.marketplace

    logger.info("Minting...")
    token_id = nft.mint_nft(seller)

    logger.info("Approving marketplace for token %d...", token_id)
    nft.approve(seller, marketplace.address, token_id)

    logger.info("Listing token %d...", token_id)
    key = AssetKey(registry=nft.address, token_id=token_id)
    marketplace.list_item(key, price, caller=seller)
    return key
