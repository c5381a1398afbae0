"""Shared test fixtures for nftmarketplace."""

from __future__ import annotations

from pathlib import Path

import pytest

from nftmarketplace.core.deployment import Deployment, deploy
from nftmarketplace.core.event_bus import EventBus
from nftmarketplace.core.event_journal import EventJournal
from nftmarketplace.core.listing_ledger import ListingLedger
from nftmarketplace.core.payments import Wallets
from nftmarketplace.core.registry import BasicNft
from nftmarketplace.models.assets import AssetKey

PRICE = 10**17  # 0.1 ETH
MARKET = "0x" + "a1" * 20
NFT = "0x" + "b2" * 20
SELLER = "0x" + "51" * 20
BUYER = "0x" + "b0" * 20
STRANGER = "0x" + "5e" * 20
STARTING_BALANCE = 100 * 10**18


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def journal(tmp_dir: Path) -> EventJournal:
    """Provide a fresh EventJournal backed by a temp SQLite database."""
    return EventJournal(tmp_dir / "test_journal.db")


@pytest.fixture
def basic_nft() -> BasicNft:
    return BasicNft(NFT, token_uri="ipfs://test")


@pytest.fixture
def wallets() -> Wallets:
    """Wallets with BUYER and STRANGER funded; SELLER starts empty."""
    book = Wallets()
    book.fund(BUYER, STARTING_BALANCE)
    book.fund(STRANGER, STARTING_BALANCE)
    return book


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def marketplace(basic_nft: BasicNft, wallets: Wallets, event_bus: EventBus) -> ListingLedger:
    """Provide an empty ListingLedger trading on ``basic_nft``."""
    return ListingLedger(
        MARKET,
        registries={basic_nft.address: basic_nft},
        payments=wallets,
        event_bus=event_bus,
    )


@pytest.fixture
def token(basic_nft: BasicNft, marketplace: ListingLedger) -> AssetKey:
    """A token minted to SELLER with the marketplace approved for it."""
    token_id = basic_nft.mint_nft(SELLER)
    basic_nft.approve(SELLER, marketplace.address, token_id)
    return AssetKey(registry=basic_nft.address, token_id=token_id)


@pytest.fixture
def listed(marketplace: ListingLedger, token: AssetKey) -> AssetKey:
    """``token`` listed by SELLER at PRICE."""
    marketplace.list_item(token, PRICE, caller=SELLER)
    return token


@pytest.fixture
def deployment(journal: EventJournal) -> Deployment:
    """A provisioned deployment with a deterministic salt and a journal."""
    return deploy(salt="test-salt", journal=journal)


# ---------------------------------------------------------------------------
# Named parties — the fixtures above use the same values
# ---------------------------------------------------------------------------


@pytest.fixture
def price() -> int:
    return PRICE


@pytest.fixture
def seller() -> str:
    return SELLER


@pytest.fixture
def buyer() -> str:
    return BUYER


@pytest.fixture
def stranger() -> str:
    return STRANGER
