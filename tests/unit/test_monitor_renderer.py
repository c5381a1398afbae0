"""Tests for the MarketRenderer — Rich tables and panels."""

from __future__ import annotations

from io import StringIO

import pytest
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nftmarketplace.core.deployment import Deployment, mint_and_list
from nftmarketplace.core.event_journal import EventJournal
from nftmarketplace.models.assets import AssetKey, Listing
from nftmarketplace.monitor.projection import ListingProjection
from nftmarketplace.monitor.renderer import MarketRenderer, short_address


@pytest.fixture
def output() -> StringIO:
    return StringIO()


@pytest.fixture
def renderer(output: StringIO) -> MarketRenderer:
    return MarketRenderer(console=Console(file=output, width=160, color_system=None))


def _print(renderer: MarketRenderer, renderable) -> None:
    renderer.console.print(renderable)


class TestShortAddress:
    def test_abbreviates_long_addresses(self):
        assert short_address("0x" + "ab" * 20) == "0xabab...abab"

    def test_leaves_short_labels(self):
        assert short_address("0xnft") == "0xnft"
        assert short_address("deployer") == "deployer"


class TestMarketRenderer:
    def test_listings_table(self, renderer: MarketRenderer, output: StringIO):
        key = AssetKey(registry="0x" + "12" * 20, token_id=7)
        table = renderer.render_listings({key: Listing(seller="0xseller", price=10**17)})
        assert isinstance(table, Table)
        _print(renderer, table)
        text = output.getvalue()
        assert "Active Listings" in text
        assert "0.1" in text
        assert "0xseller" in text

    def test_empty_listings(self, renderer: MarketRenderer, output: StringIO):
        _print(renderer, renderer.render_listings({}))
        assert "nothing listed" in output.getvalue()

    def test_balances_table(self, renderer: MarketRenderer, output: StringIO):
        table = renderer.render_balances({"deployer": ("0xd", 10**17, 150 * 10**18)})
        _print(renderer, table)
        text = output.getvalue()
        assert "deployer" in text
        assert "150.0" in text

    def test_journal_table(
        self,
        renderer: MarketRenderer,
        output: StringIO,
        deployment: Deployment,
        journal: EventJournal,
    ):
        key = mint_and_list(deployment, deployment.account("deployer"), 10**17)
        deployment.marketplace.cancel_listing(key, caller=deployment.account("deployer"))
        entries = journal.get_entries(deployment.marketplace.address)

        _print(renderer, renderer.render_journal(entries))
        text = output.getvalue()
        assert "LISTED" in text
        assert "CANCELED" in text
        assert entries[0].entry_hash[:12] in text

    def test_snapshot_panel(
        self,
        renderer: MarketRenderer,
        output: StringIO,
        deployment: Deployment,
        journal: EventJournal,
    ):
        mint_and_list(deployment, deployment.account("deployer"), 10**17)
        snapshot = ListingProjection(journal).snapshot(deployment.marketplace.address)
        panel = renderer.render_snapshot(snapshot)
        assert isinstance(panel, Panel)

        renderer.print_snapshot(snapshot)
        text = output.getvalue()
        assert "NFT Marketplace" in text
        assert "Active:" in text
        assert "valid" in text

    @pytest.mark.parametrize(("valid", "expected"), [(True, "is valid"), (False, "BROKEN")])
    def test_chain_verification(
        self, renderer: MarketRenderer, output: StringIO, valid: bool, expected: str
    ):
        renderer.print_chain_verification("0xmarket", valid)
        assert expected in output.getvalue()
