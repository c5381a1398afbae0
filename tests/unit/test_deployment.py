"""Tests for local provisioning — deploy() and mint_and_list()."""

from __future__ import annotations

import pytest

from nftmarketplace.config import MarketplaceConfig
from nftmarketplace.core.deployment import DEFAULT_ACCOUNT_NAMES, Deployment, deploy, mint_and_list
from nftmarketplace.core.event_journal import EventJournal
from nftmarketplace.models.assets import Listing


class TestDeploy:
    def test_creates_named_accounts(self, deployment: Deployment):
        assert set(deployment.accounts) == set(DEFAULT_ACCOUNT_NAMES)
        assert len(set(deployment.accounts.values())) == len(DEFAULT_ACCOUNT_NAMES)

    def test_accounts_are_funded(self, deployment: Deployment):
        funding = MarketplaceConfig().account_funding_wei
        for address in deployment.accounts.values():
            assert deployment.wallets.balance_of(address) == funding

    def test_same_salt_same_addresses(self):
        a = deploy(salt="fixed")
        b = deploy(salt="fixed")
        assert a.accounts == b.accounts
        assert a.marketplace.address == b.marketplace.address
        assert a.basic_nft.address == b.basic_nft.address

    def test_random_salt_by_default(self):
        assert deploy().marketplace.address != deploy().marketplace.address

    def test_addresses_look_like_addresses(self, deployment: Deployment):
        for address in [deployment.marketplace.address, *deployment.accounts.values()]:
            assert address.startswith("0x")
            assert len(address) == 42

    def test_collection_uses_config(self):
        config = MarketplaceConfig(collection_name="Cats", collection_symbol="CAT")
        nft = deploy(config, salt="cats").basic_nft
        assert (nft.name, nft.symbol) == ("Cats", "CAT")

    def test_custom_account_names(self):
        deployment = deploy(salt="x", account_names=("alice", "bob"))
        assert set(deployment.accounts) == {"alice", "bob"}

    def test_unknown_account(self, deployment: Deployment):
        with pytest.raises(KeyError, match="nobody"):
            deployment.account("nobody")

    def test_events_are_journaled(self, deployment: Deployment, journal: EventJournal):
        mint_and_list(deployment, deployment.account("deployer"), 10**17)
        entries = journal.get_entries(deployment.marketplace.address)
        assert len(entries) == 1
        assert journal.verify_chain(deployment.marketplace.address) is True

    def test_no_journal_is_fine(self):
        deployment = deploy(salt="bare")
        assert deployment.journal is None
        mint_and_list(deployment, deployment.account("deployer"), 10**17)
        assert len(deployment.event_bus.history) == 1


class TestMintAndList:
    def test_lists_fresh_token(self, deployment: Deployment):
        seller = deployment.account("deployer")
        key = mint_and_list(deployment, seller, 10**17)
        assert key.registry == deployment.basic_nft.address
        assert key.token_id == 0
        assert deployment.marketplace.get_listing(key) == Listing(seller=seller, price=10**17)
        assert deployment.basic_nft.get_approved(key.token_id) == deployment.marketplace.address

    def test_successive_calls_mint_new_tokens(self, deployment: Deployment):
        seller = deployment.account("deployer")
        first = mint_and_list(deployment, seller, 10**17)
        second = mint_and_list(deployment, seller, 10**17)
        assert second.token_id == first.token_id + 1
        assert len(deployment.marketplace.listings()) == 2
