"""Adversarial tests — journal tampering and chain integrity.

These tests verify that the EventJournal detects:
1. Corrupted entry hashes
2. Rewritten event payloads (e.g. a forged sale price)
3. Deleted or relinked entries
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from nftmarketplace.core.deployment import deploy, mint_and_list
from nftmarketplace.core.event_journal import EventJournal, JournalIntegrityError
from nftmarketplace.monitor.projection import ListingProjection


class TestJournalTamperDetection:
    """Direct SQLite manipulation to simulate an attacker with DB access."""

    @pytest.fixture
    def seeded_journal(self, tmp_path: Path) -> tuple[EventJournal, str]:
        """Run five listings and one sale through a journaled marketplace."""
        journal = EventJournal(tmp_path / "journal.db")
        deployment = deploy(salt="adversarial", journal=journal)
        seller = deployment.account("deployer")
        keys = [mint_and_list(deployment, seller, 10**17) for _ in range(5)]
        deployment.marketplace.buy_item(
            keys[0], caller=deployment.account("player"), payment=10**17
        )
        return journal, deployment.marketplace.address

    @staticmethod
    def _execute(journal: EventJournal, sql: str, params: tuple = ()) -> None:
        conn = sqlite3.connect(str(journal.db_path))
        conn.execute(sql, params)
        conn.commit()
        conn.close()

    def test_untouched_chain_is_valid(self, seeded_journal):
        journal, market = seeded_journal
        assert journal.verify_chain(market) is True

    def test_corrupted_entry_hash_detected(self, seeded_journal):
        journal, market = seeded_journal
        self._execute(
            journal,
            "UPDATE market_journal SET entry_hash = 'TAMPERED' "
            "WHERE id = (SELECT id FROM market_journal WHERE market = ? "
            "ORDER BY id ASC LIMIT 1 OFFSET 2)",
            (market,),
        )
        with pytest.raises(JournalIntegrityError, match="(Chain broken|Tampered)"):
            journal.verify_chain(market)

    def test_forged_sale_price_detected(self, seeded_journal):
        journal, market = seeded_journal
        conn = sqlite3.connect(str(journal.db_path))
        row_id, event_json = conn.execute(
            "SELECT id, event_json FROM market_journal "
            "WHERE market = ? AND event_kind = 'item_bought'",
            (market,),
        ).fetchone()
        forged = event_json.replace('"price": 100000000000000000', '"price": 1')
        assert forged != event_json
        conn.execute(
            "UPDATE market_journal SET event_json = ? WHERE id = ?", (forged, row_id)
        )
        conn.commit()
        conn.close()

        with pytest.raises(JournalIntegrityError, match="Tampered"):
            journal.verify_chain(market)

    def test_retargeted_token_detected(self, seeded_journal):
        journal, market = seeded_journal
        self._execute(
            journal,
            "UPDATE market_journal SET token_id = '42' "
            "WHERE id = (SELECT id FROM market_journal WHERE market = ? "
            "ORDER BY id ASC LIMIT 1 OFFSET 1)",
            (market,),
        )
        with pytest.raises(JournalIntegrityError, match="Tampered"):
            journal.verify_chain(market)

    def test_deleted_entry_breaks_chain(self, seeded_journal):
        journal, market = seeded_journal
        self._execute(
            journal,
            "DELETE FROM market_journal WHERE id = (SELECT id FROM market_journal "
            "WHERE market = ? ORDER BY id ASC LIMIT 1 OFFSET 1)",
            (market,),
        )
        with pytest.raises(JournalIntegrityError, match="Chain broken"):
            journal.verify_chain(market)

    def test_broken_chain_link_detected(self, seeded_journal):
        journal, market = seeded_journal
        self._execute(
            journal,
            "UPDATE market_journal SET previous_entry_hash = 'WRONG_LINK' "
            "WHERE id = (SELECT id FROM market_journal WHERE market = ? "
            "ORDER BY id ASC LIMIT 1 OFFSET 3)",
            (market,),
        )
        with pytest.raises(JournalIntegrityError, match="Chain broken"):
            journal.verify_chain(market)

    def test_projection_flags_tampering(self, seeded_journal):
        journal, market = seeded_journal
        self._execute(
            journal,
            "DELETE FROM market_journal WHERE id = (SELECT MIN(id) FROM market_journal)",
        )
        assert ListingProjection(journal).snapshot(market).chain_valid is False
