"""Append-only, hash-chained event journal backed by SQLite.

The journal is what indexers and the CLI read; the live ledger is never
reconstructed from it, only projected (see ``ListingProjection``).

Design:
- Append-only: only `append()` method; no update, no delete.
- Hash-chained per marketplace: each entry includes SHA-256 of the previous.
- WAL journal mode for concurrent readers.
- entry_hash UNIQUE constraint for tamper detection.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from nftmarketplace.core.hasher import compute_entry_hash
from nftmarketplace.models.events import MarketEvent, MarketEventKind
from nftmarketplace.models.journal import JournalEntry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_JOURNAL = """
CREATE TABLE IF NOT EXISTS market_journal (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_id              TEXT NOT NULL UNIQUE,
    market                TEXT NOT NULL,
    event_kind            TEXT NOT NULL,
    registry              TEXT NOT NULL,
    token_id              TEXT NOT NULL,  -- decimal text, ids may exceed 64 bits
    event_json            TEXT NOT NULL DEFAULT '{}',
    recorded_at           TEXT NOT NULL,
    payload_hash          TEXT NOT NULL DEFAULT '',
    previous_entry_hash   TEXT NOT NULL DEFAULT '',
    entry_hash            TEXT NOT NULL UNIQUE
);
"""

_CREATE_IDX_MARKET = """
CREATE INDEX IF NOT EXISTS idx_market ON market_journal(market, id);
"""

_CREATE_IDX_ASSET = """
CREATE INDEX IF NOT EXISTS idx_market_asset
    ON market_journal(market, registry, token_id, id);
"""


class JournalIntegrityError(RuntimeError):
    """Raised when the hash chain is broken."""


class EventJournal:
    """Append-only, hash-chained journal of marketplace events.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_JOURNAL)
            conn.execute(_CREATE_IDX_MARKET)
            conn.execute(_CREATE_IDX_ASSET)
            conn.commit()

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append(self, event: MarketEvent) -> JournalEntry:
        """Record a published event, computing hash chain links.

        Usable directly as an ``EventBus`` handler.  Returns the sealed
        entry.  This is the ONLY write method.
        """
        previous_hash = self._get_latest_hash(event.market)

        entry = JournalEntry(
            market=event.market,
            event_kind=event.event_kind,
            registry=event.registry,
            token_id=event.token_id,
            event=event.model_dump(mode="json"),
            payload_hash=event.payload_hash,
            previous_entry_hash=previous_hash,
        )
        entry_hash = compute_entry_hash(entry.model_dump(mode="json"))
        sealed = entry.model_copy(update={"entry_hash": entry_hash})

        self._insert(sealed)
        logger.debug(
            "Journaled %s for %s (%s).",
            sealed.event_kind.value, sealed.market, sealed.entry_hash[:12],
        )
        return sealed

    def _insert(self, entry: JournalEntry) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO market_journal
                    (entry_id, market, event_kind, registry, token_id,
                     event_json, recorded_at, payload_hash,
                     previous_entry_hash, entry_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.entry_id,
                    entry.market,
                    entry.event_kind.value,
                    entry.registry,
                    str(entry.token_id),
                    json.dumps(entry.event, sort_keys=True),
                    entry.recorded_at.isoformat()
                    if isinstance(entry.recorded_at, datetime)
                    else entry.recorded_at,
                    entry.payload_hash,
                    entry.previous_entry_hash,
                    entry.entry_hash,
                ),
            )
            conn.commit()

    def _get_latest_hash(self, market: str) -> str:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT entry_hash FROM market_journal WHERE market = ? "
                "ORDER BY id DESC LIMIT 1",
                (market,),
            ).fetchone()
        return row[0] if row else ""

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def get_latest(self, market: str) -> JournalEntry | None:
        """Return the most recent entry for a marketplace, or None."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM market_journal WHERE market = ? ORDER BY id DESC LIMIT 1",
                (market,),
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def get_entries(
        self, market: str, kind: MarketEventKind | None = None
    ) -> list[JournalEntry]:
        """Return entries for a marketplace in chronological order."""
        query = "SELECT * FROM market_journal WHERE market = ?"
        params: tuple = (market,)
        if kind is not None:
            query += " AND event_kind = ?"
            params = (market, kind.value)
        with self._connect() as conn:
            rows = conn.execute(query + " ORDER BY id ASC", params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_asset_history(
        self, market: str, registry: str, token_id: int
    ) -> list[JournalEntry]:
        """Return every entry about one asset on one marketplace."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM market_journal "
                "WHERE market = ? AND registry = ? AND token_id = ? ORDER BY id ASC",
                (market, registry, str(token_id)),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_all_markets(self) -> list[str]:
        """Return all marketplace addresses present in the journal."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT market FROM market_journal GROUP BY market ORDER BY MIN(id) ASC"
            ).fetchall()
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self, market: str) -> bool:
        """Verify the hash chain integrity for a marketplace.

        Returns True if the chain is valid, raises JournalIntegrityError
        otherwise.
        """
        prev_hash = ""
        for entry in self.get_entries(market):
            if entry.previous_entry_hash != prev_hash:
                raise JournalIntegrityError(
                    f"Chain broken at entry {entry.entry_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {entry.previous_entry_hash!r}"
                )

            expected_hash = compute_entry_hash(entry.model_dump(mode="json"))
            if entry.entry_hash != expected_hash:
                raise JournalIntegrityError(
                    f"Tampered entry {entry.entry_id}: "
                    f"expected hash={expected_hash!r}, "
                    f"got {entry.entry_hash!r}"
                )

            prev_hash = entry.entry_hash

        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_entry(row: tuple) -> JournalEntry:
        (
            _id,
            entry_id,
            market,
            event_kind,
            registry,
            token_id,
            event_json,
            recorded_at,
            payload_hash,
            previous_entry_hash,
            entry_hash,
        ) = row
        return JournalEntry(
            entry_id=entry_id,
            market=market,
            event_kind=MarketEventKind(event_kind),
            registry=registry,
            token_id=int(token_id),
            event=json.loads(event_json),
            recorded_at=recorded_at,
            payload_hash=payload_hash,
            previous_entry_hash=previous_entry_hash,
            entry_hash=entry_hash,
        )
