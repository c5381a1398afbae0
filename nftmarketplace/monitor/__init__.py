"""Marketplace monitor — read-only views over the event journal.

The monitor NEVER maintains its own state.  Every call re-reads the
journal.  It is a projection, not a source of truth.

Modules
-------
projection
    ``ListingProjection`` replays journal entries into ``MarketSnapshot``
    Pydantic models — what an indexer knows about a marketplace.
renderer
    ``MarketRenderer`` turns listings, balances, journal entries and
    snapshots into Rich renderables for terminal display.
"""
