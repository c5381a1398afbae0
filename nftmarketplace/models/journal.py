"""Event journal entry model (append-only, hash-chained).

The journal is the durable record of everything a marketplace announced:
- Append-only (no UPDATE, no DELETE)
- Hash-chained per marketplace address
- One entry per published event
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from nftmarketplace.models.events import MarketEventKind


class JournalEntry(BaseModel):
    """A single entry in the event journal.

    ``event`` holds the JSON form of the published event so that
    indexers can rebuild listing state without the live ledger.
    """

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    market: str
    event_kind: MarketEventKind
    registry: str
    token_id: int
    event: dict[str, Any] = {}
    recorded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    payload_hash: str = ""  # copied from the published event
    previous_entry_hash: str = ""  # SHA-256 of previous entry's canonical bytes
    entry_hash: str = ""  # computed on append, seals this entry
