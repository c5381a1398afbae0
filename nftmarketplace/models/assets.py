"""Asset identity and listing models.

An ``AssetKey`` names one token inside one registry.  A ``Listing`` is the
active sale offer for that token; it exists in the ledger only while the
asset is for sale.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

ZERO_ADDRESS = "0x" + "0" * 40


class AssetKey(BaseModel):
    """Composite identifier ``(registry, token_id)`` of a single asset.

    Frozen, hence hashable — used directly as the ledger's listing key.

    Examples
    --------
    >>> key = AssetKey(registry="0xabc", token_id=7)
    >>> str(key)
    '0xabc#7'
    """

    model_config = ConfigDict(frozen=True)

    registry: str = Field(min_length=1)
    token_id: int = Field(ge=0)

    def __str__(self) -> str:
        return f"{self.registry}#{self.token_id}"


class Listing(BaseModel):
    """Active sale offer: who is selling and for how much (wei)."""

    model_config = ConfigDict(frozen=True)

    seller: str
    price: int = Field(gt=0)
