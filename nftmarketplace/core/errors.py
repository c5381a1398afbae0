"""Typed failure conditions raised by the marketplace and its collaborators.

Every guard failure is a ``MarketplaceError`` subclass carrying the
offending asset key, caller, or amounts as attributes.  Callers match on
the type and inspect the attributes; the message text is for humans only.
"""

from __future__ import annotations

from nftmarketplace.models.assets import AssetKey


# ---------------------------------------------------------------------------
# Listing ledger guard failures
# ---------------------------------------------------------------------------


class MarketplaceError(Exception):
    """Base class for expected, caller-recoverable marketplace failures."""


class PriceMustBeAboveZero(MarketplaceError):
    def __init__(self, price: int) -> None:
        self.price = price
        super().__init__(f"Price must be above zero, got {price}")


class NotApprovedForMarketplace(MarketplaceError):
    def __init__(self, asset_key: AssetKey) -> None:
        self.asset_key = asset_key
        super().__init__(f"Marketplace is not approved to transfer {asset_key}")


class AlreadyListed(MarketplaceError):
    def __init__(self, asset_key: AssetKey) -> None:
        self.asset_key = asset_key
        super().__init__(f"{asset_key} is already listed")


class NotOwner(MarketplaceError):
    def __init__(self, asset_key: AssetKey, caller: str) -> None:
        self.asset_key = asset_key
        self.caller = caller
        super().__init__(f"{caller} does not own {asset_key}")


class NotListed(MarketplaceError):
    def __init__(self, asset_key: AssetKey) -> None:
        self.asset_key = asset_key
        super().__init__(f"{asset_key} is not listed")


class PriceNotMet(MarketplaceError):
    def __init__(self, asset_key: AssetKey, price: int, offered: int) -> None:
        self.asset_key = asset_key
        self.price = price
        self.offered = offered
        super().__init__(
            f"Price not met for {asset_key}: listed at {price}, offered {offered}"
        )


class NoProceeds(MarketplaceError):
    def __init__(self, caller: str) -> None:
        self.caller = caller
        super().__init__(f"{caller} has no proceeds to withdraw")


class TransferFailed(MarketplaceError):
    def __init__(self, recipient: str, amount: int) -> None:
        self.recipient = recipient
        self.amount = amount
        super().__init__(f"Release of {amount} wei to {recipient} failed")


class UnknownRegistry(MarketplaceError):
    """The asset key names a registry this ledger was not wired to."""

    def __init__(self, registry: str) -> None:
        self.registry = registry
        super().__init__(f"No asset registry known at {registry}")


class ReentrantCall(MarketplaceError):
    """A value-moving operation was called while another one was in flight."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"{operation} refused: another marketplace operation is in progress"
        )


class LedgerInvariantError(RuntimeError):
    """Raised when the ledger's own bookkeeping is inconsistent.

    Never an expected path: it indicates a defect in the core, not a
    caller mistake.
    """


# ---------------------------------------------------------------------------
# Collaborator failures
# ---------------------------------------------------------------------------


class AssetRegistryError(Exception):
    """Base class for failures reported by an asset registry."""


class TokenNotFound(AssetRegistryError):
    def __init__(self, token_id: int) -> None:
        self.token_id = token_id
        super().__init__(f"Token {token_id} does not exist")


class TransferNotAuthorized(AssetRegistryError):
    def __init__(self, operator: str, token_id: int) -> None:
        self.operator = operator
        self.token_id = token_id
        super().__init__(f"{operator} is not authorized to move token {token_id}")


class InvalidRecipient(AssetRegistryError):
    def __init__(self, recipient: str) -> None:
        self.recipient = recipient
        super().__init__(f"Invalid recipient {recipient}")


class PaymentRejected(Exception):
    """Raised by a payment gateway when value could not be delivered."""

    def __init__(self, recipient: str, amount: int, reason: str = "") -> None:
        self.recipient = recipient
        self.amount = amount
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Payment of {amount} wei to {recipient} rejected{detail}")


class InsufficientFunds(Exception):
    """Raised by a payment gateway when a payer cannot cover an amount."""

    def __init__(self, payer: str, amount: int, balance: int) -> None:
        self.payer = payer
        self.amount = amount
        self.balance = balance
        super().__init__(
            f"{payer} cannot pay {amount} wei (balance {balance} wei)"
        )
