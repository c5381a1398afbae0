"""Listing ledger — the marketplace's sole mutable state.

The ledger maps each asset to at most one active listing and each seller
to a withdrawable proceeds balance.  Five operations mutate it:

    list_item        Unlisted -> Listed
    update_listing   Listed   -> Listed   (price only)
    cancel_listing   Listed   -> Unlisted
    buy_item         Listed   -> Unlisted (credits the seller)
    withdraw_proceeds                     (zeroes the caller's balance)

Every operation runs inside a transaction scope: it completes, or every
change it made (including changes made by operations re-entered from a
collaborator while it was in flight) is undone and no event is published.

Collaborator calls (registry transfer, value release) happen only after the
ledger's own state already reflects the outcome, so a re-entrant call sees
the asset unlisted or the balance already zeroed.

The two operations that move value, ``buy_item`` and ``withdraw_proceeds``,
refuse to run while another operation is in flight (``ReentrantCall``).  A
nested scope can therefore only hold ledger-internal changes, which are
safe to undo with the outer operation.  The buyer's payment is the one
external effect an operation can roll back: it is refunded through the
payment gateway.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager

from nftmarketplace.core.errors import (
    AlreadyListed,
    LedgerInvariantError,
    MarketplaceError,
    NoProceeds,
    NotApprovedForMarketplace,
    NotListed,
    NotOwner,
    PaymentRejected,
    PriceMustBeAboveZero,
    PriceNotMet,
    ReentrantCall,
    TransferFailed,
    UnknownRegistry,
)
from nftmarketplace.core.event_bus import EventBus, EventDeliveryError
from nftmarketplace.core.payments import PaymentGateway
from nftmarketplace.core.registry import AssetRegistry
from nftmarketplace.models.assets import AssetKey, Listing
from nftmarketplace.models.events import (
    ItemBought,
    ItemCanceled,
    ItemListed,
    MarketEvent,
)

logger = logging.getLogger(__name__)


class ListingLedger:
    """Fixed-price listing ledger with pull-based seller payouts.

    Parameters
    ----------
    address:
        The ledger's own identity.  Registries must approve this address
        before an asset can be listed.
    registries:
        Asset registries keyed by their address.  An ``AssetKey`` whose
        registry is not in this mapping is rejected with
        ``UnknownRegistry``.
    payments:
        Gateway that collects buyer payments and releases withdrawn
        proceeds.
    event_bus:
        Bus that receives committed events.  A private bus is created if
        not provided.
    """

    def __init__(
        self,
        address: str,
        registries: Mapping[str, AssetRegistry],
        payments: PaymentGateway,
        event_bus: EventBus | None = None,
    ) -> None:
        self.address = address
        self._registries: dict[str, AssetRegistry] = dict(registries)
        self._payments = payments
        self.event_bus = event_bus or EventBus()

        self._listings: dict[AssetKey, Listing] = {}
        self._proceeds: dict[str, int] = {}
        # Value received from buyers and not yet withdrawn.
        self._escrow = 0

        self._depth = 0
        self._pending: list[MarketEvent] = []
        # Undo actions for external effects, run in reverse on rollback.
        self._compensations: list[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def add_registry(self, registry: AssetRegistry) -> None:
        """Make assets of *registry* tradable on this ledger."""
        self._registries[registry.address] = registry

    def _registry_for(self, key: AssetKey) -> AssetRegistry:
        registry = self._registries.get(key.registry)
        if registry is None:
            raise UnknownRegistry(key.registry)
        return registry

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_listing(self, key: AssetKey) -> Listing | None:
        """Return the active listing for *key*, or None if not listed."""
        return self._listings.get(key)

    def is_listed(self, key: AssetKey) -> bool:
        return key in self._listings

    def listings(self) -> dict[AssetKey, Listing]:
        """Snapshot of all active listings."""
        return dict(self._listings)

    def get_proceeds(self, seller: str) -> int:
        """Return the withdrawable balance of *seller* (zero if none)."""
        return self._proceeds.get(seller, 0)

    @property
    def escrow_balance(self) -> int:
        """Total value held on behalf of sellers."""
        return self._escrow

    # ------------------------------------------------------------------
    # Transaction scope
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[None]:
        """Run a public operation all-or-nothing.

        Scopes nest when a collaborator re-enters the ledger.  Events are
        buffered and published only once the outermost scope commits.
        """
        listings = dict(self._listings)
        proceeds = dict(self._proceeds)
        escrow = self._escrow
        mark = len(self._pending)
        undo_mark = len(self._compensations)

        self._depth += 1
        try:
            yield
            if self._depth == 1:
                self._check_invariants()
        except Exception as exc:
            self._listings.clear()
            self._listings.update(listings)
            self._proceeds.clear()
            self._proceeds.update(proceeds)
            self._escrow = escrow
            del self._pending[mark:]
            for compensate in reversed(self._compensations[undo_mark:]):
                compensate()
            del self._compensations[undo_mark:]
            if isinstance(exc, MarketplaceError):
                logger.debug("%s rejected: %s", operation, exc)
            else:
                logger.warning("%s rolled back: %s", operation, exc)
            raise
        finally:
            self._depth -= 1

        if self._depth == 0:
            self._compensations.clear()
            self._flush_events()

    def _emit(self, event: MarketEvent) -> None:
        self._pending.append(event)

    def _flush_events(self) -> None:
        """Publish every committed event, then report any handler failures.

        The operation has already committed; a failing handler neither
        undoes it nor keeps the remaining events from being published.
        """
        events, self._pending = self._pending, []
        failures = []
        for event in events:
            try:
                self.event_bus.publish(event)
            except EventDeliveryError as exc:
                failures.extend(exc.failures)
        if failures:
            raise EventDeliveryError(failures) from failures[0][1]

    def _check_invariants(self) -> None:
        held = sum(self._proceeds.values())
        if held != self._escrow:
            msg = (
                f"Proceeds ledger corrupted: sellers are owed {held} wei "
                f"but escrow holds {self._escrow} wei"
            )
            logger.critical(msg)
            raise LedgerInvariantError(msg)
        for key, listing in self._listings.items():
            if listing.price <= 0:
                msg = f"Listing for {key} has non-positive price {listing.price}"
                logger.critical(msg)
                raise LedgerInvariantError(msg)

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_listed(self, key: AssetKey) -> Listing:
        listing = self._listings.get(key)
        if listing is None:
            raise NotListed(key)
        return listing

    def _require_owner(self, key: AssetKey, caller: str) -> None:
        if self._registry_for(key).owner_of(key.token_id) != caller:
            raise NotOwner(key, caller)

    def _require_idle(self, operation: str) -> None:
        if self._depth > 1:
            raise ReentrantCall(operation)

    @staticmethod
    def _require_positive_price(price: int) -> None:
        if price <= 0:
            raise PriceMustBeAboveZero(price)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def list_item(self, key: AssetKey, price: int, *, caller: str) -> Listing:
        """List *key* for sale at *price* wei.

        Raises
        ------
        AlreadyListed
            An active listing exists for *key*.
        NotOwner
            *caller* is not the registry-reported owner.
        PriceMustBeAboveZero
            *price* is zero or negative.
        NotApprovedForMarketplace
            The registry has not approved this ledger for the token.
        """
        with self._transaction("list_item"):
            if key in self._listings:
                raise AlreadyListed(key)
            self._require_owner(key, caller)
            self._require_positive_price(price)
            if self._registry_for(key).get_approved(key.token_id) != self.address:
                raise NotApprovedForMarketplace(key)

            listing = Listing(seller=caller, price=price)
            self._listings[key] = listing
            self._emit(self._listed_event(key, caller, price))

        logger.info("Listed %s by %s at %d wei.", key, caller, price)
        return listing

    def cancel_listing(self, key: AssetKey, *, caller: str) -> None:
        """Withdraw the listing for *key*.

        Raises ``NotListed`` or ``NotOwner``.
        """
        with self._transaction("cancel_listing"):
            self._require_listed(key)
            self._require_owner(key, caller)

            del self._listings[key]
            self._emit(
                ItemCanceled(
                    market=self.address,
                    registry=key.registry,
                    token_id=key.token_id,
                )
            )

        logger.info("Canceled listing %s by %s.", key, caller)

    def update_listing(self, key: AssetKey, new_price: int, *, caller: str) -> Listing:
        """Re-price an existing listing; the seller is unchanged.

        Emits ``ItemListed`` exactly as a fresh listing would.  Raises
        ``NotListed``, ``NotOwner`` or ``PriceMustBeAboveZero``.
        """
        with self._transaction("update_listing"):
            listing = self._require_listed(key)
            self._require_owner(key, caller)
            self._require_positive_price(new_price)

            updated = listing.model_copy(update={"price": new_price})
            self._listings[key] = updated
            self._emit(self._listed_event(key, caller, new_price))

        logger.info("Updated %s to %d wei by %s.", key, new_price, caller)
        return updated

    def buy_item(self, key: AssetKey, *, caller: str, payment: int) -> Listing:
        """Buy *key* with *payment* wei attached.

        The payment is collected from *caller* through the payment gateway.
        Any payment at or above the listing price is accepted and credited
        to the seller in full.  Returns the listing that was filled.

        Raises
        ------
        NotListed
            No active listing for *key*.
        PriceNotMet
            *payment* is below the listing price.
        ReentrantCall
            Another ledger operation is in flight.
        InsufficientFunds
            *caller* cannot cover *payment*; nothing is changed.
        AssetRegistryError
            The registry refused the transfer; the payment is refunded and
            nothing else is changed.
        """
        if payment < 0:
            raise ValueError(f"Payment must not be negative: {payment}")

        with self._transaction("buy_item"):
            listing = self._require_listed(key)
            if payment < listing.price:
                raise PriceNotMet(key, listing.price, payment)
            self._require_idle("buy_item")

            self._payments.collect(caller, payment)
            self._compensations.append(lambda: self._payments.refund(caller, payment))

            del self._listings[key]
            self._proceeds[listing.seller] = self.get_proceeds(listing.seller) + payment
            self._escrow += payment

            self._registry_for(key).transfer_from(
                self.address, listing.seller, caller, key.token_id
            )
            self._emit(
                ItemBought(
                    market=self.address,
                    registry=key.registry,
                    token_id=key.token_id,
                    buyer=caller,
                    price=listing.price,
                )
            )

        logger.info(
            "Sold %s from %s to %s for %d wei (listed at %d).",
            key, listing.seller, caller, payment, listing.price,
        )
        return listing

    def withdraw_proceeds(self, *, caller: str) -> int:
        """Release the caller's entire proceeds balance and return the amount.

        Raises ``NoProceeds`` if the balance is zero, ``ReentrantCall`` if
        another ledger operation is in flight, and ``TransferFailed`` if the
        payment gateway rejects the release (balance kept).
        """
        with self._transaction("withdraw_proceeds"):
            amount = self.get_proceeds(caller)
            if amount == 0:
                raise NoProceeds(caller)
            self._require_idle("withdraw_proceeds")

            del self._proceeds[caller]
            self._escrow -= amount

            try:
                self._payments.release(caller, amount)
            except PaymentRejected as exc:
                raise TransferFailed(caller, amount) from exc

        logger.info("Withdrew %d wei of proceeds to %s.", amount, caller)
        return amount

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _listed_event(self, key: AssetKey, seller: str, price: int) -> ItemListed:
        return ItemListed(
            market=self.address,
            registry=key.registry,
            token_id=key.token_id,
            seller=seller,
            price=price,
        )
