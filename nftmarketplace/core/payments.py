"""Value movement — how buyer payments enter and proceeds leave the marketplace.

Defines the ``PaymentGateway`` Protocol consumed by the listing ledger and
``Wallets``, an in-memory native-currency balance book.  A purchase collects
the payment from the buyer; a withdrawal releases proceeds to the seller.

Wallets may carry a receiver hook per address, invoked on every release; a
hook that raises rejects the payment, the same way a contract whose
``receive`` reverts makes the sender's value call fail.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from nftmarketplace.core.errors import InsufficientFunds, PaymentRejected

logger = logging.getLogger(__name__)

ReceiverHook = Callable[[str, int], None]


@runtime_checkable
class PaymentGateway(Protocol):
    """Protocol for moving value into and out of the marketplace.

    ``collect`` must either take the full amount from the payer or raise
    ``InsufficientFunds`` having taken nothing.  ``refund`` returns an
    amount taken by ``collect`` and must not fail.  ``release`` must either
    deliver the full amount or raise ``PaymentRejected`` having delivered
    nothing.
    """

    def collect(self, payer: str, amount: int) -> None:
        ...

    def refund(self, payer: str, amount: int) -> None:
        ...

    def release(self, recipient: str, amount: int) -> None:
        ...


class Wallets:
    """In-memory native-currency balances keyed by address.

    Examples
    --------
    >>> wallets = Wallets()
    >>> wallets.fund("0xalice", 100)
    >>> wallets.release("0xalice", 50)
    >>> wallets.balance_of("0xalice")
    150
    """

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._receivers: dict[str, ReceiverHook] = {}

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def fund(self, address: str, amount: int) -> None:
        """Credit *address* from outside the system (faucet / genesis)."""
        if amount < 0:
            raise ValueError(f"Funding amount must not be negative: {amount}")
        self._balances[address] = self.balance_of(address) + amount

    def collect(self, payer: str, amount: int) -> None:
        """Debit *payer* by *amount*; raise ``InsufficientFunds`` if short."""
        if amount < 0:
            raise ValueError(f"Collect amount must not be negative: {amount}")
        balance = self.balance_of(payer)
        if balance < amount:
            raise InsufficientFunds(payer, amount, balance)
        self._balances[payer] = balance - amount
        logger.debug("Collected %d wei from %s.", amount, payer)

    def refund(self, payer: str, amount: int) -> None:
        """Return a collected amount.  Receiver hooks are not run."""
        if amount < 0:
            raise ValueError(f"Refund amount must not be negative: {amount}")
        self._balances[payer] = self.balance_of(payer) + amount
        logger.debug("Refunded %d wei to %s.", amount, payer)

    def register_receiver(self, address: str, hook: ReceiverHook) -> None:
        """Install a hook called as ``hook(address, amount)`` after each credit."""
        self._receivers[address] = hook

    def unregister_receiver(self, address: str) -> None:
        self._receivers.pop(address, None)

    def release(self, recipient: str, amount: int) -> None:
        """Credit *recipient* with *amount*, then run its receiver hook.

        If the hook raises, the credit is undone and ``PaymentRejected`` is
        raised with the hook's exception chained.
        """
        if amount < 0:
            raise ValueError(f"Release amount must not be negative: {amount}")

        before = self.balance_of(recipient)
        self._balances[recipient] = before + amount

        hook = self._receivers.get(recipient)
        if hook is None:
            logger.debug("Released %d wei to %s.", amount, recipient)
            return

        try:
            hook(recipient, amount)
        except Exception as exc:
            self._balances[recipient] = before
            logger.warning(
                "Receiver hook for %s rejected %d wei: %s", recipient, amount, exc
            )
            raise PaymentRejected(recipient, amount, reason=str(exc)) from exc
        logger.debug("Released %d wei to %s (hook accepted).", amount, recipient)
