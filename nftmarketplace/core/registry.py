"""Asset registries — the external system of record for token ownership.

Defines the ``AssetRegistry`` Protocol the listing ledger consumes, and
``BasicNft``, an in-memory ERC-721 style collection used for local
provisioning, demos and tests.

The ledger never stores ownership itself.  It asks the registry who owns a
token and whether the marketplace may move it, and asks the registry to
perform the transfer when a sale completes.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from nftmarketplace.core.errors import (
    InvalidRecipient,
    TokenNotFound,
    TransferNotAuthorized,
)
from nftmarketplace.models.assets import ZERO_ADDRESS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class AssetRegistry(Protocol):
    """Protocol for ownership registries the listing ledger can trade on.

    Any object exposing these members satisfies the protocol; tests
    substitute their own fakes freely.
    """

    address: str

    def owner_of(self, token_id: int) -> str:
        """Return the current owner of *token_id*."""
        ...

    def get_approved(self, token_id: int) -> str:
        """Return the address approved to move *token_id*, or the zero address."""
        ...

    def transfer_from(
        self, operator: str, from_address: str, to_address: str, token_id: int
    ) -> None:
        """Move *token_id* on behalf of *operator*; raise if unauthorized."""
        ...


# ---------------------------------------------------------------------------
# In-memory ERC-721 style collection
# ---------------------------------------------------------------------------


class BasicNft:
    """Minimal mintable NFT collection sharing one metadata URI.

    Parameters
    ----------
    address:
        Address the collection is deployed at.
    name, symbol:
        Collection metadata.
    token_uri:
        Metadata URI returned for every token.

    Examples
    --------
    >>> nft = BasicNft("0xnft")
    >>> token_id = nft.mint_nft("0xalice")
    >>> nft.owner_of(token_id)
    '0xalice'
    >>> nft.token_counter
    1
    """

    def __init__(
        self,
        address: str,
        name: str = "Dogie",
        symbol: str = "DOG",
        token_uri: str = "",
    ) -> None:
        self.address = address
        self.name = name
        self.symbol = symbol
        self._token_uri = token_uri
        self._token_counter = 0
        self._owners: dict[int, str] = {}
        self._token_approvals: dict[int, str] = {}
        self._operator_approvals: dict[str, set[str]] = {}

    @property
    def token_counter(self) -> int:
        """Number of tokens minted so far (and the next token id)."""
        return self._token_counter

    # -- Minting ------------------------------------------------------------

    def mint_nft(self, minter: str) -> int:
        """Mint the next token to *minter* and return its id."""
        if minter == ZERO_ADDRESS:
            raise InvalidRecipient(minter)
        token_id = self._token_counter
        self._owners[token_id] = minter
        self._token_counter += 1
        logger.debug("%s minted token %d to %s.", self.symbol, token_id, minter)
        return token_id

    # -- Queries ------------------------------------------------------------

    def owner_of(self, token_id: int) -> str:
        owner = self._owners.get(token_id)
        if owner is None:
            raise TokenNotFound(token_id)
        return owner

    def balance_of(self, owner: str) -> int:
        return sum(1 for holder in self._owners.values() if holder == owner)

    def token_uri(self, token_id: int) -> str:
        self.owner_of(token_id)
        return self._token_uri

    def get_approved(self, token_id: int) -> str:
        self.owner_of(token_id)
        return self._token_approvals.get(token_id, ZERO_ADDRESS)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return operator in self._operator_approvals.get(owner, set())

    # -- Approvals ----------------------------------------------------------

    def approve(self, caller: str, to_address: str, token_id: int) -> None:
        """Approve *to_address* to move *token_id*.

        Approving the zero address clears any existing approval.  Only the
        owner or one of the owner's operators may approve.
        """
        owner = self.owner_of(token_id)
        if caller != owner and not self.is_approved_for_all(owner, caller):
            raise TransferNotAuthorized(caller, token_id)
        if to_address == ZERO_ADDRESS:
            self._token_approvals.pop(token_id, None)
        else:
            self._token_approvals[token_id] = to_address
        logger.debug(
            "%s token %d approval set to %s by %s.",
            self.symbol, token_id, to_address, caller,
        )

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        """Grant or revoke *operator* control over all of *caller*'s tokens."""
        operators = self._operator_approvals.setdefault(caller, set())
        if approved:
            operators.add(operator)
        else:
            operators.discard(operator)

    # -- Transfers ----------------------------------------------------------

    def transfer_from(
        self, operator: str, from_address: str, to_address: str, token_id: int
    ) -> None:
        """Move *token_id* from *from_address* to *to_address*.

        *operator* must be the owner, the token's approved address, or an
        approved operator of the owner.  The per-token approval is cleared.
        """
        owner = self.owner_of(token_id)
        if owner != from_address:
            raise TransferNotAuthorized(operator, token_id)
        if not self._is_approved_or_owner(operator, owner, token_id):
            raise TransferNotAuthorized(operator, token_id)
        if to_address == ZERO_ADDRESS:
            raise InvalidRecipient(to_address)

        self._token_approvals.pop(token_id, None)
        self._owners[token_id] = to_address
        logger.info(
            "%s token %d transferred %s -> %s.",
            self.symbol, token_id, from_address, to_address,
        )

    def _is_approved_or_owner(self, operator: str, owner: str, token_id: int) -> bool:
        return (
            operator == owner
            or self._token_approvals.get(token_id) == operator
            or self.is_approved_for_all(owner, operator)
        )
