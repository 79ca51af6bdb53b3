"""External collaborators of the registry engine.

The engine never reaches outside itself except through these three seams:

1. ManufacturerRegistry - who may mint
2. ItemDatabase - durable audit record of every minted item
3. SettlementRail - moves mint and transfer fees

Each is a Protocol so deployments can plug in their own implementation
without touching engine logic. Simple in-memory implementations live here
for tests and local runs; the scrip-balance settlement rail is in scrip.py.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class SettlementError(Exception):
    """Raised by a settlement rail that could not move a fee."""

    def __init__(self, amount: int, from_id: str, to_id: str, reason: str) -> None:
        self.amount = amount
        self.from_id = from_id
        self.to_id = to_id
        self.reason = reason
        super().__init__(
            f"Settlement of {amount} from '{from_id}' to '{to_id}' failed: {reason}"
        )


@runtime_checkable
class ManufacturerRegistry(Protocol):
    """Decides which identities may mint."""

    def is_authorized(self, identity: str) -> bool: ...


@runtime_checkable
class ItemDatabase(Protocol):
    """Receives one audit record per successful mint."""

    def record_item(self, fingerprint: bytes, description: str, serial: str) -> None: ...


@runtime_checkable
class SettlementRail(Protocol):
    """Moves fee amounts between identities; raises SettlementError on failure."""

    def transfer(self, amount: int, from_id: str, to_id: str) -> None: ...


class StaticManufacturerRegistry:
    """Manufacturer registry backed by a fixed set of identities."""

    _authorized: set[str]

    def __init__(self, authorized: Iterable[str] = ()) -> None:
        self._authorized = set(authorized)

    def authorize(self, identity: str) -> None:
        self._authorized.add(identity)

    def revoke(self, identity: str) -> bool:
        """Remove an identity. Returns False if it was not authorized."""
        if identity in self._authorized:
            self._authorized.discard(identity)
            return True
        return False

    def is_authorized(self, identity: str) -> bool:
        return identity in self._authorized


@dataclass
class ItemDetail:
    """What the item database keeps per fingerprint."""
    description: str
    serial: str


class InMemoryItemDatabase:
    """Item database keeping details in a dict keyed by raw fingerprint."""

    items: dict[bytes, ItemDetail]

    def __init__(self) -> None:
        self.items = {}

    def record_item(self, fingerprint: bytes, description: str, serial: str) -> None:
        self.items[bytes(fingerprint)] = ItemDetail(description=description, serial=serial)

    def get_item(self, fingerprint: bytes) -> ItemDetail | None:
        return self.items.get(bytes(fingerprint))


@dataclass(frozen=True)
class FeeTransfer:
    """One fee movement as seen by a settlement rail."""
    amount: int
    from_id: str
    to_id: str


class RecordingSettlement:
    """Settlement rail that accepts every positive transfer and logs it.

    Useful where balances are settled elsewhere and the registry only needs
    a trail of what it charged.
    """

    transfers: list[FeeTransfer]

    def __init__(self) -> None:
        self.transfers = []

    def transfer(self, amount: int, from_id: str, to_id: str) -> None:
        if amount <= 0:
            raise SettlementError(amount, from_id, to_id, "amount must be positive")
        self.transfers.append(FeeTransfer(amount=amount, from_id=from_id, to_id=to_id))
        logger.debug("Recorded fee transfer of %d from %s to %s", amount, from_id, to_id)
