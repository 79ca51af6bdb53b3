"""Scrip ledger - integer fee balances per principal

A minimal currency ledger that doubles as the registry's settlement rail.
Balances are discrete integer units and never go negative: a transfer the
payer cannot afford is refused as a whole.

Principals can be any string id. A recipient without a balance starts at
zero, so fees can be paid to an administrator that was never funded.
"""

from __future__ import annotations

import logging

from .collaborators import FeeTransfer, SettlementError

logger = logging.getLogger(__name__)


class ScripLedger:
    """
    Tracks scrip per principal and settles registry fees.

    - scrip: {principal_id: balance}
    - transfers: every successful transfer, oldest first
    """

    scrip: dict[str, int]
    transfers: list[FeeTransfer]

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self.scrip = dict(balances) if balances else {}
        self.transfers = []

    def get_scrip(self, principal_id: str) -> int:
        """Get scrip balance, 0 for unknown principals."""
        return self.scrip.get(principal_id, 0)

    def can_afford_scrip(self, principal_id: str, amount: int) -> bool:
        return self.get_scrip(principal_id) >= amount

    def transfer_scrip(self, from_id: str, to_id: str, amount: int) -> bool:
        """Move scrip between principals. Returns False if the payer is short."""
        if amount <= 0 or not self.can_afford_scrip(from_id, amount):
            return False
        self.scrip[from_id] -= amount
        self.scrip[to_id] = self.get_scrip(to_id) + amount
        self.transfers.append(FeeTransfer(amount=amount, from_id=from_id, to_id=to_id))
        return True

    # ===== SETTLEMENT RAIL =====

    def transfer(self, amount: int, from_id: str, to_id: str) -> None:
        """Settle a fee, raising SettlementError instead of returning False."""
        if amount <= 0:
            raise SettlementError(amount, from_id, to_id, "amount must be positive")
        if not self.transfer_scrip(from_id, to_id, amount):
            balance = self.get_scrip(from_id)
            logger.warning(
                "Settlement refused: %s has %d scrip, needs %d", from_id, balance, amount
            )
            raise SettlementError(
                amount, from_id, to_id, f"insufficient scrip (balance {balance})"
            )
