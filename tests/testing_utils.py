"""Testing utilities shared by the registry tests.

Usage:
    from tests.testing_utils import ADMIN, MINTER, ITEM_HASH, fingerprint

    engine.mint(MINTER, fingerprint(7), "Bag", "SN7")
"""

from __future__ import annotations

from typing import Any

from authreg.registry import ErrorCode, OperationResult

ADMIN = "admin"
MINTER = "minter"
RECIPIENT = "recipient"
MINT_FEE = 100
TRANSFER_FEE = 50

# 32 x 0x01 - the item fingerprint used throughout the scenarios
ITEM_HASH = bytes([0x01] * 32)
OTHER_HASH = bytes([0x02] * 32)


def fingerprint(n: int) -> bytes:
    """A distinct 32-byte fingerprint for each n in 0..255."""
    return bytes([n] * 32)


def assert_rejected(result: OperationResult[Any], code: ErrorCode) -> None:
    """Assert a result failed with the given code and carries a full error."""
    assert result.success is False
    assert result.value is None
    assert result.code is code, f"expected {code}, got {result.code}: {result.error}"
    assert result.error is not None
    assert result.error.wire_code == code.wire_code
