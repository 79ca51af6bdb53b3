"""Value types shared by the registry engine and its callers."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TypedDict


class TokenRecordDict(TypedDict):
    """Serialized form of a TokenRecord (fingerprints hex-encoded)."""
    token_id: int
    item_fingerprint: str
    manufacturer: str
    minted_at: int
    description: str
    serial_number: str
    image_fingerprint: str | None
    owner: str
    transfer_locked: bool


@dataclass
class TokenRecord:
    """One live token: the authenticity claim for a single physical item."""

    token_id: int
    item_fingerprint: bytes
    manufacturer: str
    minted_at: int  # Registry height at mint time
    description: str
    serial_number: str
    image_fingerprint: bytes | None
    owner: str
    transfer_locked: bool = False

    def copy(self) -> "TokenRecord":
        """Detached copy, so query callers cannot mutate registry state."""
        return replace(self)

    def to_dict(self) -> TokenRecordDict:
        return {
            "token_id": self.token_id,
            "item_fingerprint": self.item_fingerprint.hex(),
            "manufacturer": self.manufacturer,
            "minted_at": self.minted_at,
            "description": self.description,
            "serial_number": self.serial_number,
            "image_fingerprint": (
                self.image_fingerprint.hex() if self.image_fingerprint is not None else None
            ),
            "owner": self.owner,
            "transfer_locked": self.transfer_locked,
        }


class HeightClock:
    """Monotonic registry height used to stamp mints.

    The engine only reads the height; whoever drives the registry (a block
    producer, a test) advances it.
    """

    _height: int

    def __init__(self, start: int = 0) -> None:
        self._height = start

    def __call__(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError(f"Height cannot move backwards (blocks={blocks})")
        self._height += blocks
        return self._height
