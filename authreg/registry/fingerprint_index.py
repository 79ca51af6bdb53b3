"""Fingerprint index - one live token per physical item

Maps the 32-byte item fingerprint of every live token to its token id, so
the same physical item cannot be minted twice while its token exists.
Keys are the raw fingerprint bytes; no hex or text re-encoding is involved,
so two fingerprints collide only if they are byte-for-byte equal.

Usage:
    index = FingerprintIndex()

    # Register fingerprints (raises if already indexed)
    index.register(fingerprint, 1)

    # Lookup returns the token id
    index.lookup(fingerprint)  # 1

    # Unregister when the token is burned
    index.unregister(fingerprint)
"""

from __future__ import annotations


class DuplicateFingerprintError(Exception):
    """Raised when attempting to index a fingerprint that is already live."""

    def __init__(self, fingerprint: bytes, existing_id: int, new_id: int) -> None:
        self.fingerprint = fingerprint
        self.existing_id = existing_id
        self.new_id = new_id
        super().__init__(
            f"Fingerprint collision: {fingerprint.hex()} already indexed as token "
            f"{existing_id}, cannot index as token {new_id}"
        )


class FingerprintIndex:
    """Byte-exact index from item fingerprint to live token id.

    Thread-safety: This class is NOT thread-safe. Callers serialize access
    (the registry engine is single-writer).
    """

    _ids: dict[bytes, int]

    def __init__(self) -> None:
        """Initialize empty index."""
        self._ids = {}

    def register(self, fingerprint: bytes, token_id: int) -> None:
        """Index a fingerprint for a newly minted token.

        Args:
            fingerprint: The item fingerprint
            token_id: Id of the token that now owns the fingerprint

        Raises:
            DuplicateFingerprintError: If the fingerprint is already indexed
        """
        key = bytes(fingerprint)
        if key in self._ids:
            raise DuplicateFingerprintError(key, self._ids[key], token_id)
        self._ids[key] = token_id

    def unregister(self, fingerprint: bytes) -> bool:
        """Remove a fingerprint from the index.

        Returns:
            True if the fingerprint was removed, False if it wasn't indexed
        """
        key = bytes(fingerprint)
        if key in self._ids:
            del self._ids[key]
            return True
        return False

    def exists(self, fingerprint: bytes) -> bool:
        return bytes(fingerprint) in self._ids

    def lookup(self, fingerprint: bytes) -> int | None:
        """Look up the live token id for a fingerprint, None if unindexed."""
        return self._ids.get(bytes(fingerprint))

    def count(self) -> int:
        """Get number of indexed fingerprints."""
        return len(self._ids)

    def clear(self) -> None:
        """Clear all entries. Use with caution - mainly for testing."""
        self._ids.clear()
