"""Centralized constants for the registry package.

Field limits and identifiers live here to avoid magic numbers scattered
across the engine and its validators.
"""

# Item and image fingerprints are fixed-size content hashes
FINGERPRINT_LENGTH = 32

MAX_DESCRIPTION_LENGTH = 256
MAX_SERIAL_LENGTH = 64

# Token ids start at 1; 0 means "nothing minted yet"
NO_TOKEN_ID = 0
