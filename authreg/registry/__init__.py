# Registry package
from .engine import RegistryEngine
from .errors import (
    ErrorCategory, ErrorCode, ErrorResponse, OperationResult, RegistryError,
)
from .types import TokenRecord, HeightClock
from .fingerprint_index import FingerprintIndex, DuplicateFingerprintError
from .collaborators import (
    ManufacturerRegistry, ItemDatabase, SettlementRail, SettlementError,
    StaticManufacturerRegistry, InMemoryItemDatabase, RecordingSettlement, FeeTransfer,
)
from .scrip import ScripLedger
from .logger import EventLogger
from .interface import RegistryInterface

__all__ = [
    "RegistryEngine",
    "ErrorCategory", "ErrorCode", "ErrorResponse", "OperationResult", "RegistryError",
    "TokenRecord", "HeightClock",
    "FingerprintIndex", "DuplicateFingerprintError",
    # Collaborator protocols and in-memory implementations
    "ManufacturerRegistry", "ItemDatabase", "SettlementRail", "SettlementError",
    "StaticManufacturerRegistry", "InMemoryItemDatabase", "RecordingSettlement", "FeeTransfer",
    "ScripLedger",
    "EventLogger",
    "RegistryInterface",
]
