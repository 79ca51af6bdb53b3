"""Pytest fixtures for authenticity registry tests.

Every test gets a fresh engine; nothing is shared between tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from authreg.registry import (
    EventLogger,
    HeightClock,
    InMemoryItemDatabase,
    RecordingSettlement,
    RegistryEngine,
    StaticManufacturerRegistry,
)

from tests.testing_utils import ADMIN, ITEM_HASH, MINT_FEE, MINTER, TRANSFER_FEE


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: end-to-end scenarios across engine, interface and runner",
    )


@pytest.fixture
def clock() -> HeightClock:
    return HeightClock()


@pytest.fixture
def manufacturers() -> StaticManufacturerRegistry:
    """Registry authorizing MINTER and the administrator."""
    return StaticManufacturerRegistry([MINTER, ADMIN])


@pytest.fixture
def item_db() -> InMemoryItemDatabase:
    return InMemoryItemDatabase()


@pytest.fixture
def settlement() -> RecordingSettlement:
    return RecordingSettlement()


@pytest.fixture
def engine(
    manufacturers: StaticManufacturerRegistry,
    item_db: InMemoryItemDatabase,
    settlement: RecordingSettlement,
    clock: HeightClock,
) -> RegistryEngine:
    """A fresh engine with no collaborator addresses set (minting disabled)."""
    return RegistryEngine(
        ADMIN,
        manufacturers,
        item_db,
        settlement,
        mint_fee=MINT_FEE,
        transfer_fee=TRANSFER_FEE,
        get_height=clock,
    )


@pytest.fixture
def ready_engine(engine: RegistryEngine) -> RegistryEngine:
    """An engine with both collaborator addresses set, ready to mint."""
    assert engine.set_manufacturer_registry(ADMIN, "registry.test").success
    assert engine.set_item_database(ADMIN, "items.test").success
    return engine


@pytest.fixture
def minted_engine(ready_engine: RegistryEngine) -> RegistryEngine:
    """A ready engine where MINTER owns token 1 (ITEM_HASH)."""
    result = ready_engine.mint(MINTER, ITEM_HASH, "Luxury Watch", "SN123")
    assert result.success and result.value == 1
    return ready_engine


@pytest.fixture
def event_logger(tmp_path: Path) -> EventLogger:
    return EventLogger(output_file=str(tmp_path / "events.jsonl"))
