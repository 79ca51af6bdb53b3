"""Unit tests for transfer, lock/unlock, description updates and burn."""

from authreg.registry import (
    ErrorCode,
    FeeTransfer,
    InMemoryItemDatabase,
    RecordingSettlement,
    RegistryEngine,
    ScripLedger,
    StaticManufacturerRegistry,
)

from tests.testing_utils import (
    ADMIN,
    ITEM_HASH,
    MINT_FEE,
    MINTER,
    RECIPIENT,
    TRANSFER_FEE,
    assert_rejected,
)


def _owner(engine: RegistryEngine, token_id: int) -> str | None:
    return engine.get_owner(token_id).value


class TestTransfer:
    """Tests for ownership transfer."""

    def test_transfer(
        self, minted_engine: RegistryEngine, settlement: RecordingSettlement
    ) -> None:
        result = minted_engine.transfer(MINTER, 1, RECIPIENT)

        assert result.success is True
        assert result.value is True
        assert _owner(minted_engine, 1) == RECIPIENT
        assert settlement.transfers == [
            FeeTransfer(MINT_FEE, MINTER, ADMIN),
            FeeTransfer(TRANSFER_FEE, MINTER, ADMIN),
        ]

    def test_transfer_keeps_manufacturer(self, minted_engine: RegistryEngine) -> None:
        minted_engine.transfer(MINTER, 1, RECIPIENT)

        record = minted_engine.get_nft_metadata(1)
        assert record is not None
        assert record.manufacturer == MINTER

    def test_new_owner_can_transfer_on(self, minted_engine: RegistryEngine) -> None:
        minted_engine.transfer(MINTER, 1, RECIPIENT)

        assert minted_engine.transfer(RECIPIENT, 1, "third").success
        assert_rejected(minted_engine.transfer(MINTER, 1, MINTER), ErrorCode.UNAUTHORIZED)

    def test_transfer_unknown_token(self, minted_engine: RegistryEngine) -> None:
        assert_rejected(minted_engine.transfer(MINTER, 99, RECIPIENT), ErrorCode.NFT_NOT_FOUND)

    def test_transfer_by_non_owner(
        self, minted_engine: RegistryEngine, settlement: RecordingSettlement
    ) -> None:
        assert_rejected(minted_engine.transfer(RECIPIENT, 1, RECIPIENT), ErrorCode.UNAUTHORIZED)
        assert _owner(minted_engine, 1) == MINTER
        assert len(settlement.transfers) == 1

    def test_admin_cannot_move_tokens(self, minted_engine: RegistryEngine) -> None:
        assert_rejected(minted_engine.transfer(ADMIN, 1, ADMIN), ErrorCode.UNAUTHORIZED)

    def test_transfer_locked(
        self, minted_engine: RegistryEngine, settlement: RecordingSettlement
    ) -> None:
        minted_engine.lock_transfer(MINTER, 1)

        assert_rejected(minted_engine.transfer(MINTER, 1, RECIPIENT), ErrorCode.TRANSFER_LOCKED)
        assert _owner(minted_engine, 1) == MINTER
        assert len(settlement.transfers) == 1

    def test_transfer_after_unlock(self, minted_engine: RegistryEngine) -> None:
        minted_engine.lock_transfer(MINTER, 1)
        minted_engine.unlock_transfer(MINTER, 1)

        assert minted_engine.transfer(MINTER, 1, RECIPIENT).success

    def test_transfer_fee_shortfall_keeps_owner(self) -> None:
        ledger = ScripLedger({MINTER: MINT_FEE + TRANSFER_FEE - 1})
        engine = RegistryEngine(
            ADMIN,
            StaticManufacturerRegistry([MINTER]),
            InMemoryItemDatabase(),
            ledger,
            mint_fee=MINT_FEE,
            transfer_fee=TRANSFER_FEE,
            manufacturer_registry_address="r",
            item_database_address="d",
        )
        engine.mint(MINTER, ITEM_HASH, "Watch", "SN1")

        assert_rejected(engine.transfer(MINTER, 1, RECIPIENT), ErrorCode.INSUFFICIENT_FEE)
        assert _owner(engine, 1) == MINTER
        assert ledger.get_scrip(MINTER) == TRANSFER_FEE - 1


class TestLocking:
    """Tests for lock_transfer and unlock_transfer."""

    def test_lock(self, minted_engine: RegistryEngine) -> None:
        result = minted_engine.lock_transfer(MINTER, 1)

        assert result.success is True
        assert minted_engine.is_transfer_locked(1).value is True

    def test_unlock(self, minted_engine: RegistryEngine) -> None:
        minted_engine.lock_transfer(MINTER, 1)

        result = minted_engine.unlock_transfer(MINTER, 1)

        assert result.success is True
        assert minted_engine.is_transfer_locked(1).value is False

    def test_double_lock(self, minted_engine: RegistryEngine) -> None:
        minted_engine.lock_transfer(MINTER, 1)

        assert_rejected(minted_engine.lock_transfer(MINTER, 1), ErrorCode.ALREADY_LOCKED)
        assert minted_engine.is_transfer_locked(1).value is True

    def test_unlock_when_unlocked(self, minted_engine: RegistryEngine) -> None:
        assert_rejected(minted_engine.unlock_transfer(MINTER, 1), ErrorCode.NOT_LOCKED)

    def test_lock_never_changes_owner_or_charges(
        self, minted_engine: RegistryEngine, settlement: RecordingSettlement
    ) -> None:
        minted_engine.lock_transfer(MINTER, 1)
        minted_engine.lock_transfer(MINTER, 1)
        minted_engine.unlock_transfer(MINTER, 1)
        minted_engine.unlock_transfer(MINTER, 1)

        assert _owner(minted_engine, 1) == MINTER
        assert len(settlement.transfers) == 1

    def test_lock_by_non_owner(self, minted_engine: RegistryEngine) -> None:
        assert_rejected(minted_engine.lock_transfer(RECIPIENT, 1), ErrorCode.UNAUTHORIZED)
        assert minted_engine.is_transfer_locked(1).value is False

    def test_unlock_by_non_owner(self, minted_engine: RegistryEngine) -> None:
        minted_engine.lock_transfer(MINTER, 1)

        assert_rejected(minted_engine.unlock_transfer(RECIPIENT, 1), ErrorCode.UNAUTHORIZED)
        assert minted_engine.is_transfer_locked(1).value is True

    def test_ownership_checked_before_lock_state(self, minted_engine: RegistryEngine) -> None:
        minted_engine.lock_transfer(MINTER, 1)

        assert_rejected(minted_engine.lock_transfer(RECIPIENT, 1), ErrorCode.UNAUTHORIZED)

    def test_lock_unknown_token(self, minted_engine: RegistryEngine) -> None:
        assert_rejected(minted_engine.lock_transfer(MINTER, 2), ErrorCode.NFT_NOT_FOUND)
        assert_rejected(minted_engine.unlock_transfer(MINTER, 2), ErrorCode.NFT_NOT_FOUND)


class TestUpdateDescription:
    """Tests for manufacturer-only description edits."""

    def test_update_description(self, minted_engine: RegistryEngine) -> None:
        result = minted_engine.update_description(MINTER, 1, "New Desc")

        assert result.success is True
        record = minted_engine.get_nft_metadata(1)
        assert record is not None
        assert record.description == "New Desc"
        assert record.serial_number == "SN123"

    def test_manufacturer_edits_after_transfer(self, minted_engine: RegistryEngine) -> None:
        minted_engine.transfer(MINTER, 1, RECIPIENT)

        assert minted_engine.update_description(MINTER, 1, "Serviced 2026").success

    def test_owner_who_is_not_manufacturer(self, minted_engine: RegistryEngine) -> None:
        minted_engine.transfer(MINTER, 1, RECIPIENT)

        assert_rejected(
            minted_engine.update_description(RECIPIENT, 1, "Mine now"),
            ErrorCode.UNAUTHORIZED,
        )

    def test_description_too_long(self, minted_engine: RegistryEngine) -> None:
        assert_rejected(
            minted_engine.update_description(MINTER, 1, "x" * 257),
            ErrorCode.INVALID_DESCRIPTION,
        )
        record = minted_engine.get_nft_metadata(1)
        assert record is not None and record.description == "Luxury Watch"

    def test_unknown_token(self, minted_engine: RegistryEngine) -> None:
        assert_rejected(
            minted_engine.update_description(MINTER, 5, "x"), ErrorCode.NFT_NOT_FOUND
        )

    def test_locked_token_can_be_edited(self, minted_engine: RegistryEngine) -> None:
        minted_engine.lock_transfer(MINTER, 1)

        assert minted_engine.update_description(MINTER, 1, "Still editable").success


class TestBurn:
    """Tests for burning tokens."""

    def test_burn(self, minted_engine: RegistryEngine) -> None:
        result = minted_engine.burn(MINTER, 1)

        assert result.success is True
        assert minted_engine.get_nft_metadata(1) is None
        assert minted_engine.get_total_minted() == 0

    def test_burn_removes_index_entry(self, minted_engine: RegistryEngine) -> None:
        minted_engine.burn(MINTER, 1)

        assert minted_engine.get_nft_id_by_hash(ITEM_HASH) is None

    def test_burn_keeps_last_id(self, minted_engine: RegistryEngine) -> None:
        minted_engine.burn(MINTER, 1)

        assert minted_engine.get_last_nft_id() == 1

    def test_fingerprint_reminted_under_new_id(self, minted_engine: RegistryEngine) -> None:
        minted_engine.burn(MINTER, 1)

        result = minted_engine.mint(MINTER, ITEM_HASH, "Luxury Watch", "SN123")

        assert result.value == 2
        assert minted_engine.get_nft_id_by_hash(ITEM_HASH) == 2
        assert minted_engine.get_nft_metadata(1) is None

    def test_burned_id_is_terminal(self, minted_engine: RegistryEngine) -> None:
        minted_engine.burn(MINTER, 1)

        assert_rejected(minted_engine.burn(MINTER, 1), ErrorCode.NFT_NOT_FOUND)
        assert_rejected(minted_engine.transfer(MINTER, 1, RECIPIENT), ErrorCode.NFT_NOT_FOUND)
        assert_rejected(minted_engine.lock_transfer(MINTER, 1), ErrorCode.NFT_NOT_FOUND)
        assert_rejected(minted_engine.get_owner(1), ErrorCode.NFT_NOT_FOUND)
        assert_rejected(minted_engine.verify_authenticity(1, ITEM_HASH), ErrorCode.NFT_NOT_FOUND)

    def test_burn_by_non_owner(self, minted_engine: RegistryEngine) -> None:
        assert_rejected(minted_engine.burn(RECIPIENT, 1), ErrorCode.UNAUTHORIZED)
        assert minted_engine.get_total_minted() == 1

    def test_manufacturer_cannot_burn_after_transfer(self, minted_engine: RegistryEngine) -> None:
        minted_engine.transfer(MINTER, 1, RECIPIENT)

        assert_rejected(minted_engine.burn(MINTER, 1), ErrorCode.UNAUTHORIZED)
        assert minted_engine.burn(RECIPIENT, 1).success

    def test_locked_token_can_be_burned(self, minted_engine: RegistryEngine) -> None:
        minted_engine.lock_transfer(MINTER, 1)

        assert minted_engine.burn(MINTER, 1).success

    def test_burn_charges_no_fee(
        self, minted_engine: RegistryEngine, settlement: RecordingSettlement
    ) -> None:
        minted_engine.burn(MINTER, 1)

        assert len(settlement.transfers) == 1


class SwitchableRail:
    """Settlement rail that accepts fees until it is switched off."""

    def __init__(self) -> None:
        self.down = False

    def transfer(self, amount: int, from_id: str, to_id: str) -> None:
        if self.down:
            raise TimeoutError("rail timed out")


class TestUnavailableSettlement:
    """Tests for a settlement rail that fails with a non-settlement error."""

    def test_transfer_keeps_owner(self) -> None:
        rail = SwitchableRail()
        engine = RegistryEngine(
            ADMIN,
            StaticManufacturerRegistry([MINTER]),
            InMemoryItemDatabase(),
            rail,
            manufacturer_registry_address="r",
            item_database_address="d",
        )
        assert engine.mint(MINTER, ITEM_HASH, "Watch", "SN1").success
        rail.down = True

        result = engine.transfer(MINTER, 1, RECIPIENT)

        assert_rejected(result, ErrorCode.INSUFFICIENT_FEE)
        assert _owner(engine, 1) == MINTER
