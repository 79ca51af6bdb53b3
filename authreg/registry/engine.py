"""Registry engine - the token lifecycle state machine

Holds every piece of registry state (token records, fingerprint index,
counters, fees, supply cap, collaborator addresses) and exposes the
administrative, minting, transfer and query operations.

Per token: nonexistent -> live(unlocked) <-> live(locked) -> burned.
Burned is terminal. The burned id is never reassigned, but the item
fingerprint becomes mintable again under a new id.

Every mutating operation runs validate-then-commit: all checks happen
before the first side effect, and a failure at any point leaves the
registry unchanged. Failures never raise; they come back as an
OperationResult carrying a stable error code.

The engine is single-writer and keeps no locks. Anything exposing it to
concurrent callers must serialize calls.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any, Callable

from ..config_schema import RegistryConfig
from .collaborators import (
    InMemoryItemDatabase,
    ItemDatabase,
    ManufacturerRegistry,
    SettlementError,
    SettlementRail,
    StaticManufacturerRegistry,
)
from .constants import (
    FINGERPRINT_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_SERIAL_LENGTH,
    NO_TOKEN_ID,
)
from .errors import ErrorCode, OperationResult, RegistryError
from .fingerprint_index import FingerprintIndex
from .logger import EventLogger
from .scrip import ScripLedger
from .types import TokenRecord

logger = logging.getLogger(__name__)


def _is_fingerprint(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, memoryview)) and len(value) == FINGERPRINT_LENGTH


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class RegistryEngine:
    """Authenticity registry: one NFT per unique physical item.

    Dependencies:
        manufacturers: Decides who may mint
        item_database: Receives an audit record per mint
        settlement: Moves mint and transfer fees to the administrator
        get_height: Callback returning the current registry height
        event_logger: Optional JSONL audit trail
    """

    _tokens: dict[int, TokenRecord]
    _index: FingerprintIndex
    _last_token_id: int
    _total_minted: int

    def __init__(
        self,
        administrator: str,
        manufacturers: ManufacturerRegistry,
        item_database: ItemDatabase,
        settlement: SettlementRail,
        *,
        mint_fee: int = 100,
        transfer_fee: int = 50,
        max_supply: int | None = None,
        manufacturer_registry_address: str | None = None,
        item_database_address: str | None = None,
        get_height: Callable[[], int] | None = None,
        event_logger: EventLogger | None = None,
    ) -> None:
        if not _is_positive_int(mint_fee) or not _is_positive_int(transfer_fee):
            raise ValueError(
                f"Fees must be positive integers (mint_fee={mint_fee!r}, "
                f"transfer_fee={transfer_fee!r})"
            )
        if max_supply is not None and not _is_positive_int(max_supply):
            raise ValueError(f"max_supply must be a positive integer, got {max_supply!r}")

        self._administrator = administrator
        self._manufacturers = manufacturers
        self._item_database = item_database
        self._settlement = settlement
        self._get_height: Callable[[], int] = get_height or (lambda: 0)
        self._event_logger = event_logger

        # Configuration
        self._mint_fee = mint_fee
        self._transfer_fee = transfer_fee
        self._max_supply = max_supply
        self._manufacturer_registry_address = manufacturer_registry_address
        self._item_database_address = item_database_address

        # Token state
        self._tokens = {}
        self._index = FingerprintIndex()
        self._last_token_id = NO_TOKEN_ID
        self._total_minted = 0

    @classmethod
    def from_config(
        cls,
        config: RegistryConfig,
        manufacturers: ManufacturerRegistry | None = None,
        item_database: ItemDatabase | None = None,
        settlement: SettlementRail | None = None,
        get_height: Callable[[], int] | None = None,
        event_logger: EventLogger | None = None,
    ) -> "RegistryEngine":
        """Create an engine from the registry section of the config.

        Collaborators not passed in are built from config: a static
        manufacturer registry over ``authorized_manufacturers``, an in-memory
        item database and a scrip ledger seeded with ``starting_balances``.
        A ``max_supply`` in config counts as already set.
        """
        return cls(
            administrator=config.administrator,
            manufacturers=manufacturers or StaticManufacturerRegistry(config.authorized_manufacturers),
            item_database=item_database or InMemoryItemDatabase(),
            settlement=settlement or ScripLedger(config.starting_balances),
            mint_fee=config.mint_fee,
            transfer_fee=config.transfer_fee,
            max_supply=config.max_supply,
            manufacturer_registry_address=config.manufacturer_registry,
            item_database_address=config.item_database,
            get_height=get_height,
            event_logger=event_logger,
        )

    # ===== READ-ONLY CONFIGURATION =====

    @property
    def administrator(self) -> str:
        return self._administrator

    @property
    def mint_fee(self) -> int:
        return self._mint_fee

    @property
    def transfer_fee(self) -> int:
        return self._transfer_fee

    @property
    def max_supply(self) -> int | None:
        return self._max_supply

    @property
    def manufacturer_registry_address(self) -> str | None:
        return self._manufacturer_registry_address

    @property
    def item_database_address(self) -> str | None:
        return self._item_database_address

    # ===== ADMINISTRATION =====

    def set_manufacturer_registry(self, caller: str, address: str) -> OperationResult[bool]:
        try:
            self._require_administrator(caller)
        except RegistryError as exc:
            return self._reject("set_manufacturer_registry", caller, exc)
        self._manufacturer_registry_address = address
        self._config_changed(caller, "manufacturer_registry", address)
        return OperationResult.ok(True)

    def set_item_database(self, caller: str, address: str) -> OperationResult[bool]:
        try:
            self._require_administrator(caller)
        except RegistryError as exc:
            return self._reject("set_item_database", caller, exc)
        self._item_database_address = address
        self._config_changed(caller, "item_database", address)
        return OperationResult.ok(True)

    def set_mint_fee(self, caller: str, fee: int) -> OperationResult[bool]:
        try:
            self._require_administrator(caller)
            self._require_amount(fee, "mint fee")
        except RegistryError as exc:
            return self._reject("set_mint_fee", caller, exc)
        self._mint_fee = fee
        self._config_changed(caller, "mint_fee", fee)
        return OperationResult.ok(True)

    def set_transfer_fee(self, caller: str, fee: int) -> OperationResult[bool]:
        try:
            self._require_administrator(caller)
            self._require_amount(fee, "transfer fee")
        except RegistryError as exc:
            return self._reject("set_transfer_fee", caller, exc)
        self._transfer_fee = fee
        self._config_changed(caller, "transfer_fee", fee)
        return OperationResult.ok(True)

    def set_max_supply(self, caller: str, supply: int) -> OperationResult[bool]:
        """Cap the number of live tokens. The cap can be set only once."""
        try:
            self._require_administrator(caller)
            if self._max_supply is not None:
                raise RegistryError(
                    ErrorCode.ALREADY_LOCKED,
                    f"Max supply is already set to {self._max_supply} and cannot change",
                    max_supply=self._max_supply,
                )
            self._require_amount(supply, "max supply")
        except RegistryError as exc:
            return self._reject("set_max_supply", caller, exc)
        self._max_supply = supply
        self._config_changed(caller, "max_supply", supply)
        return OperationResult.ok(True)

    def transfer_administrator(self, caller: str, new_administrator: str) -> OperationResult[bool]:
        """Hand administration to another identity. Future fees go to them."""
        try:
            self._require_administrator(caller)
        except RegistryError as exc:
            return self._reject("transfer_administrator", caller, exc)
        previous = self._administrator
        self._administrator = new_administrator
        logger.info("Administrator changed from %s to %s", previous, new_administrator)
        if self._event_logger is not None:
            self._event_logger.log("administrator_changed", {
                "caller": caller,
                "previous": previous,
                "administrator": new_administrator,
            })
        return OperationResult.ok(True)

    # ===== MINT =====

    def mint(
        self,
        caller: str,
        fingerprint: bytes,
        description: str,
        serial: str,
        image_fingerprint: bytes | None = None,
    ) -> OperationResult[int]:
        """Mint a token for a physical item. Returns the new token id."""
        try:
            self._require_can_mint(caller)
            if not _is_fingerprint(fingerprint):
                raise RegistryError(
                    ErrorCode.INVALID_HASH,
                    f"Item fingerprint must be exactly {FINGERPRINT_LENGTH} bytes",
                    length=len(fingerprint) if hasattr(fingerprint, "__len__") else None,
                )
            self._require_description(description)
            if not isinstance(serial, str) or len(serial) > MAX_SERIAL_LENGTH:
                raise RegistryError(
                    ErrorCode.INVALID_SERIAL,
                    f"Serial number must be a string of at most {MAX_SERIAL_LENGTH} characters",
                )
            if image_fingerprint is not None and not _is_fingerprint(image_fingerprint):
                raise RegistryError(
                    ErrorCode.INVALID_OPTIONAL,
                    f"Image fingerprint, when given, must be exactly {FINGERPRINT_LENGTH} bytes",
                )
            item_key = bytes(fingerprint)
            existing = self._index.lookup(item_key)
            if existing is not None:
                raise RegistryError(
                    ErrorCode.DUPLICATE_ITEM,
                    f"Item is already registered as token {existing}",
                    token_id=existing,
                )
            if self._max_supply is not None and self._total_minted >= self._max_supply:
                raise RegistryError(
                    ErrorCode.MAX_SUPPLY_REACHED,
                    f"Max supply of {self._max_supply} live tokens reached",
                    max_supply=self._max_supply,
                )

            # Effects: fee first, then the audit record. Nothing below
            # touches token state until both collaborators have succeeded.
            fee = self._mint_fee
            self._collect_fee(fee, caller, "mint")
            self._record_item(item_key, description, serial, caller, fee)
        except RegistryError as exc:
            return self._reject("mint", caller, exc)

        token_id = self._last_token_id + 1
        self._tokens[token_id] = TokenRecord(
            token_id=token_id,
            item_fingerprint=item_key,
            manufacturer=caller,
            minted_at=self._get_height(),
            description=description,
            serial_number=serial,
            image_fingerprint=bytes(image_fingerprint) if image_fingerprint is not None else None,
            owner=caller,
        )
        self._index.register(item_key, token_id)
        self._last_token_id = token_id
        self._total_minted += 1

        logger.debug("Minted token %d for %s", token_id, caller)
        if self._event_logger is not None:
            self._event_logger.log_token_event(
                "token_minted", token_id, caller,
                item_fingerprint=item_key.hex(),
                serial_number=serial,
                fee=fee,
            )
        return OperationResult.ok(token_id)

    # ===== OWNERSHIP =====

    def transfer(self, caller: str, token_id: int, recipient: str) -> OperationResult[bool]:
        """Move a token to a new owner, charging the transfer fee."""
        try:
            token = self._require_owner(caller, token_id)
            if token.transfer_locked:
                raise RegistryError(
                    ErrorCode.TRANSFER_LOCKED,
                    f"Token {token_id} is transfer-locked; unlock it first",
                    token_id=token_id,
                )
            fee = self._transfer_fee
            self._collect_fee(fee, caller, "transfer")
        except RegistryError as exc:
            return self._reject("transfer", caller, exc)

        token.owner = recipient
        logger.debug("Token %d transferred from %s to %s", token_id, caller, recipient)
        if self._event_logger is not None:
            self._event_logger.log_token_event(
                "token_transferred", token_id, caller,
                recipient=recipient,
                fee=fee,
            )
        return OperationResult.ok(True)

    def lock_transfer(self, caller: str, token_id: int) -> OperationResult[bool]:
        try:
            token = self._require_owner(caller, token_id)
            if token.transfer_locked:
                raise RegistryError(
                    ErrorCode.ALREADY_LOCKED,
                    f"Token {token_id} is already transfer-locked",
                    token_id=token_id,
                )
        except RegistryError as exc:
            return self._reject("lock_transfer", caller, exc)
        token.transfer_locked = True
        if self._event_logger is not None:
            self._event_logger.log_token_event("token_locked", token_id, caller)
        return OperationResult.ok(True)

    def unlock_transfer(self, caller: str, token_id: int) -> OperationResult[bool]:
        try:
            token = self._require_owner(caller, token_id)
            if not token.transfer_locked:
                raise RegistryError(
                    ErrorCode.NOT_LOCKED,
                    f"Token {token_id} is not transfer-locked",
                    token_id=token_id,
                )
        except RegistryError as exc:
            return self._reject("unlock_transfer", caller, exc)
        token.transfer_locked = False
        if self._event_logger is not None:
            self._event_logger.log_token_event("token_unlocked", token_id, caller)
        return OperationResult.ok(True)

    def update_description(
        self,
        caller: str,
        token_id: int,
        description: str,
    ) -> OperationResult[bool]:
        """Rewrite the description. Only the original manufacturer may do this."""
        try:
            token = self._require_token(token_id)
            if token.manufacturer != caller:
                raise RegistryError(
                    ErrorCode.UNAUTHORIZED,
                    f"Only the manufacturer of token {token_id} can update its description",
                    token_id=token_id,
                )
            self._require_description(description)
        except RegistryError as exc:
            return self._reject("update_description", caller, exc)
        token.description = description
        if self._event_logger is not None:
            self._event_logger.log_token_event("description_updated", token_id, caller)
        return OperationResult.ok(True)

    def burn(self, caller: str, token_id: int) -> OperationResult[bool]:
        """Destroy a token. Its id stays retired; its fingerprint is freed."""
        try:
            token = self._require_owner(caller, token_id)
        except RegistryError as exc:
            return self._reject("burn", caller, exc)
        del self._tokens[token_id]
        self._index.unregister(token.item_fingerprint)
        self._total_minted -= 1
        logger.debug("Burned token %d", token_id)
        if self._event_logger is not None:
            self._event_logger.log_token_event(
                "token_burned", token_id, caller,
                item_fingerprint=token.item_fingerprint.hex(),
            )
        return OperationResult.ok(True)

    # ===== QUERIES =====

    def verify_authenticity(self, token_id: int, candidate: bytes) -> OperationResult[bool]:
        """True iff candidate equals the token's item fingerprint byte for byte."""
        try:
            token = self._require_token(token_id)
        except RegistryError as exc:
            return self._reject("verify_authenticity", None, exc)
        if not isinstance(candidate, (bytes, bytearray, memoryview)):
            return OperationResult.ok(False)
        return OperationResult.ok(hmac.compare_digest(token.item_fingerprint, bytes(candidate)))

    def get_nft_metadata(self, token_id: int) -> TokenRecord | None:
        token = self._lookup_token(token_id)
        return token.copy() if token is not None else None

    def get_nft_id_by_hash(self, fingerprint: bytes) -> int | None:
        if not isinstance(fingerprint, (bytes, bytearray, memoryview)):
            return None
        return self._index.lookup(bytes(fingerprint))

    def get_owner(self, token_id: int) -> OperationResult[str]:
        try:
            token = self._require_token(token_id)
        except RegistryError as exc:
            return self._reject("get_owner", None, exc)
        return OperationResult.ok(token.owner)

    def get_last_nft_id(self) -> int:
        return self._last_token_id

    def get_total_minted(self) -> int:
        """Number of live tokens. Burns decrement it."""
        return self._total_minted

    def is_transfer_locked(self, token_id: int) -> OperationResult[bool]:
        try:
            token = self._require_token(token_id)
        except RegistryError as exc:
            return self._reject("is_transfer_locked", None, exc)
        return OperationResult.ok(token.transfer_locked)

    # ===== CHECKS =====

    def _require_administrator(self, caller: str) -> None:
        if caller != self._administrator:
            raise RegistryError(
                ErrorCode.OWNER_ONLY,
                "Only the registry administrator can do this",
                caller=caller,
            )

    def _require_amount(self, amount: Any, what: str) -> None:
        if not _is_positive_int(amount):
            raise RegistryError(
                ErrorCode.INVALID_AMOUNT,
                f"The {what} must be a positive integer, got {amount!r}",
            )

    def _require_description(self, description: Any) -> None:
        if not isinstance(description, str) or len(description) > MAX_DESCRIPTION_LENGTH:
            raise RegistryError(
                ErrorCode.INVALID_DESCRIPTION,
                f"Description must be a string of at most {MAX_DESCRIPTION_LENGTH} characters",
            )

    def _require_can_mint(self, caller: str) -> None:
        if self._manufacturer_registry_address is None or self._item_database_address is None:
            raise RegistryError(
                ErrorCode.UNAUTHORIZED,
                "Minting is disabled until the manufacturer registry and item database are set",
            )
        try:
            authorized = self._manufacturers.is_authorized(caller)
        except Exception:
            logger.exception("Manufacturer registry failed while checking %s", caller)
            authorized = False
        if not authorized:
            raise RegistryError(
                ErrorCode.UNAUTHORIZED,
                f"'{caller}' is not an authorized manufacturer",
                caller=caller,
            )

    def _lookup_token(self, token_id: Any) -> TokenRecord | None:
        # Ids are plain ints; anything else (bools, lists from a request) names no token
        if not isinstance(token_id, int) or isinstance(token_id, bool):
            return None
        return self._tokens.get(token_id)

    def _require_token(self, token_id: int) -> TokenRecord:
        token = self._lookup_token(token_id)
        if token is None:
            raise RegistryError(
                ErrorCode.NFT_NOT_FOUND,
                f"No live token with id {token_id!r}",
                token_id=token_id,
            )
        return token

    def _require_owner(self, caller: str, token_id: int) -> TokenRecord:
        token = self._require_token(token_id)
        if token.owner != caller:
            raise RegistryError(
                ErrorCode.UNAUTHORIZED,
                f"Only the owner of token {token_id} can do this",
                token_id=token_id,
                caller=caller,
            )
        return token

    # ===== EFFECTS =====

    def _collect_fee(self, fee: int, payer: str, purpose: str) -> None:
        try:
            self._settlement.transfer(fee, payer, self._administrator)
        except SettlementError as exc:
            raise RegistryError(
                ErrorCode.INSUFFICIENT_FEE,
                f"Could not collect {purpose} fee of {fee}: {exc.reason}",
                fee=fee,
            ) from exc
        except Exception as exc:
            logger.exception("Settlement rail failed collecting %s fee from %s", purpose, payer)
            raise RegistryError(
                ErrorCode.INSUFFICIENT_FEE,
                f"Could not collect {purpose} fee of {fee}: settlement unavailable",
                fee=fee,
            ) from exc

    def _record_item(
        self,
        fingerprint: bytes,
        description: str,
        serial: str,
        caller: str,
        fee: int,
    ) -> None:
        """Write the audit record; on failure refund the mint fee and block the mint."""
        try:
            self._item_database.record_item(fingerprint, description, serial)
        except Exception as exc:
            logger.exception("Item database rejected record for %s", fingerprint.hex())
            try:
                self._settlement.transfer(fee, self._administrator, caller)
            except Exception:
                logger.exception(
                    "Refund of mint fee %d to %s failed; settle manually", fee, caller
                )
            raise RegistryError(
                ErrorCode.UNAUTHORIZED,
                "Item database unavailable; mint blocked",
            ) from exc

    # ===== BOOKKEEPING =====

    def _reject(
        self,
        operation: str,
        caller: str | None,
        exc: RegistryError,
    ) -> OperationResult[Any]:
        error = exc.to_response()
        logger.info("%s rejected (%s): %s", operation, exc.code.value, exc.message)
        if self._event_logger is not None:
            self._event_logger.log_failure(operation, caller, error.to_dict())
        return OperationResult.fail(error)

    def _config_changed(self, caller: str, setting: str, value: Any) -> None:
        logger.info("Registry %s set to %r", setting, value)
        if self._event_logger is not None:
            self._event_logger.log_config_change(caller, setting, value)
