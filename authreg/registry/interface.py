"""Request interface - invoke registry operations by name

Maps the public operation names (setMintFee, mint, getOwner, ...) onto
RegistryEngine methods so a transport (CLI runner, RPC wrapper, test
harness) can drive the registry with plain ``(method, args, caller)``
requests and get plain dicts back:

    {"success": True, "value": ...}
    {"success": False, "error": "...", "code": "...", "wire_code": 1xx, ...}

Fingerprints may be passed as bytes or as hex strings. Token records come
back as dicts with hex-encoded fingerprints.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .engine import RegistryEngine
from .errors import ErrorCode, OperationResult, error_response

Handler = Callable[[list[Any], str], dict[str, Any]]


@dataclass
class RegistryMethod:
    """An operation exposed by the interface"""
    name: str
    handler: Handler
    arity: int  # Required positional args
    description: str
    optional: int = 0  # Trailing optional args


def _fingerprint_arg(value: Any) -> Any:
    """Decode a hex fingerprint to bytes.

    Anything that is not valid hex is passed through unchanged, so the engine
    rejects it as a malformed fingerprint in its usual check order.
    """
    if isinstance(value, str):
        try:
            return bytes.fromhex(value.removeprefix("0x"))
        except ValueError:
            return value
    return value


def _wrap(result: OperationResult[Any]) -> dict[str, Any]:
    return result.to_dict()


def _ok(value: Any) -> dict[str, Any]:
    return {"success": True, "value": value}


class RegistryInterface:
    """Name-based dispatcher over a RegistryEngine."""

    engine: RegistryEngine
    methods: dict[str, RegistryMethod]

    def __init__(self, engine: RegistryEngine) -> None:
        self.engine = engine
        self.methods = {}

        # Administration
        self.register_method("setManufacturerRegistry", self._set_manufacturer_registry, 1,
                             "Set the manufacturer registry address (administrator only)")
        self.register_method("setItemDatabase", self._set_item_database, 1,
                             "Set the item database address (administrator only)")
        self.register_method("setMintFee", self._set_mint_fee, 1,
                             "Set the mint fee (administrator only)")
        self.register_method("setTransferFee", self._set_transfer_fee, 1,
                             "Set the transfer fee (administrator only)")
        self.register_method("setMaxSupply", self._set_max_supply, 1,
                             "Cap live tokens, once (administrator only)")
        self.register_method("transferAdministrator", self._transfer_administrator, 1,
                             "Hand administration to another identity")

        # Token lifecycle
        self.register_method("mint", self._mint, 3,
                             "[fingerprint, description, serial, image?] -> token id",
                             optional=1)
        self.register_method("transfer", self._transfer, 2, "[token_id, recipient]")
        self.register_method("lockTransfer", self._lock_transfer, 1, "[token_id]")
        self.register_method("unlockTransfer", self._unlock_transfer, 1, "[token_id]")
        self.register_method("updateDescription", self._update_description, 2,
                             "[token_id, description] (manufacturer only)")
        self.register_method("burn", self._burn, 1, "[token_id]")

        # Queries
        self.register_method("verifyAuthenticity", self._verify_authenticity, 2,
                             "[token_id, fingerprint] -> bool")
        self.register_method("getNftMetadata", self._get_nft_metadata, 1,
                             "[token_id] -> record or null")
        self.register_method("getNftIdByHash", self._get_nft_id_by_hash, 1,
                             "[fingerprint] -> token id or null")
        self.register_method("getOwner", self._get_owner, 1, "[token_id] -> owner")
        self.register_method("getLastNftId", self._get_last_nft_id, 0, "-> last assigned id")
        self.register_method("getTotalMinted", self._get_total_minted, 0, "-> live token count")
        self.register_method("isTransferLocked", self._is_transfer_locked, 1,
                             "[token_id] -> bool")

    def register_method(
        self,
        name: str,
        handler: Handler,
        arity: int,
        description: str = "",
        optional: int = 0,
    ) -> None:
        """Register a callable operation"""
        self.methods[name] = RegistryMethod(
            name=name,
            handler=handler,
            arity=arity,
            description=description,
            optional=optional,
        )

    def list_methods(self) -> list[dict[str, Any]]:
        return [
            {"name": m.name, "arity": m.arity, "description": m.description}
            for m in self.methods.values()
        ]

    def invoke(self, method_name: str, args: list[Any] | None, caller: str) -> dict[str, Any]:
        """Run one request. Never raises for bad requests; returns an error dict."""
        method = self.methods.get(method_name)
        if method is None:
            return error_response(
                ErrorCode.UNKNOWN_METHOD,
                f"Unknown method '{method_name}'. Available: {sorted(self.methods)}",
                method=method_name,
            ).to_dict()
        if args is not None and not isinstance(args, (list, tuple)):
            return error_response(
                ErrorCode.MISSING_ARGUMENT,
                f"{method_name} args must be a list, got {type(args).__name__}",
                method=method_name,
            ).to_dict()
        args = list(args or [])
        if not method.arity <= len(args) <= method.arity + method.optional:
            return error_response(
                ErrorCode.MISSING_ARGUMENT,
                f"{method_name} takes {method.arity} args ({method.description}), "
                f"got {len(args)}",
                method=method_name,
            ).to_dict()
        return method.handler(args, caller)

    # ===== HANDLERS =====

    def _set_manufacturer_registry(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.set_manufacturer_registry(caller, args[0]))

    def _set_item_database(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.set_item_database(caller, args[0]))

    def _set_mint_fee(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.set_mint_fee(caller, args[0]))

    def _set_transfer_fee(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.set_transfer_fee(caller, args[0]))

    def _set_max_supply(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.set_max_supply(caller, args[0]))

    def _transfer_administrator(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.transfer_administrator(caller, args[0]))

    def _mint(self, args: list[Any], caller: str) -> dict[str, Any]:
        fingerprint = _fingerprint_arg(args[0])
        image = _fingerprint_arg(args[3]) if len(args) > 3 else None
        return _wrap(self.engine.mint(caller, fingerprint, args[1], args[2], image))

    def _transfer(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.transfer(caller, args[0], args[1]))

    def _lock_transfer(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.lock_transfer(caller, args[0]))

    def _unlock_transfer(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.unlock_transfer(caller, args[0]))

    def _update_description(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.update_description(caller, args[0], args[1]))

    def _burn(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.burn(caller, args[0]))

    def _verify_authenticity(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.verify_authenticity(args[0], _fingerprint_arg(args[1])))

    def _get_nft_metadata(self, args: list[Any], caller: str) -> dict[str, Any]:
        record = self.engine.get_nft_metadata(args[0])
        return _ok(record.to_dict() if record is not None else None)

    def _get_nft_id_by_hash(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _ok(self.engine.get_nft_id_by_hash(_fingerprint_arg(args[0])))

    def _get_owner(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.get_owner(args[0]))

    def _get_last_nft_id(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _ok(self.engine.get_last_nft_id())

    def _get_total_minted(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _ok(self.engine.get_total_minted())

    def _is_transfer_locked(self, args: list[Any], caller: str) -> dict[str, Any]:
        return _wrap(self.engine.is_transfer_locked(args[0]))
