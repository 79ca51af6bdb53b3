"""Pydantic schema for configuration validation.

All config values are validated at startup. Typos and invalid values
fail fast with clear error messages.

Usage:
    from authreg.config_schema import validate_config_dict
    config = validate_config_dict(yaml.safe_load(text) or {})
    # config is now a validated AppConfig instance
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# BASE MODEL WITH STRICT VALIDATION
# =============================================================================

class StrictModel(BaseModel):
    """Base model that rejects unknown fields (catches typos)."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# REGISTRY MODEL
# =============================================================================

class RegistryConfig(StrictModel):
    """Registry engine configuration.

    Fees are charged in scrip units and paid to the administrator.
    """

    administrator: str = Field(
        default="admin",
        min_length=1,
        description="Identity allowed to change fees, supply cap and collaborators"
    )
    mint_fee: int = Field(
        default=100,
        gt=0,
        description="Fee charged to the manufacturer on every mint"
    )
    transfer_fee: int = Field(
        default=50,
        gt=0,
        description="Fee charged to the owner on every transfer"
    )
    max_supply: int | None = Field(
        default=None,
        gt=0,
        description="Cap on live tokens. Once set it can never change."
    )
    manufacturer_registry: str | None = Field(
        default=None,
        description="Address of the manufacturer authorization registry"
    )
    item_database: str | None = Field(
        default=None,
        description="Address of the item database"
    )
    authorized_manufacturers: list[str] = Field(
        default_factory=list,
        description="Identities the built-in static registry authorizes"
    )
    starting_balances: dict[str, int] = Field(
        default_factory=dict,
        description="Initial scrip balances for the built-in scrip ledger"
    )

    @field_validator("starting_balances")
    @classmethod
    def balances_not_negative(cls, v: dict[str, int]) -> dict[str, int]:
        negative = sorted(pid for pid, amount in v.items() if amount < 0)
        if negative:
            raise ValueError(f"starting balances cannot be negative: {negative}")
        return v


# =============================================================================
# LOGGING MODEL
# =============================================================================

class LoggingConfig(StrictModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Level for the standard library loggers"
    )
    output_file: str = Field(
        default="registry.jsonl",
        description="JSONL file for registry events"
    )
    logs_dir: str = Field(
        default="logs",
        description="Per-run logs directory (e.g., logs/run_20260115_120000/)"
    )
    default_recent: int = Field(
        default=50,
        gt=0,
        description="Default number of recent events to return"
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


# =============================================================================
# ROOT MODEL
# =============================================================================

class AppConfig(StrictModel):
    """Root configuration model.

    All fields have sensible defaults, so an empty config file is valid.
    """

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def validate_config_dict(config_dict: dict[str, Any]) -> AppConfig:
    """Validate a configuration dictionary.

    Raises:
        pydantic.ValidationError: If config is invalid.
    """
    return AppConfig.model_validate(config_dict)


__all__ = [
    "AppConfig",
    "RegistryConfig",
    "LoggingConfig",
    "StrictModel",
    "validate_config_dict",
]
