"""Loader for the per-chain price source configuration document.

The document is TOML and is loaded once at startup::

    [[spork]]
    chain_id = 1
    address = "0x..."
    asset_id = "usdc"
    default_price = "1000000000000000000"   # optional, 18 decimals

    [eoracle.1."0xTokenAddress"]
    address = "0xFeedAddress"

Search order when no explicit path is given:
1. <config_dir>/prices.local.toml
2. <config_dir>/prices.toml
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import PriceConfigError
from .logger import get_logger

logger = get_logger(__name__)

LOCAL_CONFIG_NAME = "prices.local.toml"
PRODUCTION_CONFIG_NAME = "prices.toml"


class SporkAsset(BaseModel):
    """Mapping of a token to its Spork asset id."""

    chain_id: int
    address: str
    asset_id: str | None = None
    default_price: int | None = Field(
        default=None, ge=0, description="Fallback price scaled to 18 decimals."
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("asset_id", mode="before")
    @classmethod
    def blank_asset_id(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class EOracleFeed(BaseModel):
    """On-chain feed pricing a token."""

    address: str

    model_config = ConfigDict(frozen=True, extra="forbid")


class PricesConfig(BaseModel):
    """Immutable price source configuration."""

    spork: tuple[SporkAsset, ...] = ()
    eoracle: dict[int, dict[str, EOracleFeed]] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("eoracle", mode="after")
    @classmethod
    def lowercase_tokens(
        cls, v: dict[int, dict[str, EOracleFeed]]
    ) -> dict[int, dict[str, EOracleFeed]]:
        return {
            chain_id: {token.lower(): feed for token, feed in feeds.items()}
            for chain_id, feeds in v.items()
        }

    def eoracle_feed(self, chain_id: int, token: str) -> EOracleFeed | None:
        return self.eoracle.get(chain_id, {}).get(token.lower())

    def spork_asset(self, chain_id: int, token: str) -> SporkAsset | None:
        token_lower = token.lower()
        return next(
            (
                asset
                for asset in self.spork
                if asset.chain_id == chain_id and asset.address.lower() == token_lower
            ),
            None,
        )


def find_prices_config(
    config_dir: Path, config_path: Path | None = None
) -> Path:
    """Find the prices config file.

    Args:
        config_dir: Directory holding prices.local.toml / prices.toml
        config_path: Explicit path, takes precedence when given

    Returns:
        Path to the config file

    Raises:
        PriceConfigError: If no config file exists
    """
    if config_path is not None:
        if config_path.exists():
            return config_path
        raise PriceConfigError(f"Prices config file not found: {config_path}")

    local = config_dir / LOCAL_CONFIG_NAME
    if local.exists():
        return local

    production = config_dir / PRODUCTION_CONFIG_NAME
    if production.exists():
        return production

    raise PriceConfigError(
        f"No {LOCAL_CONFIG_NAME} or {PRODUCTION_CONFIG_NAME} found in {config_dir}"
    )


def parse_prices_config(raw_config: dict[str, Any]) -> PricesConfig:
    """Validate a raw prices config document.

    Raises:
        PriceConfigError: If the document does not match the schema
    """
    try:
        return PricesConfig.model_validate(raw_config)
    except ValidationError as e:
        raise PriceConfigError(f"Invalid prices config: {e}") from e


def load_prices_config(
    config_dir: Path, config_path: Path | None = None
) -> PricesConfig:
    """Locate, read and validate the prices config document.

    Raises:
        PriceConfigError: If the file is missing, is not TOML, or fails validation
    """
    path = find_prices_config(config_dir, config_path)
    try:
        with open(path, "rb") as f:
            raw_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise PriceConfigError(f"Malformed prices config {path}: {e}") from e

    config = parse_prices_config(raw_config)
    logger.info(
        "Loaded prices config from %s (%d spork assets, %d eoracle feeds)",
        path,
        len(config.spork),
        sum(len(feeds) for feeds in config.eoracle.values()),
    )
    return config
