"""Domain models for price resolution and transfer valuation."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

VAULT_LABEL = "vault"


class SourceKind(str, Enum):
    EORACLE = "eoracle"
    YDAEMON = "ydaemon"
    LENS = "lens"
    SPORK = "spork"
    YPRICE = "yprice"
    NA = "na"
    COMPUTED = "computed"


@dataclass(frozen=True)
class PriceSource:
    """Provenance of a price.

    Plain sources name exactly one provider. A ``computed`` source wraps the
    source of the price it was derived from, so a vault share priced from an
    eOracle asset price renders as ``computed-eoracle``.
    """

    kind: SourceKind
    inner: PriceSource | None = None

    def __post_init__(self) -> None:
        if self.kind is SourceKind.COMPUTED and self.inner is None:
            raise ValueError("computed price source requires an inner source")
        if self.kind is not SourceKind.COMPUTED and self.inner is not None:
            raise ValueError(f"{self.kind.value} price source cannot wrap another")

    @classmethod
    def computed(cls, inner: PriceSource) -> PriceSource:
        return cls(SourceKind.COMPUTED, inner)

    @classmethod
    def parse(cls, text: str) -> PriceSource:
        """Rebuild a source from its stored string form."""
        prefix = f"{SourceKind.COMPUTED.value}-"
        if text.startswith(prefix):
            return cls.computed(cls.parse(text[len(prefix) :]))
        try:
            kind = SourceKind(text)
        except ValueError:
            raise ValueError(f"Unknown price source: {text!r}") from None
        if kind is SourceKind.COMPUTED:
            raise ValueError("computed price source requires an inner source")
        return cls(kind)

    def __str__(self) -> str:
        if self.inner is not None:
            return f"{self.kind.value}-{self.inner}"
        return self.kind.value


EORACLE = PriceSource(SourceKind.EORACLE)
YDAEMON = PriceSource(SourceKind.YDAEMON)
LENS = PriceSource(SourceKind.LENS)
SPORK = PriceSource(SourceKind.SPORK)
YPRICE = PriceSource(SourceKind.YPRICE)
NA = PriceSource(SourceKind.NA)


@dataclass(frozen=True)
class Price:
    """USD price of a token pinned to a block."""

    chain_id: int
    address: str
    price_usd: Decimal
    price_source: PriceSource
    block_number: int
    block_time: datetime

    def __post_init__(self) -> None:
        if self.price_usd < 0:
            raise ValueError(
                f"price_usd must be non-negative, got {self.price_usd} "
                f"for {self.address} on chain {self.chain_id}"
            )
        if self.block_number < 0:
            raise ValueError(f"block_number must be non-negative, got {self.block_number}")

    def at_block(self, block_number: int, block_time: datetime) -> Price:
        """Return a copy restamped to another block."""
        return replace(self, block_number=block_number, block_time=block_time)

    def as_payload(self) -> dict[str, Any]:
        """Render the price as the JSON-safe payload of a persistence job."""
        return {
            "chainId": self.chain_id,
            "address": self.address,
            "priceUsd": str(self.price_usd),
            "priceSource": str(self.price_source),
            "blockNumber": self.block_number,
            "blockTime": self.block_time.isoformat(),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Price:
        return cls(
            chain_id=int(payload["chainId"]),
            address=payload["address"],
            price_usd=Decimal(payload["priceUsd"]),
            price_source=PriceSource.parse(payload["priceSource"]),
            block_number=int(payload["blockNumber"]),
            block_time=datetime.fromisoformat(payload["blockTime"]),
        )


@dataclass(frozen=True)
class PriceRequest:
    """A single price lookup handed to the providers."""

    chain_id: int
    token: str
    block_number: int
    latest: bool = False

    def for_historical(self) -> PriceRequest:
        return replace(self, latest=False)


@dataclass(frozen=True)
class VaultRegistration:
    """Registry record marking an address as a vault over ``asset``."""

    chain_id: int
    address: str
    decimals: int
    asset: str
    label: str = VAULT_LABEL


@dataclass(frozen=True)
class TransferEvent:
    """Decoded ``Transfer`` log of a token or vault share."""

    chain_id: int
    address: str
    block_number: int
    value: int


@dataclass(frozen=True)
class TransferValuation:
    """USD valuation of a transfer, returned to the ingestion framework."""

    value_usd: Decimal
    price_usd: Decimal
    price_source: PriceSource

    def as_dict(self) -> dict[str, str]:
        return {
            "valueUsd": str(self.value_usd),
            "priceUsd": str(self.price_usd),
            "priceSource": str(self.price_source),
        }


__all__ = [
    "EORACLE",
    "LENS",
    "NA",
    "SPORK",
    "VAULT_LABEL",
    "YDAEMON",
    "YPRICE",
    "Price",
    "PriceRequest",
    "PriceSource",
    "SourceKind",
    "TransferEvent",
    "TransferValuation",
    "VaultRegistration",
]
