from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain import Price


class BasePriceStore(ABC):
    """Persisted prices, looked up by exact block."""

    @abstractmethod
    async def fetch_price(
        self, chain_id: int, address: str, block_number: int
    ) -> Price | None:
        """Return the stored price for ``(chain_id, address, block_number)``.

        No interpolation: a row at any other block is not a match.
        """
        ...


class InMemoryPriceStore(BasePriceStore):
    """Price table kept in a dict."""

    def __init__(self) -> None:
        self._rows: dict[tuple[int, str, int], Price] = {}

    async def save(self, price: Price) -> None:
        self._rows[(price.chain_id, price.address.lower(), price.block_number)] = price

    async def fetch_price(
        self, chain_id: int, address: str, block_number: int
    ) -> Price | None:
        return self._rows.get((chain_id, address.lower(), block_number))

    def __len__(self) -> int:
        return len(self._rows)
