from __future__ import annotations

from ..domain import Price, PriceRequest
from .base import BasePriceProvider, ProviderContext


class DatabaseProvider(BasePriceProvider):
    """Provider returning prices already persisted for the exact block."""

    def __init__(self, context: ProviderContext):
        super().__init__(context)
        self.store = context.store

    @property
    def provider_name(self) -> str:
        return "database"

    @property
    def persist(self) -> bool:
        return False

    async def fetch_price(self, request: PriceRequest) -> Price | None:
        return await self.store.fetch_price(
            request.chain_id, request.token, request.block_number
        )
