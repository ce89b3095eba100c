from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

import requests

from ..constants import YDAEMON_PRICES_TTL
from ..domain import YDAEMON, Price, PriceRequest
from ..logger import get_logger
from .base import RPC_ERRORS, HttpPriceProvider

logger = get_logger(__name__)

YDaemonPrices = dict[str, dict[str, Any]]


def lowercase_addresses(data: YDaemonPrices) -> YDaemonPrices:
    """Lower-case the chain and token keys of a yDaemon price snapshot."""
    return {
        str(chain_id).lower(): {
            token.lower(): price for token, price in prices.items()
        }
        for chain_id, prices in data.items()
        if isinstance(prices, dict)
    }


class YDaemonProvider(HttpPriceProvider):
    """Provider backed by the yDaemon bulk price snapshot.

    The snapshot has no historical dimension, so only latest requests are
    answered.
    """

    @property
    def provider_name(self) -> str:
        return "ydaemon"

    @property
    def enabled(self) -> bool:
        return bool(self.settings.ydaemon_api)

    async def fetch_all_prices(self) -> YDaemonPrices:
        """All prices keyed by chain id then token, cached for a minute."""

        async def _fetch() -> YDaemonPrices:
            url = f"{self.settings.ydaemon_api}/prices/all"
            response = await self.http_get(url, params={"humanized": "true"})
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"Invalid yDaemon response structure: {type(data).__name__}")
            return lowercase_addresses(data)

        return await self.cache.wrap("fetchAllYDaemonPrices", _fetch, YDAEMON_PRICES_TTL)

    async def fetch_price(self, request: PriceRequest) -> Price | None:
        if not request.latest:
            return None

        try:
            prices = await self.fetch_all_prices()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("yDaemon prices failed: %s", e)
            return None

        value = prices.get(str(request.chain_id), {}).get(request.token.lower())
        if value is None:
            return None

        try:
            price_usd = Decimal(str(value))
        except InvalidOperation:
            logger.warning("Invalid yDaemon price for %s: %r", request.token, value)
            return None
        if not price_usd.is_finite() or price_usd <= 0:
            return None

        try:
            return await self.build_price(request, price_usd, YDAEMON)
        except RPC_ERRORS as e:
            logger.warning("yDaemon block time lookup failed for %s: %s", request.token, e)
            return None
