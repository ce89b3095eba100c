from __future__ import annotations

from typing import Any

from ..constants import SPORK_PRICE_DECIMALS, SPORK_PRICE_TTL
from ..domain import SPORK, Price, PriceRequest
from ..logger import get_logger
from ..prices_config import SporkAsset
from ..units import scale_down
from .base import RPC_ERRORS, HttpPriceProvider

logger = get_logger(__name__)


class SporkProvider(HttpPriceProvider):
    """Provider backed by the Spork latest-price API.

    Spork only knows the current price. A fetched price is cached per token
    for a minute and restamped to whichever block is requested, so within that
    window the price is an approximation of the block, not an exact reading.
    """

    @property
    def provider_name(self) -> str:
        return "spork"

    @property
    def enabled(self) -> bool:
        return self.settings.spork_configured

    def _parse_price(self, payload: Any, asset_id: str) -> int:
        try:
            raw = payload["data"][asset_id]["price"]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid Spork response for {asset_id}: {payload!r}") from e
        if isinstance(raw, bool) or not isinstance(raw, (int, str)):
            raise ValueError(f"Invalid Spork price for {asset_id}: {raw!r}")
        return int(raw)

    async def fetch_raw_price(self, asset: SporkAsset) -> int | None:
        """Raw 18-decimal price for ``asset``, falling back to its default price."""
        if not asset.asset_id:
            return asset.default_price

        auth = self.settings.spork_api_auth
        response = await self.http_get(
            f"{self.settings.spork_api}/v1/prices/latest",
            params={"assets": asset.asset_id},
            headers={"Authorization": auth.get_secret_value() if auth else ""},
        )
        if response.status_code == 200:
            return self._parse_price(response.json(), asset.asset_id)
        if response.status_code == 404 and asset.default_price is not None:
            logger.debug(
                "Spork has no price for %s, using default %d",
                asset.asset_id,
                asset.default_price,
            )
            return asset.default_price

        logger.warning(
            "Spork price request for %s returned HTTP %d",
            asset.asset_id,
            response.status_code,
        )
        return None

    async def fetch_price(self, request: PriceRequest) -> Price | None:
        asset = self.prices_config.spork_asset(request.chain_id, request.token)
        if asset is None:
            return None

        async def _fetch() -> Price | None:
            raw_price = await self.fetch_raw_price(asset)
            if not raw_price:
                return None
            return await self.build_price(
                request, scale_down(raw_price, SPORK_PRICE_DECIMALS), SPORK
            )

        try:
            cached = await self.cache.wrap(
                f"sporkPriceUsd:{request.chain_id}:{request.token.lower()}",
                _fetch,
                SPORK_PRICE_TTL,
            )
            if cached is None:
                return None
            if cached.block_number == request.block_number:
                return cached
            block_time = await self.chain.block_time(
                request.chain_id, request.block_number
            )
        except RPC_ERRORS as e:
            logger.warning(
                "Spork price failed for %s on chain %d: %s",
                request.token,
                request.chain_id,
                e,
            )
            return None

        return cached.at_block(request.block_number, block_time)
