from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ..domain import YPRICE, Price, PriceRequest
from ..logger import get_logger
from .base import RPC_ERRORS, HttpPriceProvider

logger = get_logger(__name__)


class YPriceProvider(HttpPriceProvider):
    """Provider backed by the signed yPrice fallback service."""

    @property
    def provider_name(self) -> str:
        return "yprice"

    @property
    def enabled(self) -> bool:
        return self.settings.yprice_configured

    def _headers(self) -> dict[str, str]:
        signature = self.settings.yprice_api_x_signature
        return {
            "X-Signature": signature.get_secret_value() if signature else "",
            "X-Signer": self.settings.yprice_api_x_signer or "",
        }

    async def fetch_price(self, request: PriceRequest) -> Price | None:
        url = (
            f"{self.settings.yprice_api}/get_price/{request.chain_id}/{request.token}"
        )
        try:
            response = await self.http_get(
                url, params={"block": request.block_number}, headers=self._headers()
            )
            response.raise_for_status()
            value = response.json()
            price_usd = Decimal(str(value))
        except InvalidOperation:
            logger.warning("Invalid yPrice response for %s: %r", request.token, value)
            return None
        except RPC_ERRORS as e:
            logger.warning(
                "yPrice failed for %s on chain %d at block %d: %s",
                request.token,
                request.chain_id,
                request.block_number,
                e,
            )
            return None

        if not price_usd.is_finite() or price_usd <= 0:
            return None

        try:
            return await self.build_price(request, price_usd, YPRICE)
        except RPC_ERRORS as e:
            logger.warning("yPrice block time lookup failed for %s: %s", request.token, e)
            return None
