from __future__ import annotations

from web3 import Web3

from ..abi import load_price_lens_abi
from ..constants import LENS_ADDRESSES
from ..domain import LENS, Price, PriceRequest
from ..logger import get_logger
from ..units import truncate_usdc
from .base import RPC_ERRORS, BasePriceProvider

logger = get_logger(__name__)


class LensProvider(BasePriceProvider):
    """Provider reading the per-chain lens oracle at the requested block.

    The lens quotes in USDC (6 decimals); prices keep 4 decimal places.
    """

    @property
    def provider_name(self) -> str:
        return "lens"

    async def fetch_price(self, request: PriceRequest) -> Price | None:
        lens_address = LENS_ADDRESSES.get(request.chain_id)
        if lens_address is None:
            return None

        try:
            price_usdc = int(
                await self.chain.read_contract(
                    request.chain_id,
                    lens_address,
                    load_price_lens_abi(),
                    "getPriceUsdcRecommended",
                    [Web3.to_checksum_address(request.token)],
                    block_number=request.block_number,
                )
            )
            if price_usdc == 0:
                return None

            return await self.build_price(request, truncate_usdc(price_usdc), LENS)
        except RPC_ERRORS as e:
            logger.warning(
                "Lens price failed for %s on chain %d at block %d: %s",
                request.token,
                request.chain_id,
                request.block_number,
                e,
            )
            return None
