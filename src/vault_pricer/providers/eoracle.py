from __future__ import annotations

from ..abi import load_eoracle_feed_abi
from ..constants import EORACLE_DECIMALS_TTL
from ..domain import EORACLE, Price, PriceRequest
from ..logger import get_logger
from ..units import scale_down
from .base import RPC_ERRORS, BasePriceProvider

logger = get_logger(__name__)


class EOracleProvider(BasePriceProvider):
    """Provider reading eOracle feeds configured per chain and token.

    In latest mode the feed is read at the current head rather than at the
    requested block, and the price is pinned to that head block.
    """

    @property
    def provider_name(self) -> str:
        return "eoracle"

    async def feed_decimals(self, chain_id: int, feed_address: str) -> int:
        async def _fetch() -> int:
            decimals = await self.chain.read_contract(
                chain_id, feed_address, load_eoracle_feed_abi(), "decimals"
            )
            return int(decimals)

        return await self.cache.wrap(
            f"eOracleDecimals:{chain_id}:{feed_address.lower()}",
            _fetch,
            EORACLE_DECIMALS_TTL,
        )

    async def fetch_price(self, request: PriceRequest) -> Price | None:
        feed = self.prices_config.eoracle_feed(request.chain_id, request.token)
        if feed is None:
            return None

        logger.debug(
            "Retrieving eOracle price for %s on chain %d at block %d from feed %s",
            request.token,
            request.chain_id,
            request.block_number,
            feed.address,
        )
        try:
            decimals = await self.feed_decimals(request.chain_id, feed.address)

            block_number = request.block_number
            if request.latest:
                block_number = await self.chain.current_block_number(request.chain_id)

            answer = int(
                await self.chain.read_contract(
                    request.chain_id,
                    feed.address,
                    load_eoracle_feed_abi(),
                    "latestAnswer",
                    block_number=block_number,
                )
            )
            logger.debug(
                "eOracle answer for %s at block %d: %d", request.token, block_number, answer
            )
            if answer == 0:
                return None

            return await self.build_price(
                request, scale_down(answer, decimals), EORACLE, block_number
            )
        except RPC_ERRORS as e:
            logger.warning(
                "eOracle price failed for %s on chain %d at block %d: %s",
                request.token,
                request.chain_id,
                request.block_number,
                e,
            )
            return None
