"""Multi-source price resolution."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Mapping, Sequence

from .cache import TtlCache
from .chain import ChainClient
from .collaborators import BasePriceQueue
from .constants import LOAD_PRICE_JOB
from .domain import NA, Price, PriceRequest
from .exceptions import PriceConfigError
from .logger import get_logger
from .providers import BasePriceProvider
from .settings import PricerSettings

logger = get_logger(__name__)


def build_cascade(
    names: Sequence[str], providers: Mapping[str, BasePriceProvider]
) -> tuple[BasePriceProvider, ...]:
    """Resolve an ordered list of provider names, dropping disabled providers.

    Raises:
        PriceConfigError: If a name does not match any provider
    """
    cascade: list[BasePriceProvider] = []
    for name in names:
        provider = providers.get(name)
        if provider is None:
            raise PriceConfigError(
                f"Unknown price provider '{name}' in cascade. "
                f"Available: {', '.join(providers.keys())}"
            )
        if not provider.enabled:
            logger.info("Price provider %s is not configured, skipping it", name)
            continue
        cascade.append(provider)
    return tuple(cascade)


class PriceEngine:
    """Resolves token prices by trying providers in a fixed priority order.

    Latest requests first try the latest cascade; every request then falls
    through to the historical cascade. The first provider that returns a price
    wins. When all of them miss, a zero ``na`` price is recorded instead.
    Every price not read back from the database is enqueued for persistence.
    """

    def __init__(
        self,
        settings: PricerSettings,
        chain: ChainClient,
        cache: TtlCache,
        queue: BasePriceQueue,
        providers: Mapping[str, BasePriceProvider],
    ):
        self.settings = settings
        self.chain = chain
        self.cache = cache
        self.queue = queue
        self.latest_cascade = build_cascade(settings.latest_cascade, providers)
        self.historical_cascade = build_cascade(settings.historical_cascade, providers)
        logger.debug(
            "Price cascades: latest=%s historical=%s",
            [p.provider_name for p in self.latest_cascade],
            [p.provider_name for p in self.historical_cascade],
        )

    async def resolve_price(
        self,
        chain_id: int,
        token: str,
        block_number: int | None = None,
        latest: bool = False,
    ) -> Price:
        """Resolve the USD price of ``token`` at ``block_number``.

        Args:
            chain_id: Chain of the token
            token: Token address
            block_number: Block to price at; the chain head when omitted
            latest: Treat the request as a latest-price request

        Returns:
            The resolved price, possibly a zero price with source ``na``.
        """
        if block_number is None:
            block_number = await self.chain.current_block_number(chain_id)
            latest = True

        request = PriceRequest(
            chain_id=chain_id, token=token, block_number=block_number, latest=latest
        )
        return await self.cache.wrap(
            f"resolvePrice:{chain_id}:{token.lower()}:{block_number}",
            lambda: self._resolve(request),
            self.settings.price_cache_ttl,
        )

    async def _resolve(self, request: PriceRequest) -> Price:
        if request.latest:
            price = await self._run_cascade(self.latest_cascade, request)
            if price is not None:
                return price

        price = await self._run_cascade(
            self.historical_cascade, request.for_historical()
        )
        if price is not None:
            return price

        logger.warning(
            "No price for %s on chain %d at block %d",
            request.token,
            request.chain_id,
            request.block_number,
        )
        empty = Price(
            chain_id=request.chain_id,
            address=request.token,
            price_usd=Decimal(0),
            price_source=NA,
            block_number=request.block_number,
            block_time=await self.chain.block_time(
                request.chain_id, request.block_number
            ),
        )
        await self._persist(empty)
        return empty

    async def _run_cascade(
        self, cascade: Sequence[BasePriceProvider], request: PriceRequest
    ) -> Price | None:
        for provider in cascade:
            price = await self._attempt(provider, request)
            if price is None:
                continue
            logger.debug(
                "Priced %s on chain %d at block %d via %s: %s",
                request.token,
                request.chain_id,
                price.block_number,
                provider.provider_name,
                price.price_usd,
            )
            if provider.persist:
                await self._persist(price)
            return price
        return None

    async def _attempt(
        self, provider: BasePriceProvider, request: PriceRequest
    ) -> Price | None:
        try:
            async with asyncio.timeout(self.settings.provider_timeout):
                return await provider.fetch_price(request)
        except TimeoutError:
            logger.warning(
                "%s timed out after %.1fs pricing %s on chain %d",
                provider.provider_name,
                self.settings.provider_timeout,
                request.token,
                request.chain_id,
            )
        except Exception:
            logger.warning(
                "%s raised pricing %s on chain %d at block %d",
                provider.provider_name,
                request.token,
                request.chain_id,
                request.block_number,
                exc_info=True,
            )
        return None

    async def _persist(self, price: Price) -> None:
        try:
            await self.queue.enqueue(LOAD_PRICE_JOB, price.as_payload())
        except Exception:
            logger.error(
                "Failed to enqueue %s price for %s at block %d",
                price.price_source,
                price.address,
                price.block_number,
                exc_info=True,
            )
