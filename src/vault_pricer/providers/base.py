from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import backoff
import requests
from web3.exceptions import Web3Exception

from ..cache import TtlCache
from ..chain import ChainClient
from ..collaborators import BasePriceStore
from ..constants import RETRYABLE_STATUS_CODES
from ..domain import Price, PriceRequest, PriceSource
from ..logger import get_logger
from ..prices_config import PricesConfig
from ..settings import PricerSettings

logger = get_logger(__name__)

# Errors an RPC round trip can raise; all of them mean "no price from here".
RPC_ERRORS = (Web3Exception, requests.exceptions.RequestException, ValueError)


@dataclass(frozen=True)
class ProviderContext:
    """Shared, read-only dependencies of the price providers."""

    settings: PricerSettings
    prices_config: PricesConfig
    chain: ChainClient
    cache: TtlCache
    store: BasePriceStore


class BasePriceProvider(ABC):
    """Abstract base class for price providers.

    A provider returns ``None`` when it has no price. Failures talking to its
    source are logged and reported as ``None`` too, so the cascade can move on.
    """

    def __init__(self, context: ProviderContext):
        """Initialize the provider with its dependencies."""
        self.context = context
        self.settings = context.settings
        self.prices_config = context.prices_config
        self.chain = context.chain
        self.cache = context.cache

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider."""
        ...

    @property
    def enabled(self) -> bool:
        """Whether this provider is usable with the current configuration."""
        return True

    @property
    def persist(self) -> bool:
        """Whether prices from this provider should be enqueued for persistence."""
        return True

    @abstractmethod
    async def fetch_price(self, request: PriceRequest) -> Price | None:
        """Fetch the USD price for the request, or None on a miss."""
        ...

    async def build_price(
        self,
        request: PriceRequest,
        price_usd: Decimal,
        source: PriceSource,
        block_number: int | None = None,
    ) -> Price:
        """Pin a price to ``block_number`` (the requested block by default)."""
        block = request.block_number if block_number is None else block_number
        return Price(
            chain_id=request.chain_id,
            address=request.token,
            price_usd=price_usd,
            price_source=source,
            block_number=block,
            block_time=await self.chain.block_time(request.chain_id, block),
        )


def _raise_for_retryable_status(response: requests.Response) -> requests.Response:
    if response.status_code in RETRYABLE_STATUS_CODES:
        response.raise_for_status()
    return response


class HttpPriceProvider(BasePriceProvider):
    """Price provider backed by an HTTP API."""

    async def http_get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """GET ``url``, retrying connection errors and 429/5xx responses.

        Other statuses are returned to the caller untouched.

        Raises:
            requests.exceptions.RequestException: When retries are exhausted
        """

        def _on_backoff(details: Any) -> None:
            logger.debug(
                "%s: retrying %s (attempt %d): %s",
                self.provider_name,
                url,
                details["tries"],
                details.get("exception"),
            )

        @backoff.on_exception(
            backoff.expo,
            requests.exceptions.RequestException,
            max_tries=self.settings.http_max_tries,
            jitter=backoff.full_jitter,
            on_backoff=_on_backoff,
        )
        async def _get() -> requests.Response:
            logger.debug(f"Calling {url}")
            response = await asyncio.to_thread(
                requests.get,
                url,
                params=params,
                headers=headers,
                timeout=self.settings.http_timeout,
            )
            return _raise_for_retryable_status(response)

        return await _get()
