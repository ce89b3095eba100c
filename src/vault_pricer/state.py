"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .cache import TtlCache
from .chain import ChainClient
from .collaborators import (
    BasePriceQueue,
    BasePriceStore,
    BaseVaultRegistry,
    InMemoryPriceQueue,
    InMemoryPriceStore,
    InMemoryVaultRegistry,
)
from .engine import PriceEngine
from .prices_config import PricesConfig, load_prices_config
from .providers import ProviderContext, build_providers
from .settings import PricerSettings
from .valuation import TransferValuer


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Built once at startup and read-only afterwards.
    """

    settings: PricerSettings
    prices_config: PricesConfig
    logger: logging.Logger
    cache: TtlCache
    chain: ChainClient
    registry: BaseVaultRegistry
    store: BasePriceStore
    queue: BasePriceQueue
    engine: PriceEngine
    valuer: TransferValuer


def build_app_state(
    settings: PricerSettings,
    *,
    prices_config: PricesConfig | None = None,
    registry: BaseVaultRegistry | None = None,
    store: BasePriceStore | None = None,
    queue: BasePriceQueue | None = None,
    chain: ChainClient | None = None,
    cache: TtlCache | None = None,
) -> AppState:
    """Wire the engine and valuer, defaulting collaborators to in-memory ones.

    Raises:
        PriceConfigError: If the prices config or the cascades are invalid
    """
    if prices_config is None:
        prices_config = load_prices_config(settings.config_dir, settings.prices_config)
    if cache is None:
        cache = TtlCache(maxsize=settings.cache_maxsize)
    if chain is None:
        chain = ChainClient(settings, cache)
    if registry is None:
        registry = InMemoryVaultRegistry()
    if store is None:
        store = InMemoryPriceStore()
    if queue is None:
        queue = InMemoryPriceQueue()

    providers = build_providers(
        ProviderContext(
            settings=settings,
            prices_config=prices_config,
            chain=chain,
            cache=cache,
            store=store,
        )
    )
    engine = PriceEngine(settings, chain, cache, queue, providers)

    return AppState(
        settings=settings,
        prices_config=prices_config,
        logger=logging.getLogger("vault_pricer"),
        cache=cache,
        chain=chain,
        registry=registry,
        store=store,
        queue=queue,
        engine=engine,
        valuer=TransferValuer(engine, registry, chain),
    )
