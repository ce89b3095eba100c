from __future__ import annotations

from .queue import BasePriceQueue, InMemoryPriceQueue, Job, run_price_loader
from .registry import BaseVaultRegistry, InMemoryVaultRegistry
from .store import BasePriceStore, InMemoryPriceStore

__all__ = [
    "BasePriceQueue",
    "BasePriceStore",
    "BaseVaultRegistry",
    "InMemoryPriceQueue",
    "InMemoryPriceStore",
    "InMemoryVaultRegistry",
    "Job",
    "run_price_loader",
]
