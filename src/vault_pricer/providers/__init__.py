from __future__ import annotations

from .base import BasePriceProvider, HttpPriceProvider, ProviderContext
from .database import DatabaseProvider
from .eoracle import EOracleProvider
from .lens import LensProvider
from .spork import SporkProvider
from .ydaemon import YDaemonProvider
from .yprice import YPriceProvider

PROVIDER_REGISTRY: dict[str, type[BasePriceProvider]] = {
    "eoracle": EOracleProvider,
    "ydaemon": YDaemonProvider,
    "database": DatabaseProvider,
    "lens": LensProvider,
    "spork": SporkProvider,
    "yprice": YPriceProvider,
}


def build_providers(context: ProviderContext) -> dict[str, BasePriceProvider]:
    """Instantiate every registered provider once."""
    return {name: cls(context) for name, cls in PROVIDER_REGISTRY.items()}


__all__ = [
    "PROVIDER_REGISTRY",
    "BasePriceProvider",
    "DatabaseProvider",
    "EOracleProvider",
    "HttpPriceProvider",
    "LensProvider",
    "ProviderContext",
    "SporkProvider",
    "YDaemonProvider",
    "YPriceProvider",
    "build_providers",
]
