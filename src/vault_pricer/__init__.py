"""Historical USD pricing of tokens and vault shares for transfer valuation."""

from .domain import Price, PriceSource, TransferEvent, TransferValuation
from .engine import PriceEngine
from .valuation import TransferValuer

__all__ = [
    "Price",
    "PriceEngine",
    "PriceSource",
    "TransferEvent",
    "TransferValuation",
    "TransferValuer",
]
