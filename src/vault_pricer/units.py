from __future__ import annotations

from decimal import ROUND_DOWN, Context, Decimal

# Wide enough for any uint256 amount without rounding.
_CONTEXT = Context(prec=100)

USDC_DECIMALS = 6
LENS_PRICE_PLACES = Decimal("0.0001")


def scale_down(raw: int, decimals: int) -> Decimal:
    """Convert a raw integer token amount to a decimal amount.

    Args:
        raw: Integer amount expressed with ``decimals`` decimal places.
        decimals: Decimal precision of ``raw``.

    Returns:
        ``raw / 10**decimals`` as an exact Decimal.

    Notes:
        - ``raw`` may exceed 64-bit range; no float conversion happens.
        - Negative ``decimals`` are rejected.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    return _CONTEXT.divide(Decimal(raw), Decimal(10) ** decimals)


def value_usd(raw: int, decimals: int, unit_price_usd: Decimal) -> Decimal:
    """USD value of ``raw`` token units at ``unit_price_usd`` per whole token."""
    if not unit_price_usd:
        return Decimal(0)
    return _CONTEXT.multiply(scale_down(raw, decimals), Decimal(unit_price_usd))


def truncate_usdc(raw_usdc: int) -> Decimal:
    """Convert a 6-decimal USDC amount to dollars, truncated to 4 places."""
    return scale_down(raw_usdc, USDC_DECIMALS).quantize(
        LENS_PRICE_PLACES, rounding=ROUND_DOWN
    )
