from decimal import Decimal
from io import StringIO

from rich.console import Console

from conftest import YV_WETH, make_price
from vault_pricer.domain import NA, PriceSource, TransferValuation
from vault_pricer.formatter import format_price_table, format_valuation_table


def render(fn, *args) -> str:
    buffer = StringIO()
    fn(*args, console=Console(file=buffer, width=120, color_system=None))
    return buffer.getvalue()


def test_format_price_table():
    output = render(format_price_table, make_price(price_usd="1834.5678", source="lens"))

    assert "1834.5678" in output
    assert "lens" in output
    assert "Price" in output


def test_format_valuation_table():
    valuation = TransferValuation(
        value_usd=Decimal("0"),
        price_usd=Decimal("0"),
        price_source=PriceSource.computed(NA),
    )

    output = render(format_valuation_table, 1, YV_WETH, 100, 10**18, valuation)

    assert "computed-na" in output
    assert "1,000,000,000,000,000,000" in output
    assert "Transfer Valuation" in output
