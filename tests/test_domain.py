from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import WETH, block_time_of, make_price
from vault_pricer.domain import (
    EORACLE,
    NA,
    Price,
    PriceSource,
    SourceKind,
    TransferValuation,
)


class TestPriceSource:
    def test_plain_source_renders_its_name(self):
        assert str(EORACLE) == "eoracle"
        assert str(NA) == "na"

    def test_computed_source_wraps_inner(self):
        assert str(PriceSource.computed(EORACLE)) == "computed-eoracle"
        assert str(PriceSource.computed(NA)) == "computed-na"

    @pytest.mark.parametrize(
        "text", ["eoracle", "ydaemon", "lens", "spork", "yprice", "na", "computed-lens"]
    )
    def test_parse_inverts_str(self, text):
        assert str(PriceSource.parse(text)) == text

    def test_parse_nested_computed(self):
        source = PriceSource.parse("computed-computed-spork")
        assert source.kind is SourceKind.COMPUTED
        assert source.inner == PriceSource.computed(PriceSource(SourceKind.SPORK))

    @pytest.mark.parametrize("text", ["coingecko", "computed", "computed-", ""])
    def test_parse_rejects_unknown(self, text):
        with pytest.raises(ValueError):
            PriceSource.parse(text)

    def test_computed_requires_inner(self):
        with pytest.raises(ValueError, match="requires an inner source"):
            PriceSource(SourceKind.COMPUTED)

    def test_plain_source_cannot_wrap(self):
        with pytest.raises(ValueError, match="cannot wrap another"):
            PriceSource(SourceKind.LENS, EORACLE)


class TestPrice:
    def test_negative_price_rejected(self):
        with pytest.raises(ValueError, match="price_usd must be non-negative"):
            make_price(price_usd="-1")

    def test_negative_block_rejected(self):
        with pytest.raises(ValueError, match="block_number must be non-negative"):
            make_price(block_number=-1)

    def test_at_block_restamps_only_block(self):
        price = make_price(block_number=10)
        moved = price.at_block(20, block_time_of(20))

        assert moved.block_number == 20
        assert moved.block_time == block_time_of(20)
        assert moved.price_usd == price.price_usd
        assert moved.price_source == price.price_source
        assert price.block_number == 10

    def test_payload_shape(self):
        price = Price(
            chain_id=1,
            address=WETH,
            price_usd=Decimal("2000.5"),
            price_source=PriceSource.computed(EORACLE),
            block_number=100,
            block_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

        assert price.as_payload() == {
            "chainId": 1,
            "address": WETH,
            "priceUsd": "2000.5",
            "priceSource": "computed-eoracle",
            "blockNumber": 100,
            "blockTime": "2024-01-01T00:00:00+00:00",
        }
        assert Price.from_payload(price.as_payload()) == price


def test_transfer_valuation_as_dict():
    valuation = TransferValuation(
        value_usd=Decimal("3.0"),
        price_usd=Decimal("1.5"),
        price_source=PriceSource.computed(NA),
    )

    assert valuation.as_dict() == {
        "valueUsd": "3.0",
        "priceUsd": "1.5",
        "priceSource": "computed-na",
    }
