from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from web3.exceptions import ContractLogicError

from conftest import USDC, WETH, YV_WETH, make_price
from vault_pricer.collaborators import BaseVaultRegistry, InMemoryVaultRegistry
from vault_pricer.domain import TransferEvent, VaultRegistration
from vault_pricer.valuation import TransferValuer


class StubEngine:
    """Resolves prices from a fixed table keyed by lower-cased token."""

    def __init__(self, prices):
        self.prices = {token.lower(): price for token, price in prices.items()}
        self.requests = []

    async def resolve_price(self, chain_id, token, block_number=None, latest=False):
        self.requests.append((chain_id, token, block_number))
        return self.prices[token.lower()]


@pytest.fixture
def registry():
    return InMemoryVaultRegistry(
        [VaultRegistration(chain_id=1, address=YV_WETH, decimals=18, asset=WETH)]
    )


@pytest.mark.asyncio
async def test_vault_share_priced_from_asset(registry, chain):
    chain.set_value(YV_WETH, "pricePerShare", 1_500_000_000_000_000_000)
    engine = StubEngine({WETH: make_price(price_usd="2.00", source="eoracle")})
    valuer = TransferValuer(engine, registry, chain)

    valuation = await valuer.value_transfer(1, YV_WETH, 100, 10**18)

    assert valuation.price_usd == Decimal("3.00")
    assert valuation.value_usd == Decimal("3.00")
    assert str(valuation.price_source) == "computed-eoracle"
    assert engine.requests == [(1, WETH, 100)]
    (_, _, _, _, block_number), = chain.calls_to("pricePerShare")
    assert block_number == 100


@pytest.mark.asyncio
async def test_vault_lookup_is_case_insensitive(registry, chain):
    chain.set_value(YV_WETH, "pricePerShare", 10**18)
    engine = StubEngine({WETH: make_price(price_usd="2000", source="lens")})
    valuer = TransferValuer(engine, registry, chain)

    valuation = await valuer.value_transfer(1, YV_WETH.lower(), 100, 2 * 10**18)

    assert valuation.value_usd == Decimal("4000")
    assert str(valuation.price_source) == "computed-lens"


@pytest.mark.asyncio
async def test_price_per_share_is_read_at_every_block(registry, chain):
    chain.set_value(YV_WETH, "pricePerShare", lambda block: 10**18 + block)
    engine = StubEngine({WETH: make_price(price_usd="1")})
    valuer = TransferValuer(engine, registry, chain)

    first = await valuer.value_transfer(1, YV_WETH, 100, 10**18)
    second = await valuer.value_transfer(1, YV_WETH, 200, 10**18)

    assert first.price_usd == Decimal("1.0000000000000001")
    assert second.price_usd == Decimal("1.0000000000000002")
    assert len(chain.calls_to("pricePerShare")) == 2


@pytest.mark.asyncio
async def test_unpriced_asset_yields_computed_na(registry, chain):
    chain.set_value(YV_WETH, "pricePerShare", 1_500_000_000_000_000_000)
    engine = StubEngine({WETH: make_price(price_usd="0", source="na")})
    valuer = TransferValuer(engine, registry, chain)

    valuation = await valuer.value_transfer(1, YV_WETH, 100, 10**18)

    assert valuation.price_usd == Decimal(0)
    assert valuation.value_usd == Decimal(0)
    assert str(valuation.price_source) == "computed-na"


@pytest.mark.asyncio
async def test_plain_token_priced_directly(registry, chain):
    chain.decimals[USDC.lower()] = 6
    engine = StubEngine({USDC: make_price(token=USDC, price_usd="1.00", source="ydaemon")})
    valuer = TransferValuer(engine, registry, chain)

    valuation = await valuer.value_transfer(1, USDC, 100, 5_000_000)

    assert valuation.value_usd == Decimal("5.00")
    assert valuation.price_usd == Decimal("1.00")
    assert str(valuation.price_source) == "ydaemon"
    assert chain.calls_to("pricePerShare") == []


@pytest.mark.asyncio
async def test_value_event(registry, chain):
    chain.decimals[USDC.lower()] = 6
    engine = StubEngine({USDC: make_price(token=USDC, price_usd="1", source="lens")})
    valuer = TransferValuer(engine, registry, chain)

    valuation = await valuer.value_event(
        TransferEvent(chain_id=1, address=USDC, block_number=100, value=2_500_000)
    )

    assert valuation.value_usd == Decimal("2.5")
    assert engine.requests == [(1, USDC, 100)]


@pytest.mark.asyncio
async def test_registry_failure_propagates(chain):
    registry = AsyncMock(spec=BaseVaultRegistry)
    registry.find_thing.side_effect = ConnectionError("registry down")
    valuer = TransferValuer(StubEngine({}), registry, chain)

    with pytest.raises(ConnectionError):
        await valuer.value_transfer(1, USDC, 100, 1)


@pytest.mark.asyncio
async def test_price_per_share_failure_propagates(registry, chain):
    engine = StubEngine({WETH: make_price()})
    valuer = TransferValuer(engine, registry, chain)

    with pytest.raises(ContractLogicError):
        await valuer.value_transfer(1, YV_WETH, 100, 10**18)
    assert engine.requests == []
