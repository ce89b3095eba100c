import pytest

from conftest import WETH, make_price
from vault_pricer.domain import PriceRequest
from vault_pricer.providers import DatabaseProvider


@pytest.fixture
def provider(context):
    return DatabaseProvider(context)


def test_database_prices_are_not_persisted_again(provider):
    assert provider.provider_name == "database"
    assert provider.persist is False


@pytest.mark.asyncio
async def test_returns_stored_price_verbatim(provider, store):
    stored = make_price(source="computed-lens", block_number=42)
    await store.save(stored)

    assert await provider.fetch_price(PriceRequest(1, WETH.lower(), 42)) is stored


@pytest.mark.asyncio
async def test_only_exact_block_matches(provider, store):
    await store.save(make_price(block_number=42))

    assert await provider.fetch_price(PriceRequest(1, WETH, 41)) is None
    assert await provider.fetch_price(PriceRequest(1, WETH, 43)) is None
