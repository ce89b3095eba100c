from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import pytest
import requests
from web3.exceptions import ContractLogicError

from vault_pricer.cache import TtlCache
from vault_pricer.collaborators import BasePriceQueue, InMemoryPriceStore
from vault_pricer.domain import Price, PriceSource
from vault_pricer.prices_config import EOracleFeed, PricesConfig, SporkAsset
from vault_pricer.providers import ProviderContext
from vault_pricer.settings import PricerSettings

WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
DAI = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
YV_WETH = "0xa258C4606Ca8206D8aA700cE2143D7db854D168c"
WETH_FEED = "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419"

GENESIS_TIMESTAMP = 1_600_000_000

ENV_VARS = (
    "YDAEMON_API",
    "SPORK_API",
    "SPORK_API_AUTH",
    "YPRICE_ENABLED",
    "YPRICE_API",
    "YPRICE_API_X_SIGNATURE",
    "YPRICE_API_X_SIGNER",
    "LOG_LEVEL",
)


def block_time_of(block_number: int) -> datetime:
    return datetime.fromtimestamp(GENESIS_TIMESTAMP + 12 * block_number, tz=timezone.utc)


def make_price(
    token: str = WETH,
    price_usd: str = "2000",
    source: PriceSource | str = "eoracle",
    block_number: int = 100,
    chain_id: int = 1,
) -> Price:
    if isinstance(source, str):
        source = PriceSource.parse(source)
    return Price(
        chain_id=chain_id,
        address=token,
        price_usd=Decimal(price_usd),
        price_source=source,
        block_number=block_number,
        block_time=block_time_of(block_number),
    )


def make_response(status_code: int, payload: Any = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(payload).encode() if payload is not None else b""
    return response


class FakeChain:
    """In-memory stand-in for ChainClient.

    Contract values are keyed by (lower-cased address, function name). A value
    may be a callable taking the block number. Unknown calls revert.
    """

    def __init__(self, head: int = 1_000):
        self.head = head
        self.contract_values: dict[tuple[str, str], Any] = {}
        self.decimals: dict[str, int] = {}
        self.calls: list[tuple[int, str, str, tuple, int | None]] = []

    def set_value(self, address: str, function_name: str, value: Any) -> None:
        self.contract_values[(address.lower(), function_name)] = value

    async def read_contract(
        self,
        chain_id: int,
        address: str,
        abi: list[dict],
        function_name: str,
        args=(),
        block_number: int | None = None,
    ) -> Any:
        self.calls.append((chain_id, address.lower(), function_name, tuple(args), block_number))
        key = (address.lower(), function_name)
        if key not in self.contract_values:
            raise ContractLogicError("execution reverted")
        value = self.contract_values[key]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(block_number)
        return value

    def calls_to(self, function_name: str) -> list[tuple[int, str, str, tuple, int | None]]:
        return [call for call in self.calls if call[2] == function_name]

    async def current_block_number(self, chain_id: int) -> int:
        return self.head

    async def block_time(self, chain_id: int, block_number: int) -> datetime:
        return block_time_of(block_number)

    async def erc20_decimals(self, chain_id: int, token: str) -> int:
        return self.decimals[token.lower()]


class RecordingQueue(BasePriceQueue):
    def __init__(self) -> None:
        self.jobs: list[tuple[str, dict[str, Any]]] = []

    async def enqueue(self, job: str, payload: dict[str, Any]) -> None:
        self.jobs.append((job, payload))


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep host environment and config files out of settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"VAULT_PRICER_{name}", raising=False)
    for name in ("VAULT_PRICER_CONFIG", "VAULT_PRICER_RPC_URLS", "VAULT_PRICER_CONFIG_DIR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings():
    return PricerSettings(
        rpc_urls={1: "https://rpc.example"},
        ydaemon_api="https://ydaemon.example",
        http_max_tries=1,
        provider_timeout=1.0,
    )


@pytest.fixture
def prices_config():
    return PricesConfig(
        spork=(
            SporkAsset(
                chain_id=1,
                address=USDC,
                asset_id="usdc",
                default_price=10**18,
            ),
            SporkAsset(chain_id=1, address=DAI, asset_id=None, default_price=10**18),
        ),
        eoracle={1: {WETH: EOracleFeed(address=WETH_FEED)}},
    )


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def cache():
    return TtlCache()


@pytest.fixture
def store():
    return InMemoryPriceStore()


@pytest.fixture
def queue():
    return RecordingQueue()


@pytest.fixture
def context(settings, prices_config, chain, cache, store):
    return ProviderContext(
        settings=settings,
        prices_config=prices_config,
        chain=chain,
        cache=cache,
        store=store,
    )
