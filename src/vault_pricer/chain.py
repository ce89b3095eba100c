"""Chain access: contract reads, block numbers, block times and token metadata."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Sequence

from eth_typing import URI
from web3 import Web3

from .abi import load_erc20_abi
from .cache import TtlCache
from .constants import BLOCK_TIME_TTL, TOKEN_DECIMALS_TTL
from .logger import get_logger
from .settings import PricerSettings

logger = get_logger(__name__)


class ChainClient:
    """Thin async facade over one web3 HTTP provider per chain.

    Web3 calls are blocking, so every round trip runs in a worker thread.
    Each provider carries the configured request timeout.
    """

    def __init__(self, settings: PricerSettings, cache: TtlCache):
        self._settings = settings
        self._cache = cache
        self._web3: dict[int, Web3] = {}

    def web3(self, chain_id: int) -> Web3:
        w3 = self._web3.get(chain_id)
        if w3 is None:
            w3 = Web3(
                Web3.HTTPProvider(
                    URI(self._settings.rpc_url(chain_id)),
                    request_kwargs={"timeout": self._settings.rpc_timeout},
                )
            )
            self._web3[chain_id] = w3
        return w3

    async def read_contract(
        self,
        chain_id: int,
        address: str,
        abi: list[dict],
        function_name: str,
        args: Sequence[Any] = (),
        block_number: int | None = None,
    ) -> Any:
        """Call a view function, at ``block_number`` or at the chain head."""
        w3 = self.web3(chain_id)
        contract = w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        call = getattr(contract.functions, function_name)(*args).call
        block_identifier = block_number if block_number is not None else "latest"
        return await asyncio.to_thread(call, block_identifier=block_identifier)

    async def current_block_number(self, chain_id: int) -> int:
        w3 = self.web3(chain_id)
        return int(await asyncio.to_thread(lambda: w3.eth.block_number))

    async def block_time(self, chain_id: int, block_number: int) -> datetime:
        """Timestamp of a block, cached since it never changes."""

        async def _fetch() -> datetime:
            w3 = self.web3(chain_id)
            block = await asyncio.to_thread(w3.eth.get_block, block_number)
            return datetime.fromtimestamp(int(block["timestamp"]), tz=timezone.utc)

        return await self._cache.wrap(
            f"blockTime:{chain_id}:{block_number}", _fetch, BLOCK_TIME_TTL
        )

    async def erc20_decimals(self, chain_id: int, token: str) -> int:
        async def _fetch() -> int:
            decimals = await self.read_contract(
                chain_id, token, load_erc20_abi(), "decimals"
            )
            logger.debug("Fetched decimals for %s on chain %d: %s", token, chain_id, decimals)
            return int(decimals)

        return await self._cache.wrap(
            f"erc20Decimals:{chain_id}:{token.lower()}", _fetch, TOKEN_DECIMALS_TTL
        )
