"""USD valuation of token and vault-share transfers."""

from __future__ import annotations

from .abi import load_yearn_vault_abi
from .chain import ChainClient
from .collaborators import BaseVaultRegistry
from .domain import (
    VAULT_LABEL,
    PriceSource,
    TransferEvent,
    TransferValuation,
    VaultRegistration,
)
from .engine import PriceEngine
from .logger import get_logger
from .units import scale_down, value_usd

logger = get_logger(__name__)


class TransferValuer:
    """Values transfers, composing vault share prices from their asset's price."""

    def __init__(
        self, engine: PriceEngine, registry: BaseVaultRegistry, chain: ChainClient
    ):
        self.engine = engine
        self.registry = registry
        self.chain = chain

    async def value_event(self, event: TransferEvent) -> TransferValuation:
        return await self.value_transfer(
            event.chain_id, event.address, event.block_number, event.value
        )

    async def value_transfer(
        self, chain_id: int, token: str, block_number: int, raw_amount: int
    ) -> TransferValuation:
        """Value ``raw_amount`` units of ``token`` transferred at ``block_number``.

        Registered vaults are priced as price-per-share times the price of
        their underlying asset, with a ``computed-<asset source>`` source.
        Any other token is priced directly.
        """
        vault = await self.registry.find_thing(chain_id, token, VAULT_LABEL)
        if vault is not None:
            return await self._value_vault_shares(vault, token, block_number, raw_amount)

        decimals = await self.chain.erc20_decimals(chain_id, token)
        price = await self.engine.resolve_price(chain_id, token, block_number)
        return TransferValuation(
            value_usd=value_usd(raw_amount, decimals, price.price_usd),
            price_usd=price.price_usd,
            price_source=price.price_source,
        )

    async def _value_vault_shares(
        self,
        vault: VaultRegistration,
        token: str,
        block_number: int,
        raw_amount: int,
    ) -> TransferValuation:
        # Point-in-time read; never cached.
        price_per_share_raw = int(
            await self.chain.read_contract(
                vault.chain_id,
                token,
                load_yearn_vault_abi(),
                "pricePerShare",
                block_number=block_number,
            )
        )
        price_per_share = scale_down(price_per_share_raw, vault.decimals)

        asset_price = await self.engine.resolve_price(
            vault.chain_id, vault.asset, block_number
        )
        share_price = price_per_share * asset_price.price_usd
        logger.debug(
            "Vault %s at block %d: pricePerShare=%s asset %s=%s (%s)",
            token,
            block_number,
            price_per_share,
            vault.asset,
            asset_price.price_usd,
            asset_price.price_source,
        )

        return TransferValuation(
            value_usd=value_usd(raw_amount, vault.decimals, share_price),
            price_usd=share_price,
            price_source=PriceSource.computed(asset_price.price_source),
        )
