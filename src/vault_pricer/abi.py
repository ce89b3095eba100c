"""Contract ABIs shipped with the package."""

from __future__ import annotations

import copy
import json
from functools import lru_cache
from pathlib import Path

ABI_DIR = Path(__file__).parent / "abis"


@lru_cache(maxsize=None)
def _read_abi(name: str) -> tuple[dict, ...]:
    with (ABI_DIR / f"{name}.json").open() as f:
        return tuple(json.load(f)["abi"])


def load_abi(name: str) -> list[dict]:
    """Return the ABI stored as ``abis/<name>.json``.

    Files are parsed once; each call gets a deep copy, so callers may
    mutate it freely.

    Raises:
        FileNotFoundError: If no such ABI ships with the package
        KeyError: If the file has no "abi" field
    """
    return copy.deepcopy(list(_read_abi(name)))


def load_eoracle_feed_abi() -> list[dict]:
    """latestAnswer() and decimals() of an eOracle feed."""
    return load_abi("EOracleFeed")


def load_price_lens_abi() -> list[dict]:
    return load_abi("PriceLens")


def load_yearn_vault_abi() -> list[dict]:
    return load_abi("YearnVault")


def load_erc20_abi() -> list[dict]:
    return load_abi("ERC20")
