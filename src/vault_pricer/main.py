"""CLI entrypoint for vault-pricer."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Annotated, Any, Awaitable, TypeVar

import typer
from pydantic import ValidationError

from .collaborators import (
    InMemoryPriceQueue,
    InMemoryPriceStore,
    InMemoryVaultRegistry,
    run_price_loader,
)
from .domain import VaultRegistration
from .exceptions import PriceConfigError
from .formatter import format_price_table, format_valuation_table
from .logger import setup_logging
from .settings import PricerSettings
from .state import AppState, build_app_state

T = TypeVar("T")

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Resolve historical USD prices of tokens and vault shares.",
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML settings file (can include [vault_pricer] table).",
        ),
    ] = None,
    prices_config: Annotated[
        Path | None,
        typer.Option(
            "--prices-config",
            help="Path to the prices config document (eOracle feeds, Spork assets).",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective settings (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Load settings shared by every command."""
    if config_path:
        os.environ["VAULT_PRICER_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Any] = {}
    if prices_config is not None:
        init_kwargs["prices_config"] = prices_config
    if log_level is not None:
        # keyed by alias so it outranks LOG_LEVEL from the environment
        init_kwargs["LOG_LEVEL"] = log_level.upper()

    try:
        settings = PricerSettings(**init_kwargs)
    except ValidationError as e:
        typer.echo(f"Invalid settings: {e}", err=True)
        raise typer.Exit(code=1)

    setup_logging(settings.log_level)

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)

    ctx.obj = settings


def _build_state(settings: PricerSettings) -> AppState:
    try:
        return build_app_state(settings)
    except PriceConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)


async def _run_with_loader(state: AppState, work: Awaitable[T]) -> T:
    """Run ``work`` while draining persistence jobs into the local store."""
    if not isinstance(state.queue, InMemoryPriceQueue) or not isinstance(
        state.store, InMemoryPriceStore
    ):
        return await work

    loader = asyncio.create_task(run_price_loader(state.queue, state.store))
    try:
        return await work
    finally:
        await state.queue.jobs.join()
        loader.cancel()
        state.logger.debug("Persisted %d prices", len(state.store))


@app.command()
def price(
    ctx: typer.Context,
    chain_id: Annotated[int, typer.Argument(help="Chain id of the token.")],
    token: Annotated[str, typer.Argument(help="Token address.")],
    block_number: Annotated[
        int | None,
        typer.Option(
            "--block-number",
            help="Block to price at. If not provided, the latest block will be used.",
        ),
    ] = None,
    latest: Annotated[
        bool,
        typer.Option("--latest", help="Treat the request as a latest-price request."),
    ] = False,
    pretty: Annotated[
        bool, typer.Option("--pretty", help="Render a table instead of JSON.")
    ] = False,
):
    """Resolve the USD price of a token at a block."""
    state = _build_state(ctx.obj)
    result = asyncio.run(
        _run_with_loader(
            state, state.engine.resolve_price(chain_id, token, block_number, latest)
        )
    )
    if pretty:
        format_price_table(result)
    else:
        typer.echo(json.dumps(result.as_payload(), indent=2))


@app.command()
def value(
    ctx: typer.Context,
    chain_id: Annotated[int, typer.Argument(help="Chain id of the transfer.")],
    token: Annotated[str, typer.Argument(help="Transferred token or vault address.")],
    block_number: Annotated[int, typer.Argument(help="Block of the transfer.")],
    raw_amount: Annotated[int, typer.Argument(help="Raw transferred amount.")],
    vault_asset: Annotated[
        str | None,
        typer.Option(
            "--vault-asset",
            help="Treat the token as a vault over this underlying asset.",
        ),
    ] = None,
    vault_decimals: Annotated[
        int,
        typer.Option("--vault-decimals", help="Share decimals when --vault-asset is set."),
    ] = 18,
    pretty: Annotated[
        bool, typer.Option("--pretty", help="Render a table instead of JSON.")
    ] = False,
):
    """Value a token transfer in USD."""
    state = _build_state(ctx.obj)
    if vault_asset is not None:
        if not isinstance(state.registry, InMemoryVaultRegistry):
            raise typer.BadParameter("--vault-asset needs a writable vault registry")
        state.registry.add(
            VaultRegistration(
                chain_id=chain_id,
                address=token,
                decimals=vault_decimals,
                asset=vault_asset,
            )
        )

    result = asyncio.run(
        _run_with_loader(
            state,
            state.valuer.value_transfer(chain_id, token, block_number, raw_amount),
        )
    )
    if pretty:
        format_valuation_table(chain_id, token, block_number, raw_amount, result)
    else:
        typer.echo(json.dumps(result.as_dict(), indent=2))


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
