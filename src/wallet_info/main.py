"""CLI entrypoint for wallet-info."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from .logger import setup_logging
from .settings import WalletSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Show native and stablecoin balances for a wallet.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("wallet_info")


@app.command()
def wallet_info(
    account: Annotated[
        str | None, typer.Argument(help="Account address to inspect.")
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [wallet_info] table).",
        ),
    ] = None,
    network: Annotated[
        str | None,
        typer.Option(
            "--network",
            "-n",
            help="Network name (mainnet, sepolia) or chain id.",
        ),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option(
            "--rpc",
            help="RPC endpoint; overrides the default endpoint for the network.",
        ),
    ] = None,
    output_json: Annotated[
        bool,
        typer.Option("--json", help="Print the report as JSON instead of a table."),
    ] = False,
    watch: Annotated[
        bool,
        typer.Option(
            "--watch/--no-watch",
            help="Keep refreshing balances until interrupted.",
        ),
    ] = False,
    interval: Annotated[
        float | None,
        typer.Option(
            "--interval",
            help="Seconds between refreshes in watch mode.",
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
            help="Print effective config (with RPC credentials redacted) and exit.",
        ),
    ] = False,
):
    """Fetch and display the wallet's balances.

    Loads configuration, validates it, and prints the native balance plus
    every registered token balance for the selected network.
    """
    if config_path:
        os.environ["WALLET_INFO_CONFIG"] = str(config_path)

    init_kwargs: dict[str, str | float] = {}
    if account is not None:
        init_kwargs["account_address"] = account
    if network is not None:
        init_kwargs["network"] = network
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if interval is not None:
        init_kwargs["poll_interval"] = interval
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    try:
        settings = WalletSettings(**init_kwargs)  # type: ignore[arg-type]
    except ValidationError as e:
        raise typer.BadParameter(str(e)) from e

    setup_logging(settings.log_level)
    logger = _build_logger()
    state = AppState(settings=settings, logger=logger)

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2, default=str))
        raise typer.Exit(code=0)

    if not state.settings.account_address:
        raise typer.BadParameter(
            "account address must be configured",
            param_hint=["ACCOUNT", "WALLET_INFO_ACCOUNT_ADDRESS"],
        )
    try:
        state.settings.rpc_url_required
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint=["--rpc"]) from e

    from .pipeline.run import report_to_json, run_wallet_info, watch_wallet_info

    account_address = state.settings.account_address_required

    if watch:
        try:
            asyncio.run(
                watch_wallet_info(
                    state,
                    account_address,
                    output_json=output_json,
                    emit=typer.echo if output_json else None,
                )
            )
        except KeyboardInterrupt:
            logger.info("Stopped watching")
        return

    report = asyncio.run(run_wallet_info(state, account_address))
    if output_json:
        typer.echo(report_to_json(report))
    else:
        from .report import format_report_table

        format_report_table(report)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
