"""High-level orchestration for one-shot and watch runs."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable

from rich.console import Console
from rich.live import Live

from ..aggregator import AggregateResult, BalanceAggregator
from ..fetchers import BaseBalanceFetcher, Web3BalanceFetcher
from ..registry import AssetRegistry, build_default_registry
from ..report import WalletReport, build_report, render_report
from ..state import AppState
from ..watcher import BalanceWatcher


def build_registry(state: AppState) -> AssetRegistry:
    """Build the registry once from built-in tables and configured extras."""
    return build_default_registry(state.settings.extra_tokens_by_network)


def build_aggregator(
    state: AppState,
    registry: AssetRegistry | None = None,
    fetcher: BaseBalanceFetcher | None = None,
) -> BalanceAggregator:
    registry = registry or build_registry(state)
    if fetcher is None:
        fetcher = Web3BalanceFetcher(state.settings)
    return BalanceAggregator(registry, fetcher)


def report_to_json(report: WalletReport) -> str:
    return json.dumps(report.to_dict(), indent=2, default=str)


async def run_wallet_info(
    state: AppState,
    account: str,
    aggregator: BalanceAggregator | None = None,
) -> WalletReport:
    """Fetch all balances once and build the report.

    Args:
        state: Application state containing settings and logger
        account: Account address to report on
        aggregator: Optional pre-built aggregator (defaults to web3 backed)

    Raises:
        asyncio.TimeoutError: If the run exceeds ``global_timeout_seconds``
    """
    s = state.settings
    log = state.logger
    aggregator = aggregator or build_aggregator(state)

    log.info("Fetching balances for %s on network %r", account, s.network)
    timeout_s = s.global_timeout_seconds

    try:
        if timeout_s is None or timeout_s <= 0:
            result = await aggregator.aggregate(account, s.network)
        else:
            async with asyncio.timeout(timeout_s):
                result = await aggregator.aggregate(account, s.network)
    except asyncio.TimeoutError as exc:
        log.error(
            "Balance run timed out",
            extra={"account": account, "timeout_seconds": timeout_s},
        )
        raise asyncio.TimeoutError(
            f"Balance run exceeded global timeout {timeout_s}s (account={account})\n"
            " N.B. This can be changed via `global_timeout_seconds`."
        ) from exc

    failed = result.failed()
    if failed:
        log.warning(
            "%d of %d balance queries failed: %s",
            len(failed),
            len(result.results()),
            ", ".join(r.asset.symbol for r in failed),
        )
    log.info("Balances fetched", extra={"account": account})
    return build_report(result, aggregator.registry, s.display_decimals)


async def watch_wallet_info(
    state: AppState,
    account: str,
    interval: float | None = None,
    iterations: int | None = None,
    output_json: bool = False,
    aggregator: BalanceAggregator | None = None,
    console: Console | None = None,
    emit: Callable[[str], None] | None = None,
) -> AggregateResult | None:
    """Poll balances and re-render after every update.

    Table output updates in place as each query resolves. JSON output emits
    one document per completed refresh via ``emit`` (defaults to printing on
    ``console``).
    """
    s = state.settings
    aggregator = aggregator or build_aggregator(state)
    interval = interval if interval is not None else s.poll_interval
    console = console or Console()
    emit = emit or console.print_json

    def to_report(snapshot: AggregateResult) -> WalletReport:
        return build_report(snapshot, aggregator.registry, s.display_decimals)

    state.logger.info(
        "Watching balances for %s on network %r every %.1fs",
        account,
        s.network,
        interval,
    )

    if output_json:

        def on_json_update(snapshot: AggregateResult) -> None:
            if snapshot.is_complete:
                emit(report_to_json(to_report(snapshot)))

        watcher = BalanceWatcher(aggregator, on_update=on_json_update)
        return await watcher.watch(account, s.network, interval, iterations)

    with Live(console=console, auto_refresh=False) as live:

        def on_table_update(snapshot: AggregateResult) -> None:
            live.update(render_report(to_report(snapshot)), refresh=True)

        watcher = BalanceWatcher(aggregator, on_update=on_table_update)
        return await watcher.watch(account, s.network, interval, iterations)


__all__ = [
    "build_aggregator",
    "build_registry",
    "report_to_json",
    "run_wallet_info",
    "watch_wallet_info",
]
