import asyncio

import pytest

from wallet_info.aggregator import (
    AggregateResult,
    BalanceAggregator,
    BalanceResult,
    BalanceStatus,
)
from wallet_info.constants import MAINNET_CHAIN_ID
from wallet_info.fetchers.base import BaseBalanceFetcher
from wallet_info.registry import build_default_registry
from wallet_info.units import format_fixed, format_units

ACCOUNT = "0x" + "ab" * 20
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


class FakeFetcher(BaseBalanceFetcher):
    """Returns canned balances; values that are exceptions get raised."""

    def __init__(self, balances, delays=None):
        self.balances = balances
        self.delays = delays or {}
        self.calls: list[tuple] = []

    async def fetch_balance(self, account, network, asset_address):
        self.calls.append((account, network, asset_address))
        await asyncio.sleep(self.delays.get(asset_address, 0))
        value = self.balances[asset_address]
        if isinstance(value, BaseException):
            raise value
        return value


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.mark.asyncio
async def test_mixed_success_and_failure(registry):
    fetcher = FakeFetcher(
        {
            None: 2500000000000000000,
            USDT: 1000000,
            USDC: ConnectionError("rpc down"),
        }
    )
    aggregator = BalanceAggregator(registry, fetcher)

    result = await aggregator.aggregate(ACCOUNT, MAINNET_CHAIN_ID)

    assert result.native.status is BalanceStatus.READY
    assert format_units(result.native.raw_amount, result.native.asset.decimals) == "2.5"

    usdt, usdc = result.tokens
    assert usdt.status is BalanceStatus.READY
    assert format_fixed(usdt.raw_amount, usdt.asset.decimals) == "1.0000"
    assert usdc.status is BalanceStatus.FAILED
    assert usdc.raw_amount is None
    assert usdc.error_detail == "ConnectionError: rpc down"


@pytest.mark.asyncio
async def test_unsupported_network_still_queries_native(registry):
    fetcher = FakeFetcher({None: 7})
    aggregator = BalanceAggregator(registry, fetcher)

    result = await aggregator.aggregate(ACCOUNT, 999999)

    assert result.tokens == ()
    assert result.native.status is BalanceStatus.READY
    assert result.native.raw_amount == 7
    assert fetcher.calls == [(ACCOUNT, 999999, None)]


@pytest.mark.asyncio
async def test_output_follows_registry_order_not_completion_order(registry):
    fetcher = FakeFetcher(
        {None: 1, USDT: 2, USDC: 3},
        delays={None: 0.03, USDT: 0.02, USDC: 0.0},
    )
    aggregator = BalanceAggregator(registry, fetcher)

    result = await aggregator.aggregate(ACCOUNT, MAINNET_CHAIN_ID)

    assert result.native.raw_amount == 1
    assert [r.asset.symbol for r in result.tokens] == ["USDT", "USDC"]
    assert [r.raw_amount for r in result.tokens] == [2, 3]


@pytest.mark.asyncio
async def test_queries_run_concurrently(registry):
    fetcher = FakeFetcher(
        {None: 1, USDT: 2, USDC: 3},
        delays={None: 0.1, USDT: 0.1, USDC: 0.1},
    )
    aggregator = BalanceAggregator(registry, fetcher)

    loop = asyncio.get_running_loop()
    started = loop.time()
    await aggregator.aggregate(ACCOUNT, MAINNET_CHAIN_ID)

    assert loop.time() - started < 0.25


@pytest.mark.asyncio
async def test_native_failure_does_not_affect_tokens(registry):
    fetcher = FakeFetcher({None: TimeoutError(), USDT: 5, USDC: 6})
    aggregator = BalanceAggregator(registry, fetcher)

    result = await aggregator.aggregate(ACCOUNT, MAINNET_CHAIN_ID)

    assert result.native.status is BalanceStatus.FAILED
    assert result.native.error_detail == "TimeoutError"
    assert [r.status for r in result.tokens] == [BalanceStatus.READY] * 2
    assert result.failed() == [result.native]


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_value", [-1, "100", 1.5, None, True])
async def test_invalid_response_marks_asset_failed(registry, bad_value):
    fetcher = FakeFetcher({None: 1, USDT: bad_value, USDC: 3})
    aggregator = BalanceAggregator(registry, fetcher)

    result = await aggregator.aggregate(ACCOUNT, MAINNET_CHAIN_ID)

    assert result.tokens[0].status is BalanceStatus.FAILED
    assert result.tokens[0].error_detail.startswith("BalanceQueryError")
    assert result.tokens[1].status is BalanceStatus.READY


@pytest.mark.asyncio
@pytest.mark.parametrize("account", ["", None])
async def test_missing_account_is_rejected(registry, account):
    aggregator = BalanceAggregator(registry, FakeFetcher({}))

    with pytest.raises(ValueError, match="account is required"):
        await aggregator.aggregate(account, MAINNET_CHAIN_ID)


def test_pending_result_matches_plan(registry):
    aggregator = BalanceAggregator(registry, FakeFetcher({}))

    pending = aggregator.pending(ACCOUNT, MAINNET_CHAIN_ID)

    assert pending.native.status is BalanceStatus.PENDING
    assert [r.asset.symbol for r in pending.tokens] == ["USDT", "USDC"]
    assert all(r.raw_amount is None for r in pending.results())
    assert pending.is_complete is False


def test_with_result_replaces_one_position(registry):
    aggregator = BalanceAggregator(registry, FakeFetcher({}))
    pending = aggregator.pending(ACCOUNT, MAINNET_CHAIN_ID)
    usdc = pending.tokens[1].asset

    updated = pending.with_result(2, BalanceResult.ready(usdc, 10))

    assert isinstance(updated, AggregateResult)
    assert updated.tokens[1].raw_amount == 10
    assert updated.tokens[0].status is BalanceStatus.PENDING
    assert pending.tokens[1].status is BalanceStatus.PENDING


@pytest.mark.asyncio
async def test_iter_results_yields_in_completion_order(registry):
    fetcher = FakeFetcher(
        {None: 1, USDT: 2, USDC: 3},
        delays={None: 0.04, USDT: 0.02, USDC: 0.0},
    )
    aggregator = BalanceAggregator(registry, fetcher)

    seen = [
        (position, result.asset.symbol)
        async for position, result in aggregator.iter_results(
            ACCOUNT, MAINNET_CHAIN_ID
        )
    ]

    assert seen == [(2, "USDC"), (1, "USDT"), (0, "ETH")]


@pytest.mark.asyncio
async def test_closing_iter_results_cancels_outstanding_queries(registry):
    cancelled = asyncio.Event()

    class SlowFetcher(FakeFetcher):
        async def fetch_balance(self, account, network, asset_address):
            if asset_address is None:
                return 1
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return 2

    aggregator = BalanceAggregator(registry, SlowFetcher({}))
    results = aggregator.iter_results(ACCOUNT, MAINNET_CHAIN_ID)

    position, first = await results.__anext__()
    await results.aclose()

    assert position == 0
    assert first.raw_amount == 1
    await asyncio.wait_for(cancelled.wait(), timeout=1)
