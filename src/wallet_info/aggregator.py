"""Concurrent native + token balance aggregation for one account."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Hashable
from dataclasses import dataclass, replace
from enum import Enum

from .fetchers.base import BaseBalanceFetcher, validate_raw_amount
from .logger import get_logger
from .registry import Asset, AssetRegistry

logger = get_logger(__name__)


class BalanceStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class BalanceResult:
    """Outcome of one balance query.

    ``raw_amount`` is set only when READY, ``error_detail`` only when FAILED.
    """

    asset: Asset
    status: BalanceStatus
    raw_amount: int | None = None
    error_detail: str | None = None

    @classmethod
    def pending(cls, asset: Asset) -> BalanceResult:
        return cls(asset=asset, status=BalanceStatus.PENDING)

    @classmethod
    def ready(cls, asset: Asset, raw_amount: int) -> BalanceResult:
        return cls(asset=asset, status=BalanceStatus.READY, raw_amount=raw_amount)

    @classmethod
    def failed(cls, asset: Asset, error_detail: str) -> BalanceResult:
        return cls(asset=asset, status=BalanceStatus.FAILED, error_detail=error_detail)


@dataclass(frozen=True)
class AggregateResult:
    """Native balance plus token balances in registry order."""

    account: str
    network: Hashable
    native: BalanceResult
    tokens: tuple[BalanceResult, ...]

    def results(self) -> tuple[BalanceResult, ...]:
        """All results, native first."""
        return (self.native, *self.tokens)

    @property
    def is_complete(self) -> bool:
        return all(r.status is not BalanceStatus.PENDING for r in self.results())

    def failed(self) -> list[BalanceResult]:
        return [r for r in self.results() if r.status is BalanceStatus.FAILED]

    def with_result(self, position: int, result: BalanceResult) -> AggregateResult:
        """Copy with the result at ``position`` replaced (0 is native)."""
        if position == 0:
            return replace(self, native=result)
        tokens = list(self.tokens)
        tokens[position - 1] = result
        return replace(self, tokens=tuple(tokens))


def _describe_error(exc: BaseException) -> str:
    message = str(exc)
    if message:
        return f"{type(exc).__name__}: {message}"
    return type(exc).__name__


def _require_account(account: str | None) -> str:
    if not account:
        raise ValueError(
            "account is required; balance aggregation runs only for a connected wallet"
        )
    return account


class BalanceAggregator:
    """Fan out one balance query per asset and collect the results.

    Holds no state between calls; each call owns its result set.
    """

    def __init__(self, registry: AssetRegistry, fetcher: BaseBalanceFetcher):
        self.registry = registry
        self.fetcher = fetcher

    def plan(self, network: Hashable) -> tuple[Asset, ...]:
        """Assets queried for ``network``: native first, then registry order."""
        return (
            self.registry.native_asset_for(network),
            *self.registry.assets_for(network),
        )

    def pending(self, account: str, network: Hashable) -> AggregateResult:
        """Result set with every asset PENDING."""
        native, *tokens = (BalanceResult.pending(a) for a in self.plan(network))
        return AggregateResult(
            account=account, network=network, native=native, tokens=tuple(tokens)
        )

    async def fetch_one(
        self, account: str, network: Hashable, asset: Asset
    ) -> BalanceResult:
        """Query a single asset; failures become a FAILED result."""
        try:
            raw = await self.fetcher.fetch_balance(
                account, network, asset.contract_address
            )
            raw = validate_raw_amount(raw)
        except Exception as e:
            logger.warning(
                "Balance query for %s on network %r failed for %s: %s",
                asset.symbol,
                network,
                account,
                e,
            )
            return BalanceResult.failed(asset, _describe_error(e))
        logger.debug("Fetched %s balance %d for %s", asset.symbol, raw, account)
        return BalanceResult.ready(asset, raw)

    async def aggregate(self, account: str, network: Hashable) -> AggregateResult:
        """Fetch every balance concurrently and return once all have resolved.

        Args:
            account: Connected account address
            network: Network identifier

        Returns:
            AggregateResult with the native result and one token result per
            registry asset, in registry order

        Raises:
            ValueError: If ``account`` is empty
        """
        account = _require_account(account)
        assets = self.plan(network)
        if not self.registry.is_supported(network):
            logger.info(
                "Network %r has no registered tokens; fetching native balance only",
                network,
            )

        results = await asyncio.gather(
            *[self.fetch_one(account, network, asset) for asset in assets]
        )

        native, *tokens = results
        aggregated = AggregateResult(
            account=account, network=network, native=native, tokens=tuple(tokens)
        )
        logger.debug(
            "Aggregated %d balances for %s (%d failed)",
            len(results),
            account,
            len(aggregated.failed()),
        )
        return aggregated

    async def iter_results(
        self, account: str, network: Hashable
    ) -> AsyncIterator[tuple[int, BalanceResult]]:
        """Yield ``(position, result)`` pairs in completion order.

        Position 0 is the native asset, ``i`` is token ``i - 1``. Closing or
        cancelling the iterator cancels the queries still in flight.
        """
        account = _require_account(account)

        async def tagged(position: int, asset: Asset) -> tuple[int, BalanceResult]:
            return position, await self.fetch_one(account, network, asset)

        tasks = [
            asyncio.create_task(tagged(position, asset))
            for position, asset in enumerate(self.plan(network))
        ]
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
