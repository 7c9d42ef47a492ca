"""Keeps the latest result set for the current (account, network) pair."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Hashable

from .aggregator import AggregateResult, BalanceAggregator
from .logger import get_logger

logger = get_logger(__name__)

UpdateCallback = Callable[[AggregateResult], None]


class BalanceWatcher:
    """Re-runs aggregation whenever the account or network changes.

    Every ``refresh`` starts a new generation. Queries from an older
    generation are cancelled, and anything they still deliver is dropped
    instead of being written into the newer result set.
    """

    def __init__(
        self,
        aggregator: BalanceAggregator,
        on_update: UpdateCallback | None = None,
    ):
        self._aggregator = aggregator
        self._on_update = on_update
        self._generation = 0
        self._current: AggregateResult | None = None
        self._inflight: asyncio.Task[None] | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current(self) -> AggregateResult | None:
        return self._current

    def _commit(self, generation: int, snapshot: AggregateResult) -> bool:
        if generation != self._generation:
            logger.debug(
                "Dropping stale result for %s on network %r (generation %d, current %d)",
                snapshot.account,
                snapshot.network,
                generation,
                self._generation,
            )
            return False
        self._current = snapshot
        if self._on_update is not None:
            self._on_update(snapshot)
        return True

    async def _collect(self, generation: int, account: str, network: Hashable) -> None:
        async for position, result in self._aggregator.iter_results(account, network):
            current = self._current
            if generation != self._generation or current is None:
                logger.debug(
                    "Ignoring %s result from superseded generation %d",
                    result.asset.symbol,
                    generation,
                )
                continue
            self._commit(generation, current.with_result(position, result))

    def cancel(self) -> None:
        """Cancel queries still running for the current generation."""
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None

    async def refresh(self, account: str, network: Hashable) -> AggregateResult:
        """Start a new generation for ``(account, network)`` and wait for it.

        Returns:
            The completed result set, or the newer generation's latest
            snapshot if this refresh was superseded while running
        """
        self.cancel()
        self._generation += 1
        generation = self._generation
        logger.debug(
            "Refreshing balances for %s on network %r (generation %d)",
            account,
            network,
            generation,
        )

        self._commit(generation, self._aggregator.pending(account, network))
        task = asyncio.create_task(self._collect(generation, account, network))
        self._inflight = task

        try:
            await task
        except asyncio.CancelledError:
            outer = asyncio.current_task()
            superseded = generation != self._generation
            if not superseded or (outer is not None and outer.cancelling()):
                task.cancel()
                raise
            logger.debug("Generation %d superseded before completion", generation)
        finally:
            if self._inflight is task:
                self._inflight = None

        current = self._current
        assert current is not None
        return current

    async def watch(
        self,
        account: str,
        network: Hashable,
        interval: float,
        iterations: int | None = None,
    ) -> AggregateResult | None:
        """Refresh every ``interval`` seconds until cancelled.

        Args:
            account: Account address to track
            network: Network identifier
            interval: Seconds between refreshes
            iterations: Stop after this many refreshes (``None`` runs forever)
        """
        count = 0
        while iterations is None or count < iterations:
            await self.refresh(account, network)
            count += 1
            if iterations is not None and count >= iterations:
                break
            await asyncio.sleep(interval)
        return self._current
