from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Hashable
from typing import Any


class BalanceQueryError(Exception):
    """A balance query returned something that is not a raw amount."""


def validate_raw_amount(value: Any) -> int:
    """Return ``value`` if it is a usable smallest-unit amount.

    Raises:
        BalanceQueryError: If ``value`` is not a non-negative integer.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise BalanceQueryError(
            f"Expected an integer balance, got {type(value).__name__}: {value!r}"
        )
    if value < 0:
        raise BalanceQueryError(f"Balance must be non-negative, got {value}")
    return value


class BaseBalanceFetcher(ABC):
    """Abstract balance-fetch capability consumed by the aggregator."""

    @abstractmethod
    async def fetch_balance(
        self, account: str, network: Hashable, asset_address: str | None
    ) -> int:
        """Fetch the raw balance of ``account`` for one asset.

        Args:
            account: Account address to query
            network: Network identifier the query targets
            asset_address: Token contract address, or ``None`` for the
                network's native asset

        Returns:
            Balance in the asset's smallest unit
        """
        ...
