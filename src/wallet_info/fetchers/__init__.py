from __future__ import annotations

from .base import BalanceQueryError, BaseBalanceFetcher, validate_raw_amount
from .web3_fetcher import Web3BalanceFetcher

__all__ = [
    "BalanceQueryError",
    "BaseBalanceFetcher",
    "Web3BalanceFetcher",
    "validate_raw_amount",
]
