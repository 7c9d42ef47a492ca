"""Multi-asset wallet balance aggregation."""

from __future__ import annotations

from .aggregator import AggregateResult, BalanceAggregator, BalanceResult, BalanceStatus
from .registry import Asset, AssetRegistry, build_default_registry
from .units import format_fixed, format_units, parse_units
from .watcher import BalanceWatcher

__all__ = [
    "AggregateResult",
    "Asset",
    "AssetRegistry",
    "BalanceAggregator",
    "BalanceResult",
    "BalanceStatus",
    "BalanceWatcher",
    "build_default_registry",
    "format_fixed",
    "format_units",
    "parse_units",
]
