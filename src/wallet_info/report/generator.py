from __future__ import annotations

from collections.abc import Hashable
from dataclasses import asdict, dataclass, field

from ..aggregator import AggregateResult, BalanceResult, BalanceStatus
from ..registry import AssetRegistry
from ..units import format_fixed, format_units


@dataclass
class BalanceEntry:
    """Display-ready view of one balance result."""

    symbol: str
    name: str
    status: str
    contract_address: str | None
    decimals: int
    short_address: str = ""
    raw_amount: str | None = None
    amount: str | None = None
    display_amount: str | None = None
    explorer_url: str | None = None
    error: str | None = None


@dataclass
class WalletReport:
    """Wallet balances for one account on one network."""

    account: str
    network: Hashable
    network_name: str | None
    supported: bool
    explorer_base_url: str
    native: BalanceEntry
    tokens: list[BalanceEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Convert report to dictionary format."""
        return asdict(self)


def build_entry(result: BalanceResult, display_decimals: int) -> BalanceEntry:
    """Format one result; tokens carry their explorer link."""
    asset = result.asset
    entry = BalanceEntry(
        symbol=asset.symbol,
        name=asset.display_name,
        status=result.status.value,
        contract_address=asset.contract_address,
        decimals=asset.decimals,
        short_address=asset.short_address(),
    )
    if not asset.is_native:
        entry.explorer_url = asset.explorer_url()

    if result.status is BalanceStatus.READY and result.raw_amount is not None:
        entry.raw_amount = str(result.raw_amount)
        entry.amount = format_units(result.raw_amount, asset.decimals)
        entry.display_amount = format_fixed(
            result.raw_amount, asset.decimals, display_decimals
        )
    elif result.status is BalanceStatus.FAILED:
        entry.error = result.error_detail
    return entry


def build_report(
    result: AggregateResult,
    registry: AssetRegistry,
    display_decimals: int = 4,
) -> WalletReport:
    """Generate a wallet report from an aggregation result.

    Args:
        result: Aggregated balances (may still contain PENDING entries)
        registry: Registry the result was built from
        display_decimals: Fractional digits in ``display_amount``

    Returns:
        Report ready for rendering or JSON output
    """
    network_cfg = registry.network_config(result.network)
    explorer = registry.explorer_base_url(result.network)
    return WalletReport(
        account=result.account,
        network=result.network,
        network_name=network_cfg.name if network_cfg else None,
        supported=network_cfg is not None,
        explorer_base_url=explorer,
        native=build_entry(result.native, display_decimals),
        tokens=[build_entry(r, display_decimals) for r in result.tokens],
    )
