from __future__ import annotations

from .formatter import format_report_table, render_report
from .generator import BalanceEntry, WalletReport, build_entry, build_report

__all__ = [
    "BalanceEntry",
    "WalletReport",
    "build_entry",
    "build_report",
    "format_report_table",
    "render_report",
]
