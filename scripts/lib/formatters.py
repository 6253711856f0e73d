"""
Output formatters for wallet wrapped reports.

This module renders a MetricsSnapshot as JSON or as a plain-text
"wrapped" summary and writes it to stdout or a timestamped file.
Rounding happens here only; the snapshot keeps full precision.
"""

import json
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .classifier import decorate
from .metrics import portfolio_allocation
from .models import MetricsSnapshot


def generate_timestamp() -> str:
    """
    Generate a timestamp string for filenames.

    Returns:
        Timestamp in YYYYMMDD_HHMMSS format
    """
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def generate_filename(
    base_path: str,
    timestamp: Optional[str] = None,
    default_suffix: str = ".txt",
) -> str:
    """
    Generate a timestamped filename.

    Args:
        base_path: Base output path (e.g., "wrapped.json")
        timestamp: Optional timestamp to use (generates new one if not provided)
        default_suffix: Extension used when base_path has none

    Returns:
        Output file path

    Examples:
        generate_filename("wrapped.json", "20241214_153022")
        -> "wrapped_20241214_153022.json"
    """
    if timestamp is None:
        timestamp = generate_timestamp()

    path = Path(base_path)
    suffix = path.suffix or default_suffix
    return str(path.parent / f"{path.stem}_{timestamp}{suffix}")


def _plain_values(items: List[Any]) -> Dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value for key, value in items}


def snapshot_to_dict(snapshot: MetricsSnapshot) -> Dict[str, Any]:
    """Convert a snapshot to JSON-serializable nested dicts."""
    return asdict(snapshot, dict_factory=_plain_values)


def format_json(snapshot: MetricsSnapshot) -> str:
    return json.dumps(snapshot_to_dict(snapshot), indent=2, ensure_ascii=False) + "\n"


def format_usd(value: float) -> str:
    """
    Format a USD amount with thousands separators and cents.

    Examples:
        format_usd(1234.5) -> "$1,234.50"
        format_usd(-20) -> "-$20.00"
    """
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_signed_usd(value: float) -> str:
    return f"+{format_usd(value)}" if value >= 0 else format_usd(value)


def format_percent(value: float, places: int = 1) -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.{places}f}%"


def days_active(first_transaction_date: Optional[str], now: Optional[datetime] = None) -> int:
    """
    Count whole days since the wallet's first transaction.

    Args:
        first_transaction_date: ISO-8601 timestamp (e.g., "2023-05-01T12:00:00.000Z")
        now: Reference time (defaults to the current UTC time)

    Returns:
        Number of days, or 0 if the date is missing or unparseable
    """
    if not first_transaction_date:
        return 0

    try:
        first = datetime.fromisoformat(first_transaction_date.replace("Z", "+00:00"))
    except ValueError:
        return 0

    if first.tzinfo is None:
        first = first.replace(tzinfo=timezone.utc)
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    return max((now - first).days, 0)


def format_report(
    snapshot: MetricsSnapshot,
    wallet: str,
    chain: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Render the snapshot as a plain-text wrapped summary.

    Args:
        snapshot: Computed metrics
        wallet: Wallet address the snapshot belongs to
        chain: Chain id the snapshot was computed for
        now: Reference time for days active

    Returns:
        Multi-line report text
    """
    lines = [
        f"Wallet Wrapped: {wallet} on {chain}",
        "",
        f"Archetype:        {decorate(snapshot.archetype)}",
        f"DeFi archetype:   {decorate(snapshot.defi_archetype)}",
        f"Net worth:        {format_usd(snapshot.current_net_worth)}",
        f"Realized P/L:     {format_signed_usd(snapshot.total_profit_loss)}",
        f"Win rate:         {snapshot.win_rate:.1f}%",
        f"Trades:           {snapshot.total_trades}",
        f"Trade volume:     {format_usd(snapshot.total_trade_volume)}",
        f"Bought / sold:    {format_usd(snapshot.total_bought_volume)} / "
        f"{format_usd(snapshot.total_sold_volume)}",
        f"Token transfers:  {snapshot.total_token_transfers}",
        f"NFT collections:  {snapshot.total_nft_collections}",
        f"Days active:      {days_active(snapshot.first_transaction_date, now)}",
    ]

    lines.append("")
    if snapshot.biggest_win is not None:
        lines.append(
            f"Biggest win:      {snapshot.biggest_win.token.symbol} "
            f"{format_signed_usd(snapshot.biggest_win.profit_usd)}"
        )
    # biggest_loss is only a loss when its profit is negative
    if snapshot.biggest_loss is not None and snapshot.biggest_loss.profit_usd < 0:
        lines.append(
            f"Biggest loss:     {snapshot.biggest_loss.token.symbol} "
            f"{format_signed_usd(snapshot.biggest_loss.profit_usd)}"
        )
    if snapshot.most_traded_token is not None:
        lines.append(
            f"Most traded:      {snapshot.most_traded_token.token.symbol} "
            f"({snapshot.most_traded_token.trade_count} trades)"
        )

    if snapshot.holdings:
        lines.append("")
        lines.append("Allocation:")
        for symbol, value in portfolio_allocation(snapshot.holdings):
            lines.append(f"  {symbol:<12} {format_usd(value)}")

        lines.append("")
        lines.append(f"Average ROI:      {format_percent(snapshot.roi.average_roi, 2)}")
        if snapshot.roi.best_asset is not None:
            lines.append(
                f"Best asset:       {snapshot.roi.best_asset.symbol} "
                f"{format_percent(snapshot.roi.best_asset.roi)}"
            )
        if snapshot.roi.worst_asset is not None:
            lines.append(
                f"Worst asset:      {snapshot.roi.worst_asset.symbol} "
                f"{format_percent(snapshot.roi.worst_asset.roi)}"
            )

    income = snapshot.income
    if income.details:
        lines.append("")
        lines.append(f"DeFi income:      {format_usd(income.total)}")
        for detail in income.details:
            lines.append(
                f"  {detail.category.value:<10} {detail.symbol:<12} {format_usd(detail.value)}"
            )

    return "\n".join(lines) + "\n"


def write_output(
    content: str,
    output_path: Optional[str] = None,
    default_suffix: str = ".txt",
) -> Optional[str]:
    """
    Write report content to a timestamped file or stdout.

    Args:
        content: Rendered report
        output_path: Base output path. If None, writes to stdout.
        default_suffix: Extension used when output_path has none

    Returns:
        Path of the written file, or None when writing to stdout
    """
    if output_path is None:
        sys.stdout.write(content)
        return None

    output_file = generate_filename(output_path, default_suffix=default_suffix)
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(content)

    return output_file
