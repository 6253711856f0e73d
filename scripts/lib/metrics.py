"""
Metrics engine for wallet wrapped summaries.

Takes fully resolved provider data (trade history, holdings and the
optional stats payloads) and derives a MetricsSnapshot: realized P/L,
win rate, best and worst trades, income breakdown, per-holding ROI and
the wallet archetype. Every function here is pure and total; missing
inputs degrade to zero or None instead of raising.
"""

import math
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from .classifier import classify_archetype, classify_income_archetype, classify_token
from .models import (
    ChainActivity,
    IncomeBreakdown,
    IncomeCategory,
    IncomeDetail,
    MetricsSnapshot,
    MostTradedToken,
    NetWorth,
    PnLSummary,
    ProfitabilitySummary,
    RoiSummary,
    TokenHolding,
    TokenTradeRecord,
    TradeHighlight,
    WalletStats,
)
from .parsing import token_quantity


def index_trade_records(trade_records: List[TokenTradeRecord]) -> Dict[str, TokenTradeRecord]:
    """
    Index trade records by lowercased token address.

    If the same address appears more than once, the first record wins.
    """
    records_by_address: Dict[str, TokenTradeRecord] = {}
    for record in trade_records:
        records_by_address.setdefault(record.token_address.lower(), record)
    return records_by_address


def aggregate_income(
    holdings: List[TokenHolding],
    records_by_address: Dict[str, TokenTradeRecord],
) -> IncomeBreakdown:
    """
    Fold classified holdings into an income breakdown.

    Holdings classified as HOLDING are skipped. Every other holding adds its
    USD value to its category and gets one detail entry, in holdings order.

    Args:
        holdings: Current token holdings
        records_by_address: Trade records from index_trade_records

    Returns:
        IncomeBreakdown whose total is staking + lending + liquidity + airdrop
    """
    buckets = {
        IncomeCategory.STAKING: 0.0,
        IncomeCategory.LENDING: 0.0,
        IncomeCategory.LIQUIDITY: 0.0,
        IncomeCategory.AIRDROP: 0.0,
    }
    details: List[IncomeDetail] = []

    for holding in holdings:
        record = records_by_address.get(holding.token_address.lower())
        category = classify_token(holding, record)
        if category is IncomeCategory.HOLDING:
            continue

        buckets[category] += holding.usd_value
        details.append(
            IncomeDetail(
                category=category,
                symbol=holding.symbol,
                value=holding.usd_value,
                logo=holding.image,
            )
        )

    staking = buckets[IncomeCategory.STAKING]
    lending = buckets[IncomeCategory.LENDING]
    liquidity = buckets[IncomeCategory.LIQUIDITY]
    airdrop = buckets[IncomeCategory.AIRDROP]

    return IncomeBreakdown(
        staking=staking,
        lending=lending,
        liquidity=liquidity,
        airdrop=airdrop,
        total=staking + lending + liquidity + airdrop,
        details=details,
    )


def aggregate_pnl(trade_records: List[TokenTradeRecord]) -> PnLSummary:
    """
    Compute realized profit/loss statistics.

    Only tokens with at least one sell have realized P/L, so P/L, win rate
    and biggest win/loss consider those alone. Trade counts and the most
    traded token consider every record.

    biggest_loss is the worst outcome among traded tokens and is positive
    when every trade was profitable; check profit_usd < 0 before treating
    it as a loss.

    Args:
        trade_records: Per-token trade history

    Returns:
        PnLSummary with zero/None defaults for empty input
    """
    traded = [record for record in trade_records if record.total_sells > 0]

    total_profit_loss = sum((record.realized_profit for record in traded), 0.0)

    biggest_win: Optional[TradeHighlight] = None
    biggest_loss: Optional[TradeHighlight] = None
    if traded:
        # max/min return the first of equal candidates
        best = max(traded, key=lambda record: record.realized_profit)
        worst = min(traded, key=lambda record: record.realized_profit)
        biggest_win = TradeHighlight(token=best, profit_usd=best.realized_profit)
        biggest_loss = TradeHighlight(token=worst, profit_usd=worst.realized_profit)

    most_traded_token: Optional[MostTradedToken] = None
    if any(record.count_of_trades > 0 for record in trade_records):
        busiest = max(trade_records, key=lambda record: record.count_of_trades)
        most_traded_token = MostTradedToken(token=busiest, trade_count=busiest.count_of_trades)

    winners = [record for record in traded if record.realized_profit > 0]
    win_rate = len(winners) / len(traded) * 100 if traded else 0.0

    return PnLSummary(
        total_profit_loss=total_profit_loss,
        biggest_win=biggest_win,
        biggest_loss=biggest_loss,
        most_traded_token=most_traded_token,
        win_rate=win_rate,
        total_trades=sum(record.count_of_trades for record in trade_records),
    )


def compute_roi(
    holdings: List[TokenHolding],
    records_by_address: Dict[str, TokenTradeRecord],
) -> Tuple[List[TokenHolding], RoiSummary]:
    """
    Estimate cost basis and ROI for each holding.

    Cost basis is the historical average buy price times the held quantity.
    A holding without a trade record or with a zero average buy price has a
    cost basis of 0 and an ROI of 0.

    average_roi compares the current value of ALL holdings against the cost
    basis of those with known history, so holdings without history push it
    upward. It is 0 when no holding has a known cost basis.

    Args:
        holdings: Current token holdings
        records_by_address: Trade records from index_trade_records

    Returns:
        Tuple of (holdings with roi/cost_basis set, in input order, RoiSummary)
    """
    holdings_with_roi: List[TokenHolding] = []
    total_invested = 0.0
    total_current_value = 0.0

    for holding in holdings:
        record = records_by_address.get(holding.token_address.lower())

        cost_basis = 0.0
        if record is not None and record.avg_buy_price > 0:
            cost_basis = record.avg_buy_price * token_quantity(holding.balance, holding.decimals)
            if not math.isfinite(cost_basis):
                cost_basis = 0.0

        roi = (holding.usd_value - cost_basis) / cost_basis * 100 if cost_basis > 0 else 0.0

        total_invested += cost_basis
        total_current_value += holding.usd_value
        holdings_with_roi.append(replace(holding, roi=roi, cost_basis=cost_basis))

    average_roi = (
        (total_current_value - total_invested) / total_invested * 100 if total_invested > 0 else 0.0
    )

    if not holdings_with_roi:
        return holdings_with_roi, RoiSummary(average_roi=average_roi)

    return holdings_with_roi, RoiSummary(
        best_asset=max(holdings_with_roi, key=lambda h: h.roi),
        worst_asset=min(holdings_with_roi, key=lambda h: h.roi),
        average_roi=average_roi,
    )


def portfolio_allocation(holdings: List[TokenHolding], top_n: int = 5) -> List[Tuple[str, float]]:
    """
    Split holdings into the top N by USD value plus an "Others" slice.

    Zero-value slices are dropped.

    Returns:
        List of (symbol, usd_value) pairs, largest first, "Others" last
    """
    ranked = sorted(holdings, key=lambda h: h.usd_value, reverse=True)
    slices = [(h.symbol, h.usd_value) for h in ranked[:top_n]]
    slices.append(("Others", sum((h.usd_value for h in ranked[top_n:]), 0.0)))
    return [(symbol, value) for symbol, value in slices if value > 0]


def calculate_metrics(
    trade_records: Optional[List[TokenTradeRecord]],
    holdings: Optional[List[TokenHolding]],
    wallet_stats: Optional[WalletStats] = None,
    summary: Optional[ProfitabilitySummary] = None,
    chain_activity: Optional[ChainActivity] = None,
    net_worth: Optional[NetWorth] = None,
    nft: Optional[Dict[str, Any]] = None,
) -> MetricsSnapshot:
    """
    Assemble the complete metrics snapshot for a wallet.

    Every optional source may be None, in which case the fields it feeds
    default to 0 (or None for the first transaction date). Identical inputs
    always produce equal snapshots.

    Args:
        trade_records: Per-token trade history (None treated as empty)
        holdings: Current token holdings (None treated as empty)
        wallet_stats: Transfer and NFT collection counts
        summary: Aggregate trade counts and volumes
        chain_activity: Per-chain first/last transaction timestamps
        net_worth: Total and per-chain USD net worth
        nft: Arbitrary NFT payload carried through unchanged

    Returns:
        MetricsSnapshot
    """
    trade_records = trade_records or []
    holdings = holdings or []
    wallet_stats = wallet_stats or WalletStats()
    summary = summary or ProfitabilitySummary()
    net_worth = net_worth or NetWorth()

    records_by_address = index_trade_records(trade_records)

    income = aggregate_income(holdings, records_by_address)
    pnl = aggregate_pnl(trade_records)
    holdings_with_roi, roi = compute_roi(holdings, records_by_address)

    archetype = classify_archetype(
        net_worth=net_worth.total_networth_usd,
        total_profit_loss=pnl.total_profit_loss,
        win_rate=pnl.win_rate,
        total_trades=pnl.total_trades,
        holdings=holdings,
        collections_count=wallet_stats.collections,
    )

    first_transaction_date = None
    if chain_activity is not None and chain_activity.active_chains:
        first_transaction_date = chain_activity.active_chains[0].first_transaction_at

    return MetricsSnapshot(
        total_profit_loss=pnl.total_profit_loss,
        biggest_win=pnl.biggest_win,
        biggest_loss=pnl.biggest_loss,
        most_traded_token=pnl.most_traded_token,
        archetype=archetype,
        defi_archetype=classify_income_archetype(income),
        win_rate=pnl.win_rate,
        total_trades=pnl.total_trades,
        total_token_transfers=wallet_stats.token_transfers,
        total_nft_collections=wallet_stats.collections,
        total_trade_volume=summary.total_trade_volume,
        total_buys=summary.total_buys,
        total_sells=summary.total_sells,
        total_bought_volume=summary.total_bought_volume_usd,
        total_sold_volume=summary.total_sold_volume_usd,
        first_transaction_date=first_transaction_date,
        current_net_worth=net_worth.total_networth_usd,
        net_worth_by_chain=dict(net_worth.chains),
        nft=nft,
        holdings=holdings_with_roi,
        income=income,
        roi=roi,
    )
