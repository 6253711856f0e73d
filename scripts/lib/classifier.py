"""
Heuristic classifiers for held tokens and whole wallets.

classify_token labels a holding with an income category from its
symbol, name and trade history. classify_archetype and
classify_income_archetype assign the gamified wallet labels. All rules
are first-match-wins; the order of the checks is part of the contract.
"""

import re
from typing import List, Optional

from .models import IncomeBreakdown, IncomeCategory, TokenHolding, TokenTradeRecord


# Liquid staking tokens, matched as substrings of the uppercased symbol
LIQUID_STAKING_SYMBOLS = ["STETH", "RETH", "CBETH", "WSTETH", "SFRXETH", "RPL", "EIGEN"]

# Aave aTokens and Compound cTokens. Matched against the original-case symbol
LENDING_SYMBOL_PATTERNS = [re.compile(r"^A[A-Z]+"), re.compile(r"^C[A-Z]+")]

LIQUIDITY_NAME_MARKERS = ["LP", "UNISWAP", "CURVE", "BALANCER"]
LIQUIDITY_SYMBOL_MARKERS = ["V2", "SLP"]

# Realized profit percentage above which a token is treated as free money
AIRDROP_PROFIT_PERCENTAGE = 1000

# Wallet archetypes
BASED_WHALE = "Based Whale"
DIAMOND_HANDED_DEGEN = "Diamond Handed Degen"
ALPHA_HUNTER = "Alpha Hunter"
MAXIMALIST = "Maximalist"
JPEG_COLLECTOR = "JPEG Collector"
BASE_EXPLORER = "Base Explorer"

# DeFi archetypes, keyed off the dominant income category
CASH_HOLDER = "Cash Holder"
YIELD_VALIDATOR = "Yield Validator"
LIQUIDITY_LORD = "Liquidity Lord"
MONEY_MARKET_MOGUL = "Money Market Mogul"
AIRDROP_HUNTER = "Airdrop Hunter"

ARCHETYPE_EMOJI = {
    BASED_WHALE: "\U0001F40B",
    DIAMOND_HANDED_DEGEN: "\U0001F48E",
    ALPHA_HUNTER: "\U0001F3AF",
    MAXIMALIST: "\U0001F981",
    JPEG_COLLECTOR: "\U0001F5BC\uFE0F",
    BASE_EXPLORER: "\U0001F9ED",
    CASH_HOLDER: "\U0001F3E6",
    YIELD_VALIDATOR: "\U0001F969",
    LIQUIDITY_LORD: "\U0001F69C",
    MONEY_MARKET_MOGUL: "\U0001F3A9",
    AIRDROP_HUNTER: "\U0001FA82",
}


def is_airdrop(trade_record: Optional[TokenTradeRecord]) -> bool:
    """
    Check the trade history for signs the token was received for free.

    Either no purchase was ever observed at a nonzero price, or the realized
    gain is too large to have come from a real cost basis.
    """
    if trade_record is None:
        return False

    never_bought = trade_record.avg_buy_price == 0 and trade_record.total_buys == 0
    return never_bought or trade_record.realized_profit_percentage > AIRDROP_PROFIT_PERCENTAGE


def classify_token(
    holding: TokenHolding,
    trade_record: Optional[TokenTradeRecord] = None,
) -> IncomeCategory:
    """
    Classify a held token into an income category.

    Checks run in order: airdrop, staking, lending, liquidity. The first
    match wins, so a token that looks like several categories gets the
    earliest one.

    Args:
        holding: The held token
        trade_record: Trade history for the same token address, if any

    Returns:
        The token's IncomeCategory (HOLDING when nothing matches)
    """
    symbol = holding.symbol.upper()
    name = holding.name.upper()

    if is_airdrop(trade_record):
        return IncomeCategory.AIRDROP

    if any(staked in symbol for staked in LIQUID_STAKING_SYMBOLS):
        return IncomeCategory.STAKING

    if any(pattern.match(holding.symbol) for pattern in LENDING_SYMBOL_PATTERNS):
        return IncomeCategory.LENDING

    if any(marker in name for marker in LIQUIDITY_NAME_MARKERS) or any(
        marker in symbol for marker in LIQUIDITY_SYMBOL_MARKERS
    ):
        return IncomeCategory.LIQUIDITY

    return IncomeCategory.HOLDING


def classify_archetype(
    net_worth: float,
    total_profit_loss: float,
    win_rate: float,
    total_trades: int,
    holdings: List[TokenHolding],
    collections_count: int,
) -> str:
    """
    Assign a wallet archetype label.

    Rules are checked in priority order and the first match wins:

    1. Net worth above $50k: Based Whale
    2. Lost more than $500 over more than 100 trades: Diamond Handed Degen
    3. Win rate above 65% over more than 20 trades: Alpha Hunter
    4. A single holding above 70% of the portfolio: Maximalist
    5. More than 30 NFT collections: JPEG Collector
    6. Otherwise: Base Explorer

    The Maximalist check looks at the largest portfolio share across all
    holdings, so the result does not depend on the order of holdings.

    Returns:
        Archetype label without decoration (see ARCHETYPE_EMOJI)
    """
    if net_worth > 50000:
        return BASED_WHALE

    if total_profit_loss < -500 and total_trades > 100:
        return DIAMOND_HANDED_DEGEN

    if win_rate > 65 and total_trades > 20:
        return ALPHA_HUNTER

    if holdings and max(h.portfolio_percentage for h in holdings) > 70:
        return MAXIMALIST

    if collections_count > 30:
        return JPEG_COLLECTOR

    return BASE_EXPLORER


def classify_income_archetype(income: IncomeBreakdown) -> str:
    """
    Assign a DeFi archetype from the dominant income category.

    Ties resolve in the order staking, liquidity, lending, airdrop.
    """
    largest = max(income.staking, income.lending, income.liquidity, income.airdrop)

    if largest <= 0:
        return CASH_HOLDER
    if largest == income.staking:
        return YIELD_VALIDATOR
    if largest == income.liquidity:
        return LIQUIDITY_LORD
    if largest == income.lending:
        return MONEY_MARKET_MOGUL
    return AIRDROP_HUNTER


def decorate(label: str) -> str:
    """Append the label's emoji, if it has one."""
    emoji = ARCHETYPE_EMOJI.get(label)
    return f"{label} {emoji}" if emoji else label
