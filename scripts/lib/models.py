"""
Data models for wallet wrapped metrics.

This module defines the raw provider records (trade history, holdings,
wallet stats, trade summary, chain activity, net worth), the resolved
input bundle handed to the metrics engine, and the metrics snapshot it
produces.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .parsing import parse_float, parse_int


class IncomeCategory(Enum):
    """Category of a held token. HOLDING is plain spot exposure, not income."""

    STAKING = "Staking"
    LENDING = "Lending"
    LIQUIDITY = "Liquidity"
    AIRDROP = "Airdrop"
    HOLDING = "Holding"


@dataclass(frozen=True)
class TokenTradeRecord:
    """
    Per-token trade history for a wallet on one chain.

    USD amounts are kept as the decimal strings the provider sends and are
    parsed at computation time.
    """

    token_address: str
    symbol: str = ""
    name: str = ""
    decimals: str = ""
    logo: Optional[str] = None
    avg_buy_price_usd: str = "0"
    avg_sell_price_usd: str = "0"
    total_usd_invested: str = "0"
    total_tokens_bought: str = "0"
    total_tokens_sold: str = "0"
    total_sold_usd: str = "0"
    avg_cost_of_quantity_sold: str = "0"
    count_of_trades: int = 0  # Completed round trips
    total_buys: int = 0
    total_sells: int = 0
    realized_profit_usd: str = "0"
    realized_profit_percentage: float = 0.0
    possible_spam: bool = False

    @property
    def avg_buy_price(self) -> float:
        return parse_float(self.avg_buy_price_usd)

    @property
    def realized_profit(self) -> float:
        return parse_float(self.realized_profit_usd)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TokenTradeRecord":
        """Build a record from one entry of the profitability response."""
        return cls(
            token_address=data.get("token_address") or "",
            symbol=data.get("symbol") or "",
            name=data.get("name") or "",
            decimals=str(data.get("decimals") or ""),
            logo=data.get("logo"),
            avg_buy_price_usd=str(data.get("avg_buy_price_usd") or "0"),
            avg_sell_price_usd=str(data.get("avg_sell_price_usd") or "0"),
            total_usd_invested=str(data.get("total_usd_invested") or "0"),
            total_tokens_bought=str(data.get("total_tokens_bought") or "0"),
            total_tokens_sold=str(data.get("total_tokens_sold") or "0"),
            total_sold_usd=str(data.get("total_sold_usd") or "0"),
            avg_cost_of_quantity_sold=str(data.get("avg_cost_of_quantity_sold") or "0"),
            count_of_trades=parse_int(data.get("count_of_trades")),
            total_buys=parse_int(data.get("total_buys")),
            total_sells=parse_int(data.get("total_sells")),
            realized_profit_usd=str(data.get("realized_profit_usd") or "0"),
            realized_profit_percentage=parse_float(data.get("realized_profit_percentage")),
            possible_spam=bool(data.get("possible_spam", False)),
        )


@dataclass(frozen=True)
class TokenHolding:
    """
    A currently held token with a nonzero balance.

    roi and cost_basis are derived by the metrics engine and are never
    read from the provider payload.
    """

    token_address: str
    symbol: str = ""
    name: str = ""
    logo: Optional[str] = None
    thumbnail: Optional[str] = None
    decimals: int = 18
    balance: str = "0"  # Raw integer string, scaled by decimals
    usd_price: float = 0.0
    usd_value: float = 0.0
    portfolio_percentage: float = 0.0  # 0-100
    roi: float = 0.0  # Percentage
    cost_basis: float = 0.0  # USD

    @property
    def image(self) -> Optional[str]:
        """Preferred image URL: thumbnail, falling back to the full logo."""
        return self.thumbnail or self.logo

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TokenHolding":
        """Build a holding from one entry of the token balances response."""
        return cls(
            token_address=data.get("token_address") or "",
            symbol=data.get("symbol") or "",
            name=data.get("name") or "",
            logo=data.get("logo"),
            thumbnail=data.get("thumbnail"),
            decimals=parse_int(data.get("decimals")) if data.get("decimals") is not None else 18,
            balance=str(data.get("balance") or "0"),
            usd_price=parse_float(data.get("usd_price")),
            usd_value=parse_float(data.get("usd_value")),
            portfolio_percentage=parse_float(data.get("portfolio_percentage")),
        )


@dataclass(frozen=True)
class WalletStats:
    """Transfer and NFT counts for a wallet on one chain."""

    nfts: int = 0
    collections: int = 0
    transactions: int = 0
    nft_transfers: int = 0
    token_transfers: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "WalletStats":
        return cls(
            nfts=parse_int(data.get("nfts")),
            collections=parse_int(data.get("collections")),
            transactions=parse_int((data.get("transactions") or {}).get("total")),
            nft_transfers=parse_int((data.get("nft_transfers") or {}).get("total")),
            token_transfers=parse_int((data.get("token_transfers") or {}).get("total")),
        )


@dataclass(frozen=True)
class ProfitabilitySummary:
    """Aggregate buy/sell counts and volumes across all tokens."""

    total_count_of_trades: int = 0
    total_trade_volume: float = 0.0
    total_realized_profit_usd: float = 0.0
    total_realized_profit_percentage: float = 0.0
    total_buys: int = 0
    total_sells: int = 0
    total_sold_volume_usd: float = 0.0
    total_bought_volume_usd: float = 0.0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ProfitabilitySummary":
        return cls(
            total_count_of_trades=parse_int(data.get("total_count_of_trades")),
            total_trade_volume=parse_float(data.get("total_trade_volume")),
            total_realized_profit_usd=parse_float(data.get("total_realized_profit_usd")),
            total_realized_profit_percentage=parse_float(
                data.get("total_realized_profit_percentage")
            ),
            total_buys=parse_int(data.get("total_buys")),
            total_sells=parse_int(data.get("total_sells")),
            total_sold_volume_usd=parse_float(data.get("total_sold_volume_usd")),
            total_bought_volume_usd=parse_float(data.get("total_bought_volume_usd")),
        )


@dataclass(frozen=True)
class ActiveChain:
    """First and last transaction timestamps for one chain."""

    chain: str
    chain_id: str = ""
    first_transaction_at: Optional[str] = None  # ISO-8601 block timestamp
    last_transaction_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ActiveChain":
        first = data.get("first_transaction") or {}
        last = data.get("last_transaction") or {}
        return cls(
            chain=data.get("chain") or "",
            chain_id=str(data.get("chain_id") or ""),
            first_transaction_at=first.get("block_timestamp") or None,
            last_transaction_at=last.get("block_timestamp") or None,
        )


@dataclass(frozen=True)
class ChainActivity:
    """Chains a wallet has been active on, in provider order."""

    address: str = ""
    active_chains: List[ActiveChain] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ChainActivity":
        return cls(
            address=data.get("address") or "",
            active_chains=[
                ActiveChain.from_api(item) for item in data.get("active_chains") or []
            ],
        )


@dataclass(frozen=True)
class NetWorth:
    """Total USD net worth with an optional per-chain split."""

    total_networth_usd: float = 0.0
    chains: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "NetWorth":
        chains: Dict[str, float] = {}
        for item in data.get("chains") or []:
            chain = item.get("chain")
            if chain:
                chains[chain] = parse_float(item.get("networth_usd"))
        return cls(
            total_networth_usd=parse_float(data.get("total_networth_usd")),
            chains=chains,
        )


@dataclass(frozen=True)
class IncomeDetail:
    """One non-Holding token contributing to the income breakdown."""

    category: IncomeCategory
    symbol: str
    value: float
    logo: Optional[str] = None


@dataclass(frozen=True)
class IncomeBreakdown:
    """USD value of held tokens per income category. total excludes Holding."""

    staking: float = 0.0
    lending: float = 0.0
    liquidity: float = 0.0
    airdrop: float = 0.0
    total: float = 0.0
    details: List[IncomeDetail] = field(default_factory=list)


@dataclass(frozen=True)
class TradeHighlight:
    """A traded token together with its signed realized profit."""

    token: TokenTradeRecord
    profit_usd: float


@dataclass(frozen=True)
class MostTradedToken:
    token: TokenTradeRecord
    trade_count: int


@dataclass(frozen=True)
class PnLSummary:
    """Realized profit/loss statistics derived from trade history."""

    total_profit_loss: float = 0.0
    biggest_win: Optional[TradeHighlight] = None
    biggest_loss: Optional[TradeHighlight] = None
    most_traded_token: Optional[MostTradedToken] = None
    win_rate: float = 0.0  # 0-100
    total_trades: int = 0


@dataclass(frozen=True)
class RoiSummary:
    """Best and worst holdings by ROI and the value-weighted portfolio ROI."""

    best_asset: Optional[TokenHolding] = None
    worst_asset: Optional[TokenHolding] = None
    average_roi: float = 0.0


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    The complete wrapped summary for one wallet on one chain.

    Produced fresh by calculate_metrics on every input change.
    """

    total_profit_loss: float
    biggest_win: Optional[TradeHighlight]
    biggest_loss: Optional[TradeHighlight]  # Worst outcome; may be positive
    most_traded_token: Optional[MostTradedToken]
    archetype: str
    defi_archetype: str
    win_rate: float
    total_trades: int
    total_token_transfers: int
    total_nft_collections: int
    total_trade_volume: float
    total_buys: int
    total_sells: int
    total_bought_volume: float
    total_sold_volume: float
    first_transaction_date: Optional[str]
    current_net_worth: float
    net_worth_by_chain: Dict[str, float]
    nft: Optional[Dict[str, Any]]
    holdings: List[TokenHolding]
    income: IncomeBreakdown
    roi: RoiSummary


@dataclass
class WalletData:
    """
    Resolved provider payloads for one wallet on one chain.

    Optional sources that failed are None and listed in errors. error is
    set when a required source (trade history or holdings) failed.
    """

    wallet: str
    chain: str
    trade_records: List[TokenTradeRecord] = field(default_factory=list)
    holdings: List[TokenHolding] = field(default_factory=list)
    wallet_stats: Optional[WalletStats] = None
    summary: Optional[ProfitabilitySummary] = None
    chain_activity: Optional[ChainActivity] = None
    net_worth: Optional[NetWorth] = None
    errors: List[str] = field(default_factory=list)  # Names of failed optional sources
    error: Optional[str] = None
