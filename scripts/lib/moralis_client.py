"""
Moralis Web3 Data API client.

This module provides a thin client for the wallet endpoints the metrics
engine consumes: token balances, per-token profitability, wallet stats,
profitability summary, active chains and net worth. Each call either
returns a parsed model or raises MoralisAPIError. There is no retry.
"""

from typing import Any, Dict, List, Optional, Tuple

import requests

from .models import (
    ChainActivity,
    NetWorth,
    ProfitabilitySummary,
    TokenHolding,
    TokenTradeRecord,
    WalletStats,
)


MORALIS_BASE_URL = "https://deep-index.moralis.io/api/v2.2"

# Chains queried for first activity and global net worth
ALL_EVM_CHAINS = [
    "eth",
    "base",
    "polygon",
    "bsc",
    "arbitrum",
    "optimism",
    "avalanche",
    "fantom",
    "linea",
    "monad",
]

DEFAULT_TIMEOUT = 30.0  # seconds

# Net worth filters: drop spam, unverified contracts and illiquid pairs
NET_WORTH_FILTERS = {
    "exclude_spam": "true",
    "exclude_unverified_contracts": "true",
    "min_pair_side_liquidity_usd": "1000",
}


class MoralisAPIError(Exception):
    """Exception raised for Moralis API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def chain_params(chains: List[str]) -> List[Tuple[str, str]]:
    """
    Build indexed chain query parameters.

    Examples:
        chain_params(["eth", "base"]) -> [("chains[0]", "eth"), ("chains[1]", "base")]
    """
    return [(f"chains[{i}]", chain) for i, chain in enumerate(chains)]


class MoralisClient:
    """
    Moralis API client.

    All API interactions go through this class, which handles:
    - Authentication headers
    - Error translation to MoralisAPIError
    - Cursor pagination for token balances
    - Conversion of raw JSON into models
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = MORALIS_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the Moralis client.

        Args:
            api_key: Moralis API key
            base_url: API base URL
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"accept": "application/json", "X-API-Key": api_key})

    def _sanitize_error_message(self, message: str) -> str:
        """Remove API key from error messages to prevent credential leakage."""
        if not self.api_key:
            return message
        return message.replace(self.api_key, "[REDACTED]")

    def _get(self, path: str, params: Any = None) -> Any:
        """
        Make a GET request and return the decoded JSON body.

        Args:
            path: Endpoint path relative to the base URL
            params: Query parameters (dict or list of pairs)

        Returns:
            The decoded JSON response

        Raises:
            MoralisAPIError: For HTTP, transport or decoding errors
        """
        url = f"{self.base_url}/{path.lstrip('/')}"

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            sanitized_msg = self._sanitize_error_message(str(e))
            raise MoralisAPIError(f"Request failed: {sanitized_msg}") from e

        if response.status_code == 401:
            raise MoralisAPIError("Invalid API key", status_code=401)

        if response.status_code >= 400:
            raise MoralisAPIError(
                f"Moralis API error: {response.status_code} {response.reason or ''}".rstrip(),
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MoralisAPIError(
                "Invalid JSON in response", status_code=response.status_code
            ) from e

    def get_token_balances(self, wallet: str, chain: str = "base") -> List[TokenHolding]:
        """
        Get current token holdings with USD prices.

        Spam and unverified contracts are excluded. Automatically paginates
        through all results.

        Args:
            wallet: Wallet address
            chain: Moralis chain id (base, eth, polygon, ...)

        Returns:
            List of TokenHolding objects
        """
        holdings: List[TokenHolding] = []
        cursor: Optional[str] = None

        while True:
            params: Dict[str, Any] = {
                "chain": chain,
                "exclude_spam": "true",
                "exclude_unverified_contracts": "true",
            }
            if cursor:
                params["cursor"] = cursor

            data = self._get(f"wallets/{wallet}/tokens", params)
            for item in data.get("result") or []:
                holdings.append(TokenHolding.from_api(item))

            cursor = data.get("cursor")
            if not cursor:
                break

        return holdings

    def get_profitability(self, wallet: str, chain: str = "base") -> List[TokenTradeRecord]:
        """
        Get per-token trade history and realized profit.

        Args:
            wallet: Wallet address
            chain: Moralis chain id

        Returns:
            List of TokenTradeRecord objects
        """
        data = self._get(f"wallets/{wallet}/profitability", {"chain": chain})
        return [TokenTradeRecord.from_api(item) for item in data.get("result") or []]

    def get_wallet_stats(self, wallet: str, chain: str = "base") -> WalletStats:
        """Get transfer and NFT collection counts."""
        data = self._get(f"wallets/{wallet}/stats", {"chain": chain})
        return WalletStats.from_api(data)

    def get_profitability_summary(self, wallet: str, chain: str = "base") -> ProfitabilitySummary:
        """Get aggregate buy/sell counts and volumes."""
        data = self._get(f"wallets/{wallet}/profitability/summary", {"chain": chain})
        return ProfitabilitySummary.from_api(data)

    def get_wallet_chains(
        self,
        wallet: str,
        chains: Optional[List[str]] = None,
    ) -> ChainActivity:
        """
        Get first and last transaction timestamps per active chain.

        Args:
            wallet: Wallet address
            chains: Chains to check (defaults to ALL_EVM_CHAINS)

        Returns:
            ChainActivity object
        """
        data = self._get(f"wallets/{wallet}/chains", chain_params(chains or ALL_EVM_CHAINS))
        return ChainActivity.from_api(data)

    def get_net_worth(self, wallet: str, chains: Optional[List[str]] = None) -> NetWorth:
        """
        Get total USD net worth, split per chain.

        Args:
            wallet: Wallet address
            chains: Chains to include (defaults to ALL_EVM_CHAINS)

        Returns:
            NetWorth object
        """
        params = chain_params(chains or ALL_EVM_CHAINS) + list(NET_WORTH_FILTERS.items())
        data = self._get(f"wallets/{wallet}/net-worth", params)
        return NetWorth.from_api(data)
