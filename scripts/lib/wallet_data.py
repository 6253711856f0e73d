"""
Collector that gathers every provider payload for a wallet on one chain.

Trade history and holdings are required: if either fails the collection
fails. The remaining sources are optional and degrade to None, which the
metrics engine treats as zero.
"""

import sys
from typing import Callable, List, Optional, TypeVar

from .models import WalletData
from .moralis_client import MoralisAPIError, MoralisClient


T = TypeVar("T")

# Chains selectable for a wrapped summary
SUPPORTED_CHAINS = ["base", "eth", "arbitrum", "optimism", "polygon"]


class WalletDataCollector:
    """
    Fetches all inputs of the metrics engine for one chain.

    Each source is fetched independently; a failure in one optional source
    never prevents the others from being used.
    """

    def __init__(self, client: MoralisClient, chain: str):
        """
        Initialize the collector.

        Args:
            client: MoralisClient instance for API calls
            chain: Moralis chain id (base, eth, arbitrum, optimism, polygon)
        """
        self.client = client
        self.chain = chain

    def _fetch_optional(
        self, source: str, fetch: Callable[[], T], errors: List[str]
    ) -> Optional[T]:
        """Run an optional fetch, recording the source name on failure."""
        try:
            return fetch()
        except MoralisAPIError as e:
            print(f"[{source}] ERROR: {e}. Continuing without it.", file=sys.stderr)
            errors.append(source)
            return None

    def collect(self, wallet: str) -> WalletData:
        """
        Fetch every source for a wallet.

        Args:
            wallet: Wallet address

        Returns:
            WalletData; error is set if trade history or holdings failed
        """
        try:
            trade_records = self.client.get_profitability(wallet, self.chain)
            holdings = self.client.get_token_balances(wallet, self.chain)
        except MoralisAPIError as e:
            return WalletData(wallet=wallet, chain=self.chain, error=str(e))

        errors: List[str] = []
        wallet_stats = self._fetch_optional(
            "stats", lambda: self.client.get_wallet_stats(wallet, self.chain), errors
        )
        summary = self._fetch_optional(
            "summary", lambda: self.client.get_profitability_summary(wallet, self.chain), errors
        )
        chain_activity = self._fetch_optional(
            "chains", lambda: self.client.get_wallet_chains(wallet), errors
        )
        net_worth = self._fetch_optional(
            "net-worth", lambda: self.client.get_net_worth(wallet, [self.chain]), errors
        )

        return WalletData(
            wallet=wallet,
            chain=self.chain,
            trade_records=trade_records,
            holdings=holdings,
            wallet_stats=wallet_stats,
            summary=summary,
            chain_activity=chain_activity,
            net_worth=net_worth,
            errors=errors,
        )


def create_collector(client: MoralisClient, chain: str) -> WalletDataCollector:
    """
    Factory function to create a collector for a supported chain.

    Raises:
        ValueError: If chain is not supported
    """
    if chain not in SUPPORTED_CHAINS:
        raise ValueError(f"Unsupported chain: {chain}")
    return WalletDataCollector(client, chain)
