"""
Pytest configuration and shared fixtures for wallet-wrapped tests.
"""

import pytest

from scripts.lib.models import TokenHolding, TokenTradeRecord


@pytest.fixture
def sample_wallet_address():
    """Sample wallet address for testing."""
    return "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"  # vitalik.eth


@pytest.fixture
def mock_moralis_api_key():
    """Mock Moralis API key for testing."""
    return "test-moralis-key-12345"


@pytest.fixture
def mock_neynar_api_key():
    """Mock Neynar API key for testing."""
    return "test-neynar-key-67890"


@pytest.fixture
def profitable_trade():
    """A fully sold token that made $150."""
    return TokenTradeRecord(
        token_address="0xA",
        symbol="DEGEN",
        name="Degen",
        avg_buy_price_usd="0.01",
        count_of_trades=1,
        total_buys=1,
        total_sells=1,
        realized_profit_usd="150.00",
    )


@pytest.fixture
def eth_holding():
    """2 ETH-like tokens worth $300, no income signals."""
    return TokenHolding(
        token_address="0xC",
        symbol="WETH",
        name="Wrapped Ether",
        decimals=18,
        balance="2000000000000000000",
        usd_price=150.0,
        usd_value=300.0,
        portfolio_percentage=60.0,
    )
