"""
Neynar Farcaster API client.

Resolves a Farcaster user id (FID) to the wallet address whose activity
gets summarized.
"""

from typing import Any, Dict, Optional

import requests


NEYNAR_BASE_URL = "https://api.neynar.com/v2/farcaster"
DEFAULT_TIMEOUT = 30.0  # seconds


class NeynarAPIError(Exception):
    """Exception raised for Neynar API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def wallet_address_for_user(user: Dict[str, Any]) -> Optional[str]:
    """
    Pick the wallet address for a Farcaster user.

    Prefers the primary verified ETH address and falls back to the
    custody address.

    Args:
        user: User object from the bulk user endpoint

    Returns:
        Wallet address, or None if the user has neither
    """
    verified = user.get("verified_addresses") or {}
    primary = verified.get("primary") or {}
    return primary.get("eth_address") or user.get("custody_address") or None


class NeynarClient:
    """Minimal Neynar client for user lookups."""

    def __init__(
        self,
        api_key: str,
        base_url: str = NEYNAR_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"accept": "application/json", "x-api-key": api_key})

    def get_user(self, fid: int) -> Optional[Dict[str, Any]]:
        """
        Fetch a user by FID.

        Args:
            fid: Farcaster user id

        Returns:
            The user object, or None if no user has this FID

        Raises:
            NeynarAPIError: For HTTP, transport or decoding errors
        """
        try:
            response = self.session.get(
                f"{self.base_url}/user/bulk",
                params={"fids": fid},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            message = str(e).replace(self.api_key, "[REDACTED]") if self.api_key else str(e)
            raise NeynarAPIError(f"Request failed: {message}") from e

        if response.status_code == 401:
            raise NeynarAPIError("Invalid API key", status_code=401)

        if response.status_code >= 400:
            raise NeynarAPIError(
                f"Neynar API error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise NeynarAPIError(
                "Invalid JSON in response", status_code=response.status_code
            ) from e
        if not isinstance(data, dict):
            raise NeynarAPIError("Invalid JSON in response", status_code=response.status_code)

        users = data.get("users") or []
        return users[0] if users else None

    def resolve_wallet(self, fid: int) -> Optional[str]:
        """
        Resolve a FID to a wallet address.

        Returns:
            Wallet address, or None if the user or address is missing
        """
        user = self.get_user(fid)
        if user is None:
            return None
        return wallet_address_for_user(user)
