#!/usr/bin/env python3
"""
Show a "wrapped" summary of a wallet's on-chain trading and DeFi activity.

This script fetches a wallet's trade history, holdings, stats and net
worth from Moralis for one chain, computes the metrics snapshot (P/L,
win rate, best and worst trades, ROI, income breakdown, archetype) and
prints it as text or JSON. A Farcaster FID can be given instead of a
wallet address and is resolved through Neynar.
"""

import argparse
import os
import sys
from typing import List, Optional

from scripts.lib.formatters import format_json, format_report, write_output
from scripts.lib.metrics import calculate_metrics
from scripts.lib.moralis_client import MoralisClient
from scripts.lib.neynar_client import NeynarAPIError, NeynarClient
from scripts.lib.wallet_data import SUPPORTED_CHAINS, create_collector


OUTPUT_FORMATS = ["text", "json"]


def log(source: str, message: str) -> None:
    """Log a message with source prefix."""
    print(f"[{source}] {message}", file=sys.stderr)


def validate_chain(chain: str) -> str:
    """
    Validate and normalize a chain name.

    Args:
        chain: Chain name

    Returns:
        Lowercase chain name

    Raises:
        ValueError: If the chain is not supported
    """
    chain_lower = chain.lower()
    if chain_lower not in SUPPORTED_CHAINS:
        raise ValueError(
            f"Unsupported chain: {chain}. " f"Supported: {', '.join(SUPPORTED_CHAINS)}"
        )
    return chain_lower


def resolve_wallet(parsed_args: argparse.Namespace) -> str:
    """
    Resolve the wallet address from --wallet or --fid.

    Raises:
        ValueError: If the FID cannot be resolved
    """
    if parsed_args.wallet:
        return parsed_args.wallet

    if not parsed_args.neynar_api_key:
        raise ValueError("--neynar-api-key (or NEYNAR_API_KEY) is required with --fid")

    log("neynar", f"Resolving FID {parsed_args.fid}...")
    try:
        wallet = NeynarClient(parsed_args.neynar_api_key).resolve_wallet(parsed_args.fid)
    except NeynarAPIError as e:
        raise ValueError(f"Could not resolve FID {parsed_args.fid}: {e}") from e

    if not wallet:
        raise ValueError(f"No wallet address found for FID {parsed_args.fid}")

    log("neynar", f"Resolved to {wallet}")
    return wallet


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = argparse.ArgumentParser(
        description="Summarize a wallet's on-chain trading and DeFi activity.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Text summary for a wallet on Base
  %(prog)s --api-key YOUR_KEY --wallet 0x...

  # JSON snapshot for a Farcaster user on Ethereum, saved to file
  %(prog)s --api-key YOUR_KEY --neynar-api-key NEYNAR_KEY --fid 3 \\
    --chain eth --format json --output wrapped.json
        """,
    )

    parser.add_argument(
        "--api-key",
        default=os.environ.get("MORALIS_API_KEY"),
        help="Moralis API key (defaults to MORALIS_API_KEY)",
    )
    parser.add_argument(
        "--neynar-api-key",
        default=os.environ.get("NEYNAR_API_KEY"),
        help="Neynar API key, needed with --fid (defaults to NEYNAR_API_KEY)",
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--wallet",
        help="Wallet address to summarize",
    )
    target.add_argument(
        "--fid",
        type=int,
        help="Farcaster user id whose wallet to summarize",
    )
    parser.add_argument(
        "--chain",
        default="base",
        help=f"Chain to summarize. Supported: {', '.join(SUPPORTED_CHAINS)}",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="text",
        help="Output format",
    )
    parser.add_argument(
        "--output",
        help="Output file path (timestamp auto-appended). If not specified, outputs to stdout.",
    )

    parsed_args = parser.parse_args(args)

    if not parsed_args.api_key:
        print("Error: --api-key (or MORALIS_API_KEY) is required", file=sys.stderr)
        return 1

    try:
        chain = validate_chain(parsed_args.chain)
        wallet = resolve_wallet(parsed_args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    client = MoralisClient(parsed_args.api_key)
    collector = create_collector(client, chain)

    log(chain, f"Fetching wallet data for {wallet}...")
    data = collector.collect(wallet)

    if data.error:
        log(chain, f"ERROR: {data.error}")
        return 1

    log(chain, f"Found {len(data.trade_records)} traded tokens")
    log(chain, f"Found {len(data.holdings)} holdings")
    if data.errors:
        log(chain, f"Missing optional sources: {', '.join(data.errors)}")

    snapshot = calculate_metrics(
        data.trade_records,
        data.holdings,
        wallet_stats=data.wallet_stats,
        summary=data.summary,
        chain_activity=data.chain_activity,
        net_worth=data.net_worth,
    )

    if parsed_args.format == "json":
        output_file = write_output(
            format_json(snapshot), parsed_args.output, default_suffix=".json"
        )
    else:
        output_file = write_output(format_report(snapshot, wallet, chain), parsed_args.output)

    if output_file:
        print(f"\nResults written to: {output_file}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
