#!/usr/bin/env python3
"""ETH Price Oracle.

Listens for price requests emitted by the on-chain oracle contract, fetches
the ETH price from an exchange and writes it back with setLatestEthPrice.

Configure via environment variables or the equivalent CLI flags.
"""

import argparse
import asyncio
import logging
import os
import sys

from .src.BatchProcessor import DEFAULT_CHUNK_SIZE
from .src.ContractUtility import (
    DEFAULT_CONTRACT_ARTIFACT,
    DEFAULT_PRIVATE_KEY_FILE,
    NETWORKS,
)
from .src.EthPriceOracle import EthPriceOracle
from .src.fetchers import get_available_fetchers
from .src.PriceNormalizer import NormalizationMode
from .src.RetryingFetcher import DEFAULT_MAX_RETRIES
from .src.Scheduler import DEFAULT_SLEEP_INTERVAL_MS

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser with environment-backed defaults.

    :returns: Configured argument parser.
    """
    available_sources = get_available_fetchers()

    parser = argparse.ArgumentParser(
        description="ETH Price Oracle: answers on-chain price requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available price sources:
  {', '.join(available_sources)}

Known networks:
  {', '.join(NETWORKS)}

Examples:
  # Local development chain with the default Binance source
  python -m eth_oracle.main --network localhost

  # Drain up to 10 requests every 5 seconds
  SLEEP_INTERVAL=5000 CHUNK_SIZE=10 python -m eth_oracle.main

Environment variables (CLI args take precedence):
  SLEEP_INTERVAL, PRIVATE_KEY_FILE, CHUNK_SIZE, MAX_RETRIES, NETWORK, RPC_URL,
  CONTRACT_ARTIFACT, SOURCE, PAIR, NORMALIZATION_MODE, EVENT_POLL_INTERVAL,
  FETCH_TIMEOUT
""",
    )

    parser.add_argument(
        "--sleep-interval",
        dest="sleep_interval",
        type=int,
        help=f"Milliseconds between queue processing ticks (default: {DEFAULT_SLEEP_INTERVAL_MS})",
        default=int(os.environ.get("SLEEP_INTERVAL") or DEFAULT_SLEEP_INTERVAL_MS),
    )

    parser.add_argument(
        "--private-key-file",
        dest="private_key_file",
        type=str,
        help=f"File holding the oracle account's private key (default: {DEFAULT_PRIVATE_KEY_FILE})",
        default=os.environ.get("PRIVATE_KEY_FILE") or DEFAULT_PRIVATE_KEY_FILE,
    )

    parser.add_argument(
        "--chunk-size",
        dest="chunk_size",
        type=int,
        help=f"Maximum requests processed per tick (default: {DEFAULT_CHUNK_SIZE})",
        default=int(os.environ.get("CHUNK_SIZE") or DEFAULT_CHUNK_SIZE),
    )

    parser.add_argument(
        "--max-retries",
        dest="max_retries",
        type=int,
        help=f"Fetch attempts before answering 0 (default: {DEFAULT_MAX_RETRIES})",
        default=int(os.environ.get("MAX_RETRIES") or DEFAULT_MAX_RETRIES),
    )

    parser.add_argument(
        "--network",
        type=str,
        help="Network name or RPC URL (RPC_URL env var overrides the URL)",
        default=os.environ.get("NETWORK") or "localhost",
    )

    parser.add_argument(
        "--contract-artifact",
        dest="contract_artifact",
        type=str,
        help=f"Truffle build JSON of the oracle contract (default: {DEFAULT_CONTRACT_ARTIFACT})",
        default=os.environ.get("CONTRACT_ARTIFACT") or DEFAULT_CONTRACT_ARTIFACT,
    )

    parser.add_argument(
        "--source",
        type=str,
        help=f"Price source. Available: {', '.join(available_sources)}",
        default=os.environ.get("SOURCE") or "binance",
    )

    parser.add_argument(
        "--pair",
        type=str,
        help="Trading pair to quote (default: eth/usd)",
        default=os.environ.get("PAIR") or "eth/usd",
    )

    parser.add_argument(
        "--normalization-mode",
        dest="normalization_mode",
        choices=[m.value for m in NormalizationMode],
        help="strip: remove the decimal point, scale: fixed 10-decimal scaling (default: strip)",
        default=os.environ.get("NORMALIZATION_MODE") or NormalizationMode.STRIP.value,
    )

    parser.add_argument(
        "--event-poll-interval",
        dest="event_poll_interval",
        type=float,
        help="Seconds between contract event polls (default: 1.0)",
        default=float(os.environ.get("EVENT_POLL_INTERVAL") or "1.0"),
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help="Timeout for individual fetch requests in seconds (default: 10.0)",
        default=float(os.environ.get("FETCH_TIMEOUT") or "10.0"),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and validate CLI arguments.

    :param argv: Argument list (default: sys.argv[1:]).
    :returns: Validated arguments.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.sleep_interval < 1:
        parser.error("--sleep-interval must be at least 1 millisecond")

    if args.chunk_size < 1:
        parser.error("--chunk-size must be at least 1")

    if args.max_retries < 1:
        parser.error("--max-retries must be at least 1")

    if args.event_poll_interval <= 0:
        parser.error("--event-poll-interval must be positive")

    args.source = args.source.strip().lower()
    if args.source not in get_available_fetchers():
        parser.error(
            f"Unknown source: {args.source}. "
            f"Available: {', '.join(get_available_fetchers())}"
        )

    if args.normalization_mode not in [m.value for m in NormalizationMode]:
        parser.error(f"Unknown normalization mode: {args.normalization_mode}")

    return args


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the ETH Price Oracle CLI."""
    args = parse_args(argv)

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Log configuration
    logger.info("=" * 60)
    logger.info("ETH Price Oracle")
    logger.info("=" * 60)
    logger.info(f"Network:           {args.network}")
    logger.info(f"Contract Artifact: {args.contract_artifact}")
    logger.info(f"Private Key File:  {args.private_key_file}")
    logger.info(f"Source:            {args.source} ({args.pair})")
    logger.info(f"Sleep Interval:    {args.sleep_interval}ms")
    logger.info(f"Chunk Size:        {args.chunk_size}")
    logger.info(f"Max Retries:       {args.max_retries}")
    logger.info(f"Normalization:     {args.normalization_mode}")
    logger.info("=" * 60)

    try:
        oracle = EthPriceOracle(
            network_name=args.network,
            private_key_file=args.private_key_file,
            contract_artifact=args.contract_artifact,
            source=args.source,
            pair=args.pair,
            sleep_interval_ms=args.sleep_interval,
            chunk_size=args.chunk_size,
            max_retries=args.max_retries,
            normalization_mode=args.normalization_mode,
            event_poll_interval=args.event_poll_interval,
            fetch_timeout=args.fetch_timeout,
        )
        asyncio.run(oracle.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
