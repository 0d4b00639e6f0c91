"""
Price fetchers for exchange APIs.

This module provides a unified interface for fetching the current price of a
trading pair from various exchanges, as the exchange's own decimal string.

Usage:
    from eth_oracle.src.fetchers import get_fetcher, get_available_fetchers

    # Get list of available fetchers
    available = get_available_fetchers()
    # ['binance', 'bitstamp', 'coinbase', 'kraken']

    # Create a fetcher instance
    fetcher = get_fetcher("binance")
    price = await fetcher.fetch("eth", "usd")
"""

# Import base classes and utilities
from .base import (
    FETCHER_REGISTRY,
    BaseFetcher,
    FetcherError,
    FetcherHTTPError,
    get_available_fetchers,
    get_fetcher,
    is_decimal_string,
    register_fetcher,
)

# Import all fetcher implementations to trigger registration
from .binance import BinanceFetcher
from .bitstamp import BitstampFetcher
from .coinbase import CoinbaseFetcher
from .kraken import KrakenFetcher

__all__ = [
    # Base classes
    "BaseFetcher",
    "FetcherError",
    "FetcherHTTPError",
    # Registry functions
    "register_fetcher",
    "get_fetcher",
    "get_available_fetchers",
    "is_decimal_string",
    "FETCHER_REGISTRY",
    # Fetcher implementations
    "BinanceFetcher",
    "BitstampFetcher",
    "CoinbaseFetcher",
    "KrakenFetcher",
]
