"""
ETH Price Oracle - Request/Response Module

This module answers on-chain price requests with off-chain prices:
- PendingRequest: A queued price request
- RequestQueue: Thread-safe FIFO shared by listener and processor
- PriceNormalizer: Decimal price string to on-chain integer
- RetryingFetcher: Bounded retries with a "0" fallback
- BatchProcessor: Per-tick draining and write-back
- EventListener: Contract event polling
- Scheduler: Fixed-interval ticks
- EthPriceOracle: Main orchestrator
- fetchers: Exchange price fetcher implementations
"""

from .BatchProcessor import BatchProcessor, ProcessingStatus, RequestOutcome
from .EthPriceOracle import EthPriceOracle
from .EventListener import EventListener
from .PendingRequest import MalformedEventError, PendingRequest
from .PriceNormalizer import (
    NUM_DECIMALS,
    NormalizationError,
    NormalizationMode,
    NormalizedValue,
    PriceNormalizer,
)
from .RequestQueue import RequestQueue
from .RetryingFetcher import FALLBACK_PRICE, RetryingFetcher
from .Scheduler import Scheduler
from .TxSubmitter import SubmissionResult, TxSubmitter

__all__ = [
    "BatchProcessor",
    "EthPriceOracle",
    "EventListener",
    "FALLBACK_PRICE",
    "MalformedEventError",
    "NUM_DECIMALS",
    "NormalizationError",
    "NormalizationMode",
    "NormalizedValue",
    "PendingRequest",
    "PriceNormalizer",
    "ProcessingStatus",
    "RequestOutcome",
    "RequestQueue",
    "RetryingFetcher",
    "Scheduler",
    "SubmissionResult",
    "TxSubmitter",
]
