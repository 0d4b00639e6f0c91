"""EthPriceOracle: Main orchestrator for the request/response price oracle.

This module answers on-chain price requests with prices fetched off-chain.

Architecture:
    - EventListener polls the oracle contract and enqueues one request per
      ``GetLatestEthPriceEvent``
    - Scheduler fires every sleep_interval_ms and runs the BatchProcessor
    - BatchProcessor drains up to chunk_size requests per tick, fetches the
      price with bounded retries, normalizes it and writes it back
    - Listener and scheduler share one RequestQueue instance
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

from .BatchProcessor import DEFAULT_CHUNK_SIZE, BatchProcessor
from .ContractUtility import (
    DEFAULT_CONTRACT_ARTIFACT,
    DEFAULT_PRIVATE_KEY_FILE,
    ContractUtility,
)
from .EventListener import EventListener
from .fetchers import BaseFetcher, get_available_fetchers, get_fetcher
from .PriceNormalizer import NormalizationMode, PriceNormalizer
from .RequestQueue import RequestQueue
from .RetryingFetcher import DEFAULT_MAX_RETRIES, RetryingFetcher
from .Scheduler import DEFAULT_SLEEP_INTERVAL_MS, Scheduler
from .TxSubmitter import TxSubmitter

if TYPE_CHECKING:
    from web3 import Web3
    from web3.contract import Contract

logger = logging.getLogger(__name__)


class EthPriceOracle:
    """Wires the oracle components together and runs them.

    :ivar network_name: Target network name or RPC URL.
    :ivar queue: Request queue shared by listener and processor.
    :ivar processor: Batch processor driven by the scheduler.
    :ivar listener: Contract event listener.
    :ivar scheduler: Tick source for the processor.
    """

    def __init__(
        self,
        network_name: str,
        private_key_file: str = DEFAULT_PRIVATE_KEY_FILE,
        contract_artifact: str = DEFAULT_CONTRACT_ARTIFACT,
        source: str = "binance",
        pair: str = "eth/usd",
        sleep_interval_ms: int = DEFAULT_SLEEP_INTERVAL_MS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        normalization_mode: str = NormalizationMode.STRIP.value,
        event_poll_interval: float = 1.0,
        fetch_timeout: float = 10.0,
    ) -> None:
        """Connect to the network, resolve the contract and build components.

        :param network_name: Network to connect to (localhost, sepolia,
            sapphire, sapphire-testnet, sapphire-localnet) or an RPC URL.
        :param private_key_file: File holding the oracle account key.
        :param contract_artifact: Truffle build JSON of the oracle contract.
        :param source: Price source name (e.g., "binance").
        :param pair: Trading pair as "base/quote" (default: "eth/usd").
        :param sleep_interval_ms: Milliseconds between ticks (default: 2000).
        :param chunk_size: Requests processed per tick (default: 3).
        :param max_retries: Fetch attempts per request (default: 5).
        :param normalization_mode: "strip" or "scale" (default: "strip").
        :param event_poll_interval: Seconds between event polls (default: 1.0).
        :param fetch_timeout: HTTP timeout per fetch in seconds (default: 10.0).
        :raises ValueError: If the source or pair is invalid.
        :raises ContractResolutionError: If the contract is not deployed.
        """
        self.network_name = network_name

        available = get_available_fetchers()
        if source not in available:
            raise ValueError(f"Unknown source: {source}. Available: {available}")

        base, sep, quote = pair.strip().lower().partition("/")
        if not sep or not base or not quote:
            raise ValueError(f"Invalid pair format: {pair!r}, expected base/quote")

        # Ledger connection and contract
        self.contract_utility = ContractUtility(network_name, private_key_file)
        self.w3: Web3 = self.contract_utility.w3
        self.contract: Contract = self.contract_utility.resolve_contract(contract_artifact)

        self.queue = RequestQueue()
        self.fetcher = RetryingFetcher(
            get_fetcher(source, timeout=fetch_timeout),
            base=base,
            quote=quote,
            max_retries=max_retries,
        )
        self.processor = BatchProcessor(
            queue=self.queue,
            fetcher=self.fetcher,
            normalizer=PriceNormalizer(mode=normalization_mode),
            submitter=TxSubmitter(
                self.w3, self.contract, self.contract_utility.owner_address
            ),
            chunk_size=chunk_size,
        )
        self.listener = EventListener(
            self.w3, self.contract, self.queue, poll_interval=event_poll_interval
        )
        self.scheduler = Scheduler(self.processor.process_queue, sleep_interval_ms)

        logger.info(
            f"EthPriceOracle initialized: source={source}, pair={base}/{quote}, "
            f"sleep_interval={sleep_interval_ms}ms, chunk_size={chunk_size}, "
            f"max_retries={max_retries}, normalization={normalization_mode}"
        )

    def stop(self) -> None:
        """Stop listening and ticking; in-flight requests run to completion."""
        self.listener.stop()
        self.scheduler.stop()

    async def run(self) -> None:
        """Run the event listener and scheduler until cancelled or stopped.

        Pending requests left in the queue are dropped on exit.
        """
        loop = asyncio.get_running_loop()
        # SIGTERM finishes the current tick; SIGINT cancels via KeyboardInterrupt
        loop.add_signal_handler(signal.SIGTERM, self.stop)

        logger.info("Starting event listener and scheduler")
        try:
            await asyncio.gather(self.listener.run(), self.scheduler.run())
        finally:
            loop.remove_signal_handler(signal.SIGTERM)
            if not self.queue.is_empty():
                logger.warning(f"Exiting with {len(self.queue)} unprocessed request(s)")
            # Uninstalling filters is a blocking RPC call
            await asyncio.to_thread(self.listener.close)
            # Clean up shared HTTP client
            await BaseFetcher.close_shared_client()
            self.contract_utility.disconnect()
