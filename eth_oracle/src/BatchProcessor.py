"""BatchProcessor: Drains the request queue and answers each request.

Once per scheduler tick, up to ``chunk_size`` requests are taken from the
head of the queue and processed one after another:

    Pending -> Fetching -> Normalizing -> Submitting -> Done

A dequeued request never returns to the queue. Fetch failures have already
been turned into the ``"0"`` sentinel by RetryingFetcher; normalization and
submission failures end the request at Done with an error recorded in its
outcome, and the rest of the batch carries on.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .PriceNormalizer import NormalizationError
from .TxSubmitter import SubmissionResult

if TYPE_CHECKING:
    from .PendingRequest import PendingRequest
    from .PriceNormalizer import PriceNormalizer
    from .RequestQueue import RequestQueue
    from .RetryingFetcher import RetryingFetcher
    from .TxSubmitter import TxSubmitter

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 3


class ProcessingStatus(str, Enum):
    """Lifecycle of a dequeued request."""

    PENDING = "pending"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    SUBMITTING = "submitting"
    DONE = "done"


@dataclass
class RequestOutcome:
    """Terminal record of one processed request.

    :ivar request: The request that was processed.
    :ivar status: Last state reached; DONE once processing returns.
    :ivar price: Price string that was fetched (possibly the sentinel).
    :ivar submission: Result of the write-back, if one was attempted.
    :ivar error: Failure description for normalization errors.
    """

    request: PendingRequest
    status: ProcessingStatus = ProcessingStatus.PENDING
    price: str | None = None
    submission: SubmissionResult | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        """True if the write-back transaction landed."""
        return self.submission is not None and self.submission.success


class BatchProcessor:
    """Sole consumer of the request queue.

    :ivar queue: Shared request queue.
    :ivar fetcher: Retry-wrapped price fetcher.
    :ivar normalizer: Converts prices and ids for the contract.
    :ivar submitter: Sends the write-back transaction.
    :ivar chunk_size: Maximum requests drained per call.
    """

    def __init__(
        self,
        queue: RequestQueue,
        fetcher: RetryingFetcher,
        normalizer: PriceNormalizer,
        submitter: TxSubmitter,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the processor.

        :param queue: Queue shared with the event listener.
        :param fetcher: Fetcher used once per request.
        :param normalizer: Price and id normalizer.
        :param submitter: Write-back submitter.
        :param chunk_size: Requests drained per tick (default: 3).
        :raises ValueError: If chunk_size is less than 1.
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.queue = queue
        self.fetcher = fetcher
        self.normalizer = normalizer
        self.submitter = submitter
        self.chunk_size = chunk_size

    async def process_queue(self) -> list[RequestOutcome]:
        """Process up to chunk_size requests from the head of the queue.

        :returns: One outcome per drained request, in queue order.
        """
        requests = self.queue.dequeue_batch(self.chunk_size)
        if not requests:
            return []

        logger.info(
            f"Processing {len(requests)} request(s), {len(self.queue)} left in queue"
        )

        outcomes = []
        for request in requests:
            outcome = await self.process_request(request)
            self._log_outcome(outcome)
            outcomes.append(outcome)
        return outcomes

    async def process_request(self, request: PendingRequest) -> RequestOutcome:
        """Fetch, normalize and write back the price for one request.

        :param request: Dequeued request.
        :returns: The request's terminal outcome.
        """
        outcome = RequestOutcome(request=request)

        outcome.status = ProcessingStatus.FETCHING
        outcome.price = await self.fetcher.fetch_price()

        outcome.status = ProcessingStatus.NORMALIZING
        try:
            value = self.normalizer.normalize(request, outcome.price)
        except NormalizationError as e:
            outcome.error = str(e)
            outcome.status = ProcessingStatus.DONE
            return outcome

        outcome.status = ProcessingStatus.SUBMITTING
        # Blocking web3 calls run off the event loop
        try:
            outcome.submission = await asyncio.to_thread(
                self.submitter.submit_price, value
            )
        except Exception as e:
            outcome.submission = SubmissionResult(
                success=False, error=f"{type(e).__name__}: {e}"
            )

        outcome.status = ProcessingStatus.DONE
        return outcome

    @staticmethod
    def _log_outcome(outcome: RequestOutcome) -> None:
        request = outcome.request
        if outcome.error is not None:
            logger.error(f"Request {request}: cannot normalize ({outcome.error}), dropped")
        elif outcome.success:
            logger.info(
                f"Request {request}: price {outcome.price} written "
                f"(tx {outcome.submission.tx_hash})"
            )
        else:
            logger.error(
                f"Request {request}: error encountered while calling "
                f"setLatestEthPrice ({outcome.submission.error}), abandoned"
            )
