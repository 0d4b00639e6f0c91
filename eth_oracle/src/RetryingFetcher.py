"""RetryingFetcher: Bounded-retry price retrieval with a sentinel fallback.

Attempts are immediate and counted, not timed. When every attempt fails the
fetcher answers with ``FALLBACK_PRICE`` instead of raising, so each request
still reaches a write-back. Contract consumers must read ``0`` as "price
unavailable".
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .fetchers import BaseFetcher

logger = logging.getLogger(__name__)

# Written on-chain when no attempt produced a price.
FALLBACK_PRICE = "0"

DEFAULT_MAX_RETRIES = 5


class RetryingFetcher:
    """Wraps a price fetcher with an attempt ceiling.

    :ivar fetcher: Underlying exchange fetcher.
    :ivar base: Base currency symbol.
    :ivar quote: Quote currency symbol.
    :ivar max_retries: Total number of attempts per call.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        base: str = "eth",
        quote: str = "usd",
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        """Initialize the retrying fetcher.

        :param fetcher: Fetcher used for each attempt.
        :param base: Base currency symbol (default: "eth").
        :param quote: Quote currency symbol (default: "usd").
        :param max_retries: Total attempts before falling back (default: 5).
        :raises ValueError: If max_retries is less than 1.
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.fetcher = fetcher
        self.base = base.lower()
        self.quote = quote.lower()
        self.max_retries = max_retries

    async def fetch_price(self) -> str:
        """Fetch the current price, retrying on failure.

        An attempt fails when the fetcher raises or returns None.

        :returns: Price string, or ``FALLBACK_PRICE`` after max_retries failures.
        """
        pair = f"{self.base}/{self.quote}"
        for attempt in range(1, self.max_retries + 1):
            try:
                price = await self.fetcher.fetch(self.base, self.quote)
            except Exception as e:
                logger.warning(
                    f"[{self.fetcher.name}] Fetch {pair} raised {e} "
                    f"(attempt {attempt}/{self.max_retries})"
                )
                continue

            if price is not None:
                logger.debug(f"[{self.fetcher.name}] {pair} = {price}")
                return price

            logger.warning(
                f"[{self.fetcher.name}] No price for {pair} "
                f"(attempt {attempt}/{self.max_retries})"
            )

        logger.warning(
            f"[{self.fetcher.name}] Giving up on {pair} after {self.max_retries} "
            f"attempts, answering with {FALLBACK_PRICE!r}"
        )
        return FALLBACK_PRICE
