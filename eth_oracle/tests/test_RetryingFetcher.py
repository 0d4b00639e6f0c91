"""Unit tests for RetryingFetcher."""

from unittest.mock import AsyncMock, Mock

import pytest

from eth_oracle.src.fetchers import FetcherError
from eth_oracle.src.RetryingFetcher import FALLBACK_PRICE, RetryingFetcher


def make_fetcher(**fetch_kwargs) -> Mock:
    fetcher = Mock()
    fetcher.name = "fake"
    fetcher.fetch = AsyncMock(**fetch_kwargs)
    return fetcher


class TestRetryingFetcherInit:
    """Test RetryingFetcher initialization."""

    def test_defaults(self) -> None:
        """Default pair is eth/usd with 5 attempts."""
        retrying = RetryingFetcher(make_fetcher())
        assert (retrying.base, retrying.quote) == ("eth", "usd")
        assert retrying.max_retries == 5

    def test_pair_lowercased(self) -> None:
        """Symbols are stored lowercase."""
        retrying = RetryingFetcher(make_fetcher(), base="ETH", quote="USDT")
        assert (retrying.base, retrying.quote) == ("eth", "usdt")

    def test_invalid_max_retries(self) -> None:
        """max_retries < 1 should raise ValueError."""
        with pytest.raises(ValueError, match="max_retries must be at least 1"):
            RetryingFetcher(make_fetcher(), max_retries=0)


class TestRetryingFetcherFetch:
    """Test retry behavior."""

    @pytest.mark.asyncio
    async def test_first_attempt_succeeds(self) -> None:
        """A good first answer is returned without retrying."""
        fetcher = make_fetcher(return_value="1234.56")
        retrying = RetryingFetcher(fetcher)

        assert await retrying.fetch_price() == "1234.56"
        fetcher.fetch.assert_awaited_once_with("eth", "usd")

    @pytest.mark.asyncio
    async def test_recovers_after_failures(self) -> None:
        """Failures (None or exceptions) are retried until a price arrives."""
        fetcher = make_fetcher(side_effect=[None, FetcherError("down"), "99.5"])
        retrying = RetryingFetcher(fetcher, max_retries=5)

        assert await retrying.fetch_price() == "99.5"
        assert fetcher.fetch.await_count == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_retries", [1, 3, 5])
    async def test_permanent_failure_hits_exact_bound(self, max_retries: int) -> None:
        """A dead source is tried exactly max_retries times, then '0'."""
        fetcher = make_fetcher(side_effect=FetcherError("down"))
        retrying = RetryingFetcher(fetcher, max_retries=max_retries)

        assert await retrying.fetch_price() == FALLBACK_PRICE == "0"
        assert fetcher.fetch.await_count == max_retries

    @pytest.mark.asyncio
    async def test_none_results_fall_back(self) -> None:
        """Sources that only return None also end at the sentinel."""
        fetcher = make_fetcher(return_value=None)
        retrying = RetryingFetcher(fetcher, max_retries=5)

        assert await retrying.fetch_price() == "0"
        assert fetcher.fetch.await_count == 5

    @pytest.mark.asyncio
    async def test_success_on_last_attempt(self) -> None:
        """A price on the final attempt is used, not the sentinel."""
        fetcher = make_fetcher(side_effect=[None, None, "10.0"])
        retrying = RetryingFetcher(fetcher, max_retries=3)

        assert await retrying.fetch_price() == "10.0"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_retried(self) -> None:
        """Any exception from the fetcher counts as a failed attempt."""
        fetcher = make_fetcher(side_effect=[RuntimeError("bug"), "1.0"])
        retrying = RetryingFetcher(fetcher)

        assert await retrying.fetch_price() == "1.0"
