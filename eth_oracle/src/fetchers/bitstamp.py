"""Bitstamp fetcher.

Endpoint: https://www.bitstamp.net/api/v2/ticker/{base}{quote}/
Rate Limit: High (no key required)
"""

import logging

from .base import BaseFetcher, FetcherError, is_decimal_string, register_fetcher

logger = logging.getLogger(__name__)


@register_fetcher
class BitstampFetcher(BaseFetcher):
    """Fetcher for Bitstamp public API. No API key required."""

    name = "bitstamp"
    BASE_URL = "https://www.bitstamp.net/api/v2"

    async def fetch(self, base: str, quote: str) -> str | None:
        """Fetch the last traded price from Bitstamp.

        :param base: Base currency (e.g., "eth").
        :param quote: Quote currency (e.g., "usd").
        :returns: Current price string or None on failure.
        """
        pair = f"{base.lower()}{quote.lower()}"
        url = f"{self.BASE_URL}/ticker/{pair}/"

        try:
            response = await self._get(url)
            data = response.json()

            price = data.get("last")
            if not is_decimal_string(price):
                logger.warning(f"[bitstamp] No 'last' price for {pair}: {data}")
                return None

            return price

        except FetcherError as e:
            logger.warning(f"[bitstamp] Failed to fetch {pair}: {e}")
            return None
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"[bitstamp] Failed to parse response for {pair}: {e}")
            return None
