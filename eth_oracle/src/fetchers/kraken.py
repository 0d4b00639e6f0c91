"""Kraken fetcher.

Endpoint: https://api.kraken.com/0/public/Ticker?pair={BASE}{QUOTE}
Rate Limit: High (no key required)
"""

import logging

from .base import BaseFetcher, FetcherError, is_decimal_string, register_fetcher

logger = logging.getLogger(__name__)


@register_fetcher
class KrakenFetcher(BaseFetcher):
    """Fetcher for Kraken public API. No API key required."""

    name = "kraken"
    BASE_URL = "https://api.kraken.com/0/public"

    # Kraken uses non-standard ticker symbols
    SYMBOL_MAP = {
        "btc": "XBT",
    }

    async def fetch(self, base: str, quote: str) -> str | None:
        """Fetch the last closed trade price from Kraken.

        :param base: Base currency (e.g., "eth").
        :param quote: Quote currency (e.g., "usd").
        :returns: Current price string or None on failure.
        """
        kraken_base = self.SYMBOL_MAP.get(base.lower(), base.upper())
        pair = f"{kraken_base}{quote.upper()}"

        url = f"{self.BASE_URL}/Ticker"

        try:
            response = await self._get(url, params={"pair": pair})
            data = response.json()

            errors = data.get("error")
            if errors:
                logger.warning(f"[kraken] API error for {pair}: {errors}")
                return None

            result = data.get("result", {})
            if not result:
                logger.warning(f"[kraken] No result for {pair}")
                return None

            # Result key is Kraken's canonical pair name (e.g., XETHZUSD)
            pair_data = list(result.values())[0]

            # 'c' is the last trade closed array: [price, lot volume]
            price = pair_data["c"][0]
            if not is_decimal_string(price):
                logger.warning(f"[kraken] Unusable price for {pair}: {price!r}")
                return None
            return price

        except FetcherError as e:
            logger.warning(f"[kraken] Failed to fetch {pair}: {e}")
            return None
        except (KeyError, ValueError, TypeError, IndexError, AttributeError) as e:
            logger.warning(f"[kraken] Failed to parse response for {pair}: {e}")
            return None
