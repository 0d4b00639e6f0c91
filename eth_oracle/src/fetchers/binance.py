"""Binance fetcher.

Binance lists most assets against USDT rather than USD, so a ``usd`` quote
is mapped to the ``USDT`` market (``eth/usd`` -> ``ETHUSDT``).

Endpoint: https://api.binance.com/api/v3/ticker/price?symbol={BASE}{QUOTE}
Rate Limit: High (no key required for public endpoints)
"""

import logging

from .base import BaseFetcher, FetcherError, is_decimal_string, register_fetcher

logger = logging.getLogger(__name__)


@register_fetcher
class BinanceFetcher(BaseFetcher):
    """Fetcher for the Binance public ticker endpoint.

    The ``price`` field is a decimal string with eight fractional digits
    (e.g., ``"2456.78000000"``) and is returned as is.
    """

    name = "binance"
    BASE_URL = "https://api.binance.com/api/v3"

    QUOTE_MAP = {
        "usd": "USDT",
    }

    def symbol_for(self, base: str, quote: str) -> str:
        """Build the Binance market symbol for a pair.

        :param base: Base currency symbol.
        :param quote: Quote currency symbol.
        :returns: Binance symbol such as "ETHUSDT".
        """
        binance_quote = self.QUOTE_MAP.get(quote.lower(), quote.upper())
        return f"{base.upper()}{binance_quote}"

    async def fetch(self, base: str, quote: str) -> str | None:
        """Fetch price from Binance.

        :param base: Base currency (e.g., "eth").
        :param quote: Quote currency (e.g., "usd", "usdt").
        :returns: Current price string or None on failure.
        """
        symbol = self.symbol_for(base, quote)
        url = f"{self.BASE_URL}/ticker/price"

        try:
            response = await self._get(url, params={"symbol": symbol})
            data = response.json()

            price = data.get("price")
            if not is_decimal_string(price):
                logger.warning(f"[binance] No usable price for {symbol}: {data}")
                return None

            return price

        except FetcherError as e:
            logger.warning(f"[binance] Failed to fetch {symbol}: {e}")
            return None
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"[binance] Failed to parse response for {symbol}: {e}")
            return None
