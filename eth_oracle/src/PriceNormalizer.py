"""PriceNormalizer: Converts fetched price strings to on-chain integers.

The oracle contract stores prices as unsigned integers scaled by
``10 ** NUM_DECIMALS``. Two conversion modes exist:

``strip`` (default)
    Remove the decimal point from the string, parse the digits as an
    integer and multiply by ``10 ** NUM_DECIMALS``. ``"1234.56"`` becomes
    ``123456 * 10**10``. The result depends on how many fractional digits
    the source reports: ``"1234.5"`` and ``"1234.50"`` differ by a factor
    of ten. Contract consumers built against the stripped format rely on
    this exact arithmetic.

``scale``
    Parse the string as a decimal number, multiply by
    ``10 ** NUM_DECIMALS`` and truncate toward zero. ``"1234.5"`` and
    ``"1234.50"`` both become ``12345 * 10**9``.

All arithmetic works on the digit string and Python integers, never
floats, so no precision is lost at 18+ digit magnitudes.

.. code-block:: python

    >>> normalizer = PriceNormalizer()
    >>> normalizer.normalize_price("1234.56")
    1234560000000000
    >>> PriceNormalizer(mode="scale").normalize_price("1234.56")
    12345600000000
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .PendingRequest import PendingRequest

# Number of decimals stored on-chain.
NUM_DECIMALS = 10

_DIGITS = re.compile(r"[0-9]+")


class NormalizationError(ValueError):
    """Raised when a price or request id cannot be converted to an integer."""

    pass


class NormalizationMode(str, Enum):
    """How a decimal price string is mapped onto the on-chain integer."""

    STRIP = "strip"
    SCALE = "scale"


@dataclass(frozen=True)
class NormalizedValue:
    """Arguments for one ``setLatestEthPrice`` call.

    :ivar price: Fixed-point price magnitude.
    :ivar caller_address: Account that requested the price.
    :ivar id: Request identifier as an integer.
    """

    price: int
    caller_address: str
    id: int


class PriceNormalizer:
    """Convert price strings and request ids into contract call arguments.

    :ivar mode: Price conversion mode.
    :ivar decimals: Power of ten applied to the price.
    """

    def __init__(
        self,
        mode: NormalizationMode | str = NormalizationMode.STRIP,
        decimals: int = NUM_DECIMALS,
    ) -> None:
        """Initialize the normalizer.

        :param mode: ``"strip"`` or ``"scale"`` (default: strip).
        :param decimals: Fixed-point exponent (default: 10).
        :raises ValueError: If the mode is unknown or decimals is negative.
        """
        self.mode = NormalizationMode(mode)
        if decimals < 0:
            raise ValueError("decimals must not be negative")
        self.decimals = decimals
        self._multiplier = 10**decimals

    def normalize_price(self, price: str) -> int:
        """Convert a decimal price string to the fixed-point integer.

        :param price: Price as reported by the source, e.g. ``"1234.56"``.
        :returns: Scaled integer magnitude.
        :raises NormalizationError: If the string is not a plain decimal number.
        """
        text = str(price).strip()
        if self.mode is NormalizationMode.STRIP:
            digits = text.replace(".", "", 1)
            if not _DIGITS.fullmatch(digits):
                raise NormalizationError(f"Invalid price string: {price!r}")
            return int(digits) * self._multiplier

        if not _DIGITS.fullmatch(text.replace(".", "", 1)):
            raise NormalizationError(f"Invalid price string: {price!r}")
        whole, _, fraction = text.partition(".")
        fraction = fraction[: self.decimals].ljust(self.decimals, "0")
        return int((whole or "0") + fraction)

    @staticmethod
    def normalize_id(request_id: str) -> int:
        """Parse a request id as an arbitrary-precision integer.

        :param request_id: Decimal id string.
        :returns: The id as an integer.
        :raises NormalizationError: If the id is not a non-negative integer.
        """
        text = str(request_id).strip()
        if not _DIGITS.fullmatch(text):
            raise NormalizationError(f"Invalid request id: {request_id!r}")
        return int(text)

    def normalize(self, request: PendingRequest, price: str) -> NormalizedValue:
        """Build the write-back arguments for a request.

        :param request: Request being answered.
        :param price: Fetched price string (or the ``"0"`` sentinel).
        :returns: Normalized contract call arguments.
        :raises NormalizationError: If the price or id is malformed.
        """
        return NormalizedValue(
            price=self.normalize_price(price),
            caller_address=request.caller_address,
            id=self.normalize_id(request.id),
        )
