"""PendingRequest: A price request waiting in the oracle queue.

.. code-block:: python

    >>> req = PendingRequest("0xA", "1")
    >>> str(req)
    '1@0xA'
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


class MalformedEventError(ValueError):
    """Raised when a request event lacks the caller address or id."""

    pass


@dataclass(frozen=True)
class PendingRequest:
    """A request for the latest price emitted by the oracle contract.

    Two requests with equal fields are still distinct units of work; the
    queue never deduplicates.

    :ivar caller_address: Account of the contract that asked for the price.
    :ivar id: Request identifier assigned on-chain, as a decimal string.
    """

    caller_address: str
    id: str

    def __str__(self) -> str:
        return f"{self.id}@{self.caller_address}"

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> PendingRequest:
        """Build a request from a decoded ``GetLatestEthPriceEvent`` log.

        :param event: Event log as returned by a web3 contract event filter.
        :returns: The pending request.
        :raises MalformedEventError: If the payload has no caller address or id.
        """
        try:
            args = event["args"]
        except (KeyError, TypeError) as e:
            raise MalformedEventError(f"Event has no args: {event!r}") from e

        if not isinstance(args, Mapping):
            raise MalformedEventError(f"Event args are not a mapping: {args!r}")

        caller_address = args.get("callerAddress")
        request_id = args.get("id")

        if not caller_address:
            raise MalformedEventError(f"Event is missing callerAddress: {dict(args)}")
        if request_id is None or request_id == "":
            raise MalformedEventError(f"Event is missing id: {dict(args)}")

        return cls(caller_address=str(caller_address), id=str(request_id))
