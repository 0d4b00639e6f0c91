"""EventListener: Turns oracle contract events into queued requests.

Two events are watched through polled web3 log filters:

- ``GetLatestEthPriceEvent``: a contract asked for the price. Its
  ``callerAddress`` and ``id`` become a PendingRequest on the queue.
- ``SetLatestEthPriceEvent``: a price was written. Only logged; override
  ``on_price_set`` to react to it.

Malformed events and failed polls are logged and skipped. The listener
keeps running until stopped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from web3.exceptions import Web3Exception

from .PendingRequest import MalformedEventError, PendingRequest

if TYPE_CHECKING:
    from web3 import Web3
    from web3.contract import Contract

    from .RequestQueue import RequestQueue

logger = logging.getLogger(__name__)


class EventListener:
    """Polls contract event filters and feeds the request queue.

    :ivar w3: Web3 instance owning the filters.
    :ivar contract: Oracle contract emitting the events.
    :ivar queue: Queue receiving new requests.
    :ivar poll_interval: Seconds between filter polls.
    """

    REQUEST_EVENT = "GetLatestEthPriceEvent"
    SET_EVENT = "SetLatestEthPriceEvent"

    def __init__(
        self,
        w3: Web3,
        contract: Contract,
        queue: RequestQueue,
        poll_interval: float = 1.0,
    ) -> None:
        """Initialize the listener.

        :param w3: Connected Web3 instance.
        :param contract: Oracle contract instance.
        :param queue: Queue shared with the batch processor.
        :param poll_interval: Seconds between polls (default: 1.0).
        """
        self.w3 = w3
        self.contract = contract
        self.queue = queue
        self.poll_interval = poll_interval
        self._filters: dict[str, Any] = {}
        self._stopped = asyncio.Event()

    def subscribe(self) -> None:
        """Install log filters for both events, starting at the latest block."""
        for event_name in (self.REQUEST_EVENT, self.SET_EVENT):
            if event_name in self._filters:
                continue
            event = getattr(self.contract.events, event_name)
            self._filters[event_name] = event.create_filter(from_block="latest")
            logger.info(f"Subscribed to {event_name}")

    def poll_once(self) -> int:
        """Fetch new entries from every filter and dispatch them.

        :returns: Number of requests enqueued.
        """
        enqueued = 0
        for event_name, event_filter in self._filters.items():
            # Log decoding happens inside get_new_entries, so a single bad log
            # can raise anything from the abi codec
            try:
                entries = event_filter.get_new_entries()
            except Exception as e:
                logger.error(f"Error on event {event_name}: {e}")
                continue

            for entry in entries:
                if event_name == self.REQUEST_EVENT:
                    if self.handle_request_event(entry):
                        enqueued += 1
                else:
                    self.on_price_set(entry)
        return enqueued

    def handle_request_event(self, event: Mapping[str, Any]) -> bool:
        """Enqueue the request carried by a ``GetLatestEthPriceEvent``.

        :param event: Decoded event log.
        :returns: True if a request was enqueued.
        """
        try:
            request = PendingRequest.from_event(event)
        except MalformedEventError as e:
            logger.warning(f"Dropping malformed {self.REQUEST_EVENT}: {e}")
            return False

        self.queue.enqueue(request)
        logger.info(f"Queued request {request} (queue depth {len(self.queue)})")
        return True

    def on_price_set(self, event: Mapping[str, Any]) -> None:
        """Hook for ``SetLatestEthPriceEvent``; logs the event only.

        :param event: Decoded event log.
        """
        args = event.get("args", {}) if isinstance(event, Mapping) else {}
        logger.info(
            f"{self.SET_EVENT}: price={args.get('ethPrice')} "
            f"caller={args.get('callerAddress')}"
        )

    async def run(self) -> None:
        """Subscribe and poll until stop() is called."""
        self.subscribe()
        while not self._stopped.is_set():
            # Filter polls are blocking RPC calls
            try:
                await asyncio.to_thread(self.poll_once)
            except Exception as e:
                logger.error(f"Event poll failed: {e}")
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

    def stop(self) -> None:
        """Ask the poll loop to exit after the current poll."""
        self._stopped.set()

    def close(self) -> None:
        """Uninstall all log filters from the node."""
        for event_name, event_filter in self._filters.items():
            try:
                self.w3.eth.uninstall_filter(event_filter.filter_id)
            except (Web3Exception, ValueError, OSError) as e:
                logger.warning(f"Failed to uninstall {event_name} filter: {e}")
        self._filters = {}
