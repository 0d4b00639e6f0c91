"""Unit tests for EventListener."""

import asyncio
from unittest.mock import Mock

import pytest
from eth_abi import decode, encode
from web3._utils.filters import LogFilter
from web3.exceptions import Web3Exception

from eth_oracle.src.EventListener import EventListener
from eth_oracle.src.PendingRequest import PendingRequest
from eth_oracle.src.RequestQueue import RequestQueue


def request_event(caller: str | None = "0xA", request_id: int | None = 1) -> dict:
    args = {}
    if caller is not None:
        args["callerAddress"] = caller
    if request_id is not None:
        args["id"] = request_id
    return {"event": "GetLatestEthPriceEvent", "args": args}


def one_shot(*batches: list) -> Mock:
    """Filter mock that yields each batch once, then nothing."""
    pending = list(batches)
    event_filter = Mock()
    event_filter.get_new_entries = Mock(
        side_effect=lambda: pending.pop(0) if pending else []
    )
    return event_filter


CALLER = "0x" + "ab" * 20


def decode_request_log(log: dict) -> dict:
    """Decode a raw request log the way the contract event ABI lays it out."""
    caller, request_id = decode(["address", "uint256"], log["data"])
    args = {"callerAddress": caller, "id": request_id}
    return {"event": "GetLatestEthPriceEvent", "args": args}


def make_listener(request_filter: Mock, set_filter: Mock | None = None):
    contract = Mock()
    contract.events.GetLatestEthPriceEvent.create_filter.return_value = request_filter
    contract.events.SetLatestEthPriceEvent.create_filter.return_value = (
        set_filter or one_shot()
    )
    w3 = Mock()
    queue = RequestQueue()
    listener = EventListener(w3, contract, queue, poll_interval=0.01)
    return listener, queue, contract, w3


class TestEventListenerSubscribe:
    """Test filter installation."""

    def test_subscribes_to_both_events(self) -> None:
        """Both events get a filter starting at the latest block."""
        listener, _, contract, _ = make_listener(one_shot())
        listener.subscribe()

        contract.events.GetLatestEthPriceEvent.create_filter.assert_called_once_with(
            from_block="latest"
        )
        contract.events.SetLatestEthPriceEvent.create_filter.assert_called_once_with(
            from_block="latest"
        )

    def test_subscribe_is_idempotent(self) -> None:
        """Subscribing twice keeps the existing filters."""
        listener, _, contract, _ = make_listener(one_shot())
        listener.subscribe()
        listener.subscribe()

        assert contract.events.GetLatestEthPriceEvent.create_filter.call_count == 1


class TestEventListenerPoll:
    """Test event dispatch."""

    def test_request_events_enqueued_in_order(self) -> None:
        """Each request event becomes one queue entry, in stream order."""
        listener, queue, _, _ = make_listener(
            one_shot([request_event("0xA", 1), request_event("0xB", 2)])
        )
        listener.subscribe()

        assert listener.poll_once() == 2
        assert queue.dequeue_batch(5) == [
            PendingRequest("0xA", "1"),
            PendingRequest("0xB", "2"),
        ]

    def test_malformed_event_dropped(self) -> None:
        """A request event missing its id is dropped; later events still enqueue."""
        listener, queue, _, _ = make_listener(
            one_shot(
                [request_event(request_id=None)],
                [request_event("0xB", 2)],
            )
        )
        listener.subscribe()

        assert listener.poll_once() == 0
        assert queue.is_empty()

        assert listener.poll_once() == 1
        assert queue.dequeue_batch(5) == [PendingRequest("0xB", "2")]

    def test_duplicate_events_both_enqueued(self) -> None:
        """The listener does not deduplicate."""
        listener, queue, _, _ = make_listener(
            one_shot([request_event("0xA", 1), request_event("0xA", 1)])
        )
        listener.subscribe()
        listener.poll_once()

        assert len(queue) == 2

    def test_price_set_event_changes_nothing(self) -> None:
        """SetLatestEthPriceEvent is only observed."""
        set_event = {"args": {"ethPrice": 5, "callerAddress": "0xA"}}
        listener, queue, _, _ = make_listener(one_shot(), one_shot([set_event]))
        listener.on_price_set = Mock(wraps=listener.on_price_set)
        listener.subscribe()

        assert listener.poll_once() == 0
        assert queue.is_empty()
        listener.on_price_set.assert_called_once_with(set_event)

    def test_poll_error_is_not_fatal(self) -> None:
        """A failing filter poll is logged and the next poll proceeds."""
        request_filter = Mock()
        request_filter.get_new_entries = Mock(
            side_effect=[Web3Exception("filter not found"), [request_event("0xA", 3)]]
        )
        listener, queue, _, _ = make_listener(request_filter)
        listener.subscribe()

        assert listener.poll_once() == 0
        assert listener.poll_once() == 1
        assert queue.dequeue_batch(1) == [PendingRequest("0xA", "3")]

    def test_undecodable_log_is_not_fatal(self) -> None:
        """A log the codec cannot decode is dropped; the next log is queued."""
        eth_module = Mock()
        eth_module.get_filter_changes = Mock(
            side_effect=[
                [{"data": b"\x00" * 10}],
                [{"data": encode(["address", "uint256"], [CALLER, 9])}],
            ]
        )
        request_filter = LogFilter(
            "0x1", eth_module, log_entry_formatter=decode_request_log
        )
        listener, queue, _, _ = make_listener(request_filter)
        listener.subscribe()

        assert listener.poll_once() == 0
        assert queue.is_empty()

        assert listener.poll_once() == 1
        [request] = queue.dequeue_batch(5)
        assert request.id == "9"
        assert request.caller_address.lower() == CALLER


class TestEventListenerLifecycle:
    """Test the poll loop and cleanup."""

    @pytest.mark.asyncio
    async def test_run_until_stopped(self) -> None:
        """run() polls repeatedly and exits after stop()."""
        listener, queue, _, _ = make_listener(
            one_shot([request_event("0xA", 1)], [], [request_event("0xB", 2)])
        )

        task = asyncio.create_task(listener.run())
        await asyncio.sleep(0.1)
        listener.stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert queue.dequeue_batch(5) == [
            PendingRequest("0xA", "1"),
            PendingRequest("0xB", "2"),
        ]

    @pytest.mark.asyncio
    async def test_run_survives_failing_poll(self) -> None:
        """An unexpected error from a poll does not end the loop."""
        listener, _, _, _ = make_listener(one_shot())
        polls = []

        def poll_once() -> int:
            polls.append(1)
            if len(polls) == 1:
                raise RuntimeError("decoder blew up")
            return 0

        listener.poll_once = poll_once
        task = asyncio.create_task(listener.run())
        await asyncio.sleep(0.1)
        listener.stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert len(polls) >= 2

    def test_close_uninstalls_filters(self) -> None:
        """close() removes both filters from the node."""
        request_filter, set_filter = one_shot(), one_shot()
        request_filter.filter_id = "0x1"
        set_filter.filter_id = "0x2"
        listener, _, _, w3 = make_listener(request_filter, set_filter)
        listener.subscribe()

        listener.close()

        assert [c.args[0] for c in w3.eth.uninstall_filter.call_args_list] == [
            "0x1",
            "0x2",
        ]

    def test_close_tolerates_node_errors(self) -> None:
        """A failing uninstall does not raise."""
        listener, _, _, w3 = make_listener(one_shot())
        listener.subscribe()
        w3.eth.uninstall_filter.side_effect = OSError("connection refused")

        listener.close()
