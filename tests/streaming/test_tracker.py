"""
Confirmation tracker tests: event stream and REST poll racing.
"""

import asyncio

import pytest

from helpers.fakes import FakeNode

from symbol_service.client.tracker import ConfirmationTracker, TxResult, status_error
from symbol_service.crypto import Account
from symbol_service.enums import NetworkType, TransactionGroup
from symbol_service.runtime.errors import ListenerError
from symbol_service.transport.ws import Listener

HASH_A = "AA" * 32
HASH_B = "BB" * 32


@pytest.fixture
def address():
    return Account.from_seed("tracker", NetworkType.TESTNET).address


async def _wait_for_subscriptions(listener, count):
    for _ in range(100):
        if listener.subscription_count() >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} subscriptions, got {listener.subscription_count()}")


@pytest.mark.streaming
class TestTxResult:

    def test_ok(self):
        assert TxResult(HASH_A).ok
        assert not TxResult(HASH_A, status_error("Failure_Core_Past_Deadline")).ok
        assert status_error("X") == "Received error status: X"


@pytest.mark.streaming
class TestConfirmationTracker:

    @pytest.mark.asyncio
    async def test_confirmed_event(self, node, ws_connections, address):
        tracker = ConfirmationTracker(node)
        async with Listener("ws://node/ws") as listener:
            task = asyncio.ensure_future(tracker.listen(listener, address, [HASH_A.lower()]))
            connection = ws_connections[0]
            await _wait_for_subscriptions(listener, 2)
            connection.push(f"confirmedAdded/{address.plain()}", {"meta": {"hash": HASH_A}})

            results = await asyncio.wait_for(task, 2)
            assert results == [TxResult(HASH_A)]
            assert listener.subscription_count() == 0
            assert connection.channels == []

    @pytest.mark.asyncio
    async def test_failure_status_event(self, node, ws_connections, address):
        tracker = ConfirmationTracker(node)
        async with Listener("ws://node/ws") as listener:
            task = asyncio.ensure_future(tracker.listen(listener, address, [HASH_A, HASH_B]))
            connection = ws_connections[0]
            await _wait_for_subscriptions(listener, 4)
            connection.push(f"status/{address.plain()}", {"hash": HASH_B, "code": "Failure_Core_Past_Deadline"})
            connection.push(f"confirmedAdded/{address.plain()}", {"meta": {"hash": HASH_A}})

            results = await asyncio.wait_for(task, 2)
            assert results == [
                TxResult(HASH_A),
                TxResult(HASH_B, "Received error status: Failure_Core_Past_Deadline"),
            ]

    @pytest.mark.asyncio
    async def test_poll_finds_confirmed(self, node, ws_connections, address):
        node.confirmed[HASH_A] = {"meta": {"hash": HASH_A}}
        tracker = ConfirmationTracker(node)
        async with Listener("ws://node/ws") as listener:
            results = await asyncio.wait_for(tracker.listen(listener, address, [HASH_A]), 2)
        assert results == [TxResult(HASH_A)]

    @pytest.mark.asyncio
    async def test_poll_finds_failure(self, node, ws_connections, address):
        node.statuses[HASH_A] = {"hash": HASH_A, "code": "Failure_Aggregate_Missing_Cosignatures"}
        tracker = ConfirmationTracker(node)
        async with Listener("ws://node/ws") as listener:
            results = await asyncio.wait_for(tracker.listen(listener, address, [HASH_A]), 2)
        assert results[0].error == "Received error status: Failure_Aggregate_Missing_Cosignatures"

    @pytest.mark.asyncio
    async def test_partial_group(self, node, ws_connections, address):
        node.partial[HASH_A] = {"meta": {"hash": HASH_A}}
        tracker = ConfirmationTracker(node)
        async with Listener("ws://node/ws") as listener:
            results = await asyncio.wait_for(
                tracker.listen(listener, address, [HASH_A], TransactionGroup.PARTIAL), 2,
            )
        assert results == [TxResult(HASH_A)]

    @pytest.mark.asyncio
    async def test_partial_ignored_for_confirmed_group(self, node):
        node.partial[HASH_A] = {"meta": {"hash": HASH_A}}
        tracker = ConfirmationTracker(node)
        assert await tracker.poll(HASH_A, TransactionGroup.CONFIRMED) is None
        assert await tracker.poll(HASH_A, "all") == TxResult(HASH_A)

    @pytest.mark.asyncio
    async def test_poll_network_error_is_inconclusive(self, ws_connections, address):
        node = FakeNode()
        node.fail_polls = True
        tracker = ConfirmationTracker(node)
        assert await tracker.poll(HASH_A, "confirmed") is None

        async with Listener("ws://node/ws") as listener:
            task = asyncio.ensure_future(tracker.listen(listener, address, [HASH_A]))
            connection = ws_connections[0]
            await _wait_for_subscriptions(listener, 2)
            connection.push(f"confirmedAdded/{address.plain()}", {"meta": {"hash": HASH_A}})
            assert await asyncio.wait_for(task, 2) == [TxResult(HASH_A)]

    @pytest.mark.asyncio
    async def test_success_status_is_not_terminal(self, node, ws_connections, address):
        tracker = ConfirmationTracker(node)
        async with Listener("ws://node/ws") as listener:
            task = asyncio.ensure_future(tracker.listen(listener, address, [HASH_A]))
            connection = ws_connections[0]
            await _wait_for_subscriptions(listener, 2)
            connection.push(f"status/{address.plain()}", {"hash": HASH_A, "code": "Success"})
            await asyncio.sleep(0.01)
            assert not task.done()
            connection.push(f"confirmedAdded/{address.plain()}", {"meta": {"hash": HASH_A}})
            assert await asyncio.wait_for(task, 2) == [TxResult(HASH_A)]

    @pytest.mark.asyncio
    async def test_connection_loss_raises(self, node, ws_connections, address):
        tracker = ConfirmationTracker(node)
        async with Listener("ws://node/ws") as listener:
            task = asyncio.ensure_future(tracker.listen(listener, address, [HASH_A, HASH_B]))
            await _wait_for_subscriptions(listener, 4)
            ws_connections[0].drop()
            with pytest.raises(ListenerError):
                await asyncio.wait_for(task, 2)
            assert listener.subscription_count() == 0

    @pytest.mark.asyncio
    async def test_cancelled_wait_unsubscribes(self, node, ws_connections, address):
        tracker = ConfirmationTracker(node)
        async with Listener("ws://node/ws") as listener:
            task = asyncio.ensure_future(tracker.listen(listener, address, [HASH_A, HASH_B]))
            connection = ws_connections[0]
            await _wait_for_subscriptions(listener, 4)
            assert len(connection.channels) == 2

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            assert listener.subscription_count() == 0
            assert connection.channels == []

    @pytest.mark.asyncio
    async def test_timed_out_wait_unsubscribes(self, node, ws_connections, address):
        tracker = ConfirmationTracker(node)
        async with Listener("ws://node/ws") as listener:
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(tracker.listen(listener, address, [HASH_A]), 0.05)
            assert listener.subscription_count() == 0
            assert ws_connections[0].channels == []

    @pytest.mark.asyncio
    async def test_wait_aborted_while_subscribing(self, node, ws_connections, address):
        tracker = ConfirmationTracker(node)
        async with Listener("ws://node/ws") as listener:
            connection = ws_connections[0]
            async with listener._send_lock:
                with pytest.raises(asyncio.TimeoutError):
                    await asyncio.wait_for(tracker.listen(listener, address, [HASH_A]), 0.05)
            assert listener.subscription_count() == 0
            assert connection.channels == []

            task = asyncio.ensure_future(tracker.listen(listener, address, [HASH_B]))
            await _wait_for_subscriptions(listener, 2)
            assert connection.channels == [f"status/{address.plain()}", f"confirmedAdded/{address.plain()}"]
            connection.push(f"confirmedAdded/{address.plain()}", {"meta": {"hash": HASH_B}})
            assert await asyncio.wait_for(task, 2) == [TxResult(HASH_B)]
            assert connection.channels == []
