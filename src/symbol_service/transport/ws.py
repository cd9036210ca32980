"""
WebSocket transport for node event streams.

One ``Listener`` holds one connection. Subscriptions are per channel and
optionally per transaction hash; the node only sees one subscribe per
channel, and one unsubscribe once the last local subscriber has left.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Set
from urllib.parse import urlparse

import websockets
from websockets.exceptions import ConnectionClosed

from ..crypto.account import Address
from ..runtime.errors import ListenerError

logger = logging.getLogger(__name__)

CONFIRMED_ADDED = "confirmedAdded"
PARTIAL_ADDED = "partialAdded"
STATUS = "status"


def ws_url_from_http(http_url: str, ws_path: str = "/ws") -> str:
    """
    Convert a REST URL to the node's WebSocket URL.

    Raises:
        ValueError: If the scheme is not http or https
    """
    parsed = urlparse(http_url)
    if parsed.scheme == "https":
        ws_scheme = "wss"
    elif parsed.scheme == "http":
        ws_scheme = "ws"
    else:
        raise ValueError(f"Invalid HTTP scheme: {parsed.scheme}")
    return f"{ws_scheme}://{parsed.netloc}{ws_path}"


def message_hash(topic: str, data: Dict[str, Any]) -> Optional[str]:
    """Transaction hash carried by an event, if any."""
    if topic.startswith(STATUS):
        tx_hash = data.get("hash")
    else:
        tx_hash = (data.get("meta") or {}).get("hash")
    return tx_hash.upper() if isinstance(tx_hash, str) else None


class Subscription:
    """Queue of events for one channel, optionally filtered by hash."""

    def __init__(self, listener: "Listener", channel: str, tx_hash: Optional[str] = None):
        self.listener = listener
        self.channel = channel
        self.hash = tx_hash.upper() if tx_hash else None
        self.active = True
        self._queue: asyncio.Queue = asyncio.Queue()

    def matches(self, tx_hash: Optional[str]) -> bool:
        return self.hash is None or self.hash == tx_hash

    def _deliver(self, data: Dict[str, Any]) -> None:
        self._queue.put_nowait(data)

    def _fail(self, error: Exception) -> None:
        self._queue.put_nowait(error)

    async def next(self) -> Dict[str, Any]:
        """
        Wait for the next event.

        Raises:
            ListenerError: If the connection is lost while waiting
        """
        item = await self._queue.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            await self.listener._release(self)


class Listener:
    """
    Event stream connection.

    Usage::

        async with Listener(url) as listener:
            sub = await listener.confirmed(address, tx_hash)
            event = await sub.next()
    """

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout
        self.websocket = None
        self.uid: Optional[str] = None
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._reader_task: Optional[asyncio.Task] = None
        self._closed_error: Optional[ListenerError] = None
        self._send_lock = asyncio.Lock()
        self._channel_lock = asyncio.Lock()
        self._node_channels: Set[str] = set()

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def is_open(self) -> bool:
        return self.uid is not None and self._closed_error is None

    async def _create_connection(self):
        """Create WebSocket connection."""
        return await websockets.connect(self.url, open_timeout=self.timeout, close_timeout=5.0)

    async def open(self) -> None:
        """
        Connect and read the server-assigned uid.

        Raises:
            ListenerError: If the connection or the handshake fails
        """
        if self.is_open:
            return

        logger.info(f"Connecting to WebSocket: {self.url}")
        try:
            self.websocket = await self._create_connection()
            hello = json.loads(await asyncio.wait_for(self.websocket.recv(), self.timeout))
            self.uid = hello["uid"]
        except (OSError, asyncio.TimeoutError, ConnectionClosed, ValueError, KeyError) as e:
            logger.error(f"Failed to open listener: {e}")
            await self._close_socket()
            raise ListenerError(f"Failed to open listener at {self.url}: {e}", cause=e)

        self._closed_error = None
        self._reader_task = asyncio.create_task(self._reader_loop())
        logger.info(f"Listener connected (uid {self.uid})")

    async def close(self) -> None:
        """Close the connection. Pending subscriptions fail with ``ListenerError``."""
        if self._reader_task:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None

        await self._close_socket()
        self._fail_all(ListenerError("Listener closed"))
        self._node_channels.clear()
        self.uid = None

    async def _close_socket(self) -> None:
        if self.websocket is not None:
            try:
                await self.websocket.close()
            except (OSError, ConnectionClosed) as e:
                logger.debug(f"Error closing WebSocket: {e}")
            finally:
                self.websocket = None

    async def _send(self, message: Dict[str, Any]) -> None:
        async with self._send_lock:
            try:
                await self.websocket.send(json.dumps(message))
            except (OSError, ConnectionClosed) as e:
                raise ListenerError(f"Failed to send {message}: {e}", cause=e)

    async def subscribe(self, channel: str, tx_hash: Optional[str] = None) -> Subscription:
        """
        Subscribe to ``channel``, optionally only for events about ``tx_hash``.

        Raises:
            ListenerError: If the listener is not connected
        """
        if self._closed_error is not None:
            raise self._closed_error
        if not self.is_open:
            await self.open()

        subscription = Subscription(self, channel, tx_hash)
        async with self._channel_lock:
            # A subscriber is registered only once the node holds the channel
            if channel not in self._node_channels:
                await self._send({"uid": self.uid, "subscribe": channel})
                self._node_channels.add(channel)
                logger.debug(f"Subscribed to {channel}")
            self._subscriptions.setdefault(channel, []).append(subscription)
        return subscription

    async def _release(self, subscription: Subscription) -> None:
        channel = subscription.channel
        subscribers = self._subscriptions.get(channel, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
        if not subscribers:
            self._subscriptions.pop(channel, None)

        async with self._channel_lock:
            if self._subscriptions.get(channel) or channel not in self._node_channels:
                return
            self._node_channels.discard(channel)
            if self.is_open:
                await self._send({"uid": self.uid, "unsubscribe": channel})
                logger.debug(f"Unsubscribed from {channel}")

    async def confirmed(self, address: Address, tx_hash: Optional[str] = None) -> Subscription:
        return await self.subscribe(f"{CONFIRMED_ADDED}/{address.plain()}", tx_hash)

    async def partial_added(self, address: Address, tx_hash: Optional[str] = None) -> Subscription:
        return await self.subscribe(f"{PARTIAL_ADDED}/{address.plain()}", tx_hash)

    async def status(self, address: Address, tx_hash: Optional[str] = None) -> Subscription:
        return await self.subscribe(f"{STATUS}/{address.plain()}", tx_hash)

    def subscription_count(self, channel: Optional[str] = None) -> int:
        if channel is not None:
            return len(self._subscriptions.get(channel, []))
        return sum(len(subs) for subs in self._subscriptions.values())

    async def _reader_loop(self) -> None:
        """Main message reading loop."""
        logger.debug("Starting WebSocket reader loop")
        try:
            while True:
                message = await self.websocket.recv()
                self._handle_message(message)
        except asyncio.CancelledError:
            logger.debug("Reader loop cancelled")
            raise
        except (ConnectionClosed, OSError) as e:
            logger.error(f"WebSocket connection lost: {e}")
            self._closed_error = ListenerError(f"Listener connection lost: {e}", cause=e)
            self._fail_all(self._closed_error)
            self._node_channels.clear()

    def _handle_message(self, message: str) -> None:
        try:
            msg = json.loads(message)
        except ValueError:
            logger.warning(f"Ignoring non-JSON message: {message!r:.100}")
            return

        topic = msg.get("topic")
        data = msg.get("data")
        if not topic or not isinstance(data, dict):
            return

        tx_hash = message_hash(topic, data)
        for subscription in list(self._subscriptions.get(topic, [])):
            if subscription.matches(tx_hash):
                subscription._deliver(data)

    def _fail_all(self, error: ListenerError) -> None:
        for subscribers in self._subscriptions.values():
            for subscription in subscribers:
                subscription._fail(error)
