"""
Shared fixtures: deterministic accounts, a fake node, a mock event stream
and a controllable clock.
"""

import pytest

from helpers.fakes import EPOCH_ADJUSTMENT, FakeNode, MockWebSocketConnection, metadata_operations

from symbol_service.config import SymbolServiceConfig
from symbol_service.crypto.account import Account
from symbol_service.enums import NetworkType
from symbol_service.facade import SymbolService
from symbol_service.transport.ws import Listener
from symbol_service.tx import deadline as deadlines
from symbol_service.undead.service import NecromancyService

NODE_URL = "http://localhost:3000"


class Clock:
    """Mutable stand-in for the wall clock, in Unix seconds."""

    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, hours: float = 0, seconds: float = 0) -> None:
        self.now += hours * 3600 + seconds


@pytest.fixture
def clock(monkeypatch):
    """Freeze time 100 days after the network epoch."""
    clock = Clock(EPOCH_ADJUSTMENT + 100 * 86400)
    monkeypatch.setattr(deadlines, "now_seconds", clock)
    return clock


@pytest.fixture
def signer():
    return Account.from_seed("signer", NetworkType.TESTNET)


@pytest.fixture
def cosigner():
    return Account.from_seed("cosigner", NetworkType.TESTNET)


@pytest.fixture
def other_cosigner():
    return Account.from_seed("other-cosigner", NetworkType.TESTNET)


@pytest.fixture
def node():
    return FakeNode()


@pytest.fixture
def ws_connections(monkeypatch, node):
    """Route every ``Listener`` to a mock connection registered on ``node``."""

    async def _create_connection(listener):
        connection = MockWebSocketConnection(uid=f"uid-{len(node.connections)}")
        node.connections.append(connection)
        return connection

    monkeypatch.setattr(Listener, "_create_connection", _create_connection)
    return node.connections


@pytest.fixture
def service(node, clock):
    return SymbolService(SymbolServiceConfig(node_url=NODE_URL), rest_client=node)


@pytest.fixture
def necromancy(service):
    return NecromancyService(service)


@pytest.fixture
def operations(signer):
    """Five metadata operations on the signer's own account."""
    return metadata_operations(signer, 5)
