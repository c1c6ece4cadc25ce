"""Shared fixtures for maelnode tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from maelnode.core.events import Event
from maelnode.core.mailbox import Mailbox
from maelnode.core.transport import MemoryTransport
from maelnode.programs.broadcast import BroadcastEngine
from maelnode.session import NodeIdentity


@pytest.fixture
def identity() -> NodeIdentity:
    return NodeIdentity(self_id="n1", peer_ids=("n2", "n3"))


@pytest.fixture
def engine(identity: NodeIdentity) -> BroadcastEngine:
    return BroadcastEngine(identity, gossip_interval=0.01)


@pytest.fixture
def mailbox() -> Iterator[Mailbox[Event]]:
    mb: Mailbox[Event] = Mailbox()
    yield mb
    mb.close()


@pytest.fixture
def transport() -> Iterator[MemoryTransport]:
    t = MemoryTransport()
    yield t
    t.end_input()
