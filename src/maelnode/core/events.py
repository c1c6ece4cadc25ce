"""Events exchanged between the node's actors and its dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from maelnode.messages import Envelope


@dataclass(frozen=True)
class Eof:
    """The network closed the node's input. Terminal."""


@dataclass(frozen=True)
class GossipTick:
    """Periodic trigger to push gossip to neighbors."""


@dataclass(frozen=True)
class MessageReceived[P]:
    envelope: Envelope[P]


type Event = Eof | GossipTick | MessageReceived[Any]


def droppable(event: Event) -> bool:
    """Only gossip ticks may be lost to a full mailbox; the next tick resends."""
    return isinstance(event, GossipTick)
