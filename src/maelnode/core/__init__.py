"""Actor runtime primitives: mailbox, events, actors, and transports."""

from maelnode.core.actors import ActorFailed, ActorThread, GossipTimer, InputActor
from maelnode.core.events import Eof, Event, GossipTick, MessageReceived, droppable
from maelnode.core.mailbox import Mailbox, MailboxClosed, MailboxOverflowStrategy
from maelnode.core.transport import LineTransport, MemoryTransport, StreamTransport

__all__ = [
    "ActorFailed",
    "ActorThread",
    "Eof",
    "Event",
    "GossipTick",
    "GossipTimer",
    "InputActor",
    "LineTransport",
    "Mailbox",
    "MailboxClosed",
    "MailboxOverflowStrategy",
    "MemoryTransport",
    "MessageReceived",
    "StreamTransport",
    "droppable",
]
