"""maelnode: cluster nodes for a line-delimited JSON network harness.

A node performs a one-time handshake, then runs an input actor and an
optional gossip timer on background threads, both feeding one mailbox
that a single dispatcher drains in order.
"""

from maelnode.codec import LineCodec, ParseError, PayloadRegistry, wire_tag
from maelnode.config import (
    DispatchConfig,
    GossipConfig,
    MailboxConfig,
    NodeConfig,
    discover_config,
    load_config,
)
from maelnode.core import (
    ActorFailed,
    Eof,
    Event,
    GossipTick,
    GossipTimer,
    InputActor,
    LineTransport,
    Mailbox,
    MailboxClosed,
    MailboxOverflowStrategy,
    MemoryTransport,
    MessageReceived,
    StreamTransport,
)
from maelnode.dispatch import (
    DispatchResult,
    Dispatcher,
    Handled,
    Program,
    ProtocolViolation,
    ProtocolViolationError,
    ViolationPolicy,
)
from maelnode.messages import Body, Envelope
from maelnode.node import Node
from maelnode.programs import (
    PROGRAMS,
    BroadcastEngine,
    EchoProgram,
    TopologyState,
    UniqueIdProgram,
    merge,
)
from maelnode.session import BootstrapError, NodeIdentity, handshake

__all__ = [
    "PROGRAMS",
    "ActorFailed",
    "Body",
    "BootstrapError",
    "BroadcastEngine",
    "DispatchConfig",
    "DispatchResult",
    "Dispatcher",
    "EchoProgram",
    "Envelope",
    "Eof",
    "Event",
    "GossipConfig",
    "GossipTick",
    "GossipTimer",
    "Handled",
    "InputActor",
    "LineCodec",
    "LineTransport",
    "Mailbox",
    "MailboxClosed",
    "MailboxConfig",
    "MailboxOverflowStrategy",
    "MemoryTransport",
    "MessageReceived",
    "Node",
    "NodeConfig",
    "NodeIdentity",
    "ParseError",
    "PayloadRegistry",
    "Program",
    "ProtocolViolation",
    "ProtocolViolationError",
    "StreamTransport",
    "TopologyState",
    "UniqueIdProgram",
    "ViolationPolicy",
    "discover_config",
    "handshake",
    "load_config",
    "merge",
    "wire_tag",
]
