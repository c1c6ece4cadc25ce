"""Message envelope and payload types for every node protocol.

An ``Envelope`` carries source, destination, and a ``Body`` holding the
optional message ids plus one payload dataclass. Payloads form a closed
set per protocol; their wire tag is the snake_case class name
(``TopologyOk`` travels as ``"topology_ok"``). Every protocol also
accepts the handshake payloads so a late ``init`` or ``init_ok`` reaches
the program instead of failing to decode.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Body[P]:
    """Message metadata plus a tagged payload.

    Parameters
    ----------
    payload : P
        One of the payload dataclasses of the protocol in use.
    msg_id : int | None
        Identifier of this message, if the sender assigned one.
    in_reply_to : int | None
        ``msg_id`` of the request this message answers.
    """

    payload: P
    msg_id: int | None = None
    in_reply_to: int | None = None


@dataclass(frozen=True)
class Envelope[P]:
    """A single message exchanged with the network.

    Parameters
    ----------
    src : str
        Node or client id that sent the message.
    dst : str
        Node or client id the message is addressed to (``dest`` on the wire).
    body : Body[P]
        Ids and payload.

    Examples
    --------
    >>> request = Envelope("c1", "n1", Body(Read(), msg_id=7))
    >>> reply = request.reply(ReadOk(messages=frozenset({1})), msg_id=3)
    >>> (reply.src, reply.dst, reply.body.in_reply_to)
    ('n1', 'c1', 7)
    """

    src: str
    dst: str
    body: Body[P]

    @property
    def payload(self) -> P:
        return self.body.payload

    def reply[R](self, payload: R, msg_id: int | None = None) -> Envelope[R]:
        """Build the response to this message.

        Swaps ``src``/``dst`` and sets ``in_reply_to`` from this
        message's ``msg_id``.
        """
        return Envelope(
            src=self.dst,
            dst=self.src,
            body=Body(payload=payload, msg_id=msg_id, in_reply_to=self.body.msg_id),
        )


# ---------------------------------------------------------------------------
# Handshake
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Init:
    node_id: str
    node_ids: tuple[str, ...]


@dataclass(frozen=True)
class InitOk:
    pass


type InitPayload = Init | InitOk


# ---------------------------------------------------------------------------
# Broadcast
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Topology:
    """Neighbor adjacency handed out by the network."""

    topology: dict[str, tuple[str, ...]]


@dataclass(frozen=True)
class TopologyOk:
    pass


@dataclass(frozen=True)
class Broadcast:
    message: int


@dataclass(frozen=True)
class BroadcastOk:
    pass


@dataclass(frozen=True)
class Read:
    pass


@dataclass(frozen=True)
class ReadOk:
    messages: frozenset[int]


@dataclass(frozen=True)
class Gossip:
    """Full known-value set pushed to a neighbor. Never acknowledged."""

    known: frozenset[int]


type BroadcastPayload = (
    Init | InitOk | Topology | TopologyOk | Broadcast | BroadcastOk | Read | ReadOk | Gossip
)


# ---------------------------------------------------------------------------
# Echo
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Echo:
    echo: str


@dataclass(frozen=True)
class EchoOk:
    echo: str


type EchoPayload = Init | InitOk | Echo | EchoOk


# ---------------------------------------------------------------------------
# Unique ids
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Generate:
    pass


@dataclass(frozen=True)
class GenerateOk:
    id: str


type UniqueIdPayload = Init | InitOk | Generate | GenerateOk


INIT_PAYLOADS: tuple[type, ...] = (Init, InitOk)
BROADCAST_PAYLOADS: tuple[type, ...] = (
    *INIT_PAYLOADS,
    Topology,
    TopologyOk,
    Broadcast,
    BroadcastOk,
    Read,
    ReadOk,
    Gossip,
)
ECHO_PAYLOADS: tuple[type, ...] = (*INIT_PAYLOADS, Echo, EchoOk)
UNIQUE_ID_PAYLOADS: tuple[type, ...] = (*INIT_PAYLOADS, Generate, GenerateOk)
