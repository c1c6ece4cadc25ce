"""One-time node handshake.

The first line the network sends must be an ``init`` request. The node
answers ``init_ok`` right away and learns its identity from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from maelnode.codec import LineCodec, ParseError, PayloadRegistry
from maelnode.core.transport import LineTransport
from maelnode.messages import INIT_PAYLOADS, Init, InitOk, InitPayload

logger = logging.getLogger("maelnode.session")

HANDSHAKE_CODEC: LineCodec[InitPayload] = LineCodec(PayloadRegistry(*INIT_PAYLOADS))


class BootstrapError(RuntimeError):
    """The node could not acquire its identity from the handshake."""


@dataclass
class NodeIdentity:
    """Who this node is, who its peers are, and the next message id.

    Parameters
    ----------
    self_id : str
        Id assigned to this node by the network.
    peer_ids : tuple[str, ...]
        Every other node id, in the order the network listed them.
    next_id : int
        Id handed out by the next call to ``next_msg_id``.

    Examples
    --------
    >>> identity = NodeIdentity("n1", ("n2", "n3"))
    >>> identity.next_msg_id(), identity.next_msg_id()
    (1, 2)
    """

    self_id: str
    peer_ids: tuple[str, ...]
    next_id: int = 1

    def next_msg_id(self) -> int:
        msg_id = self.next_id
        self.next_id += 1
        return msg_id


def handshake(transport: LineTransport) -> NodeIdentity:
    """Block for the ``init`` request, acknowledge it, and build the identity.

    The ``init_ok`` reply carries ``msg_id`` 0 and is written before the
    function returns, so it precedes any other output of the node.

    Raises
    ------
    BootstrapError
        If input ends first, the first line is malformed, or it is not an
        ``init`` request.
    """
    line = transport.read_line()
    if line is None:
        msg = "Input ended before the init handshake"
        raise BootstrapError(msg)

    try:
        request = HANDSHAKE_CODEC.decode(line)
    except ParseError as exc:
        msg = f"First message is not a valid init request: {exc}"
        raise BootstrapError(msg) from exc

    match request.payload:
        case Init(node_id=node_id, node_ids=node_ids):
            pass
        case other:
            msg = f"Expected init as first message, got {type(other).__name__}"
            raise BootstrapError(msg)

    transport.write_line(HANDSHAKE_CODEC.encode(request.reply(InitOk(), msg_id=0)))

    identity = NodeIdentity(
        self_id=node_id,
        peer_ids=tuple(peer for peer in node_ids if peer != node_id),
    )
    logger.info("Initialized as %s (%d peers)", identity.self_id, len(identity.peer_ids))
    return identity
