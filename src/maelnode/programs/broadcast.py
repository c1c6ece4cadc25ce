"""Broadcast engine: a grow-only integer set replicated by gossip.

Clients add values with ``broadcast`` and observe them with ``read``.
Nodes converge through full-state anti-entropy: on every gossip tick the
engine pushes its whole known set to each neighbor named for it in the
topology, and merges whatever it receives by set union. Union is
idempotent, commutative and associative, so dropped, duplicated or
reordered gossip can delay convergence but never corrupt state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum, auto
from typing import Any

from maelnode.codec import LineCodec, PayloadRegistry
from maelnode.dispatch import (
    DispatchResult,
    Handled,
    ProtocolViolation,
    repeated_init,
    reply_to,
    unexpected_ack,
)
from maelnode.messages import (
    BROADCAST_PAYLOADS,
    Body,
    Broadcast,
    BroadcastOk,
    BroadcastPayload,
    Envelope,
    Gossip,
    Init,
    InitOk,
    Read,
    ReadOk,
    Topology,
    TopologyOk,
)
from maelnode.session import NodeIdentity

logger = logging.getLogger("maelnode.broadcast")

DEFAULT_GOSSIP_INTERVAL = 0.25

BROADCAST_CODEC: LineCodec[BroadcastPayload] = LineCodec(
    PayloadRegistry(*BROADCAST_PAYLOADS)
)


def merge(known: Iterable[int], incoming: Iterable[int]) -> frozenset[int]:
    """Union of two known-value sets.

    Examples
    --------
    >>> sorted(merge({1, 2}, {2, 3}))
    [1, 2, 3]
    """
    return frozenset(known).union(incoming)


class TopologyState(Enum):
    unknown = auto()
    known = auto()


class BroadcastEngine:
    """State owner for the broadcast protocol.

    Only the dispatcher thread calls into the engine, so the known set,
    the topology and the identity's message counter need no locking.

    Parameters
    ----------
    identity : NodeIdentity
        This node's identity; replies draw message ids from it.
    gossip_interval : float
        Seconds between gossip ticks.

    Examples
    --------
    >>> engine = BroadcastEngine(NodeIdentity("n1", ("n2",)))
    >>> engine.state
    <TopologyState.unknown: 1>
    """

    def __init__(
        self,
        identity: NodeIdentity,
        *,
        gossip_interval: float = DEFAULT_GOSSIP_INTERVAL,
    ) -> None:
        self._identity = identity
        self._gossip_interval = gossip_interval
        self._known: frozenset[int] = frozenset()
        self._topology: dict[str, tuple[str, ...]] | None = None

    @property
    def codec(self) -> LineCodec[BroadcastPayload]:
        return BROADCAST_CODEC

    @property
    def tick_interval(self) -> float:
        return self._gossip_interval

    @property
    def identity(self) -> NodeIdentity:
        return self._identity

    @property
    def known(self) -> frozenset[int]:
        return self._known

    @property
    def topology(self) -> dict[str, tuple[str, ...]] | None:
        return self._topology

    @property
    def state(self) -> TopologyState:
        if self._topology is None:
            return TopologyState.unknown
        return TopologyState.known

    @property
    def neighbors(self) -> tuple[str, ...] | None:
        """Gossip targets in topology order, ``None`` if there are none to know of.

        ``None`` covers both an unknown topology and a topology without an
        entry for this node.
        """
        if self._topology is None:
            return None
        return self._topology.get(self._identity.self_id)

    def on_message(self, envelope: Envelope[BroadcastPayload]) -> DispatchResult:
        match envelope.payload:
            case Topology(topology=topology):
                self._topology = dict(topology)
                logger.info(
                    "Topology set, neighbors of %s: %s",
                    self._identity.self_id,
                    self.neighbors,
                )
                return reply_to(self._identity, envelope, TopologyOk())

            case Broadcast(message=message):
                self._known = merge(self._known, (message,))
                return reply_to(self._identity, envelope, BroadcastOk())

            case Read():
                return reply_to(self._identity, envelope, ReadOk(messages=self._known))

            case Gossip(known=known):
                before = len(self._known)
                self._known = merge(self._known, known)
                if len(self._known) > before:
                    logger.debug(
                        "Gossip from %s taught %d new values",
                        envelope.src,
                        len(self._known) - before,
                    )
                return Handled()

            case InitOk() | TopologyOk() | BroadcastOk() | ReadOk():
                return unexpected_ack(envelope)

            case Init():
                return repeated_init(envelope)

            case other:
                return ProtocolViolation(
                    envelope, f"unsupported payload {type(other).__name__}"
                )

    def on_tick(self) -> DispatchResult:
        neighbors = self.neighbors
        if neighbors is None:
            return Handled()

        gossip: list[Envelope[Any]] = [
            Envelope(
                src=self._identity.self_id,
                dst=neighbor,
                body=Body(payload=Gossip(known=self._known)),
            )
            for neighbor in neighbors
        ]
        return Handled(tuple(gossip))
