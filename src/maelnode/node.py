"""Node runtime: handshake, actors, dispatcher, and orderly shutdown.

``Node.run`` performs the handshake synchronously, then starts the input
actor (and the gossip timer when the program asks for one) on their own
threads while the calling thread runs the dispatcher. Once the
dispatcher stops, the mailbox is closed and every actor is joined; an
actor that died with an error is re-raised as ``ActorFailed``.
"""

from __future__ import annotations

import logging
from typing import Any

from maelnode.config import NodeConfig
from maelnode.core.actors import ActorFailed, ActorThread, GossipTimer, InputActor
from maelnode.core.events import Event, droppable
from maelnode.core.mailbox import Mailbox
from maelnode.core.transport import LineTransport
from maelnode.dispatch import Dispatcher, Program
from maelnode.programs import ProgramFactory
from maelnode.session import NodeIdentity, handshake

logger = logging.getLogger("maelnode.node")


class Node:
    """A single cluster node bound to one transport.

    Parameters
    ----------
    program_factory : ProgramFactory
        Builds the state-owning program once the identity is known.
    transport : LineTransport
        The node's input and output streams.
    config : NodeConfig | None
        Runtime settings. Defaults to ``NodeConfig()``.
    join_timeout : float | None
        Upper bound for joining each actor at shutdown.

    Examples
    --------
    >>> from maelnode.programs import PROGRAMS
    >>> from maelnode.core.transport import StreamTransport
    >>> Node(PROGRAMS["broadcast"], StreamTransport.stdio()).run()
    """

    def __init__(
        self,
        program_factory: ProgramFactory,
        transport: LineTransport,
        config: NodeConfig | None = None,
        *,
        join_timeout: float | None = 5.0,
    ) -> None:
        self._program_factory = program_factory
        self._transport = transport
        self._config = config or NodeConfig()
        self._join_timeout = join_timeout
        self._identity: NodeIdentity | None = None
        self._program: Program[Any] | None = None
        self._dispatcher: Dispatcher | None = None
        self._actors: tuple[ActorThread, ...] = ()

    @property
    def identity(self) -> NodeIdentity | None:
        return self._identity

    @property
    def program(self) -> Program[Any] | None:
        return self._program

    @property
    def dispatcher(self) -> Dispatcher | None:
        return self._dispatcher

    @property
    def actors(self) -> tuple[ActorThread, ...]:
        return self._actors

    def run(self) -> None:
        """Serve until the network closes the node's input.

        Raises
        ------
        BootstrapError
            If the handshake fails.
        ActorFailed
            If the input or timer actor terminated abnormally.
        ProtocolViolationError
            If violations are configured to be fatal and one occurs.
        RuntimeError
            If the mailbox closed before end of input without a recorded cause.
        """
        self._identity = handshake(self._transport)
        program = self._program_factory(self._identity, self._config)
        self._program = program

        mailbox: Mailbox[Event] = Mailbox(
            capacity=self._config.mailbox.capacity,
            overflow=self._config.mailbox.overflow,
            droppable=droppable,
        )
        timer: GossipTimer | None = None
        actors: list[ActorThread] = [InputActor(self._transport, program.codec, mailbox)]
        if program.tick_interval is not None:
            timer = GossipTimer(mailbox, program.tick_interval)
            actors.append(timer)
        self._actors = tuple(actors)

        self._dispatcher = Dispatcher(
            program,
            mailbox,
            self._transport,
            on_violation=self._config.dispatch.violation_policy,
        )

        for actor in actors:
            actor.start()
        logger.info(
            "Node %s serving (%s)", self._identity.self_id, ", ".join(a.name for a in actors)
        )

        try:
            reached_eof = self._dispatcher.run()
        except BaseException:
            self._stop(mailbox, timer)
            raise

        self._stop(mailbox, timer)
        failures: list[ActorFailed] = []
        for actor in actors:
            try:
                actor.join_checked(self._join_timeout)
            except ActorFailed as exc:
                failures.append(exc)
        if failures:
            raise failures[0]

        if not reached_eof:
            cause = mailbox.cause
            msg = "Mailbox closed before end of input"
            if cause is not None:
                raise ActorFailed("mailbox", cause) from cause
            raise RuntimeError(msg)
        logger.info("Node %s stopped", self._identity.self_id)

    def _stop(self, mailbox: Mailbox[Event], timer: GossipTimer | None) -> None:
        mailbox.close()
        if timer is not None:
            timer.stop()
