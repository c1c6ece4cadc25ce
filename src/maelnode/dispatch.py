"""Single-threaded event dispatch.

The ``Dispatcher`` is the only consumer of the node's mailbox. It hands
each event, in arrival order, to a ``Program`` (the state owner) and
writes whatever the program answers. Programs never raise on protocol
violations; they return a ``ProtocolViolation`` and the dispatcher
applies the configured ``ViolationPolicy``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from maelnode.codec import LineCodec, wire_tag
from maelnode.core.events import Eof, Event, GossipTick, MessageReceived
from maelnode.core.mailbox import Mailbox
from maelnode.core.transport import LineTransport
from maelnode.messages import Envelope
from maelnode.session import NodeIdentity

logger = logging.getLogger("maelnode.dispatch")


@dataclass(frozen=True)
class Handled:
    """The event was processed; *outgoing* are written in order."""

    outgoing: tuple[Envelope[Any], ...] = ()


@dataclass(frozen=True)
class ProtocolViolation:
    """The event broke the protocol contract and was not applied.

    Parameters
    ----------
    envelope : Envelope[Any]
        The offending message.
    reason : str
        Human readable explanation.
    """

    envelope: Envelope[Any]
    reason: str


type DispatchResult = Handled | ProtocolViolation


class ProtocolViolationError(RuntimeError):
    """Raised by the dispatcher when violations are configured to be fatal."""

    def __init__(self, violation: ProtocolViolation) -> None:
        super().__init__(
            f"Protocol violation from {violation.envelope.src}: {violation.reason}"
        )
        self.violation = violation


class ViolationPolicy(Enum):
    """What the dispatcher does with a ``ProtocolViolation``.

    ``log`` warns and keeps serving; ``fail`` stops the node.
    """

    log = "log"
    fail = "fail"


class Program[P](Protocol):
    """State owner driven by the dispatcher.

    ``tick_interval`` is the gossip period in seconds, or ``None`` when the
    program has no periodic work and needs no timer actor.
    """

    @property
    def codec(self) -> LineCodec[P]: ...

    @property
    def tick_interval(self) -> float | None: ...

    def on_message(self, envelope: Envelope[P]) -> DispatchResult: ...

    def on_tick(self) -> DispatchResult: ...


def reply_to(
    identity: NodeIdentity, request: Envelope[Any], payload: object
) -> Handled:
    """Answer *request* with *payload* under a fresh message id."""
    return Handled((request.reply(payload, msg_id=identity.next_msg_id()),))


def unexpected_ack(envelope: Envelope[Any]) -> ProtocolViolation:
    tag = wire_tag(type(envelope.payload))
    return ProtocolViolation(
        envelope,
        f"{tag} is an acknowledgment and is never sent to a node",
    )


def repeated_init(envelope: Envelope[Any]) -> ProtocolViolation:
    return ProtocolViolation(envelope, "init received after the handshake completed")


class Dispatcher:
    """Consume the mailbox until ``Eof`` and apply each result.

    Parameters
    ----------
    program : Program[Any]
        Receives every message and tick.
    mailbox : Mailbox[Event]
        Shared with the producing actors.
    transport : LineTransport
        Where outgoing envelopes are written.
    on_violation : ViolationPolicy
        Policy for ``ProtocolViolation`` results.
    """

    def __init__(
        self,
        program: Program[Any],
        mailbox: Mailbox[Event],
        transport: LineTransport,
        *,
        on_violation: ViolationPolicy = ViolationPolicy.log,
    ) -> None:
        self._program = program
        self._mailbox = mailbox
        self._transport = transport
        self._on_violation = on_violation
        self._violations = 0

    @property
    def violations(self) -> int:
        return self._violations

    def run(self) -> bool:
        """Process events until ``Eof``.

        Returns
        -------
        bool
            ``True`` if ``Eof`` was reached, ``False`` if the mailbox was
            closed first (an actor failed).

        Raises
        ------
        ProtocolViolationError
            Under ``ViolationPolicy.fail``.
        """
        for event in self._mailbox:
            match event:
                case Eof():
                    logger.debug("End of input, dispatcher stopping")
                    return True
                case GossipTick():
                    result = self._program.on_tick()
                case MessageReceived(envelope=envelope):
                    result = self._program.on_message(envelope)
            self.apply(result)
        logger.debug("Mailbox closed before end of input")
        return False

    def apply(self, result: DispatchResult) -> None:
        match result:
            case Handled(outgoing=outgoing):
                for envelope in outgoing:
                    self._transport.write_line(self._program.codec.encode(envelope))
            case ProtocolViolation() as violation:
                self._violations += 1
                if self._on_violation is ViolationPolicy.fail:
                    raise ProtocolViolationError(violation)
                logger.warning(
                    "Ignoring message from %s: %s",
                    violation.envelope.src,
                    violation.reason,
                )
