"""Background actors that feed the node's mailbox.

Each actor runs on its own OS thread and only ever *produces* events.
``InputActor`` turns transport lines into ``MessageReceived`` events and
ends with a single ``Eof``; ``GossipTimer`` emits ``GossipTick`` on a
fixed period. Both stop silently once the mailbox is closed.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from maelnode.codec import LineCodec
from maelnode.core.events import Eof, Event, GossipTick, MessageReceived
from maelnode.core.mailbox import Mailbox, MailboxClosed
from maelnode.core.transport import LineTransport


class ActorFailed(RuntimeError):
    """A background actor terminated with an error instead of a clean stop."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"Actor {name} failed: {cause}")
        self.name = name
        self.cause = cause


class ActorThread(threading.Thread):
    """Thread that pushes events into a mailbox until done or closed.

    Subclasses implement ``act``. A ``MailboxClosed`` raised from ``act``
    is a clean stop. Any other exception is recorded, closes the mailbox
    with that cause so the consumer wakes up, and is re-raised as
    ``ActorFailed`` by ``join_checked``.

    Parameters
    ----------
    name : str
        Thread and logger name.
    mailbox : Mailbox[Event]
        Destination of every produced event.
    """

    def __init__(self, name: str, mailbox: Mailbox[Event]) -> None:
        super().__init__(name=name, daemon=True)
        self._mailbox = mailbox
        self._failure: Exception | None = None
        self._logger = logging.getLogger(f"maelnode.actor.{name}")

    def act(self) -> None:
        raise NotImplementedError

    def run(self) -> None:
        self._logger.debug("Started")
        try:
            self.act()
        except MailboxClosed:
            self._logger.debug("Mailbox closed, stopping")
        except Exception as exc:
            self._failure = exc
            self._logger.error("Actor %s failed: %s", self.name, exc, exc_info=True)
            self._mailbox.close(cause=exc)
        else:
            self._logger.debug("Stopped")

    @property
    def failure(self) -> Exception | None:
        return self._failure

    def join_checked(self, timeout: float | None = None) -> None:
        """Join the thread and surface an abnormal termination.

        Raises
        ------
        ActorFailed
            If ``act`` ended with an exception other than ``MailboxClosed``.
        TimeoutError
            If the thread is still running after *timeout* seconds.
        """
        self.join(timeout)
        if self.is_alive():
            msg = f"Actor {self.name} did not stop within {timeout}s"
            raise TimeoutError(msg)
        if self._failure is not None:
            raise ActorFailed(self.name, self._failure) from self._failure


class InputActor(ActorThread):
    """Reads the transport and forwards every decoded envelope.

    A line that fails to decode is fatal for the node: the ``ParseError``
    propagates out of ``act`` and is surfaced through ``join_checked``.
    """

    def __init__(
        self,
        transport: LineTransport,
        codec: LineCodec[Any],
        mailbox: Mailbox[Event],
        *,
        name: str = "input",
    ) -> None:
        super().__init__(name, mailbox)
        self._transport = transport
        self._codec = codec

    def act(self) -> None:
        while True:
            line = self._transport.read_line()
            if line is None:
                self._logger.debug("End of input")
                self._mailbox.put(Eof())
                return
            envelope = self._codec.decode(line)
            self._mailbox.put(MessageReceived(envelope))


class GossipTimer(ActorThread):
    """Emits ``GossipTick`` every *interval* seconds.

    The first tick is emitted immediately. ``stop`` wakes the timer out of
    its wait so shutdown does not have to sit out a full interval.
    """

    def __init__(
        self,
        mailbox: Mailbox[Event],
        interval: float,
        *,
        name: str = "gossip-timer",
    ) -> None:
        if interval <= 0:
            msg = f"Gossip interval must be positive, got {interval}"
            raise ValueError(msg)
        super().__init__(name, mailbox)
        self._interval = interval
        self._stopped = threading.Event()

    @property
    def interval(self) -> float:
        return self._interval

    def stop(self) -> None:
        self._stopped.set()

    def act(self) -> None:
        while not self._stopped.is_set():
            self._mailbox.put(GossipTick())
            self._stopped.wait(self._interval)
