"""Thread-safe event mailbox with configurable overflow strategies.

Provides a bounded or unbounded multi-producer, single-consumer FIFO
with three overflow policies (drop newest, drop oldest, backpressure)
and an explicit close that stops every producer and consumer.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable, Iterator
from enum import Enum, auto


class MailboxOverflowStrategy(Enum):
    """Policy applied when a bounded mailbox is full.

    Examples
    --------
    >>> MailboxOverflowStrategy.backpressure
    <MailboxOverflowStrategy.backpressure: 3>
    """

    drop_new = auto()
    drop_oldest = auto()
    backpressure = auto()


class MailboxClosed(RuntimeError):
    """Raised when putting into, or waiting on, a closed mailbox."""


class Mailbox[M]:
    """FIFO message queue shared by producer threads and one consumer.

    Messages are delivered in the order the mailbox received them,
    whichever thread pushed them. When no capacity is set the mailbox is
    unbounded.

    Closing the mailbox makes every subsequent ``put`` raise
    ``MailboxClosed`` and wakes blocked producers and consumers. Messages
    already queued stay readable until drained.

    The lossy strategies only discard messages accepted by *droppable*;
    a message that may not be dropped waits for space instead, as under
    ``backpressure``.

    Parameters
    ----------
    capacity : int | None
        Maximum number of messages. ``None`` for unbounded.
    overflow : MailboxOverflowStrategy
        Policy when the mailbox is full.
    droppable : Callable[[M], bool] | None
        Which messages the lossy strategies may discard. ``None`` allows
        any message to be dropped.

    Examples
    --------
    >>> mb = Mailbox[str]()
    >>> mb.put("hello")
    >>> mb.get()
    'hello'
    """

    def __init__(
        self,
        capacity: int | None = None,
        overflow: MailboxOverflowStrategy = MailboxOverflowStrategy.backpressure,
        droppable: Callable[[M], bool] | None = None,
    ) -> None:
        if capacity is not None and capacity < 1:
            msg = f"Mailbox capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._overflow = overflow
        self._droppable = droppable
        self._items: deque[M] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)
        self._closed = False
        self._cause: BaseException | None = None

    def put(self, msg: M) -> None:
        """Enqueue a message, applying the overflow strategy if full.

        Parameters
        ----------
        msg : M
            The message to enqueue.

        Raises
        ------
        MailboxClosed
            If the mailbox was closed before or while waiting for space.
        """
        with self._lock:
            if self._closed:
                raise MailboxClosed("Mailbox is closed")

            if self._capacity is not None and len(self._items) >= self._capacity:
                match self._overflow:
                    case MailboxOverflowStrategy.drop_new if self._may_drop(msg):
                        return
                    case MailboxOverflowStrategy.drop_oldest if (
                        index := self._oldest_droppable()
                    ) is not None:
                        del self._items[index]
                    case MailboxOverflowStrategy.drop_oldest if self._may_drop(msg):
                        return
                    case _:
                        while not self._closed and len(self._items) >= self._capacity:
                            self._not_full.wait()
                        if self._closed:
                            raise MailboxClosed("Mailbox is closed")

            self._items.append(msg)
            self._not_empty.notify()

    def get(self, timeout: float | None = None) -> M:
        """Dequeue the next message, waiting if the mailbox is empty.

        Parameters
        ----------
        timeout : float | None
            Seconds to wait for a message. ``None`` waits forever.

        Returns
        -------
        M
            The next message in the queue.

        Raises
        ------
        MailboxClosed
            If the mailbox is closed and fully drained.
        TimeoutError
            If no message arrived within *timeout*.
        """
        with self._lock:
            if not self._not_empty.wait_for(
                lambda: self._items or self._closed, timeout=timeout
            ):
                msg = f"No message within {timeout}s"
                raise TimeoutError(msg)
            if not self._items:
                raise MailboxClosed("Mailbox is closed")
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self, cause: BaseException | None = None) -> None:
        """Close the mailbox, optionally recording why.

        Idempotent: only the first cause is kept.

        Parameters
        ----------
        cause : BaseException | None
            The failure that forced the close, if any.
        """
        with self._lock:
            if not self._closed:
                self._closed = True
                self._cause = cause
            self._not_empty.notify_all()
            self._not_full.notify_all()

    def _may_drop(self, msg: M) -> bool:
        return self._droppable is None or self._droppable(msg)

    def _oldest_droppable(self) -> int | None:
        for index, item in enumerate(self._items):
            if self._may_drop(item):
                return index
        return None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cause(self) -> BaseException | None:
        return self._cause

    def size(self) -> int:
        with self._lock:
            return len(self._items)

    def empty(self) -> bool:
        return self.size() == 0

    def __iter__(self) -> Iterator[M]:
        while True:
            try:
                yield self.get()
            except MailboxClosed:
                return
