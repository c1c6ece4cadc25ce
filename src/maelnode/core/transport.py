"""Line transport abstraction over the node's input and output streams.

Defines the ``LineTransport`` protocol and provides ``StreamTransport``
(text streams, normally stdin/stdout) and ``MemoryTransport``, an
in-process implementation used to drive nodes without real processes.
"""

from __future__ import annotations

import logging
import sys
import threading
from collections import deque
from typing import Protocol, TextIO, runtime_checkable

logger = logging.getLogger("maelnode.transport")


@runtime_checkable
class LineTransport(Protocol):
    """Protocol for reading and writing one record per line.

    Any object with ``read_line()`` and ``write_line(line)`` satisfies
    this protocol.

    Examples
    --------
    Minimal implementation:

    >>> class NullTransport:
    ...     def read_line(self) -> str | None:
    ...         return None  # immediately at end of input
    ...     def write_line(self, line: str) -> None:
    ...         pass
    """

    def read_line(self) -> str | None:
        """Block until the next line arrives.

        Returns
        -------
        str | None
            The line without its terminator, or ``None`` at end of input.
        """
        ...

    def write_line(self, line: str) -> None:
        """Write one record. *line* must already end with ``\\n``."""
        ...


class StreamTransport:
    """Transport over a pair of text streams.

    Parameters
    ----------
    reader : TextIO
        Stream the network writes requests to.
    writer : TextIO
        Stream the network reads responses from. Flushed after every line.

    Examples
    --------
    >>> transport = StreamTransport.stdio()
    """

    def __init__(self, reader: TextIO, writer: TextIO) -> None:
        self._reader = reader
        self._writer = writer
        self._write_lock = threading.Lock()

    @classmethod
    def stdio(cls) -> StreamTransport:
        return cls(sys.stdin, sys.stdout)

    def read_line(self) -> str | None:
        line = self._reader.readline()
        if line == "":
            return None
        return line.rstrip("\r\n")

    def write_line(self, line: str) -> None:
        with self._write_lock:
            self._writer.write(line)
            self._writer.flush()


class MemoryTransport:
    """In-memory transport fed line by line.

    ``feed`` queues input for ``read_line``; ``end_input`` makes
    ``read_line`` return ``None`` once the queued lines are consumed.
    Written lines are recorded and can be awaited from another thread.

    Examples
    --------
    >>> transport = MemoryTransport()
    >>> transport.feed('{"src":"c1","dest":"n1","body":{"type":"read"}}')
    >>> transport.end_input()
    >>> transport.read_line() is not None
    True
    >>> transport.read_line() is None
    True
    """

    def __init__(self, lines: list[str] | None = None) -> None:
        self._lock = threading.Lock()
        self._readable = threading.Condition(self._lock)
        self._written_cond = threading.Condition(self._lock)
        self._inbound: deque[str] = deque(lines or ())
        self._ended = False
        self._written: list[str] = []

    def feed(self, *lines: str) -> None:
        with self._lock:
            if self._ended:
                msg = "Cannot feed a transport whose input has ended"
                raise RuntimeError(msg)
            self._inbound.extend(lines)
            self._readable.notify_all()

    def end_input(self) -> None:
        with self._lock:
            self._ended = True
            self._readable.notify_all()

    def read_line(self) -> str | None:
        with self._lock:
            self._readable.wait_for(lambda: self._inbound or self._ended)
            if self._inbound:
                return self._inbound.popleft()
            return None

    def write_line(self, line: str) -> None:
        with self._lock:
            self._written.append(line)
            self._written_cond.notify_all()

    @property
    def written(self) -> list[str]:
        with self._lock:
            return list(self._written)

    def wait_for_written(self, count: int, timeout: float = 5.0) -> list[str]:
        """Wait until at least *count* lines were written.

        Raises
        ------
        TimeoutError
            If fewer lines were written within *timeout* seconds.
        """
        with self._lock:
            if not self._written_cond.wait_for(
                lambda: len(self._written) >= count, timeout=timeout
            ):
                msg = f"Expected {count} written lines, got {len(self._written)}"
                raise TimeoutError(msg)
            return list(self._written)
