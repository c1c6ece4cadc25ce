from __future__ import annotations

import threading

import pytest

from maelnode.core.mailbox import Mailbox, MailboxClosed, MailboxOverflowStrategy


def test_unbounded_mailbox_put_and_get() -> None:
    mb: Mailbox[str] = Mailbox()
    mb.put("hello")
    mb.put("world")
    assert mb.get() == "hello"
    assert mb.get() == "world"


def test_unbounded_mailbox_no_limit() -> None:
    mb: Mailbox[int] = Mailbox()
    for i in range(10_000):
        mb.put(i)
    assert mb.size() == 10_000


def test_bounded_drop_new_discards_incoming() -> None:
    mb: Mailbox[int] = Mailbox(capacity=2, overflow=MailboxOverflowStrategy.drop_new)
    mb.put(1)
    mb.put(2)
    mb.put(3)  # dropped
    assert mb.size() == 2
    assert mb.get() == 1
    assert mb.get() == 2


def test_bounded_drop_oldest_discards_oldest() -> None:
    mb: Mailbox[int] = Mailbox(capacity=2, overflow=MailboxOverflowStrategy.drop_oldest)
    mb.put(1)
    mb.put(2)
    mb.put(3)  # 1 is dropped
    assert mb.size() == 2
    assert mb.get() == 2
    assert mb.get() == 3


def _odd(n: int) -> bool:
    return n % 2 == 1


def test_drop_new_keeps_protected_message() -> None:
    mb: Mailbox[int] = Mailbox(
        capacity=1, overflow=MailboxOverflowStrategy.drop_new, droppable=_odd
    )
    mb.put(1)
    mb.put(3)  # dropped

    put_done = threading.Event()

    def protected_put() -> None:
        mb.put(2)
        put_done.set()

    producer = threading.Thread(target=protected_put)
    producer.start()
    assert not put_done.wait(0.05)  # waits for space instead of dropping

    assert mb.get() == 1
    assert put_done.wait(1.0)
    assert mb.get() == 2
    producer.join(1.0)


def test_drop_oldest_evicts_only_droppable() -> None:
    mb: Mailbox[int] = Mailbox(
        capacity=2, overflow=MailboxOverflowStrategy.drop_oldest, droppable=_odd
    )
    mb.put(2)
    mb.put(1)
    mb.put(4)  # evicts 1, never 2
    assert [mb.get(), mb.get()] == [2, 4]


def test_drop_oldest_drops_incoming_droppable_when_nothing_to_evict() -> None:
    mb: Mailbox[int] = Mailbox(
        capacity=2, overflow=MailboxOverflowStrategy.drop_oldest, droppable=_odd
    )
    mb.put(2)
    mb.put(4)
    mb.put(5)  # dropped
    assert mb.size() == 2
    assert [mb.get(), mb.get()] == [2, 4]


def test_protected_put_wakes_on_close() -> None:
    mb: Mailbox[int] = Mailbox(
        capacity=1, overflow=MailboxOverflowStrategy.drop_oldest, droppable=_odd
    )
    mb.put(2)
    errors: list[BaseException] = []

    def protected_put() -> None:
        try:
            mb.put(4)
        except MailboxClosed as exc:
            errors.append(exc)

    producer = threading.Thread(target=protected_put)
    producer.start()
    mb.close()
    producer.join(1.0)

    assert len(errors) == 1


def test_bounded_backpressure_blocks_until_space() -> None:
    mb: Mailbox[int] = Mailbox(capacity=1, overflow=MailboxOverflowStrategy.backpressure)
    mb.put(1)

    put_done = threading.Event()

    def delayed_put() -> None:
        mb.put(2)
        put_done.set()

    producer = threading.Thread(target=delayed_put)
    producer.start()
    assert not put_done.wait(0.05)  # blocked

    assert mb.get() == 1  # frees space
    assert put_done.wait(1.0)
    assert mb.get() == 2
    producer.join(1.0)


def test_get_blocks_until_message() -> None:
    mb: Mailbox[str] = Mailbox()
    result: list[str] = []

    consumer = threading.Thread(target=lambda: result.append(mb.get()))
    consumer.start()
    consumer.join(0.05)
    assert result == []

    mb.put("hello")
    consumer.join(1.0)
    assert result == ["hello"]


def test_get_timeout() -> None:
    mb: Mailbox[str] = Mailbox()
    with pytest.raises(TimeoutError):
        mb.get(timeout=0.01)


def test_fifo_across_producers() -> None:
    mb: Mailbox[tuple[str, int]] = Mailbox()

    def produce(name: str) -> None:
        for i in range(500):
            mb.put((name, i))

    producers = [threading.Thread(target=produce, args=(name,)) for name in "abc"]
    for p in producers:
        p.start()
    for p in producers:
        p.join(5.0)

    seen: dict[str, list[int]] = {"a": [], "b": [], "c": []}
    while not mb.empty():
        name, i = mb.get()
        seen[name].append(i)
    for values in seen.values():
        assert values == list(range(500))


def test_put_after_close_raises() -> None:
    mb: Mailbox[int] = Mailbox()
    mb.close()
    with pytest.raises(MailboxClosed):
        mb.put(1)


def test_close_keeps_queued_messages_readable() -> None:
    mb: Mailbox[int] = Mailbox()
    mb.put(1)
    mb.put(2)
    mb.close()
    assert list(mb) == [1, 2]
    with pytest.raises(MailboxClosed):
        mb.get()


def test_close_wakes_blocked_consumer() -> None:
    mb: Mailbox[int] = Mailbox()
    errors: list[BaseException] = []

    def consume() -> None:
        try:
            mb.get()
        except MailboxClosed as exc:
            errors.append(exc)

    consumer = threading.Thread(target=consume)
    consumer.start()
    mb.close()
    consumer.join(1.0)
    assert not consumer.is_alive()
    assert len(errors) == 1


def test_close_wakes_blocked_producer() -> None:
    mb: Mailbox[int] = Mailbox(capacity=1, overflow=MailboxOverflowStrategy.backpressure)
    mb.put(1)
    errors: list[BaseException] = []

    def produce() -> None:
        try:
            mb.put(2)
        except MailboxClosed as exc:
            errors.append(exc)

    producer = threading.Thread(target=produce)
    producer.start()
    producer.join(0.05)
    mb.close()
    producer.join(1.0)
    assert not producer.is_alive()
    assert len(errors) == 1


def test_close_records_first_cause_only() -> None:
    mb: Mailbox[int] = Mailbox()
    first = RuntimeError("first")
    mb.close(cause=first)
    mb.close(cause=RuntimeError("second"))
    assert mb.closed
    assert mb.cause is first


def test_invalid_capacity_rejected() -> None:
    with pytest.raises(ValueError):
        Mailbox(capacity=0)
