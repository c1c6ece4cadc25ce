"""Test utilities for maelnode tests."""

from __future__ import annotations

import json
import random
import time
from collections.abc import Callable, Iterable
from typing import Any

from maelnode.messages import Body, Broadcast, Envelope, Topology
from maelnode.programs.broadcast import BroadcastEngine
from maelnode.session import NodeIdentity


def wait_until(
    condition: Callable[[], bool],
    *,
    timeout: float = 5.0,
    interval: float = 0.01,
    message: str = "Condition not met within timeout",
) -> None:
    """Poll *condition* until it holds.

    Raises
    ------
    TimeoutError
        If the condition is still false after *timeout* seconds.
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return
        time.sleep(interval)
    raise TimeoutError(message)


def init_line(
    node_id: str = "n1",
    node_ids: Iterable[str] = ("n1", "n2", "n3"),
    *,
    msg_id: int = 1,
    src: str = "c0",
) -> str:
    return request_line(
        "init", src=src, dest=node_id, msg_id=msg_id, node_id=node_id, node_ids=list(node_ids)
    )


def request_line(
    type_: str,
    *,
    src: str = "c1",
    dest: str = "n1",
    msg_id: int | None = None,
    **fields: Any,
) -> str:
    body: dict[str, Any] = {"type": type_, **fields}
    if msg_id is not None:
        body["msg_id"] = msg_id
    return json.dumps({"src": src, "dest": dest, "body": body})


def bodies(lines: Iterable[str]) -> list[dict[str, Any]]:
    return [json.loads(line)["body"] for line in lines]


def records(lines: Iterable[str]) -> list[dict[str, Any]]:
    return [json.loads(line) for line in lines]


class SimulatedCluster:
    """Broadcast engines wired together by an unreliable in-process network.

    Every ``round`` ticks each engine once, then delivers the produced
    gossip shuffled, with random duplicates and drops, so convergence is
    exercised without any ordering or delivery guarantee.
    """

    def __init__(
        self,
        topology: dict[str, tuple[str, ...]],
        *,
        seed: int = 0,
        drop_rate: float = 0.0,
        duplicate_rate: float = 0.0,
    ) -> None:
        self._rng = random.Random(seed)
        self._drop_rate = drop_rate
        self._duplicate_rate = duplicate_rate
        node_ids = tuple(topology)
        self.engines: dict[str, BroadcastEngine] = {
            node_id: BroadcastEngine(
                NodeIdentity(node_id, tuple(n for n in node_ids if n != node_id))
            )
            for node_id in node_ids
        }
        for node_id, engine in self.engines.items():
            engine.on_message(
                Envelope("c0", node_id, Body(Topology(topology=topology), msg_id=1))
            )
        self.delivered = 0

    def broadcast(self, node_id: str, value: int) -> None:
        self.engines[node_id].on_message(
            Envelope("c1", node_id, Body(Broadcast(message=value), msg_id=value))
        )

    def round(self) -> None:
        in_flight: list[Envelope[Any]] = []
        for engine in self.engines.values():
            in_flight.extend(engine.on_tick().outgoing)  # type: ignore[union-attr]

        deliveries: list[Envelope[Any]] = []
        for envelope in in_flight:
            if self._rng.random() < self._drop_rate:
                continue
            deliveries.append(envelope)
            if self._rng.random() < self._duplicate_rate:
                deliveries.append(envelope)
        self._rng.shuffle(deliveries)

        for envelope in deliveries:
            self.engines[envelope.dst].on_message(envelope)
            self.delivered += 1

    def known(self) -> dict[str, frozenset[int]]:
        return {node_id: engine.known for node_id, engine in self.engines.items()}

    def converged(self, expected: frozenset[int]) -> bool:
        return all(known == expected for known in self.known().values())
