"""Node programs the dispatcher can drive, keyed by CLI name."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from maelnode.config import NodeConfig
from maelnode.dispatch import Program
from maelnode.programs.broadcast import BroadcastEngine, TopologyState, merge
from maelnode.programs.echo import EchoProgram
from maelnode.programs.unique_ids import UniqueIdProgram
from maelnode.session import NodeIdentity

type ProgramFactory = Callable[[NodeIdentity, NodeConfig], Program[Any]]


def broadcast(identity: NodeIdentity, config: NodeConfig) -> BroadcastEngine:
    return BroadcastEngine(identity, gossip_interval=config.gossip.interval)


def echo(identity: NodeIdentity, config: NodeConfig) -> EchoProgram:
    return EchoProgram(identity)


def unique_ids(identity: NodeIdentity, config: NodeConfig) -> UniqueIdProgram:
    return UniqueIdProgram(identity)


PROGRAMS: dict[str, ProgramFactory] = {
    "broadcast": broadcast,
    "echo": echo,
    "unique-ids": unique_ids,
}

__all__ = [
    "PROGRAMS",
    "BroadcastEngine",
    "EchoProgram",
    "ProgramFactory",
    "TopologyState",
    "UniqueIdProgram",
    "merge",
]
