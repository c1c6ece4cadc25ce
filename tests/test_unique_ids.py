from __future__ import annotations

import itertools
import uuid

from maelnode.dispatch import Handled, ProtocolViolation
from maelnode.messages import Body, Envelope, Generate, GenerateOk, Init, InitOk
from maelnode.programs.unique_ids import UniqueIdProgram, random_id
from maelnode.session import NodeIdentity


def generate(program: UniqueIdProgram, msg_id: int) -> str:
    result = program.on_message(Envelope("c1", "n1", Body(Generate(), msg_id=msg_id)))
    assert isinstance(result, Handled)
    (reply,) = result.outgoing
    assert reply.body.in_reply_to == msg_id
    assert isinstance(reply.payload, GenerateOk)
    return reply.payload.id


def test_ids_never_repeat(identity: NodeIdentity) -> None:
    program = UniqueIdProgram(identity)
    ids = [generate(program, n) for n in range(1, 1001)]
    assert len(set(ids)) == len(ids)


def test_ids_are_unique_across_nodes() -> None:
    nodes = [UniqueIdProgram(NodeIdentity(f"n{i}", ())) for i in range(1, 4)]
    ids = [generate(node, n) for node in nodes for n in range(1, 101)]
    assert len(set(ids)) == len(ids)


def test_default_ids_are_uuids() -> None:
    assert uuid.UUID(random_id()).version == 4


def test_custom_id_factory(identity: NodeIdentity) -> None:
    counter = itertools.count()
    program = UniqueIdProgram(identity, id_factory=lambda: f"n1-{next(counter)}")

    assert [generate(program, n) for n in (1, 2)] == ["n1-0", "n1-1"]


def test_generate_ok_is_violation(identity: NodeIdentity) -> None:
    result = UniqueIdProgram(identity).on_message(Envelope("c1", "n1", Body(GenerateOk(id="x"))))
    assert isinstance(result, ProtocolViolation)
    assert UniqueIdProgram(identity).tick_interval is None


def test_late_handshake_messages_are_violations(identity: NodeIdentity) -> None:
    program = UniqueIdProgram(identity)
    for payload in (InitOk(), Init(node_id="n1", node_ids=("n1",))):
        result = program.on_message(Envelope("c0", "n1", Body(payload)))
        assert isinstance(result, ProtocolViolation)
