"""Unique id program: hand out globally unique ids without coordination.

Ids are random UUID4 strings, so nodes never need to talk to each other
to avoid collisions.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable

from maelnode.codec import LineCodec, PayloadRegistry
from maelnode.dispatch import (
    DispatchResult,
    Handled,
    repeated_init,
    reply_to,
    unexpected_ack,
)
from maelnode.messages import (
    UNIQUE_ID_PAYLOADS,
    Envelope,
    Generate,
    GenerateOk,
    Init,
    UniqueIdPayload,
)
from maelnode.session import NodeIdentity

UNIQUE_ID_CODEC: LineCodec[UniqueIdPayload] = LineCodec(
    PayloadRegistry(*UNIQUE_ID_PAYLOADS)
)


def random_id() -> str:
    return str(uuid.uuid4())


class UniqueIdProgram:
    """Answer ``generate`` with ``generate_ok{id}``.

    Parameters
    ----------
    identity : NodeIdentity
        This node's identity; replies draw message ids from it.
    id_factory : Callable[[], str]
        Source of new ids. Defaults to random UUID4 strings.
    """

    def __init__(
        self,
        identity: NodeIdentity,
        *,
        id_factory: Callable[[], str] = random_id,
    ) -> None:
        self._identity = identity
        self._id_factory = id_factory

    @property
    def codec(self) -> LineCodec[UniqueIdPayload]:
        return UNIQUE_ID_CODEC

    @property
    def tick_interval(self) -> None:
        return None

    def on_message(self, envelope: Envelope[UniqueIdPayload]) -> DispatchResult:
        match envelope.payload:
            case Generate():
                return reply_to(
                    self._identity, envelope, GenerateOk(id=self._id_factory())
                )
            case Init():
                return repeated_init(envelope)
            case _:
                return unexpected_ack(envelope)

    def on_tick(self) -> DispatchResult:
        return Handled()
