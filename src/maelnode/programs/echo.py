"""Echo program: answer every ``echo`` with the same text."""

from __future__ import annotations

from maelnode.codec import LineCodec, PayloadRegistry
from maelnode.dispatch import (
    DispatchResult,
    Handled,
    repeated_init,
    reply_to,
    unexpected_ack,
)
from maelnode.messages import ECHO_PAYLOADS, Echo, EchoOk, EchoPayload, Envelope, Init
from maelnode.session import NodeIdentity

ECHO_CODEC: LineCodec[EchoPayload] = LineCodec(PayloadRegistry(*ECHO_PAYLOADS))


class EchoProgram:
    def __init__(self, identity: NodeIdentity) -> None:
        self._identity = identity

    @property
    def codec(self) -> LineCodec[EchoPayload]:
        return ECHO_CODEC

    @property
    def tick_interval(self) -> None:
        return None

    def on_message(self, envelope: Envelope[EchoPayload]) -> DispatchResult:
        match envelope.payload:
            case Echo(echo=text):
                return reply_to(self._identity, envelope, EchoOk(echo=text))
            case Init():
                return repeated_init(envelope)
            case _:
                return unexpected_ack(envelope)

    def on_tick(self) -> DispatchResult:
        return Handled()
