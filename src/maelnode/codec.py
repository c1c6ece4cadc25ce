"""Line-delimited JSON codec for message envelopes.

Provides ``PayloadRegistry`` for mapping wire ``type`` tags to payload
dataclasses, and ``LineCodec`` which turns one line of text into a typed
``Envelope`` and back.
"""

from __future__ import annotations

import dataclasses
import functools
import json
import re
from typing import Any, get_args, get_origin, get_type_hints

from maelnode.messages import Body, Envelope

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class ParseError(ValueError):
    """A line could not be decoded into an envelope of the expected protocol."""


def wire_tag(cls: type) -> str:
    """Return the snake_case wire tag for a payload class.

    Examples
    --------
    >>> wire_tag(TopologyOk)
    'topology_ok'
    """
    return _CAMEL_BOUNDARY.sub("_", cls.__name__).lower()


class PayloadRegistry:
    """Bidirectional mapping between wire tags and payload dataclasses.

    Examples
    --------
    >>> from maelnode.messages import Echo, EchoOk
    >>> registry = PayloadRegistry(Echo, EchoOk)
    >>> registry.resolve("echo_ok") is EchoOk
    True
    """

    def __init__(self, *types: type) -> None:
        self._tag_to_type: dict[str, type] = {}
        self._type_to_tag: dict[type, str] = {}
        self.register_all(*types)

    def register(self, cls: type, tag: str | None = None) -> None:
        if not dataclasses.is_dataclass(cls):
            msg = f"Payload types must be dataclasses, got {cls!r}"
            raise TypeError(msg)
        name = tag or wire_tag(cls)
        self._tag_to_type[name] = cls
        self._type_to_tag[cls] = name

    def register_all(self, *types: type) -> None:
        for cls in types:
            self.register(cls)

    def resolve(self, tag: str) -> type:
        try:
            return self._tag_to_type[tag]
        except KeyError:
            msg = f"Unknown message type: {tag!r}"
            raise KeyError(msg) from None

    def tag_of(self, cls: type) -> str:
        try:
            return self._type_to_tag[cls]
        except KeyError:
            msg = f"Payload type not registered: {cls.__qualname__}"
            raise KeyError(msg) from None

    def __contains__(self, tag: object) -> bool:
        return tag in self._tag_to_type

    def tags(self) -> frozenset[str]:
        return frozenset(self._tag_to_type)


@functools.cache
def _field_hints(cls: type) -> dict[str, Any]:
    return get_type_hints(cls)


class LineCodec[P]:
    """Encode and decode envelopes, one JSON object per line.

    The codec keeps no state between calls, so a line that fails to
    decode leaves later reads unaffected.

    Parameters
    ----------
    registry : PayloadRegistry
        The closed set of payload types this codec accepts.

    Examples
    --------
    >>> from maelnode.messages import ECHO_PAYLOADS
    >>> codec = LineCodec(PayloadRegistry(*ECHO_PAYLOADS))
    >>> env = codec.decode('{"src":"c1","dest":"n1","body":{"type":"echo","msg_id":1,"echo":"hi"}}')
    >>> env.payload
    Echo(echo='hi')
    """

    def __init__(self, registry: PayloadRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> PayloadRegistry:
        return self._registry

    def decode(self, line: str) -> Envelope[P]:
        """Parse one line into an envelope.

        Raises
        ------
        ParseError
            If the line is not JSON, lacks ``src``/``dest``/``body.type``,
            names an unknown type, or carries mistyped fields.
        """
        try:
            raw: object = json.loads(line)
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON: {exc.msg} (line {line!r})"
            raise ParseError(msg) from exc

        match raw:
            case {"src": str() as src, "dest": str() as dst, "body": {"type": str() as tag} as body}:
                pass
            case _:
                msg = f"Envelope must carry string src, dest and body.type: {line!r}"
                raise ParseError(msg)

        try:
            cls = self._registry.resolve(tag)
        except KeyError as exc:
            raise ParseError(exc.args[0]) from exc

        return Envelope(
            src=src,
            dst=dst,
            body=Body(
                payload=self._build_payload(cls, body),
                msg_id=_optional_int(body, "msg_id"),
                in_reply_to=_optional_int(body, "in_reply_to"),
            ),
        )

    def encode(self, envelope: Envelope[P]) -> str:
        """Render an envelope as a single line ending in ``\\n``."""
        payload: Any = envelope.body.payload
        body: dict[str, Any] = {"type": self._registry.tag_of(type(payload))}
        if envelope.body.msg_id is not None:
            body["msg_id"] = envelope.body.msg_id
        if envelope.body.in_reply_to is not None:
            body["in_reply_to"] = envelope.body.in_reply_to
        for f in dataclasses.fields(payload):
            body[f.name] = _to_json(getattr(payload, f.name))
        record = {"src": envelope.src, "dest": envelope.dst, "body": body}
        return json.dumps(record, separators=(",", ":")) + "\n"

    def _build_payload(self, cls: type, body: dict[str, Any]) -> Any:
        hints = _field_hints(cls)
        kwargs: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            if f.name not in body:
                if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                    msg = f"{wire_tag(cls)} message is missing field {f.name!r}"
                    raise ParseError(msg)
                continue
            kwargs[f.name] = _coerce(hints[f.name], body[f.name], f.name)
        return cls(**kwargs)


def _optional_int(body: dict[str, Any], key: str) -> int | None:
    value = body.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{key} must be an integer, got {value!r}"
        raise ParseError(msg)
    return value


def _coerce(hint: Any, value: Any, path: str) -> Any:
    origin = get_origin(hint)
    args = get_args(hint)

    if hint is int:
        if isinstance(value, bool) or not isinstance(value, int):
            msg = f"{path} must be an integer, got {value!r}"
            raise ParseError(msg)
        return value
    if hint is str:
        if not isinstance(value, str):
            msg = f"{path} must be a string, got {value!r}"
            raise ParseError(msg)
        return value
    if origin in (frozenset, tuple):
        if not isinstance(value, list):
            msg = f"{path} must be an array, got {value!r}"
            raise ParseError(msg)
        items = [_coerce(args[0], item, f"{path}[]") for item in value]
        return origin(items)
    if origin is dict:
        if not isinstance(value, dict):
            msg = f"{path} must be an object, got {value!r}"
            raise ParseError(msg)
        key_hint, value_hint = args
        return {
            _coerce(key_hint, k, path): _coerce(value_hint, v, f"{path}.{k}")
            for k, v in value.items()
        }

    msg = f"Unsupported payload field type {hint!r} for {path}"
    raise TypeError(msg)


def _to_json(value: Any) -> Any:
    match value:
        case frozenset() | set():
            return sorted(_to_json(item) for item in value)
        case tuple() | list():
            return [_to_json(item) for item in value]
        case dict():
            return {k: _to_json(v) for k, v in value.items()}
        case _:
            return value
