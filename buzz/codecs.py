
from __future__ import annotations
from typing import Any, Dict, Union, Protocol as TypingProtocol

import json

import msgpack

from .errors import UnknownCodec

Frame = Union[str, bytes]

class Codec(TypingProtocol):
    name: str
    def dumps(self, obj: Any) -> Frame: ...
    def loads(self, data: Frame) -> Any: ...

class JSONCodec:
    """Text frames; the default, since most hosts only carry strings."""
    name = "json"
    def dumps(self, obj: Any) -> str:
        return json.dumps(obj, separators=(",", ":"))
    def loads(self, data: Frame) -> Any:
        if isinstance(data, (bytes, bytearray)):
            data = data.decode("utf-8")
        return json.loads(data)

class MsgPackCodec:
    name = "msgpack"
    def dumps(self, obj: Any) -> bytes:
        return msgpack.packb(obj, use_bin_type=True)
    def loads(self, data: Frame) -> Any:
        if isinstance(data, str):
            raise TypeError("msgpack frames must be bytes")
        return msgpack.unpackb(data, raw=False)

class Codecs:
    _registry: Dict[str, Codec] = {"json": JSONCodec(), "msgpack": MsgPackCodec()}

    @classmethod
    def get(cls, name: str) -> Codec:
        if name not in cls._registry:
            raise UnknownCodec(f"Unknown codec: {name}")
        return cls._registry[name]

    @classmethod
    def register(cls, codec: Codec) -> None:
        cls._registry[codec.name] = codec
