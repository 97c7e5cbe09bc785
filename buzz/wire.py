from __future__ import annotations
import logging
from typing import Optional

from .codecs import Codec, Frame, JSONCodec
from .envelope import Envelope
from .errors import MalformedEnvelope

logger = logging.getLogger(__name__)

_DEFAULT = JSONCodec()

def pack_frame(env: Envelope, codec: Optional[Codec] = None) -> Frame:
    return (codec or _DEFAULT).dumps(env.to_wire())

def unpack_frame(frame: Frame, codec: Optional[Codec] = None) -> Envelope:
    try:
        obj = (codec or _DEFAULT).loads(frame)
    except Exception as ex:
        raise MalformedEnvelope(f"undecodable frame: {ex}") from ex
    return Envelope.from_wire(obj)

def try_unpack_frame(frame: Frame, codec: Optional[Codec] = None) -> Optional[Envelope]:
    """
    The bus shares its medium with unrelated traffic: anything that is not an
    envelope is foreign and gets None instead of an exception.
    """
    try:
        return unpack_frame(frame, codec)
    except MalformedEnvelope as ex:
        logger.debug("Ignoring foreign frame: %s", ex)
        return None
