from __future__ import annotations
import logging
from typing import Optional

from .codecs import Codec, Codecs, Frame
from .config import settings
from .transport import SourceId, Subscription, Transport
from .wire import try_unpack_frame

class Debugger:
    """Logs every envelope seen in a context. Takes no part in routing."""

    def __init__(self, transport: Transport, *, codec: Optional[Codec] = None,
                 logger: Optional[logging.Logger] = None):
        self.codec = codec or Codecs.get(settings().codec)
        self.logger = logger or logging.getLogger(__name__)
        self._subscription: Optional[Subscription] = transport.on_message(self._on_frame)

    def _on_frame(self, frame: Frame, source: SourceId) -> None:
        env = try_unpack_frame(frame, self.codec)
        if env is None or not env.link:
            return
        self.logger.info(
            f"BUZZ {env.type} on {env.link} from {env.sender} ({env.sender_name}): {env.payload}",
            extra={
                "link": env.link,
                "type": env.type,
                "sender": env.sender,
                "senderName": env.sender_name,
                "payload": env.payload,
            },
        )

    def close(self) -> None:
        sub, self._subscription = self._subscription, None
        if sub is not None:
            sub.close()
