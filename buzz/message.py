from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, Optional
from enum import StrEnum

from .envelope import Envelope

if TYPE_CHECKING:
    from .connector import Connector

# Reserved link names
ROOT_LINK   = "buzzRoot"
UPLINK_LINK = "uplink"

# Reserved message types
class MsgType(StrEnum):
    HAS_CAPABILITY = "has-capability"
    RESPONSE       = "response"


class Message:
    """
    View handed to capability handlers: the received envelope plus the
    connector that accepted it, so handlers can answer with reply().
    """

    def __init__(self, connector: "Connector", env: Envelope):
        self._connector = connector
        self._env = env

    def payload(self) -> Dict[str, Any]:
        return self._env.payload

    def envelope(self) -> Envelope:
        return self._env

    @property
    def sender(self) -> str:
        return self._env.sender

    @property
    def sender_name(self) -> str:
        return self._env.sender_name

    @property
    def message_id(self) -> str:
        return self._env.message_id

    def reply(self, payload: Optional[Dict[str, Any]] = None) -> str:
        """Answer the sender; the response is correlated by our message id."""
        return self._connector.send_message(
            MsgType.RESPONSE,
            {"reply": self._env.message_id, "receiver": self._env.sender},
            payload,
        )

    def __repr__(self) -> str:
        return f"Message(type={self._env.type!r}, sender={self._env.sender!r}, id={self._env.message_id!r})"
