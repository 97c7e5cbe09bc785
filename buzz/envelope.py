
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from .errors import MalformedEnvelope

# attribute name -> wire name
WIRE_NAMES: Dict[str, str] = {
    "link":        "link",
    "type":        "type",
    "sender":      "sender",
    "sender_name": "senderName",
    "message_id":  "messageId",
    "payload":     "payload",
    "receiver":    "receiver",
    "reply":       "reply",
    "relayed":     "relayed",
}

@dataclass(frozen=True)
class Envelope:
    """
    Envelope fields; 'payload' is a JSON object, unknown wire fields are kept in 'extras'
    """
    link: str                        # logical channel; invisible to connectors on other links
    type: str                        # capability being invoked
    sender: str                      # uid of the originating connector
    sender_name: str                 # display name of the originating connector
    message_id: str                  # <run prefix>-<counter>, used for reply correlation
    payload: Dict[str, Any] = field(default_factory=dict)
    receiver: Optional[str] = None   # only this uid accepts the message
    reply: Optional[str] = None      # message_id being answered (responses only)
    relayed: bool = False            # set by a downlink on upward rebroadcast
    extras: Dict[str, Any] = field(default_factory=dict)

    def evolve(self, **changes: Any) -> "Envelope":
        return replace(self, **changes)

    def to_wire(self) -> Dict[str, Any]:
        obj: Dict[str, Any] = dict(self.extras)
        for attr, wire in WIRE_NAMES.items():
            value = getattr(self, attr)
            # optional fields stay off the wire when unset
            if attr in ("receiver", "reply") and value is None:
                continue
            if attr == "relayed" and not value:
                continue
            obj[wire] = value
        return obj

    @staticmethod
    def from_wire(obj: Any) -> "Envelope":
        if not isinstance(obj, dict):
            raise MalformedEnvelope(f"expected an object, got {type(obj).__name__}")
        link = obj.get("link")
        if not isinstance(link, str):
            raise MalformedEnvelope("missing 'link'")
        payload = obj.get("payload")
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise MalformedEnvelope("'payload' is not an object")

        known = set(WIRE_NAMES.values())
        return Envelope(
            link=link,
            type=str(obj.get("type", "")),
            sender=str(obj.get("sender", "")),
            sender_name=str(obj.get("senderName", obj.get("sender", ""))),
            message_id=str(obj.get("messageId", "")),
            payload=payload,
            receiver=obj.get("receiver") or None,
            reply=obj.get("reply") or None,
            relayed=bool(obj.get("relayed", False)),
            extras={k: v for k, v in obj.items() if k not in known},
        )
