from __future__ import annotations
import itertools
import random
from typing import Any, Dict, Optional

from .envelope import Envelope, WIRE_NAMES
from .message import ROOT_LINK

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

def _base36(n: int) -> str:
    out = ""
    while True:
        n, r = divmod(n, 36)
        out = _DIGITS[r] + out
        if n == 0:
            return out


class IdGenerator:
    """
    Ids are '<prefix>-<counter>'. The random prefix keeps ids from different
    contexts apart; the counter keeps them unique within this process.
    """
    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix or _base36(round(1_000_000 * random.random()))
        self._counter = itertools.count()

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


# one generator per process run
generate_id = IdGenerator()


class EnvelopeBuilder:
    """
    Builder that always produces a complete Envelope from the partial
    fields a caller hands to send_message()/call().
    """
    def __init__(self, sender: str, sender_name: Optional[str] = None, *,
                 link: str = ROOT_LINK, ids: IdGenerator = generate_id):
        self._ids = ids
        self._env: Dict[str, Any] = {
            "link":        link,
            "type":        "",
            "sender":      sender,
            "sender_name": sender_name or sender,
            "message_id":  ids(),
            "payload":     {},
            "receiver":    None,
            "reply":       None,
            "relayed":     False,
            "extras":      {},
        }

    def type(self, msg_type: str):
        self._env["type"] = str(msg_type)
        return self

    def payload(self, payload: Optional[Dict[str, Any]]):
        self._env["payload"] = dict(payload) if payload else {}
        return self

    def to(self, receiver: Optional[str]):
        self._env["receiver"] = receiver
        return self

    def reply_to(self, message_id: Optional[str]):
        self._env["reply"] = message_id
        return self

    def fields(self, partial: Optional[Dict[str, Any]]):
        """
        Merge caller-supplied envelope fields. Accepts attribute or wire
        names; identity, link and id are always ours, anything unknown
        travels as an extra.
        """
        by_wire = {w: a for a, w in WIRE_NAMES.items()}
        for key, value in (partial or {}).items():
            attr = by_wire.get(key, key)
            if attr in ("receiver", "reply"):
                self._env[attr] = value
            elif attr in ("payload", "relayed", "extras"):
                continue
            elif attr in WIRE_NAMES:
                continue
            else:
                self._env["extras"][key] = value
        return self

    def build(self) -> Envelope:
        if not self._env["type"]:
            raise ValueError("An envelope requires a 'type'.")
        return Envelope(**self._env)
