from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, TYPE_CHECKING
import time

from .message import Message

if TYPE_CHECKING:
    from .connector import Connector

@dataclass
class PeerTable:
    # peer uid -> display name
    names: Dict[str, str] = field(default_factory=dict)
    last_seen: Dict[str, float] = field(default_factory=dict)
    def touch(self, peer_id: str, name: Optional[str] = None) -> None:
        self.names[peer_id] = name or self.names.get(peer_id) or peer_id
        self.last_seen[peer_id] = time.time()
    def alive(self, within: int = 30) -> Dict[str, float]:
        now = time.time()
        return {p: t for p, t in self.last_seen.items() if now - t < within}
    def __contains__(self, peer_id: object) -> bool:
        return peer_id in self.names
    def __len__(self) -> int:
        return len(self.names)

class CapabilityQuery:
    """
    Fan-in variant of Connector.query_capability(): every peer answering the
    'has-capability' poll is recorded and reported, until close().
    """

    def __init__(self, connector: "Connector", capability: str, message_id: str,
                 callback: Optional[Callable[[Message], None]] = None):
        self._connector = connector
        self.capability = capability
        self.message_id = message_id
        self.peers = PeerTable()
        self._callback = callback
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def accept(self, message: Message) -> None:
        if self._closed:
            return
        p = message.payload()
        uid = p.get("uid") or message.sender
        self.peers.touch(uid, p.get("name"))
        if self._callback is not None:
            self._callback(message)

    def close(self) -> None:
        """Stop collecting; answers arriving later are dropped."""
        if self._closed:
            return
        self._closed = True
        self._connector.cancel(self.message_id)

    def __enter__(self) -> "CapabilityQuery":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
