from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .message import Message

Handler = Callable[["Message"], None]

@dataclass
class CapabilityRegistry:
    # message type -> handler; registering a type again replaces its handler
    handlers: Dict[str, Handler] = field(default_factory=dict)

    def add(self, msg_type: str, handler: Handler) -> None:
        self.handlers[str(msg_type)] = handler

    def remove(self, msg_type: str) -> bool:
        return self.handlers.pop(str(msg_type), None) is not None

    def lookup(self, msg_type: str) -> Optional[Handler]:
        """None means the message is dropped."""
        return self.handlers.get(msg_type)

    def __contains__(self, msg_type: object) -> bool:
        return msg_type in self.handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self.handlers)

    def __len__(self) -> int:
        return len(self.handlers)
