from __future__ import annotations
import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .codecs import Frame

SourceId = str   # identity of the context a frame came from
Listener = Callable[[Frame, SourceId], None]


class Subscription:
    """
    Handle returned by Transport.on_message(). Closing it detaches the
    listener; closing twice is a no-op.
    """

    def __init__(self, detach: Callable[[], None]):
        self._detach: Optional[Callable[[], None]] = detach

    @property
    def active(self) -> bool:
        return self._detach is not None

    def close(self) -> None:
        detach, self._detach = self._detach, None
        if detach is not None:
            detach()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class Transport(ABC):
    """
    One execution context's broadcast medium. Unordered, unreliable, no
    addressing: every listener sees every frame, annotated with the
    identity of the context that sent it.
    """

    @property
    @abstractmethod
    def identity(self) -> SourceId:
        raise NotImplementedError

    @property
    @abstractmethod
    def parent(self) -> Optional["Transport"]:
        """The enclosing context, or None for a top-level one."""
        raise NotImplementedError

    @property
    @abstractmethod
    def loop(self) -> asyncio.AbstractEventLoop:
        raise NotImplementedError

    @abstractmethod
    def post(self, frame: Frame, source: SourceId) -> None:
        """Deliver a frame to every listener of this context as coming from `source`."""
        raise NotImplementedError

    def broadcast(self, frame: Frame) -> None:
        """Send a frame originating in this context."""
        self.post(frame, self.identity)

    @abstractmethod
    def on_message(self, listener: Listener) -> Subscription:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    @property
    def is_nested(self) -> bool:
        return self.parent is not None
