
from __future__ import annotations
import asyncio
import logging
from typing import List, Optional

from ..builder import IdGenerator
from ..codecs import Frame
from ..errors import TransportClosed
from ..transport import Listener, SourceId, Subscription, Transport

logger = logging.getLogger(__name__)

_context_ids = IdGenerator("ctx")


class LocalTransport(Transport):
    """In-process context.

    Contexts form a tree through `parent`; a child is usually made with
    spawn(). Every post() is delivered on a later loop iteration
    (loop.call_soon), never synchronously, so a handler that sends never
    re-enters dispatch.
    """

    def __init__(self, identity: Optional[str] = None, parent: Optional[Transport] = None,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self._identity = identity or _context_ids()
        self._parent = parent
        if loop is None:
            loop = parent.loop if parent is not None else asyncio.get_running_loop()
        self._loop = loop
        self._listeners: List[Listener] = []
        self._closed = False

    @property
    def identity(self) -> SourceId:
        return self._identity

    @property
    def parent(self) -> Optional[Transport]:
        return self._parent

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def closed(self) -> bool:
        return self._closed

    def spawn(self, identity: Optional[str] = None) -> "LocalTransport":
        """Create a nested context on the same loop."""
        return LocalTransport(identity, parent=self, loop=self._loop)

    def post(self, frame: Frame, source: SourceId) -> None:
        if self._closed:
            raise TransportClosed(f"context {self._identity} is closed")
        self._loop.call_soon(self._deliver, frame, source)

    def on_message(self, listener: Listener) -> Subscription:
        if self._closed:
            raise TransportClosed(f"context {self._identity} is closed")
        self._listeners.append(listener)

        def _detach() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return Subscription(_detach)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def close(self) -> None:
        self._closed = True
        self._listeners.clear()

    def _deliver(self, frame: Frame, source: SourceId) -> None:
        if self._closed:
            return
        for listener in list(self._listeners):
            try:
                listener(frame, source)
            except Exception:
                # one faulty listener must not starve the others
                logger.exception(f"Listener failed in context {self._identity}")

    def __repr__(self) -> str:
        parent = self._parent.identity if self._parent is not None else None
        return f"LocalTransport({self._identity!r}, parent={parent!r})"
