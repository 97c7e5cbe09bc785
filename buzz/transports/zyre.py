
from __future__ import annotations
import asyncio
import json
import logging
import threading
from typing import Dict, List, Optional, Union

try:
    from zyre import Zyre, ZyreEvent
except Exception as e:
    raise RuntimeError("Zyre Python bindings are required. Error: %r" % (e,))

from ..codecs import Frame
from ..errors import TransportClosed
from ..transport import Listener, SourceId, Subscription, Transport

logger = logging.getLogger(__name__)


class ZyreNode:
    """One Zyre peer shared by every context hosted in this process.

    Each context is a Zyre group named after its identity:
    - post -> SHOUT to the group (plus local delivery: Zyre never echoes our own shouts)
    - SHOUT from another peer -> delivered to the contexts bound to that group

    Frames on the wire (Zmsg):
    [0] JSON-encoded headers {"source": <context id>, "bin": <bool>}
    [1] frame bytes
    """

    def __init__(self, name: Optional[str] = None):
        self.node = Zyre()
        if name:
            try:
                self.node.set_name(name)
            except Exception:
                logger.warning(f"Zyre refused node name {name!r}")
        self.node.start()
        self._groups: Dict[str, List["ZyreTransport"]] = {}
        self._lock = threading.Lock()
        self._running = True
        self._rx_thread = threading.Thread(target=self._rx_loop, daemon=True)
        self._rx_thread.start()

    def bind(self, transport: "ZyreTransport") -> None:
        with self._lock:
            members = self._groups.setdefault(transport.identity, [])
            first = not members
            members.append(transport)
        if first:
            self.node.join(transport.identity)

    def unbind(self, transport: "ZyreTransport") -> None:
        with self._lock:
            members = self._groups.get(transport.identity, [])
            if transport in members:
                members.remove(transport)
            last = not members
        if last:
            try:
                self.node.leave(transport.identity)
            except Exception:
                logger.debug("Leaving group %s failed", transport.identity, exc_info=True)

    def shout(self, group: str, frame: Frame, source: SourceId) -> None:
        binary = isinstance(frame, (bytes, bytearray))
        header = json.dumps({"source": source, "bin": binary}, separators=(",", ":")).encode("utf-8")
        body = bytes(frame) if binary else frame.encode("utf-8")
        self.node.shout(group, [header, body])

    def _rx_loop(self):
        while self._running:
            try:
                event = ZyreEvent(self.node)
            except Exception:
                continue
            if not event:
                continue
            etype = event.type()
            if isinstance(etype, bytes):
                etype = etype.decode()
            if etype != "SHOUT":
                continue
            try:
                group = event.group()
                if isinstance(group, bytes):
                    group = group.decode()
                frame, source = self._parse_frames(event.msg())
            except Exception:
                # swallow malformed frames
                logger.debug("Dropping malformed Zyre message", exc_info=True)
                continue
            with self._lock:
                members = list(self._groups.get(group, ()))
            for transport in members:
                transport._deliver_threadsafe(frame, source)

    def _parse_frames(self, zmsg):
        frames = []
        while True:
            data = zmsg.popmem()
            if not data:
                break
            frames.append(bytes(data))
        if len(frames) < 2:
            raise ValueError("expected header and body frames")
        header = json.loads(frames[0].decode("utf-8"))
        body: Frame = frames[1] if header.get("bin") else frames[1].decode("utf-8")
        return body, str(header.get("source", ""))

    def close(self):
        self._running = False
        try:
            self.node.stop()
        except Exception:
            logger.debug("Stopping Zyre node failed", exc_info=True)


class ZyreTransport(Transport):
    """A context reachable over Zyre, possibly hosted by another process.

    `parent` may be another ZyreTransport or just the identity of the
    enclosing context's group; in the latter case a view sharing our node is
    created, which only joins the group once someone listens on it.
    """

    def __init__(self, identity: str, *, parent: Union["ZyreTransport", str, None] = None,
                 node: Optional[ZyreNode] = None,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self._identity = identity
        self._node = node or ZyreNode(identity)
        self._owns_node = node is None
        self._loop = loop or asyncio.get_running_loop()
        if isinstance(parent, str):
            parent = ZyreTransport(parent, node=self._node, loop=self._loop)
        self._parent = parent
        self._listeners: List[Listener] = []
        self._bound = False
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

    def post(self, frame: Frame, source: SourceId) -> None:
        if self._closed:
            raise TransportClosed(f"context {self._identity} is closed")
        self._loop.call_soon(self._deliver, frame, source)
        self._node.shout(self._identity, frame, source)

    def on_message(self, listener: Listener) -> Subscription:
        if self._closed:
            raise TransportClosed(f"context {self._identity} is closed")
        self._listeners.append(listener)
        if not self._bound:
            self._node.bind(self)
            self._bound = True

        def _detach() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return Subscription(_detach)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()
        if self._bound:
            self._node.unbind(self)
        if self._owns_node:
            self._node.close()

    def _deliver_threadsafe(self, frame: Frame, source: SourceId) -> None:
        self._loop.call_soon_threadsafe(self._deliver, frame, source)

    def _deliver(self, frame: Frame, source: SourceId) -> None:
        if self._closed:
            return
        for listener in list(self._listeners):
            try:
                listener(frame, source)
            except Exception:
                logger.exception(f"Listener failed in context {self._identity}")
