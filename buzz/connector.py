from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from .builder import EnvelopeBuilder, IdGenerator, generate_id
from .codecs import Codec, Codecs, Frame
from .config import settings
from .envelope import Envelope
from .errors import ConnectorClosed
from .keys import CapabilityRegistry, Handler
from .message import Message, MsgType, ROOT_LINK
from .transport import SourceId, Subscription, Transport
from .wire import pack_frame, try_unpack_frame

if TYPE_CHECKING:
    from .discovery import CapabilityQuery

logger = logging.getLogger(__name__)

Callback = Callable[[Message], None]

_UNSET: Any = object()


@dataclass
class PendingCall:
    message_id: str
    callback: Optional[Callback]
    once: bool = True
    on_timeout: Optional[Callable[[str], None]] = None
    timer: Optional[asyncio.TimerHandle] = None

    def stop_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class Connector:

    # Notes:
    # - One connector = one identity on one link of one context
    # - Accepts a frame only if link matches, we are not the sender, and
    #   receiver is unset or our uid
    # - Unknown types, foreign frames and late responses are dropped silently
    # - call() registers a continuation keyed by messageId; the first
    #   matching 'response' fulfils it

    def __init__(self, transport: Transport, name: Optional[str] = None,
                 link: Optional[str] = None, *,
                 codec: Optional[Codec] = None,
                 ids: IdGenerator = generate_id):
        self.t = transport
        self._ids = ids
        self.uid = ids()
        self.name = name or self.uid
        self.link = link or ROOT_LINK
        self.codec = codec or Codecs.get(settings().codec)

        self.capabilities = CapabilityRegistry()
        self._pending: Dict[str, PendingCall] = {}

        self.add_capability(MsgType.HAS_CAPABILITY, self._on_has_capability)
        self.add_capability(MsgType.RESPONSE, self._on_response)

        self._subscription: Optional[Subscription] = self.t.on_message(self._on_frame)

    # ---- capabilities ----
    def add_capability(self, msg_type: str, handler: Handler) -> None:
        """Register (or replace) the handler for a message type."""
        self.capabilities.add(msg_type, handler)

    def remove_capability(self, msg_type: str) -> bool:
        return self.capabilities.remove(msg_type)

    def has_capability(self, msg_type: str) -> bool:
        return msg_type in self.capabilities

    # ---- sending ----
    def send_message(self, msg_type: str, envelope: Optional[Dict[str, Any]] = None,
                     payload: Optional[Dict[str, Any]] = None) -> str:
        """Broadcast a message on our link and return its messageId."""
        env = self._build(msg_type, envelope, payload)
        self._send(env)
        return env.message_id

    def call(self, msg_type: str, envelope: Optional[Dict[str, Any]] = None,
             payload: Optional[Dict[str, Any]] = None,
             callback: Optional[Callback] = None, *,
             timeout: Optional[float] = _UNSET,
             on_timeout: Optional[Callable[[str], None]] = None) -> str:
        """
        Send and wait (without blocking) for one response.

        `callback` runs once with the response Message, or never. With a
        `timeout` the call is forgotten after that many seconds and
        `on_timeout(message_id)` runs instead.
        """
        env = self._build(msg_type, envelope, payload)
        self._register(env.message_id, callback, once=True, timeout=timeout, on_timeout=on_timeout)
        self._send(env)
        return env.message_id

    def cancel(self, message_id: str) -> bool:
        """Forget a pending call; a late response is then dropped."""
        entry = self._pending.pop(message_id, None)
        if entry is None:
            return False
        entry.stop_timer()
        return True

    def query_capability(self, capability: str, callback: Optional[Callback] = None, *,
                         timeout: Optional[float] = _UNSET,
                         on_timeout: Optional[Callable[[str], None]] = None) -> str:
        """Ask the link who supports `capability`. The first answer wins."""
        return self.call(MsgType.HAS_CAPABILITY, {}, {"capability": capability}, callback,
                         timeout=timeout, on_timeout=on_timeout)

    def discover(self, capability: str, callback: Optional[Callback] = None) -> "CapabilityQuery":
        """Like query_capability(), but keeps collecting answers until the query is closed."""
        from .discovery import CapabilityQuery

        env = self._build(MsgType.HAS_CAPABILITY, {}, {"capability": capability})
        query = CapabilityQuery(self, capability, env.message_id, callback)
        self._register(env.message_id, query.accept, once=False, timeout=None, on_timeout=None)
        self._send(env)
        return query

    @property
    def pending_calls(self) -> List[str]:
        return list(self._pending)

    # ---- lifecycle ----
    @property
    def closed(self) -> bool:
        return self._subscription is None

    def close(self) -> None:
        sub, self._subscription = self._subscription, None
        if sub is None:
            return
        sub.close()
        for entry in self._pending.values():
            entry.stop_timer()
        self._pending.clear()

    def __enter__(self) -> "Connector":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Connector(uid={self.uid!r}, name={self.name!r}, link={self.link!r})"

    # ---- internals ----
    def _build(self, msg_type: str, envelope: Optional[Dict[str, Any]],
               payload: Optional[Dict[str, Any]]) -> Envelope:
        if self.closed:
            raise ConnectorClosed(f"{self!r} is closed")
        return (EnvelopeBuilder(self.uid, self.name, link=self.link, ids=self._ids)
                .type(msg_type)
                .fields(envelope)
                .payload(payload)
                .build())

    def _send(self, env: Envelope) -> None:
        logger.debug("%s -> %s/%s id=%s receiver=%s", self.uid, env.link, env.type, env.message_id, env.receiver)
        self.t.broadcast(pack_frame(env, self.codec))

    def _register(self, message_id: str, callback: Optional[Callback], *, once: bool,
                  timeout: Optional[float], on_timeout: Optional[Callable[[str], None]]) -> None:
        if timeout is _UNSET:
            timeout = settings().call_timeout
        entry = PendingCall(message_id, callback, once=once, on_timeout=on_timeout)
        if timeout is not None:
            entry.timer = self.t.loop.call_later(timeout, self._expire, message_id)
        self._pending[message_id] = entry

    def _expire(self, message_id: str) -> None:
        entry = self._pending.pop(message_id, None)
        if entry is None:
            return
        entry.timer = None
        logger.debug("%s: call %s expired without a response", self.uid, message_id)
        if entry.on_timeout is not None:
            entry.on_timeout(message_id)

    def _accepts(self, env: Envelope) -> bool:
        return (env.link == self.link
                and env.sender != self.uid
                and (not env.receiver or env.receiver == self.uid))

    def _on_frame(self, frame: Frame, source: SourceId) -> None:
        env = try_unpack_frame(frame, self.codec)
        if env is None or not self._accepts(env):
            return
        handler = self.capabilities.lookup(env.type)
        if handler is None:
            logger.debug("%s: no capability %r, dropping %s", self.uid, env.type, env.message_id)
            return
        try:
            handler(Message(self, env))
        except Exception:
            logger.exception(f"{self.uid}: handler for {env.type!r} failed on {env.message_id}")

    # ---- built-in capabilities ----
    def _on_has_capability(self, message: Message) -> None:
        capability = message.payload().get("capability")
        if isinstance(capability, str) and capability in self.capabilities:
            message.reply({"uid": self.uid, "name": self.name})

    def _on_response(self, message: Message) -> None:
        reply = message.envelope().reply
        entry = self._pending.get(reply) if reply else None
        if entry is None:
            return
        if entry.once:
            del self._pending[reply]
            entry.stop_timer()
        if entry.callback is not None:
            entry.callback(message)
