"""
Bridging between a context and the contexts nested in it.

A Downlink lives in the parent and is bound to one child; an Uplink lives
in the child and pushes its root-link traffic upward on the reserved
'uplink' link. Together they make the tree look like one bus: a connector
in a child on the root link reaches a connector on the bridged link in the
parent, and replies come back the same way. Neither side needs to know
about the nesting.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from .codecs import Codec, Codecs, Frame
from .config import settings
from .envelope import Envelope
from .errors import TransportClosed
from .message import ROOT_LINK, UPLINK_LINK
from .transport import SourceId, Subscription, Transport
from .wire import pack_frame, try_unpack_frame

logger = logging.getLogger(__name__)

RENAME_COMMAND = "rename-buzz-link"


class Downlink:
    """
    Installed in `parent`, bridging its `link` to the root link of `child`.

    parent -> child: envelopes broadcast in the parent (or handed down from
    further above) on `link` and not yet relayed, rewritten to the root link.
    child -> parent: envelopes the child's Uplink sent on the uplink link,
    rewritten to `link`, marked relayed and extended with `extensions`.
    """

    def __init__(self, parent: Transport, child: Transport, link: Optional[str] = None,
                 extensions: Optional[Dict[str, Any]] = None, *,
                 codec: Optional[Codec] = None):
        self.parent = parent
        self.child = child
        self.link = link or ROOT_LINK
        self.extensions: Dict[str, Any] = dict(extensions or {})
        self.codec = codec or Codecs.get(settings().codec)

        logger.info("Installing a downlink for bus %s from %s to %s", self.link, parent.identity, child.identity)
        self._subscription: Optional[Subscription] = parent.on_message(self._on_frame)

        if self.link != ROOT_LINK:
            self.child.post(self.codec.dumps({"command": RENAME_COMMAND, "name": self.link}),
                            parent.identity)

    def _from_above(self, source: SourceId) -> bool:
        if source == self.parent.identity:
            return True
        grand = self.parent.parent
        return grand is not None and source == grand.identity

    def _on_frame(self, frame: Frame, source: SourceId) -> None:
        if source == self.child.identity:
            env = try_unpack_frame(frame, self.codec)
            if env is not None and env.link == UPLINK_LINK:
                self.parent.broadcast(pack_frame(self.lift(env), self.codec))
        elif self._from_above(source):
            env = try_unpack_frame(frame, self.codec)
            if env is not None and env.link == self.link and not env.relayed:
                try:
                    self.child.post(pack_frame(env.evolve(link=ROOT_LINK), self.codec),
                                    self.parent.identity)
                except TransportClosed:
                    logger.debug("Child %s is gone, removing its downlink", self.child.identity)
                    self.close()

    def lift(self, env: Envelope) -> Envelope:
        """The child's envelope as the parent should see it."""
        payload = dict(env.payload)
        payload.update(self.extensions)
        return env.evolve(link=self.link, relayed=True, payload=payload)

    def close(self) -> None:
        sub, self._subscription = self._subscription, None
        if sub is not None:
            sub.close()

    def __enter__(self) -> "Downlink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class Uplink:
    """
    Installed in a nested context: forwards root-link envelopes that
    originate here (not the ones handed down by the parent) to the parent
    on the uplink link. Use buzz.runtime.install_uplink() so a context never
    gets two.
    """

    def __init__(self, context: Transport, *, codec: Optional[Codec] = None):
        if context.parent is None:
            raise ValueError(f"context {context.identity} has no parent")
        self.context = context
        self.codec = codec or Codecs.get(settings().codec)
        logger.info("Installing an uplink from %s to %s", context.identity, context.parent.identity)
        self._subscription: Optional[Subscription] = context.on_message(self._on_frame)

    @property
    def active(self) -> bool:
        return self._subscription is not None

    def _on_frame(self, frame: Frame, source: SourceId) -> None:
        parent = self.context.parent
        if source == parent.identity:
            return
        env = try_unpack_frame(frame, self.codec)
        if env is not None and env.link == ROOT_LINK:
            try:
                parent.post(pack_frame(env.evolve(link=UPLINK_LINK), self.codec),
                            self.context.identity)
            except TransportClosed:
                logger.debug("Parent %s is gone, removing the uplink of %s", parent.identity, self.context.identity)
                self.close()

    def close(self) -> None:
        sub, self._subscription = self._subscription, None
        if sub is not None:
            sub.close()
