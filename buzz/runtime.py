"""
Process-wide bus state.

Two things must happen at most once per context no matter how often the
library is initialised there: installing the Uplink of a nested context,
and firing its readiness notification. Both are tracked here, keyed by
context identity, and reset() clears them (tests call it between cases).
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, List, Optional, Set

from .codecs import Codec
from .debugger import Debugger
from .relay import Uplink
from .transport import Transport

logger = logging.getLogger(__name__)

ReadyCallback = Callable[[Transport], None]

_uplinks: Dict[str, Uplink] = {}
_ready_scheduled: Set[str] = set()
_ready_fired: Set[str] = set()
_ready_callbacks: Dict[str, List[ReadyCallback]] = {}
_debuggers: Dict[str, Debugger] = {}


def install_uplink(transport: Transport, *, codec: Optional[Codec] = None) -> Optional[Uplink]:
    """Install the context's Uplink unless it already has one. Top-level contexts get None."""
    if transport.parent is None:
        return None
    existing = _uplinks.get(transport.identity)
    if existing is not None and existing.active:
        return existing
    uplink = Uplink(transport, codec=codec)
    _uplinks[transport.identity] = uplink
    return uplink


def attach_debugger(transport: Transport, *, codec: Optional[Codec] = None) -> Debugger:
    """One Debugger per context."""
    debugger = _debuggers.get(transport.identity)
    if debugger is None:
        debugger = _debuggers[transport.identity] = Debugger(transport, codec=codec)
    return debugger


def initialize(transport: Transport, *, codec: Optional[Codec] = None) -> Optional[Uplink]:
    """
    Bring up the bus machinery of a context: the uplink when nested, then a
    one-shot 'ready' notification on the next loop iteration. Safe to call
    repeatedly.
    """
    uplink = install_uplink(transport, codec=codec)
    if transport.identity not in _ready_scheduled:
        _ready_scheduled.add(transport.identity)
        transport.loop.call_soon(_fire_ready, transport)
    return uplink


def on_ready(transport: Transport, callback: ReadyCallback) -> None:
    """Observe the context's ready signal; late observers are called on the next iteration."""
    if transport.identity in _ready_fired:
        transport.loop.call_soon(callback, transport)
        return
    _ready_callbacks.setdefault(transport.identity, []).append(callback)


def is_ready(transport: Transport) -> bool:
    return transport.identity in _ready_fired


def uplink_for(transport: Transport) -> Optional[Uplink]:
    return _uplinks.get(transport.identity)


def _fire_ready(transport: Transport) -> None:
    if transport.identity in _ready_fired:
        return
    _ready_fired.add(transport.identity)
    logger.debug("Bus ready in context %s", transport.identity)
    for callback in _ready_callbacks.pop(transport.identity, []):
        try:
            callback(transport)
        except Exception:
            logger.exception(f"Ready callback failed in context {transport.identity}")


def reset() -> None:
    """Forget every installed uplink, debugger and readiness flag."""
    for uplink in _uplinks.values():
        uplink.close()
    _uplinks.clear()
    for debugger in _debuggers.values():
        debugger.close()
    _debuggers.clear()
    _ready_scheduled.clear()
    _ready_fired.clear()
    _ready_callbacks.clear()
