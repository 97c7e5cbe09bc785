"""
Public API:
- Connector: bus participant (capabilities, send_message, call, query_capability)
- Buzz: one-liner factory (transport + runtime initialisation + connector)
- Message, MsgType, ROOT_LINK, UPLINK_LINK: handler view and reserved names
- Envelope, EnvelopeBuilder: wire-level type and its builder
- Transport, Subscription, LocalTransport: transport contract + in-process contexts
- Downlink, Uplink: bridging nested contexts
- CapabilityQuery, PeerTable: fan-in capability discovery
- Debugger: logs every envelope seen in a context
- pack_frame, unpack_frame, try_unpack_frame: envelope codec
- runtime: process-wide init-once state (initialize, on_ready, reset)
"""

# Core runtime
from .connector import Connector
from .factory import Buzz
from . import runtime

# Builder & wire types
from .builder import EnvelopeBuilder, IdGenerator
from .envelope import Envelope
from .message import Message, MsgType, ROOT_LINK, UPLINK_LINK

# Transport contract
from .transport import Transport, Subscription
from .transports.inmemory import LocalTransport

# Relays, discovery, debugging
from .relay import Downlink, Uplink
from .discovery import CapabilityQuery, PeerTable
from .debugger import Debugger

# Framing helpers
from .codecs import Codecs, JSONCodec, MsgPackCodec
from .wire import pack_frame, unpack_frame, try_unpack_frame

from .errors import BuzzError, MalformedEnvelope, TransportClosed, ConnectorClosed, UnknownCodec

__all__ = [
    "Connector",
    "Buzz",
    "runtime",
    "EnvelopeBuilder",
    "IdGenerator",
    "Envelope",
    "Message",
    "MsgType",
    "ROOT_LINK",
    "UPLINK_LINK",
    "Transport",
    "Subscription",
    "LocalTransport",
    "Downlink",
    "Uplink",
    "CapabilityQuery",
    "PeerTable",
    "Debugger",
    "Codecs",
    "JSONCodec",
    "MsgPackCodec",
    "pack_frame",
    "unpack_frame",
    "try_unpack_frame",
    "BuzzError",
    "MalformedEnvelope",
    "TransportClosed",
    "ConnectorClosed",
    "UnknownCodec",
]

__version__ = "0.1.0"
