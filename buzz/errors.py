"""Exceptions raised by the bus.

Delivery failures are never raised; these cover programmer errors and the
codec boundary, where callers decide whether to swallow them.
"""


class BuzzError(Exception):
    """Base class for all bus errors."""


class MalformedEnvelope(BuzzError):
    """A frame could not be decoded into an envelope."""


class TransportClosed(BuzzError):
    """The transport has been closed and can no longer move frames."""


class ConnectorClosed(BuzzError):
    """The connector has been closed and can no longer send."""


class UnknownCodec(BuzzError, ValueError):
    """No codec is registered under the requested name."""
