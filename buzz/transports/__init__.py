"""Transport implementations. The Zyre one is imported on demand."""

from .inmemory import LocalTransport

__all__ = ["LocalTransport"]
