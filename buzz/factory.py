
from __future__ import annotations
from typing import Any, Mapping, Optional, Union, Callable

from . import runtime
from .codecs import Codecs
from .config import settings
from .connector import Connector
from .transport import Transport

def Buzz(name: Optional[str] = None,
         *,
         transport: Union[str, Transport] = "inmemory",
         link: Optional[str] = None,
         codec: Union[str, Any, None] = None,
         capabilities: Optional[Mapping[str, Callable]] = None,
         **transport_kwargs) -> Connector:
    """
    One-liner factory:
      Buzz("viewer", transport=child_context, capabilities={"open-document": handler})
      Buzz("host", transport="zyre", identity="host-ctx", link="documents")

    - name: connector display name
    - transport: "inmemory" | "zyre" | Transport instance
    - link: link to join (default root link)
    - codec: "json" | "msgpack" | Codec instance (default from BUZZ_CODEC)
    - capabilities: dict type->handler registered on the connector
    - **transport_kwargs: passed to transport constructor

    The context is initialised (uplink when nested, ready signal) and, with
    BUZZ_DEBUG set, gets a Debugger.
    """
    # Resolve codec
    if codec is None:
        codec_obj = Codecs.get(settings().codec)
    elif isinstance(codec, str):
        codec_obj = Codecs.get(codec)
    else:
        codec_obj = codec

    # Resolve transport
    if isinstance(transport, str):
        tlabel = transport.lower()
        if tlabel == "inmemory":
            from .transports.inmemory import LocalTransport
            t = LocalTransport(**transport_kwargs)
        elif tlabel == "zyre":
            from .transports.zyre import ZyreTransport
            t = ZyreTransport(**transport_kwargs)
        else:
            raise ValueError(f"Unknown transport label: {transport}")
    else:
        t = transport

    runtime.initialize(t, codec=codec_obj)
    if settings().debug:
        runtime.attach_debugger(t, codec=codec_obj)

    connector = Connector(t, name, link, codec=codec_obj)
    for msg_type, handler in (capabilities or {}).items():
        connector.add_capability(msg_type, handler)
    return connector
