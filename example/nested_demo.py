
import asyncio
import logging

from buzz import Buzz, Downlink, LocalTransport, runtime

async def main():
    # A host context with one embedded document, bridged on link "documents"
    host = LocalTransport("host")
    viewer = host.spawn("viewer")
    Downlink(host, viewer, link="documents", extensions={"frame": "viewer"})

    def open_document(message):
        print("host got", message.payload(), "from", message.sender_name)
        message.reply({"ok": True, "title": "Quarterly report"})

    Buzz("host-shell", transport=host, link="documents",
         capabilities={"open-document": open_document})

    runtime.on_ready(viewer, lambda ctx: print("bus ready in", ctx.identity))
    doc = Buzz("viewer-app", transport=viewer)

    doc.query_capability("open-document",
                         lambda msg: print("supported by", msg.payload()))
    doc.call("open-document", {}, {"id": 42},
             lambda msg: print("RESP from host:", msg.payload()))

    await asyncio.sleep(0.1)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
