import logging

from buzz import Connector, Debugger


def test_logs_envelopes(context, drain, caplog):
    debugger = Debugger(context)
    Connector(context, "alpha", link="docs").send_message("note", {}, {"n": 1})
    context.broadcast("unrelated traffic")

    with caplog.at_level(logging.INFO, logger="buzz.debugger"):
        drain()

    records = [r for r in caplog.records if r.name == "buzz.debugger"]
    assert len(records) == 1
    record = records[0]
    assert record.link == "docs"
    assert record.type == "note"
    assert record.senderName == "alpha"
    assert record.payload == {"n": 1}

    debugger.close()
    caplog.clear()
    Connector(context).send_message("note")
    with caplog.at_level(logging.INFO, logger="buzz.debugger"):
        drain()
    assert caplog.records == []


def test_does_not_route(context, drain):
    Debugger(context)
    a = Connector(context)
    b = Connector(context)
    b.add_capability("echo", lambda m: m.reply({}))

    replies = []
    a.call("echo", {}, {}, replies.append)
    drain()

    assert len(replies) == 1
