import json
import logging

import buzz
from buzz import Connector, Debugger, Downlink, ROOT_LINK, UPLINK_LINK, runtime, try_unpack_frame


def test_relay_transparency(context, drain):
    child = context.spawn("child")
    Downlink(context, child, link="foo", extensions={"frame": "child"})
    runtime.initialize(child)

    seen = []
    def ping(message):
        seen.append(message.envelope())
        message.reply({"pong": True})
    parent = Connector(context, "parent", link="foo")
    parent.add_capability("ping", ping)

    kid = Connector(child, "kid")
    replies = []
    kid.call("ping", {}, {"n": 1}, replies.append)
    drain()

    assert len(seen) == 1
    env = seen[0]
    assert env.link == "foo"
    assert env.relayed
    assert env.sender == kid.uid
    assert env.sender_name == "kid"
    assert env.payload == {"n": 1, "frame": "child"}

    assert len(replies) == 1
    assert replies[0].payload() == {"pong": True}
    assert replies[0].envelope().link == ROOT_LINK
    assert kid.pending_calls == []


def test_relay_keeps_links_apart(context, drain):
    child = context.spawn("child")
    Downlink(context, child, link="foo")
    runtime.initialize(child)

    seen = []
    for link in ("foo", "bar", ROOT_LINK):
        Connector(context, link=link).add_capability("note", lambda m, l=link: seen.append(l))

    Connector(child).send_message("note")
    drain()

    assert seen == ["foo"]


def test_parent_traffic_reaches_child(context, drain):
    child = context.spawn("child")
    Downlink(context, child, link="foo")
    runtime.initialize(child)

    seen = []
    Connector(child).add_capability("note", lambda m: seen.append(m.envelope().link))
    Connector(context, link="foo").send_message("note")
    Connector(context, link="bar").send_message("note")
    drain()

    assert seen == [ROOT_LINK]


def test_uplink_installed_once(context, drain):
    child = context.spawn("child")
    for _ in range(3):
        runtime.initialize(child)
    assert runtime.install_uplink(child) is runtime.uplink_for(child)

    forwarded = []
    def count(frame, source):
        env = try_unpack_frame(frame)
        if source == child.identity and env is not None and env.link == UPLINK_LINK:
            forwarded.append(env)
    context.on_message(count)

    kid = Connector(child)
    message_id = kid.send_message("note", {}, {})
    drain()

    assert [env.message_id for env in forwarded] == [message_id]


def test_root_context_has_no_uplink(context):
    assert runtime.initialize(context) is None
    assert runtime.uplink_for(context) is None


def test_three_levels(context, drain):
    middle = context.spawn("middle")
    leaf = middle.spawn("leaf")
    Downlink(context, middle, link="docs", extensions={"via": "top"})
    Downlink(middle, leaf)
    runtime.initialize(middle)
    runtime.initialize(leaf)

    top = Connector(context, "top", link="docs")
    seen = []
    def lookup(message):
        seen.append(message.payload())
        message.reply({"title": "Report"})
    top.add_capability("lookup", lookup)

    found = []
    replies = []
    reader = Connector(leaf, "reader")
    reader.query_capability("lookup", found.append)
    reader.call("lookup", {}, {"id": 7}, replies.append)
    drain()

    assert seen == [{"id": 7, "via": "top"}]
    assert found[0].payload() == {"uid": top.uid, "name": "top"}
    assert replies[0].payload() == {"title": "Report"}


def test_rename_notice(context, drain):
    child = context.spawn("child")
    frames = []
    child.on_message(lambda frame, source: frames.append((json.loads(frame), source)))
    kid = Connector(child)
    kid.add_capability("rename-buzz-link", lambda m: frames.append("dispatched"))

    Downlink(context, child, link="foo")
    Downlink(context, context.spawn("other"))
    drain()

    assert frames == [({"command": "rename-buzz-link", "name": "foo"}, context.identity)]


def test_closed_downlink_stops_forwarding(context, drain):
    child = context.spawn("child")
    runtime.initialize(child)
    seen = []
    Connector(context).add_capability("note", seen.append)

    with Downlink(context, child):
        pass
    Connector(child).send_message("note")
    drain()

    assert seen == []


def test_rename_notice_is_not_an_envelope(context, drain, caplog):
    middle = context.spawn("middle")
    leaf = middle.spawn("leaf")
    Downlink(middle, leaf, link="foo")
    Debugger(middle)
    Debugger(leaf)

    leaf_frames = []
    leaf.on_message(lambda frame, source: leaf_frames.append(json.loads(frame)))

    with caplog.at_level(logging.INFO, logger="buzz.debugger"):
        Downlink(context, middle, link="foo")
        drain()

    assert try_unpack_frame('{"command": "rename-buzz-link", "name": "foo"}') is None
    assert [r for r in caplog.records if r.name == "buzz.debugger"] == []
    # only the leaf's own notice, nothing forwarded from above
    assert leaf_frames == [{"command": "rename-buzz-link", "name": "foo"}]


def test_relayed_message_not_sent_back_down(context, drain):
    child = context.spawn("child")
    Downlink(context, child)
    runtime.initialize(child)

    host_seen = []
    Connector(context).add_capability("note", lambda m: host_seen.append(m.message_id))

    sender = Connector(child)
    sibling = Connector(child)
    sibling_seen = []
    sibling.add_capability("note", lambda m: sibling_seen.append(m.message_id))

    message_id = sender.send_message("note")
    drain()

    assert sibling_seen == [message_id]
    assert host_seen == [message_id]


def test_downlink_detaches_from_closed_child(context, drain, caplog):
    child = context.spawn("child")
    downlink = Downlink(context, child, link="foo")
    Connector(context, link="foo")
    listeners = context.listener_count
    child.close()

    with caplog.at_level(logging.DEBUG):
        Connector(context, link="foo").send_message("note")
        Connector(context, link="foo").send_message("note")
        drain()

    assert [r for r in caplog.records if r.levelno >= logging.ERROR] == []
    assert context.listener_count == listeners + 2 - 1
    downlink.close()


def test_uplink_detaches_from_closed_parent(context, drain, caplog):
    child = context.spawn("child")
    uplink = runtime.initialize(child)
    context.close()

    with caplog.at_level(logging.DEBUG):
        Connector(child).send_message("note")
        drain()

    assert [r for r in caplog.records if r.levelno >= logging.ERROR] == []
    assert not uplink.active
