import json
import pytest

import buzz
from buzz import Envelope, MalformedEnvelope, pack_frame, unpack_frame, try_unpack_frame


def make_envelope(**changes):
    env = Envelope(link="buzzRoot", type="ping", sender="a-1", sender_name="alpha",
                   message_id="a-2", payload={"n": 1})
    return env.evolve(**changes)


def test_wire_names():
    frame = pack_frame(make_envelope(receiver="b-1"))
    obj = json.loads(frame)

    assert obj["link"] == "buzzRoot"
    assert obj["senderName"] == "alpha"
    assert obj["messageId"] == "a-2"
    assert obj["receiver"] == "b-1"
    assert "reply" not in obj
    assert "relayed" not in obj


def test_unpack_restores_envelope():
    env = make_envelope(reply="x-9", receiver="b-1", relayed=True)
    assert unpack_frame(pack_frame(env)) == env


def test_unknown_fields_survive():
    frame = json.dumps({"link": "docs", "type": "ping", "sender": "s", "messageId": "m",
                        "payload": {}, "trace": {"hop": 2}})

    env = unpack_frame(frame)
    assert env.extras == {"trace": {"hop": 2}}
    assert json.loads(pack_frame(env))["trace"] == {"hop": 2}


def test_missing_payload_is_empty():
    env = unpack_frame('{"link": "buzzRoot", "type": "ping", "sender": "s", "messageId": "m"}')
    assert env.payload == {}
    assert env.sender_name == "s"


@pytest.mark.parametrize("frame", [
    "not json at all",
    "[1, 2, 3]",
    '"a string"',
    '{"type": "ping"}',
    '{"link": 5}',
    '{"link": "buzzRoot", "payload": [1]}',
    b"\xff\xfe",
])
def test_malformed_frames(frame):
    with pytest.raises(MalformedEnvelope):
        unpack_frame(frame)
    assert try_unpack_frame(frame) is None


def test_msgpack_codec():
    codec = buzz.Codecs.get("msgpack")
    env = make_envelope(payload={"blob": b"\x00\x01"})

    frame = pack_frame(env, codec)
    assert isinstance(frame, bytes)
    assert unpack_frame(frame, codec) == env

    # a text frame is foreign traffic for a msgpack bus
    assert try_unpack_frame(pack_frame(make_envelope()), codec) is None


def test_unknown_codec():
    with pytest.raises(buzz.UnknownCodec):
        buzz.Codecs.get("xml")
    with pytest.raises(ValueError):
        buzz.Codecs.get("xml")
