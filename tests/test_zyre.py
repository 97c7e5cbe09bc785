import pytest

pytest.importorskip("zyre")

from buzz import Connector
from buzz.transports.zyre import ZyreTransport


def test_local_round_trip(loop, drain):
    context = ZyreTransport("buzz-test-context", loop=loop)
    try:
        a = Connector(context)
        b = Connector(context)
        b.add_capability("echo", lambda m: m.reply(m.payload()))

        replies = []
        a.call("echo", {}, {"n": 1}, replies.append)
        drain()

        assert replies[0].payload() == {"n": 1}
        assert context.parent is None
    finally:
        context.close()


def test_parent_view_shares_node(loop):
    context = ZyreTransport("buzz-test-child", parent="buzz-test-parent", loop=loop)
    try:
        assert context.parent.identity == "buzz-test-parent"
        assert context.is_nested
    finally:
        context.close()
