import asyncio
import pytest

import buzz
from buzz import config


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    for name in ("BUZZ_CODEC", "BUZZ_CALL_TIMEOUT", "BUZZ_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    config.reload()
    buzz.runtime.reset()

    yield

    buzz.runtime.reset()
    config.reload()


@pytest.fixture
def loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def drain(loop):
    """ Run the loop until every pending call_soon delivery has happened.
        Each relay hop costs one iteration; fifty is far more than any
        test topology needs.
    """

    def _drain(turns=50):
        async def _idle():
            for _ in range(turns):
                await asyncio.sleep(0)
        loop.run_until_complete(_idle())

    return _drain


@pytest.fixture
def context(loop):
    return buzz.LocalTransport("top", loop=loop)
