# tests/fixtures/channel.py

import pytest

from google.protobuf.wrappers_pb2 import StringValue
from pyvider.telemetry import logger
from pyvider.rpctesting import FakeChannel, FakeRequestPart, call_options

from tests.fixtures.messages import GREETER_HELLO, greeting


class PartRecorder:
    """Request handler that records every request part it is given."""

    def __init__(self) -> None:
        self.parts: list[FakeRequestPart] = []

    def __call__(self, part: FakeRequestPart) -> None:
        logger.debug(f"🧪🎭🐛 Recorded request part: {part.kind.value}")
        self.parts.append(part)

    @property
    def kinds(self) -> list[str]:
        return [part.kind.value for part in self.parts]

    @property
    def head(self):
        assert self.parts and self.parts[0].is_head, "no request head recorded"
        return self.parts[0].value


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def restoring_channel() -> FakeChannel:
    return FakeChannel(restore_on_type_mismatch=True)


@pytest.fixture
def recorder() -> PartRecorder:
    return PartRecorder()


@pytest.fixture
def fixed_options():
    return call_options(metadata=[("x-trace", "abc")], request_id="req-1")


def register_greeter(channel: FakeChannel, path: str = GREETER_HELLO):
    """Queue a unary fake response that answers each request with its greeting."""

    def on_request(part: FakeRequestPart) -> None:
        if part.is_message:
            fake.send_message(greeting(part.value))

    fake = channel.make_fake_unary_response(path, on_request, StringValue, StringValue)
    return fake
