"""
grpc multi-callables backed by fake calls.

These let a generated `*_pb2_grpc` stub be constructed directly on a
`FakeChannel`. Each invocation makes the matching fake call, feeds it the
request(s), and waits for the fake response to complete it. Payload types
are not checked: the stub's serializers carry no Python types.

Waiting is bounded by RPCTESTING_BLOCKING_WAIT_TIMEOUT (or the call's own
`timeout`), so a test that forgot to send a response fails instead of
hanging.

`with_call` returns a `FakeGrpcCall`, a `grpc.Call` view over the finished
fake call; the fake call itself stays reachable as `fake_call`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING, Any, TypeVar

import grpc
from pyvider.telemetry import logger

from pyvider.rpctesting.calls import FakeCall, UnaryCall, ClientStreamingCall, collecting_handler
from pyvider.rpctesting.config import rpctesting_config
from pyvider.rpctesting.exception import RPCStatusError
from pyvider.rpctesting.options import CallOptions
from pyvider.rpctesting.status import RPCStatus

if TYPE_CHECKING:
    from pyvider.rpctesting.channel import FakeChannel

ResultT = TypeVar("ResultT")


def _call_options(timeout: float | None, metadata: Any) -> CallOptions:
    return CallOptions(custom_metadata=metadata, timeout=timeout)


def _wait(future: Future[ResultT], call: FakeCall[Any, Any], timeout: float | None) -> ResultT:
    wait_for = timeout if timeout is not None else rpctesting_config().blocking_wait_timeout()
    try:
        return future.result(timeout=wait_for)
    except FutureTimeoutError:
        logger.warning(f"🎭📞⏰ No fake response completed {call.path} within {wait_for}s")
        call.cancel()
        raise RPCStatusError(
            RPCStatus(
                grpc.StatusCode.DEADLINE_EXCEEDED,
                f"No fake response completed the call to {call.path} within {wait_for}s",
            )
        ) from None


def _stream_responses(
    call: FakeCall[Any, Any], responses: list[Any], timeout: float | None
) -> Iterator[Any]:
    status = _wait(call.status, call, timeout)
    yield from responses
    if not status.is_ok:
        raise RPCStatusError(status)


class FakeGrpcCall(grpc.Call):
    """The `grpc.Call` interface over a fake call."""

    def __init__(self, call: FakeCall[Any, Any]) -> None:
        self.fake_call = call

    def __repr__(self) -> str:
        return f"FakeGrpcCall({self.fake_call!r})"

    def initial_metadata(self):
        return self.fake_call.initial_metadata.result()

    def trailing_metadata(self):
        return self.fake_call.trailing_metadata.result()

    def code(self) -> grpc.StatusCode:
        return self.fake_call.status.result().code

    def details(self) -> str:
        return self.fake_call.status.result().message

    def is_active(self) -> bool:
        return not self.fake_call.done()

    def time_remaining(self):
        return None

    def cancel(self) -> bool:
        return self.fake_call.cancel()

    def add_callback(self, callback) -> bool:
        if self.fake_call.done():
            return False
        self.fake_call.add_done_callback(lambda _: callback())
        return True


class _FakeMultiCallable:
    def __init__(self, channel: FakeChannel, method: str) -> None:
        self._channel = channel
        self._method = method

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._method!r})"


class FakeUnaryUnaryMultiCallable(_FakeMultiCallable, grpc.UnaryUnaryMultiCallable):
    def _make_call(self, request: Any, timeout: float | None, metadata: Any) -> UnaryCall[Any, Any]:
        return self._channel.make_unary_call(self._method, request, _call_options(timeout, metadata))

    def __call__(self, request, timeout=None, metadata=None, credentials=None, wait_for_ready=None, compression=None):
        call = self._make_call(request, timeout, metadata)
        return _wait(call.response, call, timeout)

    def with_call(self, request, timeout=None, metadata=None, credentials=None, wait_for_ready=None, compression=None):
        call = self._make_call(request, timeout, metadata)
        return _wait(call.response, call, timeout), FakeGrpcCall(call)

    def future(self, request, timeout=None, metadata=None, credentials=None, wait_for_ready=None, compression=None):
        return self._make_call(request, timeout, metadata).response


class FakeUnaryStreamMultiCallable(_FakeMultiCallable, grpc.UnaryStreamMultiCallable):
    def __call__(self, request, timeout=None, metadata=None, credentials=None, wait_for_ready=None, compression=None):
        responses: list[Any] = []
        call = self._channel.make_server_streaming_call(
            self._method, request, _call_options(timeout, metadata), handler=collecting_handler(responses)
        )
        return _stream_responses(call, responses, timeout)


class FakeStreamUnaryMultiCallable(_FakeMultiCallable, grpc.StreamUnaryMultiCallable):
    def _make_call(
        self, request_iterator: Iterable[Any], timeout: float | None, metadata: Any
    ) -> ClientStreamingCall[Any, Any]:
        call = self._channel.make_client_streaming_call(self._method, _call_options(timeout, metadata))
        call.send_messages(request_iterator)
        call.send_end()
        return call

    def __call__(self, request_iterator, timeout=None, metadata=None, credentials=None, wait_for_ready=None, compression=None):
        call = self._make_call(request_iterator, timeout, metadata)
        return _wait(call.response, call, timeout)

    def with_call(self, request_iterator, timeout=None, metadata=None, credentials=None, wait_for_ready=None, compression=None):
        call = self._make_call(request_iterator, timeout, metadata)
        return _wait(call.response, call, timeout), FakeGrpcCall(call)

    def future(self, request_iterator, timeout=None, metadata=None, credentials=None, wait_for_ready=None, compression=None):
        return self._make_call(request_iterator, timeout, metadata).response


class FakeStreamStreamMultiCallable(_FakeMultiCallable, grpc.StreamStreamMultiCallable):
    def __call__(self, request_iterator, timeout=None, metadata=None, credentials=None, wait_for_ready=None, compression=None):
        responses: list[Any] = []
        call = self._channel.make_bidirectional_streaming_call(
            self._method, _call_options(timeout, metadata), handler=collecting_handler(responses)
        )
        call.send_messages(request_iterator)
        call.send_end()
        return _stream_responses(call, responses, timeout)

# 🐍🎭🔌
