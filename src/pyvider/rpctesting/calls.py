"""
Call-shape objects returned by `FakeChannel`.

Each call is bound either to the fake response it was dequeued with or to
the registry error explaining why there was none. The caller observes the
outcome through `concurrent.futures.Future` attributes, so the calls work
in plain synchronous tests and, via `asyncio.wrap_future`, in async ones:

- `initial_metadata`, `trailing_metadata`: resolve with metadata tuples.
- `status`: always resolves with an `RPCStatus`, never with an exception.
- `response` (unary-response shapes only): resolves with the response
  message, or fails with `RPCStatusError` for a non-OK status.

Streaming-response shapes pass each response message to the handler given
when the call was made.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from concurrent.futures import Future
from typing import Any, Generic

import grpc
from pyvider.telemetry import logger

from pyvider.rpctesting.exception import (
    FakeCallStateError,
    FakeResponseError,
    FakeResponseTypeMismatchError,
    RPCStatusError,
)
from pyvider.rpctesting.options import CallOptions, RequestHead
from pyvider.rpctesting.response import (
    FakeRequestPart,
    FakeResponse,
    FakeResponsePart,
    FakeStreamingResponse,
    FakeUnaryResponse,
    ResponsePartKind,
)
from pyvider.rpctesting.status import RPCStatus
from pyvider.rpctesting.types import Metadata, RequestT, ResponseHandlerType, ResponseT


def status_for_registry_error(error: FakeResponseError) -> RPCStatus:
    """The status a call reports when no usable fake response was queued for it."""
    if isinstance(error, FakeResponseTypeMismatchError):
        return RPCStatus(grpc.StatusCode.FAILED_PRECONDITION, str(error))
    return RPCStatus(grpc.StatusCode.UNAVAILABLE, str(error))


class FakeCall(Generic[RequestT, ResponseT]):
    """Base for the four call shapes."""

    def __init__(
        self,
        path: str,
        fake_response: FakeResponse[RequestT, ResponseT] | FakeResponseError,
        call_options: CallOptions,
    ) -> None:
        self.path = path
        self.options = call_options
        self.head: RequestHead | None = None
        self.initial_metadata: Future[Metadata] = Future()
        self.trailing_metadata: Future[Metadata] = Future()
        self.status: Future[RPCStatus] = Future()
        self._request_ended = False
        self._cancelled = False

        if isinstance(fake_response, FakeResponseError):
            self._fake_response: FakeResponse[RequestT, ResponseT] | None = None
            self._finish(status_for_registry_error(fake_response))
        else:
            self._fake_response = fake_response
            fake_response.activate(self)

    def __repr__(self) -> str:
        state = self.status.result() if self.status.done() else "pending"
        return f"{type(self).__name__}(path={self.path!r}, status={state})"

    @property
    def fake_response(self) -> FakeResponse[RequestT, ResponseT] | None:
        return self._fake_response

    def done(self) -> bool:
        return self.status.done()

    def add_done_callback(self, callback: Callable[[FakeCall[RequestT, ResponseT]], None]) -> None:
        """Call `callback(call)` once the call has a status."""
        self.status.add_done_callback(lambda _: callback(self))

    def cancel(self) -> bool:
        """
        Complete the call with CANCELLED.

        Returns:
            True if this cancelled the call, False if it had already finished.
        """
        if self.status.done():
            return False
        logger.debug(f"🎭📞🛑 Cancelling call to {self.path}")
        self._cancelled = True
        self._finish(RPCStatus(grpc.StatusCode.CANCELLED, "Cancelled by client"))
        return True

    async def wait_for_status(self) -> RPCStatus:
        return await asyncio.wrap_future(self.status)

    # Request side

    def send_head(self, head: RequestHead) -> None:
        if self.head is not None:
            raise FakeCallStateError(f"Request head already sent for {self.path}")
        self.head = head
        self._send_request_part(FakeRequestPart.head(head))

    def _send_request_message(self, message: RequestT) -> None:
        if self.head is None:
            raise FakeCallStateError(f"Request head must be sent before messages on {self.path}")
        self._send_request_part(FakeRequestPart.message(message))

    def _send_request_end(self) -> None:
        self._send_request_part(FakeRequestPart.end())
        self._request_ended = True

    def _send_request_part(self, part: FakeRequestPart[RequestT]) -> None:
        if self._request_ended:
            raise FakeCallStateError(f"Request stream for {self.path} has already ended")
        if self._fake_response is None:
            logger.debug(f"🎭📞⚠️ Dropping {part.kind.value} for {self.path}: no fake response bound")
            return
        if self._cancelled:
            logger.warning(f"🎭📞⚠️ Dropping {part.kind.value} for cancelled call to {self.path}")
            return
        self._fake_response.handle_request(part)

    # Response side

    def receive_response_part(self, part: FakeResponsePart) -> None:
        if self.status.done():
            logger.debug(f"🎭📞⚠️ Ignoring {part.kind.value} for finished call to {self.path}")
            return

        match part.kind:
            case ResponsePartKind.INITIAL_METADATA:
                self.initial_metadata.set_result(part.value)
            case ResponsePartKind.MESSAGE:
                self._receive_message(part.value)
            case ResponsePartKind.STATUS:
                self._finish(part.value)

    def _receive_message(self, message: ResponseT) -> None:
        raise NotImplementedError

    def _on_finish(self, status: RPCStatus) -> None:
        """Hook for shapes that settle extra futures when the call finishes."""

    def _finish(self, status: RPCStatus) -> None:
        try:
            self._on_finish(status)
        finally:
            if not self.initial_metadata.done():
                self.initial_metadata.set_result(())
            self.trailing_metadata.set_result(status.trailing_metadata)
            logger.debug(f"🎭📞✅ Call to {self.path} finished with {status}")
            self.status.set_result(status)


class _UnaryResponseCall(FakeCall[RequestT, ResponseT]):
    def __init__(
        self,
        path: str,
        fake_response: FakeUnaryResponse[RequestT, ResponseT] | FakeResponseError,
        call_options: CallOptions,
    ) -> None:
        self.response: Future[ResponseT] = Future()
        self._response_message: list[ResponseT] = []
        super().__init__(path, fake_response, call_options)

    async def wait_for_response(self) -> ResponseT:
        return await asyncio.wrap_future(self.response)

    def _receive_message(self, message: ResponseT) -> None:
        self._response_message.append(message)

    def _finish(self, status: RPCStatus) -> None:
        if status.is_ok and not self._response_message:
            logger.warning(f"🎭📞⚠️ Call to {self.path} completed OK without a response message")
            status = RPCStatus(
                grpc.StatusCode.INTERNAL, "unary call completed without a response", status.trailing_metadata
            )
        super()._finish(status)

    def _on_finish(self, status: RPCStatus) -> None:
        if status.is_ok:
            self.response.set_result(self._response_message[0])
        else:
            self.response.set_exception(RPCStatusError(status))


class _StreamingResponseCall(FakeCall[RequestT, ResponseT]):
    def __init__(
        self,
        path: str,
        fake_response: FakeStreamingResponse[RequestT, ResponseT] | FakeResponseError,
        call_options: CallOptions,
        response_handler: ResponseHandlerType,
    ) -> None:
        self._response_handler = response_handler
        super().__init__(path, fake_response, call_options)

    def _receive_message(self, message: ResponseT) -> None:
        self._response_handler(message)


class _UnaryRequestMixin(FakeCall[RequestT, ResponseT]):
    def send(self, head: RequestHead, request: RequestT) -> None:
        """Send the head, the single request and the end of the request stream."""
        self.send_head(head)
        self._send_request_message(request)
        self._send_request_end()


class _StreamingRequestMixin(FakeCall[RequestT, ResponseT]):
    def send_message(self, message: RequestT) -> None:
        self._send_request_message(message)

    def send_messages(self, messages: Iterable[RequestT]) -> None:
        for message in messages:
            self._send_request_message(message)

    def send_end(self) -> None:
        self._send_request_end()


class UnaryCall(_UnaryRequestMixin[RequestT, ResponseT], _UnaryResponseCall[RequestT, ResponseT]):
    """One request, one response."""


class ServerStreamingCall(_UnaryRequestMixin[RequestT, ResponseT], _StreamingResponseCall[RequestT, ResponseT]):
    """One request, a stream of responses."""


class ClientStreamingCall(_StreamingRequestMixin[RequestT, ResponseT], _UnaryResponseCall[RequestT, ResponseT]):
    """A stream of requests, one response."""


class BidirectionalStreamingCall(
    _StreamingRequestMixin[RequestT, ResponseT], _StreamingResponseCall[RequestT, ResponseT]
):
    """Streams in both directions."""


def collecting_handler(into: list[Any]) -> ResponseHandlerType:
    """A response handler that appends every streamed response to `into`."""
    return into.append

# 🐍🎭🔌
