"""
Fake responses for calls made on a `FakeChannel`.

A fake response is registered for a path before the call it serves is made.
It plays two roles:

1. It observes the call's inbound request parts (head, each message, end)
   through the request handler supplied by test code.
2. It is the handle test code uses to push response parts (initial
   metadata, messages, final status) back into the call.

Response parts sent before a call has taken the fake response are buffered
and replayed, in order, the moment a call activates it.

`FakeUnaryResponse` serves unary and client-streaming calls;
`FakeStreamingResponse` serves server-streaming and bidirectional calls.
"""

from __future__ import annotations

import enum
from collections import deque
from typing import Any, Generic, Protocol, TypeVar

from attrs import define, field
from pyvider.telemetry import logger

from pyvider.rpctesting.exception import FakeResponseStateError
from pyvider.rpctesting.options import RequestHead
from pyvider.rpctesting.status import RPCStatus
from pyvider.rpctesting.types import (
    Metadata,
    MetadataLike,
    RequestHandlerType,
    RequestT,
    ResponseT,
    normalize_metadata,
)

VariantT = TypeVar("VariantT", bound="FakeResponse[Any, Any]")


class RequestPartKind(enum.Enum):
    HEAD = "head"
    MESSAGE = "message"
    END = "end"


class ResponsePartKind(enum.Enum):
    INITIAL_METADATA = "initial_metadata"
    MESSAGE = "message"
    STATUS = "status"


@define(frozen=True, slots=True)
class FakeRequestPart(Generic[RequestT]):
    """One inbound request part, as seen by a fake response's request handler."""

    kind: RequestPartKind
    value: Any = field(default=None)

    @classmethod
    def head(cls, request_head: RequestHead) -> FakeRequestPart[Any]:
        return cls(RequestPartKind.HEAD, request_head)

    @classmethod
    def message(cls, message: RequestT) -> FakeRequestPart[RequestT]:
        return cls(RequestPartKind.MESSAGE, message)

    @classmethod
    def end(cls) -> FakeRequestPart[Any]:
        return cls(RequestPartKind.END)

    @property
    def is_head(self) -> bool:
        return self.kind is RequestPartKind.HEAD

    @property
    def is_message(self) -> bool:
        return self.kind is RequestPartKind.MESSAGE

    @property
    def is_end(self) -> bool:
        return self.kind is RequestPartKind.END


@define(frozen=True, slots=True)
class FakeResponsePart:
    kind: ResponsePartKind
    value: Any = field(default=None)


class ResponsePartReceiver(Protocol):
    """What a fake response delivers its response parts to: the call that took it."""

    def receive_response_part(self, part: FakeResponsePart) -> None: ...


class _ResponseState(enum.Enum):
    IDLE = "idle"                  # nothing sent yet
    HEADERS_SENT = "headers_sent"  # initial metadata sent
    CLOSED = "closed"              # status sent


class FakeResponse(Generic[RequestT, ResponseT]):
    """
    Untyped base for fake responses.

    This is the form the response registry stores. The request and response
    payload types are kept as plain attributes so the registry can hand the
    response back only to a caller expecting the same types (see `cast`).
    A type of None matches any type.
    """

    def __init__(
        self,
        request_handler: RequestHandlerType | None = None,
        request_type: type[RequestT] | None = None,
        response_type: type[ResponseT] | None = None,
    ) -> None:
        self.request_type = request_type
        self.response_type = response_type
        self.request_parts: list[FakeRequestPart[RequestT]] = []
        self._request_handler = request_handler
        self._receiver: ResponsePartReceiver | None = None
        self._buffer: deque[FakeResponsePart] = deque()
        self._state = _ResponseState.IDLE

    def __repr__(self) -> str:
        return f"{self.describe()}(state={self._state.value}, active={self.is_active})"

    def describe(self) -> str:
        request_name = getattr(self.request_type, "__name__", "Any")
        response_name = getattr(self.response_type, "__name__", "Any")
        return f"{type(self).__name__}[{request_name}, {response_name}]"

    @property
    def is_active(self) -> bool:
        """True once a call has taken this fake response."""
        return self._receiver is not None

    @property
    def is_closed(self) -> bool:
        """True once a final status has been sent."""
        return self._state is _ResponseState.CLOSED

    def cast(
        self, variant: type[VariantT], request_type: type | None, response_type: type | None
    ) -> VariantT | None:
        """
        Recover this fake response as `variant` with the given payload types.

        Returns:
            This object if it is a `variant` registered for matching types,
            None otherwise.
        """
        if not isinstance(self, variant):
            return None
        if not _types_match(self.request_type, request_type):
            return None
        if not _types_match(self.response_type, response_type):
            return None
        return self

    def activate(self, receiver: ResponsePartReceiver) -> None:
        """Bind this fake response to the call it serves and flush buffered parts."""
        if self._receiver is not None:
            raise FakeResponseStateError(f"{self.describe()} is already bound to a call")

        self._receiver = receiver
        logger.debug(f"🎭📤🔗 {self.describe()} activated, flushing {len(self._buffer)} buffered part(s)")
        while self._buffer:
            receiver.receive_response_part(self._buffer.popleft())

    def handle_request(self, part: FakeRequestPart[RequestT]) -> None:
        """Record an inbound request part and pass it to the request handler."""
        self.request_parts.append(part)
        if self._request_handler is not None:
            self._request_handler(part)

    @property
    def request_messages(self) -> list[RequestT]:
        """The request messages seen so far, in order."""
        return [part.value for part in self.request_parts if part.is_message]

    def send_error(self, error: BaseException, trailing_metadata: MetadataLike = ()) -> None:
        """
        Fail the call with `error`.

        An `RPCStatusError` keeps its status; any other error is reported
        with status UNKNOWN.
        """
        self._ensure_open("send_error")
        self._close(RPCStatus.from_exception(error, normalize_metadata(trailing_metadata)))

    def _ensure_open(self, operation: str) -> None:
        if self._state is _ResponseState.CLOSED:
            raise FakeResponseStateError(
                f"Cannot {operation} on {self.describe()}: the response stream is already closed"
            )

    def _send_initial_metadata(self, metadata: Metadata) -> None:
        self._state = _ResponseState.HEADERS_SENT
        self._emit(FakeResponsePart(ResponsePartKind.INITIAL_METADATA, metadata))

    def _send_message(self, message: ResponseT) -> None:
        if self._state is _ResponseState.IDLE:
            self._send_initial_metadata(())
        self._emit(FakeResponsePart(ResponsePartKind.MESSAGE, message))

    def _close(self, status: RPCStatus) -> None:
        self._state = _ResponseState.CLOSED
        self._emit(FakeResponsePart(ResponsePartKind.STATUS, status))

    def _emit(self, part: FakeResponsePart) -> None:
        if self._receiver is None:
            self._buffer.append(part)
        else:
            self._receiver.receive_response_part(part)


class FakeUnaryResponse(FakeResponse[RequestT, ResponseT]):
    """A fake response producing exactly one message (or an error)."""

    def send_message(
        self,
        response: ResponseT,
        initial_metadata: MetadataLike = (),
        trailing_metadata: MetadataLike = (),
        status: RPCStatus | None = None,
    ) -> None:
        """
        Send the response message, then close the call.

        Args:
            response: The response message
            initial_metadata: Metadata sent before the message
            trailing_metadata: Metadata sent with the status
            status: Final status, OK by default
        """
        self._ensure_open("send_message")
        if self._state is not _ResponseState.IDLE:
            raise FakeResponseStateError(f"{self.describe()} has already sent its response")

        final = status or RPCStatus.ok()
        self._send_initial_metadata(normalize_metadata(initial_metadata))
        self._send_message(response)
        self._close(RPCStatus(final.code, final.message, final.trailing_metadata + normalize_metadata(trailing_metadata)))


class FakeStreamingResponse(FakeResponse[RequestT, ResponseT]):
    """A fake response producing any number of messages followed by a status."""

    def send_initial_metadata(self, metadata: MetadataLike = ()) -> None:
        self._ensure_open("send_initial_metadata")
        if self._state is not _ResponseState.IDLE:
            raise FakeResponseStateError(f"{self.describe()} has already sent initial metadata")
        self._send_initial_metadata(normalize_metadata(metadata))

    def send_message(self, response: ResponseT) -> None:
        """Send one response message; empty initial metadata is sent first if needed."""
        self._ensure_open("send_message")
        self._send_message(response)

    def send_end(self, status: RPCStatus | None = None, trailing_metadata: MetadataLike = ()) -> None:
        """Close the response stream with `status` (OK by default)."""
        self._ensure_open("send_end")
        final = status or RPCStatus.ok()
        self._close(RPCStatus(final.code, final.message, final.trailing_metadata + normalize_metadata(trailing_metadata)))


def _types_match(stored: type | None, expected: type | None) -> bool:
    return stored is None or expected is None or stored is expected

# 🐍🎭🔌
