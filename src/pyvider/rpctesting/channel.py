"""
FakeChannel: a channel for generated RPC clients that never touches the network.

Calls made on the channel are served by fake responses registered for their
path beforehand, first registered first served. Each call-shape factory
takes the next fake response for the path, synthesizes a request head,
builds the call bound to that fake response and sends the request head
(plus the request, for unary-request shapes) into it.

A call made against a path with nothing usable queued is still returned;
its status reports UNAVAILABLE (nothing queued) or FAILED_PRECONDITION
(queued for other payload types) instead of raising at the call site.

Example:
    ```python
    channel = FakeChannel()
    fake = channel.make_fake_unary_response(
        "/helloworld.Greeter/SayHello", request_type=HelloRequest, response_type=HelloReply
    )
    fake.send_message(HelloReply(message="Hello, World"))

    call = channel.make_unary_call(
        "/helloworld.Greeter/SayHello",
        HelloRequest(name="World"),
        request_type=HelloRequest,
        response_type=HelloReply,
    )
    assert call.response.result().message == "Hello, World"
    ```
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Any, TypeVar

import attrs
import grpc
from pyvider.telemetry import logger

from pyvider.rpctesting.calls import (
    BidirectionalStreamingCall,
    ClientStreamingCall,
    FakeCall,
    ServerStreamingCall,
    UnaryCall,
)
from pyvider.rpctesting.config import rpctesting_config
from pyvider.rpctesting.exception import FakeResponseError
from pyvider.rpctesting.multicallable import (
    FakeStreamStreamMultiCallable,
    FakeStreamUnaryMultiCallable,
    FakeUnaryStreamMultiCallable,
    FakeUnaryUnaryMultiCallable,
)
from pyvider.rpctesting.options import CallOptions, RequestHead
from pyvider.rpctesting.registry import ResponseKey, ResponseRegistry
from pyvider.rpctesting.response import FakeResponse, FakeStreamingResponse, FakeUnaryResponse
from pyvider.rpctesting.types import RequestHandlerType, RequestT, ResponseHandlerType, ResponseT

CallT = TypeVar("CallT", bound=FakeCall[Any, Any])
FakeResponseT = TypeVar("FakeResponseT", bound=FakeResponse[Any, Any])

# Marks the client-streaming shapes, which send no request at construction.
_NO_REQUEST: Any = object()


class FakeChannel(grpc.Channel):
    """
    A fake channel for use with generated test clients.

    Args:
        restore_on_type_mismatch: Whether a fake response dequeued for the
            wrong payload types goes back on its queue. Defaults to the
            RPCTESTING_RESTORE_ON_TYPE_MISMATCH configuration value.
    """

    def __init__(self, restore_on_type_mismatch: bool | None = None) -> None:
        if restore_on_type_mismatch is None:
            restore_on_type_mismatch = rpctesting_config().restore_on_type_mismatch()
        self._registry = ResponseRegistry(restore_on_type_mismatch=restore_on_type_mismatch)
        logger.debug(f"🎭📡✅ FakeChannel created (restore_on_type_mismatch={restore_on_type_mismatch})")

    @property
    def registry(self) -> ResponseRegistry:
        return self._registry

    # Fake response registration

    def register(self, path: str, fake_response: FakeResponseT) -> FakeResponseT:
        """Queue an existing fake response for `path`."""
        return self._registry.register(path, fake_response)

    def make_fake_unary_response(
        self,
        path: str,
        request_handler: RequestHandlerType | None = None,
        request_type: type[RequestT] | None = None,
        response_type: type[ResponseT] | None = None,
    ) -> FakeUnaryResponse[RequestT, ResponseT]:
        """Make and queue a fake unary response for `path` (unary and client-streaming calls)."""
        return self.register(path, FakeUnaryResponse(request_handler, request_type, response_type))

    def make_fake_streaming_response(
        self,
        path: str,
        request_handler: RequestHandlerType | None = None,
        request_type: type[RequestT] | None = None,
        response_type: type[ResponseT] | None = None,
    ) -> FakeStreamingResponse[RequestT, ResponseT]:
        """Make and queue a fake streaming response for `path` (server and bidirectional streaming calls)."""
        return self.register(path, FakeStreamingResponse(request_handler, request_type, response_type))

    def has_fake_response_enqueued(self, path: str) -> bool:
        """Returns True if there are fake responses enqueued for the given path."""
        return self._registry.has_pending(path)

    has_pending = has_fake_response_enqueued

    # Call-shape factories

    def make_unary_call(
        self,
        path: str,
        request: RequestT,
        call_options: CallOptions | None = None,
        *,
        request_type: type[RequestT] | None = None,
        response_type: type[ResponseT] | None = None,
    ) -> UnaryCall[RequestT, ResponseT]:
        return self._start_call(
            UnaryCall,
            ResponseKey(FakeUnaryResponse, request_type, response_type),
            path,
            call_options,
            request=request,
        )

    def make_server_streaming_call(
        self,
        path: str,
        request: RequestT,
        call_options: CallOptions | None = None,
        *,
        handler: ResponseHandlerType,
        request_type: type[RequestT] | None = None,
        response_type: type[ResponseT] | None = None,
    ) -> ServerStreamingCall[RequestT, ResponseT]:
        return self._start_call(
            ServerStreamingCall,
            ResponseKey(FakeStreamingResponse, request_type, response_type),
            path,
            call_options,
            request=request,
            response_handler=handler,
        )

    def make_client_streaming_call(
        self,
        path: str,
        call_options: CallOptions | None = None,
        *,
        request_type: type[RequestT] | None = None,
        response_type: type[ResponseT] | None = None,
    ) -> ClientStreamingCall[RequestT, ResponseT]:
        return self._start_call(
            ClientStreamingCall,
            ResponseKey(FakeUnaryResponse, request_type, response_type),
            path,
            call_options,
        )

    def make_bidirectional_streaming_call(
        self,
        path: str,
        call_options: CallOptions | None = None,
        *,
        handler: ResponseHandlerType,
        request_type: type[RequestT] | None = None,
        response_type: type[ResponseT] | None = None,
    ) -> BidirectionalStreamingCall[RequestT, ResponseT]:
        return self._start_call(
            BidirectionalStreamingCall,
            ResponseKey(FakeStreamingResponse, request_type, response_type),
            path,
            call_options,
            response_handler=handler,
        )

    def _start_call(
        self,
        call_class: type[CallT],
        expected: ResponseKey[Any],
        path: str,
        call_options: CallOptions | None,
        request: Any = _NO_REQUEST,
        **call_kwargs: Any,
    ) -> CallT:
        """Dequeue, synthesize the head, construct the call and send into it."""
        options = call_options or CallOptions()
        logger.debug(f"🎭📡🚀 Making {call_class.__name__} to {path}")

        fake_response: FakeResponse[Any, Any] | FakeResponseError
        try:
            fake_response = self._registry.pop(path, expected)
        except FakeResponseError as e:
            fake_response = e

        head = self._make_request_head(path, options)
        call = call_class(path, fake_response, options, **call_kwargs)

        if request is _NO_REQUEST:
            call.send_head(head)
        else:
            call.send(head, request)
        return call

    def _make_request_head(self, path: str, call_options: CallOptions) -> RequestHead:
        config = rpctesting_config()
        if call_options.request_id_header is None and config.request_id_header():
            call_options = attrs.evolve(call_options, request_id_header=config.request_id_header())
        return RequestHead(
            scheme=config.request_scheme(),
            path=path,
            host=config.request_host(),
            request_id=call_options.request_id_provider.request_id(),
            options=call_options,
        )

    # grpc.Channel

    def unary_unary(self, method, request_serializer=None, response_deserializer=None, **kwargs):
        return FakeUnaryUnaryMultiCallable(self, method)

    def unary_stream(self, method, request_serializer=None, response_deserializer=None, **kwargs):
        return FakeUnaryStreamMultiCallable(self, method)

    def stream_unary(self, method, request_serializer=None, response_deserializer=None, **kwargs):
        return FakeStreamUnaryMultiCallable(self, method)

    def stream_stream(self, method, request_serializer=None, response_deserializer=None, **kwargs):
        return FakeStreamStreamMultiCallable(self, method)

    def subscribe(self, callback, try_to_connect=False):
        logger.debug("🎭📡🔍 subscribe() ignored: a fake channel has no connectivity state")

    def unsubscribe(self, callback):
        pass

    def close(self) -> Future[None]:
        """Nothing to close; returns an already completed future."""
        closed: Future[None] = Future()
        closed.set_result(None)
        return closed

    def __enter__(self) -> FakeChannel:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

# 🐍🎭🔌
