"""
Pyvider RPC Testing Package.

A fake gRPC channel for unit tests: register canned responses per call path,
then drive unary, server-streaming, client-streaming and bidirectional calls
against them without any network I/O.
"""

from pyvider.rpctesting.calls import (
    BidirectionalStreamingCall,
    ClientStreamingCall,
    FakeCall,
    ServerStreamingCall,
    UnaryCall,
)
from pyvider.rpctesting.channel import FakeChannel
from pyvider.rpctesting.config import (
    RPCTestingConfig,
    configure,
    load_config_from_file,
    rpctesting_config,
)
from pyvider.rpctesting.exception import (
    ConfigError,
    FakeCallStateError,
    FakeResponseError,
    FakeResponseStateError,
    FakeResponseTypeMismatchError,
    MissingFakeResponseError,
    RPCStatusError,
    RPCTestingError,
)
from pyvider.rpctesting.factories import call_options, fake_channel
from pyvider.rpctesting.multicallable import FakeGrpcCall
from pyvider.rpctesting.options import CallOptions, RequestHead, RequestIDProvider
from pyvider.rpctesting.registry import ResponseKey, ResponseRegistry
from pyvider.rpctesting.response import (
    FakeRequestPart,
    FakeResponse,
    FakeStreamingResponse,
    FakeUnaryResponse,
    RequestPartKind,
)
from pyvider.rpctesting.status import RPCStatus

__all__ = [
    "FakeChannel",
    "fake_channel",
    "call_options",
    "CallOptions",
    "RequestHead",
    "RequestIDProvider",
    "ResponseKey",
    "ResponseRegistry",
    "FakeRequestPart",
    "RequestPartKind",
    "FakeResponse",
    "FakeUnaryResponse",
    "FakeStreamingResponse",
    "FakeCall",
    "UnaryCall",
    "ServerStreamingCall",
    "ClientStreamingCall",
    "BidirectionalStreamingCall",
    "FakeGrpcCall",
    "RPCStatus",
    "RPCTestingConfig",
    "rpctesting_config",
    "configure",
    "load_config_from_file",
    "RPCTestingError",
    "ConfigError",
    "FakeResponseError",
    "MissingFakeResponseError",
    "FakeResponseTypeMismatchError",
    "FakeResponseStateError",
    "FakeCallStateError",
    "RPCStatusError",
]

# 🐍🎭🔌
