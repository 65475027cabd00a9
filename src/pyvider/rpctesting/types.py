from __future__ import annotations

from collections.abc import Callable as AbcCallable, Iterable, Mapping
from typing import Any, Protocol as TypeProtocol, TypeGuard, TypeVar, runtime_checkable, TYPE_CHECKING

from pyvider.telemetry import logger

"""Type definitions for Pyvider RPC Testing.

This module provides the TypeVars, Protocol classes and type aliases that
define the seams of the fake channel: the untyped fake response stored in
the registry, the request id strategy carried by call options, and the
callbacks test code hands to the channel.

For most users, these types are used only in type annotations.
"""

if TYPE_CHECKING:
    from .response import FakeRequestPart


# Core TypeVars for generic type parameters
RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")
FakeResponseT = TypeVar("FakeResponseT", bound="UntypedFakeResponseT")


# Metadata as grpc passes it around: an ordered sequence of key/value pairs
Metadata = tuple[tuple[str, str | bytes], ...]
MetadataLike = Metadata | Iterable[tuple[str, str | bytes]] | Mapping[str, str | bytes] | None

# Callback aliases
RequestHandlerType = AbcCallable[[Any], None]    # Observes inbound FakeRequestParts
ResponseHandlerType = AbcCallable[[Any], None]   # Receives streamed response messages
RequestIDFactoryType = AbcCallable[[], str]      # Produces a fresh request id


def normalize_metadata(metadata: MetadataLike) -> Metadata:
    """
    Convert any accepted metadata shape into an immutable tuple of pairs.

    Args:
        metadata: None, a mapping, or an iterable of (key, value) pairs

    Returns:
        A tuple of (key, value) tuples, preserving order
    """
    if metadata is None:
        return ()
    if isinstance(metadata, Mapping):
        return tuple((str(key), value) for key, value in metadata.items())
    return tuple((str(key), value) for key, value in metadata)


# Protocol Interfaces
@runtime_checkable
class UntypedFakeResponseT(TypeProtocol):
    """
    Protocol for fake responses as the registry stores them.

    The registry only ever sees this capability: the payload types are
    carried as plain attributes and recovered through `cast`, which returns
    None instead of raising when the types do not line up.
    """

    request_type: type | None
    response_type: type | None

    def cast(
        self, variant: type[FakeResponseT], request_type: type | None, response_type: type | None
    ) -> FakeResponseT | None:
        """
        Recover the typed fake response.

        Args:
            variant: The fake response class the caller expects
            request_type: Expected request payload type, None to accept any
            response_type: Expected response payload type, None to accept any

        Returns:
            This response if it matches, None otherwise
        """
        ...

    def handle_request(self, part: FakeRequestPart[Any]) -> None:
        """Pass an inbound request part to the test's request handler."""
        ...


@runtime_checkable
class RequestIDProviderT(TypeProtocol):
    """Protocol for request id strategies carried by call options."""

    def request_id(self) -> str:
        """Return the request id for a new call."""
        ...


def is_fake_response(obj: Any) -> TypeGuard[UntypedFakeResponseT]:
    """
    TypeGuard that checks if an object can be stored in the response registry.

    Args:
        obj: The object to check

    Returns:
        True if the object implements UntypedFakeResponseT, False otherwise
    """
    logger.debug("🧰🔍✅ Checking if object implements UntypedFakeResponseT protocol")
    return isinstance(obj, UntypedFakeResponseT)


def is_request_id_provider(obj: Any) -> TypeGuard[RequestIDProviderT]:
    """
    TypeGuard that checks if an object implements the RequestIDProviderT protocol.

    Args:
        obj: The object to check

    Returns:
        True if the object implements RequestIDProviderT, False otherwise
    """
    logger.debug("🧰🔍✅ Checking if object implements RequestIDProviderT protocol")
    return isinstance(obj, RequestIDProviderT)


# 🐍🎭🔌
