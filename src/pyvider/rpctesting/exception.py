"""
Custom Exceptions for Pyvider RPC Testing.

This module defines the hierarchy of exceptions used by the fake channel,
its response registry and the fake call objects. Registry failures are
normally converted into a failed call status rather than raised at the
call site; `RPCStatusError` is what a failed call's futures carry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import grpc

if TYPE_CHECKING:
    from pyvider.rpctesting.status import RPCStatus


class RPCTestingError(Exception):
    """Base class for all RPC testing errors."""
    def __init__(self, message: str, hint: str | None = None) -> None:
        """
        Initialize RPCTestingError.

        Args:
            message: The error message.
            hint: An optional hint for resolving the error.
        """
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        """Return a string representation of the error, including the hint if available."""
        base_message = super().__str__()
        if self.hint:
            return f"{base_message} (Hint: {self.hint})"
        return base_message


class ConfigError(RPCTestingError):
    """Configuration-related errors."""


class FakeResponseError(RPCTestingError):
    """A fake response could not be taken from the registry."""
    def __init__(self, message: str, path: str, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)
        self.path = path


class MissingFakeResponseError(FakeResponseError):
    """No fake response is queued for the path."""
    def __init__(self, path: str) -> None:
        super().__init__(
            f"No fake response registered for path '{path}'",
            path=path,
            hint="Register a fake response for the path before making the call",
        )


class FakeResponseTypeMismatchError(FakeResponseError):
    """The queued fake response was registered for other payload types."""
    def __init__(self, path: str, expected: Any, actual: Any) -> None:
        super().__init__(
            f"Fake response queued for path '{path}' is {actual}, expected {expected}",
            path=path,
        )
        self.expected = expected
        self.actual = actual


class FakeResponseStateError(RPCTestingError):
    """A response part was sent out of order on a fake response."""


class FakeCallStateError(RPCTestingError):
    """A request part was sent on a call whose request stream has ended."""


class RPCStatusError(RPCTestingError, grpc.RpcError):
    """
    A fake call finished with a non-OK status.

    Mirrors the accessor methods of a failed grpc call so test code can
    treat it like the `grpc.RpcError` raised by a real channel.
    """
    def __init__(self, status: RPCStatus) -> None:
        super().__init__(f"{status.code.name}: {status.message}")
        self.status = status

    def code(self) -> grpc.StatusCode:
        return self.status.code

    def details(self) -> str:
        return self.status.message

    def trailing_metadata(self) -> tuple[tuple[str, str], ...]:
        return self.status.trailing_metadata

# 🐍🎭🔌
