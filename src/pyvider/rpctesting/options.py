"""
Call options and request heads for fake calls.

`CallOptions` is what callers hand to the fake channel for each call; the
channel turns it, together with the call path, into a `RequestHead` that is
sent into the call before any request message. The request id in the head
comes from the options' `RequestIDProvider`, a strategy the caller picks.
"""

from __future__ import annotations

import uuid
from typing import Any

from attrs import define, field, validators

from pyvider.rpctesting.types import (
    Metadata,
    RequestIDFactoryType,
    is_request_id_provider,
    normalize_metadata,
)


@define(frozen=True, slots=True)
class RequestIDProvider:
    """
    Strategy for producing the request id of each call.

    Use one of the constructors: `autogenerated()` for a fresh UUID per
    call, `user_defined(value)` for a fixed id, or `generated(factory)` to
    call `factory()` once per call.
    """

    strategy: str = field(validator=validators.in_(("autogenerated", "user_defined", "generated")))
    value: str | None = field(default=None)
    factory: RequestIDFactoryType | None = field(default=None)

    @classmethod
    def autogenerated(cls) -> RequestIDProvider:
        return cls("autogenerated")

    @classmethod
    def user_defined(cls, value: str) -> RequestIDProvider:
        return cls("user_defined", value=value)

    @classmethod
    def generated(cls, factory: RequestIDFactoryType) -> RequestIDProvider:
        return cls("generated", factory=factory)

    def __attrs_post_init__(self) -> None:
        if self.strategy == "user_defined" and self.value is None:
            raise ValueError("A user_defined request id provider needs a value")
        if self.strategy == "generated" and not callable(self.factory):
            raise TypeError(f"A generated request id provider needs a callable factory, got {self.factory!r}")

    def request_id(self) -> str:
        match self.strategy:
            case "user_defined":
                return str(self.value)
            case "generated":
                return self.factory()
            case _:
                return str(uuid.uuid4())


def _check_provider(instance: Any, attribute: Any, value: Any) -> None:
    if not is_request_id_provider(value):
        raise TypeError(f"{attribute.name} must provide request_id(), got {type(value).__name__}")


@define(frozen=True, slots=True)
class CallOptions:
    """
    Per-call options.

    Attributes:
        custom_metadata: Metadata sent with the request head
        timeout: Recorded for inspection only; fake calls never time out
        request_id_provider: Supplies the request id placed in the head
        request_id_header: If set, the request id is also added to the
            head's metadata under this key
    """

    custom_metadata: Metadata = field(default=(), converter=normalize_metadata)
    timeout: float | None = field(default=None)
    request_id_provider: RequestIDProvider = field(
        factory=RequestIDProvider.autogenerated, validator=_check_provider
    )
    request_id_header: str | None = field(default=None)


@define(frozen=True, slots=True)
class RequestHead:
    """Header synthesized by the fake channel for every call it makes."""

    scheme: str
    path: str
    host: str
    request_id: str
    options: CallOptions

    @property
    def metadata(self) -> Metadata:
        """Custom metadata plus the request id header, when one is configured."""
        if self.options.request_id_header:
            return self.options.custom_metadata + ((self.options.request_id_header, self.request_id),)
        return self.options.custom_metadata

# 🐍🎭🔌
