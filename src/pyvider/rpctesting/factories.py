"""Factory Functions for Pyvider RPC Testing
=========================================

Simple entry points that create pre-configured fake channels and call
options, so test modules do not need to know which class takes which knob.
"""

from typing import Any

from pyvider.telemetry import logger

from pyvider.rpctesting.channel import FakeChannel
from pyvider.rpctesting.options import CallOptions, RequestIDProvider
from pyvider.rpctesting.types import MetadataLike, RequestIDFactoryType


def fake_channel(
    responses: dict[str, list[Any]] | None = None,
    restore_on_type_mismatch: bool | None = None,
) -> FakeChannel:
    """
    Create a fake channel, optionally preloaded with fake responses.

    Args:
        responses: Fake responses to register, keyed by path, in the order
            they should be served
        restore_on_type_mismatch: Mismatch policy; None uses the configured default

    Returns:
        A FakeChannel ready for calls

    Example:
        ```python
        greeting = FakeUnaryResponse(request_type=HelloRequest, response_type=HelloReply)
        channel = fake_channel({"/helloworld.Greeter/SayHello": [greeting]})
        ```
    """
    channel = FakeChannel(restore_on_type_mismatch=restore_on_type_mismatch)
    for path, fake_responses in (responses or {}).items():
        for fake_response in fake_responses:
            channel.register(path, fake_response)

    logger.debug(f"🧰🚀✅ Created fake channel with {len(channel.registry)} queued response(s)")
    return channel


def call_options(
    metadata: MetadataLike = None,
    timeout: float | None = None,
    request_id: str | RequestIDFactoryType | None = None,
    request_id_header: str | None = None,
) -> CallOptions:
    """
    Build call options with the request id strategy picked from `request_id`.

    Args:
        metadata: Custom metadata for the request head
        timeout: Recorded on the options; fake calls never time out
        request_id: A fixed id, a zero-argument callable producing ids, or
            None for a fresh UUID per call
        request_id_header: Metadata key exposing the request id

    Returns:
        Frozen CallOptions
    """
    match request_id:
        case None:
            provider = RequestIDProvider.autogenerated()
        case str():
            provider = RequestIDProvider.user_defined(request_id)
        case _ if callable(request_id):
            provider = RequestIDProvider.generated(request_id)
        case _:
            logger.error(f"🧰🚀❌ Invalid request id: {request_id!r}")
            raise TypeError(f"request_id must be a string or a callable, got {type(request_id).__name__}")

    return CallOptions(
        custom_metadata=metadata,
        timeout=timeout,
        request_id_provider=provider,
        request_id_header=request_id_header,
    )

# 🐍🎭🔌
