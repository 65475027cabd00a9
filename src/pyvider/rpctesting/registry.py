"""
Registry of fake responses keyed by call path.

Each path owns a FIFO queue of fake responses: the Nth call made against a
path is served by the Nth response registered for it. Responses of any
payload types share one mapping; the caller recovers the types it expects
with a `ResponseKey` when dequeuing.

The registry does no locking. A `FakeChannel` and its registry are meant to
be driven from one thread of control at a time.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Generic, TypeVar

from attrs import define
from pyvider.telemetry import logger

from pyvider.rpctesting.exception import (
    FakeResponseError,
    FakeResponseTypeMismatchError,
    MissingFakeResponseError,
)
from pyvider.rpctesting.response import FakeResponse
from pyvider.rpctesting.types import UntypedFakeResponseT, is_fake_response

VariantT = TypeVar("VariantT", bound=FakeResponse[Any, Any])
StoredT = TypeVar("StoredT", bound=UntypedFakeResponseT)


@define(frozen=True, slots=True)
class ResponseKey(Generic[VariantT]):
    """The fake response class and payload types a call expects to find."""

    variant: type[VariantT]
    request_type: type | None = None
    response_type: type | None = None

    def __str__(self) -> str:
        request_name = getattr(self.request_type, "__name__", "Any")
        response_name = getattr(self.response_type, "__name__", "Any")
        return f"{self.variant.__name__}[{request_name}, {response_name}]"


class ResponseRegistry:
    """
    Mapping from call path to a FIFO queue of fake responses.

    Args:
        restore_on_type_mismatch: When True, a response dequeued with the
            wrong key is put back at the head of its queue. When False, it
            is dropped like a successful dequeue would drop it.
    """

    def __init__(self, restore_on_type_mismatch: bool = False) -> None:
        self.restore_on_type_mismatch = restore_on_type_mismatch
        self._queues: dict[str, deque[UntypedFakeResponseT]] = {}

    def __len__(self) -> int:
        return sum(len(queue) for queue in self._queues.values())

    def __repr__(self) -> str:
        pending = {path: len(queue) for path, queue in self._queues.items() if queue}
        return f"ResponseRegistry(pending={pending})"

    def register(self, path: str, fake_response: StoredT) -> StoredT:
        """
        Append `fake_response` to the queue for `path`, creating the queue if needed.

        Returns:
            The same fake response, for chaining.

        Raises:
            TypeError: If `fake_response` cannot be stored in the registry
        """
        if not is_fake_response(fake_response):
            raise TypeError(f"Cannot register {type(fake_response).__name__} as a fake response")

        self._queues.setdefault(path, deque()).append(fake_response)
        logger.debug(f"🎭🗃️✅ Registered fake response for {path} ({self.pending_count(path)} pending)")
        return fake_response

    def has_pending(self, path: str) -> bool:
        return bool(self._queues.get(path))

    def pending_count(self, path: str) -> int:
        return len(self._queues.get(path, ()))

    def paths(self) -> list[str]:
        """Paths that currently have at least one fake response queued."""
        return [path for path, queue in self._queues.items() if queue]

    def pop(self, path: str, expected: ResponseKey[VariantT]) -> VariantT:
        """
        Remove the head of the queue for `path` and return it as `expected`.

        Raises:
            MissingFakeResponseError: If nothing is queued for `path`
            FakeResponseTypeMismatchError: If the head of the queue does not
                match `expected`. The response is consumed unless the
                registry restores on mismatch.
        """
        queue = self._queues.get(path)
        if not queue:
            logger.debug(f"🎭🗃️❌ No fake response queued for {path}")
            raise MissingFakeResponseError(path)

        stored = queue.popleft()
        typed = stored.cast(expected.variant, expected.request_type, expected.response_type)
        if typed is None:
            actual = stored.describe() if isinstance(stored, FakeResponse) else type(stored).__name__
            if self.restore_on_type_mismatch:
                queue.appendleft(stored)
            logger.warning(
                f"🎭🗃️⚠️ Fake response for {path} is {actual}, expected {expected}",
                extra={"restored": self.restore_on_type_mismatch},
            )
            raise FakeResponseTypeMismatchError(path, expected=str(expected), actual=actual)

        logger.debug(f"🎭🗃️📤 Dequeued {expected} for {path} ({len(queue)} left)")
        return typed

    def dequeue(self, path: str, expected: ResponseKey[VariantT]) -> VariantT | None:
        """Like `pop`, but returns None where `pop` would raise."""
        try:
            return self.pop(path, expected)
        except FakeResponseError:
            return None

    def clear(self, path: str | None = None) -> None:
        """Drop every queued response, or only those for `path`."""
        if path is None:
            self._queues.clear()
        else:
            self._queues.pop(path, None)
        logger.debug(f"🎭🗃️🧹 Cleared fake responses for {path or 'all paths'}")

# 🐍🎭🔌
