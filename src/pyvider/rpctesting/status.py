"""
Call status for fake RPCs.

An `RPCStatus` is what every fake call resolves its `status` future with,
whether the call succeeded, failed, was cancelled or never had a fake
response to begin with.
"""

from __future__ import annotations

import grpc
from attrs import define, field

from pyvider.rpctesting.exception import RPCStatusError
from pyvider.rpctesting.types import Metadata, normalize_metadata


@define(frozen=True, slots=True)
class RPCStatus:
    """Terminal status of a fake call."""

    code: grpc.StatusCode = field(default=grpc.StatusCode.OK)
    message: str = field(default="")
    trailing_metadata: Metadata = field(default=(), converter=normalize_metadata)

    @property
    def is_ok(self) -> bool:
        return self.code is grpc.StatusCode.OK

    @classmethod
    def ok(cls, trailing_metadata: Metadata = ()) -> RPCStatus:
        return cls(grpc.StatusCode.OK, "", trailing_metadata)

    @classmethod
    def from_exception(cls, error: BaseException, trailing_metadata: Metadata = ()) -> RPCStatus:
        """
        Derive a status from an error sent through a fake response.

        Errors that already carry a status keep it (with the extra trailing
        metadata appended); anything else becomes UNKNOWN with the error text.
        """
        if isinstance(error, RPCStatusError):
            status = error.status
            return cls(status.code, status.message, status.trailing_metadata + normalize_metadata(trailing_metadata))
        return cls(grpc.StatusCode.UNKNOWN, str(error), trailing_metadata)

    def __str__(self) -> str:
        if self.message:
            return f"{self.code.name}: {self.message}"
        return self.code.name

# 🐍🎭🔌
