from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_REQUEST = "invalid_request"
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    TRANSPORT = "transport"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


@dataclass(frozen=True)
class CheckOutcome:
    url: str
    succeeded: bool
    status_code: int | None = None
    latency_ms: float | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    body: str | None = None
    attempts: int = 1

    @property
    def responded(self) -> bool:
        return self.status_code is not None

    @classmethod
    def from_response(
        cls,
        url: str,
        status_code: int,
        latency_ms: float,
        body: str | None = None,
        attempts: int = 1,
    ) -> CheckOutcome:
        return cls(
            url=url,
            succeeded=200 <= status_code < 300,
            status_code=status_code,
            latency_ms=latency_ms,
            body=body,
            attempts=attempts,
        )

    @classmethod
    def from_error(
        cls, url: str, error: str, kind: ErrorKind, attempts: int
    ) -> CheckOutcome:
        return cls(
            url=url,
            succeeded=False,
            error=error,
            error_kind=kind,
            attempts=attempts,
        )
