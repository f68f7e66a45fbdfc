from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

import requests
from urllib3.exceptions import LocationParseError

from pinger.checks.results import CheckOutcome, ErrorKind

DEFAULT_USER_AGENT = "Pinger/1.0"

RetryCallback = Callable[[str, int], None]

_INVALID_REQUEST_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
    # Raised by urllib3 at connect time for hosts with an empty or oversized label.
    LocationParseError,
)

RequestFailure = (requests.RequestException, LocationParseError)


@dataclass(frozen=True)
class HttpClientConfig:
    timeout_s: float
    connect_timeout_s: float | None = None
    user_agent: str = DEFAULT_USER_AGENT
    capture_body: bool = False

    @property
    def timeout(self) -> tuple[float, float]:
        connect = self.timeout_s if self.connect_timeout_s is None else self.connect_timeout_s
        return (connect, self.timeout_s)

    @property
    def headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent}


def classify_error(exc: Exception) -> ErrorKind:
    if isinstance(exc, _INVALID_REQUEST_ERRORS):
        return ErrorKind.INVALID_REQUEST
    # ConnectTimeout is also a ConnectionError; report it as a timeout.
    if isinstance(exc, requests.Timeout):
        return ErrorKind.TIMEOUT
    if isinstance(exc, requests.ConnectionError):
        return ErrorKind.CONNECTION
    return ErrorKind.TRANSPORT


def describe_error(exc: Exception) -> str:
    if isinstance(exc, _INVALID_REQUEST_ERRORS):
        return f"failed to create request: {exc}"
    return f"request failed: {exc.__class__.__name__}: {exc}"


class TargetChecker:
    """Checks one URL with up to ``max_retries`` retries after the first attempt.

    Any received response ends the attempt loop, whatever its status code.
    Only transport-level failures are retried, with a linear backoff of
    ``attempt * backoff_unit_s`` seconds before each retry.

    With ``interruptible_backoff`` the backoff waits on ``cancel_event`` and a
    set event abandons the remaining retries. Otherwise the backoff is a plain
    blocking sleep that shutdown does not shorten.
    """

    def __init__(
        self,
        config: HttpClientConfig,
        max_retries: int,
        *,
        backoff_unit_s: float = 1.0,
        on_retry: RetryCallback | None = None,
        cancel_event: threading.Event | None = None,
        interruptible_backoff: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.config = config
        self.max_retries = max_retries
        self.backoff_unit_s = backoff_unit_s
        self._on_retry = on_retry
        self._cancel_event = cancel_event
        self._interruptible = interruptible_backoff and cancel_event is not None
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        return attempt * self.backoff_unit_s

    def _wait_before_retry(self, attempt: int) -> bool:
        """Returns False when shutdown interrupted the wait."""
        delay = self.backoff_delay(attempt)
        if self._interruptible:
            assert self._cancel_event is not None
            return not self._cancel_event.wait(delay)
        self._sleep(delay)
        return True

    def _read_body(self, resp: requests.Response) -> str | None:
        if not self.config.capture_body:
            return None
        try:
            return resp.text
        except requests.RequestException:
            # A body that cannot be read never fails the check.
            return ""

    def check(self, url: str) -> CheckOutcome:
        last_error = "no attempt made"
        last_kind = ErrorKind.TRANSPORT
        attempts = 0

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                if self._on_retry is not None:
                    self._on_retry(url, attempt)
                if not self._wait_before_retry(attempt):
                    return CheckOutcome.from_error(
                        url,
                        f"{last_error} (retries abandoned on shutdown)",
                        ErrorKind.CANCELLED,
                        attempts,
                    )

            attempts += 1
            start = time.perf_counter()
            try:
                resp = requests.get(
                    url,
                    headers=self.config.headers,
                    timeout=self.config.timeout,
                    stream=True,
                )
            except RequestFailure as exc:
                last_error = describe_error(exc)
                last_kind = classify_error(exc)
                continue

            latency_ms = (time.perf_counter() - start) * 1000
            try:
                body = self._read_body(resp)
            finally:
                resp.close()

            return CheckOutcome.from_response(
                url,
                status_code=resp.status_code,
                latency_ms=latency_ms,
                body=body,
                attempts=attempts,
            )

        return CheckOutcome.from_error(url, last_error, last_kind, attempts)
