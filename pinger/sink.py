"""Turns check outcomes into leveled, structured log events."""

from __future__ import annotations

from typing import Any

from pinger.checks.results import CheckOutcome
from pinger.formatting import round_ms


class ResultSink:
    def __init__(self, logger: Any, log_body: bool = False) -> None:
        self._logger = logger
        self._log_body = log_body

    def emit(self, outcome: CheckOutcome) -> None:
        fields: dict[str, Any] = {"url": outcome.url, "success": outcome.succeeded}

        if outcome.succeeded:
            fields["status_code"] = outcome.status_code
            fields["response_time_ms"] = round_ms(outcome.latency_ms)
            if self._log_body and outcome.body:
                fields["body"] = outcome.body
            self._logger.info("Ping successful", **fields)
            return

        if outcome.error is not None:
            fields["error"] = outcome.error
            if outcome.error_kind is not None:
                fields["error_kind"] = outcome.error_kind.value
        if outcome.status_code is not None:
            fields["status_code"] = outcome.status_code
            fields["response_time_ms"] = round_ms(outcome.latency_ms)
        fields["attempts"] = outcome.attempts
        self._logger.error("Ping failed", **fields)

    def retrying(self, url: str, attempt: int) -> None:
        self._logger.debug("Retrying request", url=url, attempt=attempt)
