import unittest
from unittest.mock import Mock

from pinger.checks.results import CheckOutcome, ErrorKind
from pinger.sink import ResultSink

URL = "http://example.local/health"


class ResultSinkTests(unittest.TestCase):
    def test_success_logs_info(self) -> None:
        logger = Mock()
        sink = ResultSink(logger)

        sink.emit(CheckOutcome.from_response(URL, status_code=200, latency_ms=12.345, body="ok"))

        logger.info.assert_called_once_with(
            "Ping successful",
            url=URL,
            success=True,
            status_code=200,
            response_time_ms=12.3,
        )
        logger.error.assert_not_called()

    def test_success_includes_body_when_enabled(self) -> None:
        logger = Mock()
        sink = ResultSink(logger, log_body=True)

        sink.emit(CheckOutcome.from_response(URL, status_code=200, latency_ms=5.0, body="pong"))

        self.assertEqual(logger.info.call_args.kwargs["body"], "pong")

    def test_empty_body_is_not_logged(self) -> None:
        logger = Mock()
        sink = ResultSink(logger, log_body=True)

        sink.emit(CheckOutcome.from_response(URL, status_code=200, latency_ms=5.0, body=""))

        self.assertNotIn("body", logger.info.call_args.kwargs)

    def test_transport_failure_logs_error_without_status(self) -> None:
        logger = Mock()
        sink = ResultSink(logger)

        sink.emit(
            CheckOutcome.from_error(URL, "request failed: refused", ErrorKind.CONNECTION, attempts=4)
        )

        logger.error.assert_called_once_with(
            "Ping failed",
            url=URL,
            success=False,
            error="request failed: refused",
            error_kind="connection",
            attempts=4,
        )

    def test_error_status_logs_status_and_latency(self) -> None:
        logger = Mock()
        sink = ResultSink(logger)

        sink.emit(CheckOutcome.from_response(URL, status_code=503, latency_ms=40.0))

        logger.error.assert_called_once_with(
            "Ping failed",
            url=URL,
            success=False,
            status_code=503,
            response_time_ms=40.0,
            attempts=1,
        )
        logger.info.assert_not_called()

    def test_retrying_logs_debug(self) -> None:
        logger = Mock()
        ResultSink(logger).retrying(URL, 2)

        logger.debug.assert_called_once_with("Retrying request", url=URL, attempt=2)


if __name__ == "__main__":
    unittest.main()
