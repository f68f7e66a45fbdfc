import asyncio
import sys
import threading
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI, Request

from pinger.api_schemas import HealthResponse
from pinger.checks.http_check import HttpClientConfig, TargetChecker
from pinger.config import ConfigError, load_settings
from pinger.formatting import utcnow_iso
from pinger.logging_config import configure_logging
from pinger.models import Settings
from pinger.runner import CycleCoordinator, OverlapPolicy, Scheduler
from pinger.sink import ResultSink

SERVICE_NAME = "pinger"

logger = structlog.get_logger(__name__)


class PingerService:
    """Builds the checker, coordinator and scheduler from settings and runs
    the scheduler on a background thread."""

    def __init__(self, settings: Settings, log: Any = None) -> None:
        log = log or structlog.get_logger("pinger")
        self.settings = settings
        self.stop_event = threading.Event()
        self.sink = ResultSink(log, log_body=settings.log_response_body)
        self.checker = TargetChecker(
            HttpClientConfig(
                timeout_s=settings.request_timeout_s,
                connect_timeout_s=settings.connect_timeout_s,
                user_agent=settings.user_agent,
                capture_body=settings.log_response_body,
            ),
            settings.max_retries,
            on_retry=self.sink.retrying,
            cancel_event=self.stop_event,
            interruptible_backoff=settings.interruptible_backoff,
        )
        self.coordinator = CycleCoordinator(
            settings.ping_urls,
            self.checker,
            self.sink,
            max_workers=settings.max_concurrency,
            logger=log,
        )
        self.scheduler = Scheduler(
            self.coordinator,
            settings.ping_interval_s,
            self.stop_event,
            overlap_policy=OverlapPolicy(settings.overlap_policy),
            max_concurrent_cycles=settings.max_concurrent_cycles,
            drain_timeout_s=settings.shutdown_drain_timeout_s,
            logger=log,
        )
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self.scheduler.run, name="pinger-scheduler", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self.scheduler.stop()
        if self._thread is not None:
            self._thread.join(self.settings.shutdown_drain_timeout_s + 5)
            self._thread = None


def create_app(settings: Settings, service: PingerService | None = None) -> FastAPI:
    service = service or PingerService(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        service.start()
        try:
            yield
        finally:
            logger.info("Received shutdown signal")
            await asyncio.to_thread(service.stop)

    app = FastAPI(
        title="Pinger",
        version="1.0.0",
        description=(
            "Polls configured HTTP endpoints on a fixed interval, retries "
            "transport failures with backoff, and logs structured results."
        ),
        lifespan=lifespan,
    )
    app.state.service = service

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["system"],
        summary="Health Check",
        description="Liveness endpoint used by probes and orchestration.",
    )
    def health(request: Request):
        logger.debug(
            "Health check requested",
            remote_addr=request.client.host if request.client else None,
        )
        return {"status": "ok", "timestamp": utcnow_iso(), "service": SERVICE_NAME}

    return app


def run() -> None:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Error: failed to load config: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        configure_logging(settings.log_level, settings.log_format)
    except ValueError as exc:
        print(f"Error: failed to initialize logger: {exc}", file=sys.stderr)
        sys.exit(1)

    logger.info(
        "Starting Pinger service",
        target_count=len(settings.ping_urls),
        interval_s=settings.ping_interval_s,
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)
    logger.info("Pinger service stopped gracefully")


if __name__ == "__main__":
    run()
