from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LogLevel = Literal["debug", "info", "warning", "error"]


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    ping_urls: List[str] = Field(..., min_length=1)
    ping_interval_s: int = Field(default=60, ge=1)
    request_timeout_s: int = Field(default=10, ge=1)
    connect_timeout_s: Optional[float] = Field(default=None, gt=0)
    max_retries: int = Field(default=3, ge=0)
    log_response_body: bool = False
    log_level: LogLevel = "info"
    log_format: Literal["json", "console"] = "json"
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    user_agent: str = Field(default="Pinger/1.0", min_length=1)
    max_concurrency: int = Field(default=0, ge=0)
    overlap_policy: Literal["allow", "skip"] = "allow"
    max_concurrent_cycles: int = Field(default=0, ge=0)
    interruptible_backoff: bool = False
    shutdown_drain_timeout_s: float = Field(default=30.0, ge=0)

    @field_validator("log_level", "log_format", "overlap_policy", mode="before")
    @classmethod
    def _lowercase(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            # zap-style level name
            if value == "warn":
                return "warning"
        return value


class TargetEntry(BaseModel):
    url: str = Field(..., min_length=1)


class TargetRegistry(BaseModel):
    targets: List[TargetEntry] = Field(default_factory=list)

    @field_validator("targets", mode="before")
    @classmethod
    def _accept_bare_urls(cls, value):
        if not isinstance(value, list):
            return value
        return [{"url": item} if isinstance(item, str) else item for item in value]
