from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from pinger.models import Settings
from pinger.registry import load_targets

ENV_FIELDS = {
    "PING_INTERVAL": "ping_interval_s",
    "REQUEST_TIMEOUT": "request_timeout_s",
    "CONNECT_TIMEOUT": "connect_timeout_s",
    "MAX_RETRIES": "max_retries",
    "LOG_LEVEL": "log_level",
    "LOG_FORMAT": "log_format",
    "HOST": "host",
    "PORT": "port",
    "USER_AGENT": "user_agent",
    "MAX_CONCURRENCY": "max_concurrency",
    "OVERLAP_POLICY": "overlap_policy",
    "MAX_CONCURRENT_CYCLES": "max_concurrent_cycles",
    "SHUTDOWN_DRAIN_TIMEOUT": "shutdown_drain_timeout_s",
}

_TRUE = {"1", "t", "true", "yes", "on"}
_FALSE = {"0", "f", "false", "no", "off"}


class ConfigError(ValueError):
    pass


def parse_bool(raw: str | None, default: bool = False) -> bool:
    """Lenient boolean: anything unrecognised falls back to ``default``."""
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


def split_urls(raw: str | None) -> list[str]:
    return [url.strip() for url in (raw or "").split(",") if url.strip()]


def _collect_targets() -> list[str]:
    raw = os.getenv("PING_URLS", "")
    urls = split_urls(raw)

    targets_file = os.getenv("PING_TARGETS_FILE")
    if targets_file:
        try:
            urls.extend(load_targets(Path(targets_file)))
        except (OSError, yaml.YAMLError, ValidationError) as exc:
            raise ConfigError(f"invalid PING_TARGETS_FILE: {exc}") from exc

    if not urls:
        if raw.strip() or targets_file:
            raise ConfigError("no valid URLs found in PING_URLS")
        raise ConfigError("PING_URLS is required")
    return urls


def load_settings(env_file: str | None = ".env") -> Settings:
    """Build settings from the environment, after loading ``env_file`` if it exists."""
    if env_file:
        load_dotenv(env_file)

    values: dict[str, object] = {"ping_urls": _collect_targets()}
    for env_name, field in ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw:
            values[field] = raw.strip()
    values["log_response_body"] = parse_bool(os.getenv("LOG_RESPONSE_BODY"))
    values["interruptible_backoff"] = parse_bool(os.getenv("INTERRUPTIBLE_BACKOFF"))

    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
