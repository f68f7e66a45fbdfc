from __future__ import annotations

from datetime import datetime, timezone


def serialize_ts(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utcnow_iso() -> str:
    return serialize_ts(datetime.now(timezone.utc)) or ""


def round_ms(value: float | None) -> float | None:
    if value is None:
        return None
    return round(value, 1)
