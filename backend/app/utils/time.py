from datetime import datetime, timezone


def utc_now_iso() -> str:
    """Return current UTC time as a normalized ISO 8601 string."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def normalize_ts(iso_str: str) -> str:
    """Ensure ISO timestamp has consistent UTC offset and microsecond padding for string comparison."""
    dt = datetime.fromisoformat(iso_str.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")
