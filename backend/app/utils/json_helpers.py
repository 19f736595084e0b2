import json
from typing import Any


def parse_state(raw: str | None) -> dict[str, Any] | None:
    """Parse a stored state snapshot. A missing snapshot stays ``None``."""
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def dump_state(state: dict[str, Any] | None) -> str | None:
    if state is None:
        return None
    return json.dumps(state, sort_keys=True, default=str)
