from uuid import uuid4

# Accepts generated ids ('msg-a1b2c3d4e5f6') as well as externally issued cuid/uuid values.
ID_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_\-]{0,127}$"


def generate_id(prefix: str) -> str:
    """Generate a prefixed short UUID, e.g. 'msg-a1b2c3d4e5f6'."""
    return f"{prefix}-{uuid4().hex[:12]}"
