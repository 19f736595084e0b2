from app.utils.ids import generate_id
from app.utils.json_helpers import dump_state, parse_state
from app.utils.time import normalize_ts, utc_now_iso

__all__ = [
    "dump_state",
    "generate_id",
    "normalize_ts",
    "parse_state",
    "utc_now_iso",
]
