"""Static defaults for the undo backend."""

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

# Drive member roles that carry edit rights on every page of the drive.
DEFAULT_UNDO_ADMIN_ROLES = ["OWNER", "ADMIN"]
