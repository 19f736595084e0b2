from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.defaults import DEFAULT_CORS_ORIGINS, DEFAULT_UNDO_ADMIN_ROLES


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_env: str = "dev"
    log_level: str = "INFO"
    app_name: str = "ai-undo-backend"
    database_url: str = "sqlite:///./ai_undo.db"
    cors_origins: list[str] = DEFAULT_CORS_ORIGINS
    seed_demo_workspace: bool = False
    # Also require ledger entries to carry the checkpoint's conversation id.
    undo_scope_by_conversation: bool = False
    undo_admin_roles: list[str] = DEFAULT_UNDO_ADMIN_ROLES


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()
