from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

DEFAULT_SESSION_SECRET = "change-me-session-secret"


class Settings(BaseSettings):
    # Supabase (external table store)
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Preferred server-side; bypasses RLS on the users table
    list_tables_function: str = "list_tables"  # RPC returning [{id, name, schema}]
    users_table_name: str = "users"

    # Sessions
    session_secret: str = DEFAULT_SESSION_SECRET
    session_max_age_seconds: int = 60 * 60 * 24 * 7  # 7 days
    session_cookie_name: str = "auth_token"

    # Digests created before argon2 was introduced
    legacy_password_salt: str = "pipilot_salt"

    # App
    app_name: str = "skill-passport-auth"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    auth_rate_limit: str = "10/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_local(self) -> bool:
        return self.environment == "development"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
