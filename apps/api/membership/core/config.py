from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from apps/api so it works regardless of CWD
_env_file = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_env_file, extra="ignore")

    database_url: str = "postgresql://localhost/bunker_members"
    sql_echo: bool = False
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24  # 1 day

    # Login attempts per client address; in-memory buckets are per process
    auth_login_rate_limit: str = "10/minute"
    trust_forwarded_for: bool = False

    # Outbound email (SendGrid); unset => emails are skipped or rejected
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str | None = None
    sendgrid_from_name: str | None = "Bunkermuseum"

    # First-time password setup for members created by an admin
    password_setup_url_base: str | None = None
    password_setup_expire_hours: int = 72

    # Member search: run the ranking inside Postgres (pg_trgm) instead of in-process
    member_search_pushdown: bool = True
    member_search_threshold: float = 0.3

    # CORS (comma-separated origins; * allows all)
    cors_origins: str = "*"

    log_level: str = "INFO"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parsed CORS origins for middleware."""
        raw = self.cors_origins.strip()
        return ["*"] if not raw else [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
