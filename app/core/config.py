from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]


def _parse_cors_origins(v: Any) -> List[str]:
    try:
        if v is None or v == "":
            return _DEFAULT_CORS.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return _DEFAULT_CORS.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()
    except Exception:
        return _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")
    secret_key: str = Field(default="change-me-in-production-min-32-chars")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="charityslots", alias="MONGODB_DB_NAME")

    # Redis (worker queue + pot update events)
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # Google sign-in
    google_client_id: str = Field(default="", alias="GOOGLE_CLIENT_ID")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))

    # Game
    spin_win_probability: float = Field(default=0.05, ge=0.0, le=1.0, alias="SPIN_WIN_PROBABILITY")
    wild_probability: float = Field(default=0.2, ge=0.0, lt=1.0, alias="WILD_PROBABILITY")
    cents_per_credit: int = 25
    signup_bonus_credits: int = 20
    bet_sizes: list[int] = Field(default_factory=lambda: [1, 3, 5])

    # Donations
    donation_reconcile_window_hours: int | None = None  # None: reconcile every owed spin

    # Realtime pot events
    pot_events_enabled: bool = Field(default=True, alias="POT_EVENTS_ENABLED")
    pot_events_channel: str = Field(default="pot_updates", alias="POT_EVENTS_CHANNEL")


@lru_cache
def get_settings() -> Settings:
    return Settings()
