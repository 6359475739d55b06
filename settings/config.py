from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote_plus
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application configuration loaded from environment variables.
    Uses Pydantic's BaseSettings for robust env parsing and validation.
    """

    # App
    APP_NAME: str = "Bid Board API"
    COMPANY_NAME: Optional[str] = None
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database (support single URL or split parts)
    DATABASE_URL: Optional[str] = None
    DB_SCHEME: str = "postgresql+psycopg"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "bid_board"
    CREATE_TABLES_ON_STARTUP: bool = True

    # Which table set backs the bid-vendor reads: "normalized" (project_vendors,
    # apm_phases, est_responses, project_financials) or "legacy" (bid_vendors)
    SCHEMA_MODE: str = "normalized"

    # Pending phases without a follow-up date get a staggered one for display.
    # Compatibility behaviour only; turn off once the UI stops relying on it.
    SYNTHESIZE_FOLLOW_UP_DATES: bool = True

    # Realtime change notifications (PostgreSQL LISTEN/NOTIFY)
    REALTIME_ENABLED: bool = False
    REALTIME_CHANNEL: str = "table_changes"
    REALTIME_STRATEGY: str = "direct"  # direct | refresh
    REALTIME_DEBOUNCE_SECONDS: float = 1.0
    REALTIME_RECONNECT_SECONDS: float = 5.0
    REALTIME_LOG_LEVEL: Optional[str] = None

    # CORS
    # Comma-separated origins, e.g. "http://localhost:3000,https://myapp.com"
    ALLOWED_ORIGINS: str = "http://localhost:5173"

    # Security middleware toggles
    ENABLE_RATE_LIMITER: bool = True
    RATE_LIMIT_REQUESTS: int = 300  # requests
    RATE_LIMIT_WINDOW_SECONDS: int = 60  # per this many seconds
    RATE_LIMIT_STORAGE_URI: Optional[str] = None  # e.g., "redis://localhost:6379"

    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parses comma-separated origins into a list. Trims spaces, omits empties.
        """
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def uses_legacy_schema(self) -> bool:
        return self.SCHEMA_MODE == "legacy"

    def build_database_url(self) -> str:
        """
        Compose a SQLAlchemy URL from individual DB_* parts when DATABASE_URL is not provided.
        """
        if self.DATABASE_URL:
            return str(self.DATABASE_URL)
        return f"{self.DB_SCHEME}://{self.DB_USER}:{quote_plus(self.DB_PASSWORD)}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    def build_listener_dsn(self) -> str:
        """
        libpq-style DSN for the LISTEN connection (psycopg does not understand
        the SQLAlchemy "+driver" suffix).
        """
        url = self.build_database_url()
        scheme, sep, rest = url.partition("://")
        return f"{scheme.split('+', 1)[0]}{sep}{rest}"

    @field_validator("DEBUG", "REALTIME_ENABLED", "SYNTHESIZE_FOLLOW_UP_DATES", mode="before")
    def _normalize_bool(cls, v):
        # Accept "1", "true", "True", etc.
        if isinstance(v, str):
            return v.lower() in ("1", "true", "yes", "on")
        return bool(v)

    @field_validator("SCHEMA_MODE", "REALTIME_STRATEGY", mode="before")
    def _normalize_choice(cls, v):
        return str(v).strip().lower()

    @field_validator("SCHEMA_MODE")
    def _check_schema_mode(cls, v):
        if v not in ("normalized", "legacy"):
            raise ValueError("SCHEMA_MODE must be 'normalized' or 'legacy'")
        return v

    @field_validator("REALTIME_STRATEGY")
    def _check_strategy(cls, v):
        if v not in ("direct", "refresh"):
            raise ValueError("REALTIME_STRATEGY must be 'direct' or 'refresh'")
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance to avoid re-parsing env on each import.
    """
    return Settings()
