from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import json
from pathlib import Path


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./sylvia.db"

    # CORS - can be JSON string or comma-separated string
    CORS_ORIGINS: str = '["http://localhost:3000"]'

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Supabase Auth API
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""

    # Supabase JWT verification (local)
    SUPABASE_JWT_SECRET: str = ""
    SUPABASE_JWT_AUD: str = "authenticated"
    SUPABASE_JWT_ISS: str = ""

    # Google Books catalog
    GOOGLE_BOOKS_API_KEY: Optional[str] = None
    GOOGLE_BOOKS_BASE_URL: str = "https://www.googleapis.com/books/v1/volumes"
    CATALOG_LANGUAGE: str = "fr"
    CATALOG_CACHE_TTL_SECONDS: float = 300.0
    CATALOG_TIMEOUT_SECONDS: float = 10.0

    # Nightly metadata backfill (APScheduler)
    BACKFILL_SCHEDULE_ENABLED: bool = False
    BACKFILL_CRON_HOUR: int = 3

    model_config = SettingsConfigDict(
        # Load from backend/.env (relative to this file's parent's parent)
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore unknown environment variables (like NEXT_PUBLIC_*)
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Default issuer if not explicitly set
        if self.SUPABASE_URL and not self.SUPABASE_JWT_ISS.strip():
            self.SUPABASE_JWT_ISS = f"{self.SUPABASE_URL.rstrip('/')}/auth/v1"

    def require_supabase(self) -> None:
        """Raise RuntimeError when the settings needed to verify access tokens are missing."""
        if not self.SUPABASE_URL.strip():
            raise RuntimeError(
                "SUPABASE_URL is not set. Add SUPABASE_URL=https://YOUR_PROJECT_REF.supabase.co to backend/.env"
            )
        if "YOUR_PROJECT" in self.SUPABASE_URL:
            raise RuntimeError(
                "SUPABASE_URL appears to be a placeholder. Set it to your actual Supabase project URL in backend/.env"
            )
        if not self.SUPABASE_JWT_SECRET.strip():
            raise RuntimeError(
                "SUPABASE_JWT_SECRET is not set. Add it from Supabase Project Settings -> API -> JWT Secret."
            )

    def get_masked_database_url(self) -> str:
        """Return DATABASE_URL with password masked for logging."""
        from urllib.parse import urlparse, urlunparse

        parsed = urlparse(self.DATABASE_URL)
        if not parsed.password:
            return self.DATABASE_URL
        masked_netloc = f"{parsed.username}:***@{parsed.hostname}"
        if parsed.port:
            masked_netloc += f":{parsed.port}"
        return urlunparse((
            parsed.scheme,
            masked_netloc,
            parsed.path,
            parsed.params,
            parsed.query,
            parsed.fragment,
        ))

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS from JSON string or comma-separated string."""
        if not self.CORS_ORIGINS:
            return ["http://localhost:3000"]

        try:
            parsed = json.loads(self.CORS_ORIGINS)
            if isinstance(parsed, list):
                return [str(origin) for origin in parsed]
            return [str(parsed)]
        except (json.JSONDecodeError, TypeError):
            origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
            return origins if origins else ["http://localhost:3000"]


settings = Settings()
