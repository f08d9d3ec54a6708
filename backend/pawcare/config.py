"""
PawCare Backend — Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by main.py (app factory), alembic/env.py and the test suite.
When:  Loaded once at module import time; tests build their own instances.

Storage backend selection:
    DATABASE_BACKEND picks one of three engines once, at startup:
        sqlite   → sqlite+aiosqlite:///<SQLITE_PATH>
        mysql    → mysql+aiomysql://<DB_USER>:<DB_PASSWORD>@<DB_HOST>:<DB_PORT>/<DB_NAME>
        postgres → postgresql+asyncpg://<DB_USER>:<DB_PASSWORD>@<DB_HOST>:<DB_PORT>/<DB_NAME>
    DATABASE_URL, when set, overrides the assembled URL verbatim.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

DEFAULT_SESSION_SECRET = "pawcare-dev-session-secret-change-me"
DEFAULT_ADMIN_PASSWORD = "PawCareAdmin2025!"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development with SQLite.
    Production deployments MUST override SESSION_SECRET and the bootstrap
    admin password.
    """

    # ── Environment ───────────────────────────────────────────────────────
    # production turns on Secure cookies and SameSite=strict
    environment: str = Field(default="development")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        value = v.lower()
        if value not in {"development", "production", "test"}:
            raise ValueError(
                f"Invalid environment '{v}'. Must be development, production or test"
            )
        return value

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    # ── Database ──────────────────────────────────────────────────────────
    database_backend: str = Field(
        default="sqlite",
        description="Storage engine: sqlite, mysql or postgres",
    )

    @field_validator("database_backend")
    @classmethod
    def validate_database_backend(cls, v: str) -> str:
        value = v.lower()
        if value == "postgresql":
            value = "postgres"
        if value not in {"sqlite", "mysql", "postgres"}:
            raise ValueError(
                f"Invalid database_backend '{v}'. Must be one of: sqlite, mysql, postgres"
            )
        return value

    database_url: Optional[str] = Field(
        default=None,
        description="Full async SQLAlchemy URL; overrides the per-backend settings",
    )

    # Embedded engine file
    sqlite_path: str = Field(default="./pawcare.db")

    # Server engines (MySQL / PostgreSQL)
    db_host: str = Field(default="localhost")
    db_port: Optional[int] = Field(default=None, ge=1, le=65535)
    db_user: str = Field(default="pawcare")
    db_password: str = Field(default="")
    db_name: str = Field(default="pawcare_db")

    # Pool sizing only applies to the server engines
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    @property
    def resolved_database_url(self) -> str:
        """The async SQLAlchemy URL for the configured backend."""
        if self.database_url:
            return self.database_url
        if self.database_backend == "sqlite":
            return f"sqlite+aiosqlite:///{self.sqlite_path}"
        if self.database_backend == "mysql":
            return URL.create(
                "mysql+aiomysql",
                username=self.db_user,
                password=self.db_password or None,
                host=self.db_host,
                port=self.db_port or 3306,
                database=self.db_name,
                query={"charset": "utf8mb4"},
            ).render_as_string(hide_password=False)
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port or 5432,
            database=self.db_name,
        ).render_as_string(hide_password=False)

    # ── Sessions ──────────────────────────────────────────────────────────
    session_secret: str = Field(default=DEFAULT_SESSION_SECRET)
    session_backend: str = Field(
        default="database",
        description="Server-side session store: database or memory",
    )

    @field_validator("session_backend")
    @classmethod
    def validate_session_backend(cls, v: str) -> str:
        value = v.lower()
        if value not in {"database", "memory"}:
            raise ValueError(
                f"Invalid session_backend '{v}'. Must be database or memory"
            )
        return value

    session_cookie_name: str = Field(default="pawcare_session")
    session_max_age: int = Field(default=86_400, ge=60)                # 24 hours
    session_remember_max_age: int = Field(default=2_592_000, ge=60)    # 30 days

    # ── Bootstrap Admin ───────────────────────────────────────────────────
    # Created on first start when the admins table is empty
    default_admin_username: str = Field(default="admin")
    default_admin_email: str = Field(default="admin@pawcare.com")
    default_admin_password: str = Field(default=DEFAULT_ADMIN_PASSWORD)

    @field_validator("default_admin_email")
    @classmethod
    def normalize_admin_email(cls, v: str) -> str:
        # Password reset looks admins up by the lowercased address
        return v.strip().lower()

    # ── Email ─────────────────────────────────────────────────────────────
    # Without SMTP_HOST notifications are written to the log instead
    smtp_host: Optional[str] = Field(default=None)
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_user: Optional[str] = Field(default=None)
    smtp_password: Optional[str] = Field(default=None)
    smtp_starttls: bool = Field(default=True)
    smtp_timeout: int = Field(default=10, ge=1, le=120)
    mail_from: Optional[str] = Field(default=None)
    admin_email: Optional[str] = Field(
        default=None,
        description="Operator address for new-booking and new-feedback alerts",
    )

    @property
    def mail_sender(self) -> str:
        return self.mail_from or f'"PawCare" <{self.smtp_user or "noreply@pawcare.com"}>'

    @property
    def operator_email(self) -> Optional[str]:
        return self.admin_email or self.smtp_user

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Per-IP sliding windows. The auth window counts failed attempts only.
    rate_limit_requests: int = Field(default=100, ge=1, le=10000)
    rate_limit_window: int = Field(default=900, ge=1, le=86400)
    auth_rate_limit_requests: int = Field(default=5, ge=1, le=1000)
    auth_rate_limit_window: int = Field(default=900, ge=1, le=86400)
    booking_rate_limit_requests: int = Field(default=10, ge=1, le=1000)
    booking_rate_limit_window: int = Field(default=3600, ge=1, le=86400)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Reports insecure defaults that must not reach production.
        When:  Called during app startup (lifespan).
        How:   Raises ValueError listing every problem; the caller logs it.
        """
        if not self.is_production:
            return
        errors = []
        if self.session_secret == DEFAULT_SESSION_SECRET:
            errors.append("SESSION_SECRET is still the development default")
        if self.default_admin_password == DEFAULT_ADMIN_PASSWORD:
            errors.append(
                "DEFAULT_ADMIN_PASSWORD is still the published default; "
                "change it and rotate the admin password"
            )
        if not self.smtp_host:
            errors.append("SMTP_HOST is not set; notifications will only be logged")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


settings = Settings()
