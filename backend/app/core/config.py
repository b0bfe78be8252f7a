from typing import Optional, List
from urllib.parse import urlsplit

from pydantic import computed_field, Field, AliasChoices, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Known insecure default values that must be changed in production
_INSECURE_SECRET_KEYS = {
    "bizabode-dev-secret-change-me-min-32-characters",
    "temporary-build-secret",
    "changeme",
    "secret",
}
_INSECURE_DB_PASSWORDS = {
    "postgres",
    "password",
    "changeme",
}

_INSECURE_ALLOWED_ORIGINS_DEFAULTS = {
    "http://localhost:3000",
    "http://127.0.0.1:3000",
}


def _extract_password_from_database_url(database_url: str | None) -> str | None:
    if not database_url:
        return None
    try:
        parts = urlsplit(database_url)
        return parts.password
    except ValueError:
        return None


class Settings(BaseSettings):
    # Allow comma-separated env vars for list fields like ALLOWED_ORIGINS
    model_config = SettingsConfigDict(env_file=".env", env_parse_delimiter=",", extra="ignore")
    PROJECT_NAME: str = "Bizabode Business Management"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # CORS
    # Accepts either a JSON array or a comma-separated string, normalized below.
    ALLOWED_ORIGINS: List[str] | str = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias=AliasChoices("ALLOWED_ORIGINS", "BACKEND_CORS_ORIGINS"),
    )

    # Database settings
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_SERVER: str = Field(
        default="db",
        validation_alias=AliasChoices("POSTGRES_SERVER", "POSTGRES_HOST"),
    )
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "bizabode"

    DB_POOL_SIZE: int = Field(default=10, description="Number of persistent DB connections")
    DB_MAX_OVERFLOW: int = Field(default=20, description="Max additional connections under load")

    # Full DB URL (preferred in CI/containers). If not provided, we build it from POSTGRES_*.
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "SQLALCHEMY_DATABASE_URI"),
    )
    SQLALCHEMY_ECHO: bool = False

    # Security settings
    SECRET_KEY: str = Field(
        default="bizabode-dev-secret-change-me-min-32-characters",
        validation_alias=AliasChoices("JWT_SECRET_KEY", "JWT_SECRET", "SECRET_KEY"),
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    EMPLOYEE_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # Password policy
    MIN_PASSWORD_LENGTH: int = 8

    # Seconds to let in-flight requests finish on SIGTERM
    SHUTDOWN_TIMEOUT_SECONDS: float = 30

    # Logging; falls back to DEBUG or INFO from the DEBUG flag
    LOG_LEVEL: Optional[str] = None

    # Redis configuration (rate limiting storage)
    REDIS_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("REDIS_URL", "CACHE_REDIS_URL"),
    )

    # Attendance / payroll
    STANDARD_WORKDAY_HOURS: float = 8.0

    # Sales documents
    DEFAULT_TAX_RATE: float = 10.0
    DEFAULT_PAYMENT_TERMS: str = "Net 30"

    # Inbound e-mail webhook (e-mail to lead)
    EMAIL_WEBHOOK_SECRET: Optional[str] = None
    DEFAULT_PUBLIC_COMPANY_ID: Optional[int] = None

    # File uploads
    UPLOAD_DIR: str = Field(
        default="./bizabode_data/uploads",
        validation_alias=AliasChoices("UPLOAD_DIR", "BIZABODE_UPLOAD_DIR"),
    )
    MAX_UPLOAD_SIZE_MB: int = 10

    @computed_field
    @property
    def MAX_UPLOAD_SIZE_BYTES(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    def model_post_init(self, __context):
        """
        Validate configuration on startup. In production, fail hard if insecure defaults are detected.
        """
        # Only an explicit DATABASE_URL carries its own password
        db_url_password = _extract_password_from_database_url(self.DATABASE_URL)
        if not self.DATABASE_URL:
            self.DATABASE_URL = (
                f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )

        is_prod = self.ENVIRONMENT.lower() == "production"
        if not is_prod:
            return

        errors = []

        if self.SECRET_KEY in _INSECURE_SECRET_KEYS or len(self.SECRET_KEY) < 32:
            errors.append(
                "SECRET_KEY is insecure. Generate a new key with: "
                "python -c \"import secrets; print(secrets.token_urlsafe(32))\""
            )

        if db_url_password is None and self.POSTGRES_PASSWORD in _INSECURE_DB_PASSWORDS:
            errors.append(
                "POSTGRES_PASSWORD is insecure. "
                "Set a strong password in your environment (or provide DATABASE_URL with a strong password)."
            )
        if db_url_password and db_url_password in _INSECURE_DB_PASSWORDS:
            errors.append("DATABASE_URL contains an insecure password.")

        if not self.ALLOWED_ORIGINS or set(self.ALLOWED_ORIGINS).issubset(_INSECURE_ALLOWED_ORIGINS_DEFAULTS):
            errors.append(
                "ALLOWED_ORIGINS must be set to your domain(s) in production (not localhost defaults)."
            )

        if self.DEBUG:
            errors.append("DEBUG must be False in production.")

        # Fail hard with all errors at once for easier debugging
        if errors:
            error_msg = "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value

settings = Settings()
