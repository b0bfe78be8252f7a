"""
Tests for app/core/config.py - Configuration and settings validation.
"""
import pytest


class TestSettingsValidation:
    """Test configuration validation logic."""

    def test_development_mode_allows_default_secrets(self, monkeypatch):
        from app.core.config import Settings

        settings = Settings(ENVIRONMENT="development", DEBUG=True)

        assert settings.ENVIRONMENT == "development"
        assert settings.DEBUG is True

    def test_database_url_is_built_from_postgres_fields(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("SQLALCHEMY_DATABASE_URI", raising=False)
        from app.core.config import Settings

        settings = Settings(
            POSTGRES_USER="biz",
            POSTGRES_PASSWORD="pw",
            POSTGRES_SERVER="dbhost",
            POSTGRES_PORT=6543,
            POSTGRES_DB="bizdb",
        )

        assert settings.DATABASE_URL == "postgresql+asyncpg://biz:pw@dbhost:6543/bizdb"

    def test_explicit_database_url_wins(self):
        from app.core.config import Settings

        settings = Settings(DATABASE_URL="postgresql+asyncpg://u:p@h/db")

        assert settings.DATABASE_URL == "postgresql+asyncpg://u:p@h/db"

    def test_allowed_origins_accepts_comma_separated_string(self):
        from app.core.config import Settings

        settings = Settings(ALLOWED_ORIGINS="https://a.example.com, https://b.example.com")

        assert settings.ALLOWED_ORIGINS == ["https://a.example.com", "https://b.example.com"]

    def test_upload_size_in_bytes(self):
        from app.core.config import Settings

        assert Settings(MAX_UPLOAD_SIZE_MB=2).MAX_UPLOAD_SIZE_BYTES == 2 * 1024 * 1024

    def test_production_mode_rejects_default_secret_key(self, monkeypatch):
        """Production mode must reject the development SECRET_KEY."""
        for name in ("SECRET_KEY", "JWT_SECRET_KEY", "JWT_SECRET"):
            monkeypatch.delenv(name, raising=False)
        from app.core.config import Settings

        with pytest.raises(ValueError) as exc_info:
            Settings(
                ENVIRONMENT="production",
                DEBUG=False,
                POSTGRES_PASSWORD="a-strong-db-password",
                ALLOWED_ORIGINS=["https://app.bizabode.example"],
            )

        assert "SECRET_KEY is insecure" in str(exc_info.value)

    def test_production_mode_collects_every_error(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("SQLALCHEMY_DATABASE_URI", raising=False)
        from app.core.config import Settings

        with pytest.raises(ValueError) as exc_info:
            Settings(
                ENVIRONMENT="production",
                DEBUG=True,
                SECRET_KEY="short",
                POSTGRES_PASSWORD="postgres",
                ALLOWED_ORIGINS=["http://localhost:3000"],
            )

        message = str(exc_info.value)
        assert "SECRET_KEY is insecure" in message
        assert "POSTGRES_PASSWORD is insecure" in message
        assert "ALLOWED_ORIGINS" in message
        assert "DEBUG must be False" in message
        assert "DATABASE_URL contains an insecure password" not in message

    def test_production_mode_flags_insecure_database_url_password(self):
        from app.core.config import Settings

        with pytest.raises(ValueError) as exc_info:
            Settings(
                ENVIRONMENT="production",
                DEBUG=False,
                SECRET_KEY="a-very-secure-secret-key-that-is-long-enough-32chars",
                DATABASE_URL="postgresql+asyncpg://biz:postgres@db:5432/bizabode",
                ALLOWED_ORIGINS=["https://app.bizabode.example"],
            )

        message = str(exc_info.value)
        assert "DATABASE_URL contains an insecure password" in message
        assert "POSTGRES_PASSWORD is insecure" not in message

    def test_production_mode_accepts_secure_settings(self):
        from app.core.config import Settings

        settings = Settings(
            ENVIRONMENT="production",
            DEBUG=False,
            SECRET_KEY="a-very-secure-secret-key-that-is-long-enough-32chars",
            DATABASE_URL="postgresql+asyncpg://biz:Str0ng-Pass@db:5432/bizabode",
            ALLOWED_ORIGINS=["https://app.bizabode.example"],
        )

        assert settings.ENVIRONMENT == "production"
