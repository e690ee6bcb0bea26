"""
Startup Configuration Validation Tests

Run with:
    pytest tests/utils/unit/test_config_validator.py -v
"""

from types import SimpleNamespace

import pytest

from enums.runtime_environment import RuntimeEnvironment
from utils.config_validator import (
    ConfigValidationError,
    validate_paystack_secret,
    validate_db_url,
    validate_required_config,
    validate_startup_config,
    validate_or_exit,
)


def make_config(**overrides):
    values = {
        "RUNTIME_ENVIRONMENT": RuntimeEnvironment.PROD,
        "DB_URL": "sqlite+aiosqlite:///data/maikanwa.db",
        "SITE_URL": "https://maikanwa.com",
        "PAYSTACK_SECRET_KEY": "sk_live_abcdef123456",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestPaystackSecret:

    @pytest.mark.parametrize("key", ["sk_live_abc123", "sk_test_abc123"])
    def test_secret_keys_accepted(self, key):
        validate_paystack_secret(key)

    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_missing_key(self, key):
        with pytest.raises(ConfigValidationError, match="PAYSTACK_SECRET_KEY is required"):
            validate_paystack_secret(key)

    def test_public_key_rejected(self):
        with pytest.raises(ConfigValidationError, match="public key"):
            validate_paystack_secret("pk_live_abc123")


class TestDatabaseUrl:

    def test_file_database_in_prod(self):
        validate_db_url("sqlite+aiosqlite:///data/maikanwa.db", RuntimeEnvironment.PROD)

    def test_in_memory_database_rejected_in_prod(self):
        with pytest.raises(ConfigValidationError, match="in-memory"):
            validate_db_url("sqlite+aiosqlite:///:memory:", RuntimeEnvironment.PROD)

    def test_in_memory_database_allowed_in_dev(self):
        validate_db_url("sqlite+aiosqlite://", RuntimeEnvironment.DEV)

    def test_malformed_url(self):
        with pytest.raises(ConfigValidationError, match="not a valid SQLAlchemy URL"):
            validate_db_url("not a url", RuntimeEnvironment.DEV)

    def test_missing_url(self):
        with pytest.raises(ConfigValidationError, match="DB_URL is required"):
            validate_db_url("", RuntimeEnvironment.DEV)


class TestStartupConfig:

    def test_valid_prod_config(self):
        validate_startup_config(make_config())

    def test_prod_requires_paystack_secret(self):
        with pytest.raises(ConfigValidationError, match="PAYSTACK_SECRET_KEY"):
            validate_startup_config(make_config(PAYSTACK_SECRET_KEY=""))

    def test_dev_runs_without_paystack_secret(self):
        validate_startup_config(make_config(RUNTIME_ENVIRONMENT=RuntimeEnvironment.DEV, PAYSTACK_SECRET_KEY=""))

    def test_site_url_required(self):
        with pytest.raises(ConfigValidationError, match="SITE_URL"):
            validate_startup_config(make_config(SITE_URL=""))

    def test_required_config_message_has_example(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_required_config(None, "SITE_URL", "https://maikanwa.com")
        assert "Add to .env: SITE_URL=https://maikanwa.com" in str(exc_info.value)

    def test_validate_or_exit_exits_with_code_1(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            validate_or_exit(make_config(DB_URL=""))
        assert exc_info.value.code == 1
        assert "Configuration Validation Failed" in capsys.readouterr().err


class TestAppStartup:
    """Test that serving the app validates configuration before anything starts"""

    @pytest.mark.asyncio
    async def test_invalid_config_aborts_lifespan(self, database, monkeypatch):
        import config
        from app import app

        monkeypatch.setattr(config, "SITE_URL", "")
        with pytest.raises(SystemExit) as exc_info:
            async with app.router.lifespan_context(app):
                pass
        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    async def test_valid_config_starts_and_stops(self, database):
        import app as app_module

        async with app_module.app.router.lifespan_context(app_module.app):
            pass
        assert app_module.expiry_task is None
