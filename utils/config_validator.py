"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys
from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from enums.runtime_environment import RuntimeEnvironment


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_paystack_secret(secret_key: Optional[str]) -> None:
    """
    Validate the Paystack secret key.

    Raises:
        ConfigValidationError: If the key is missing or not a Paystack secret key
    """
    if not secret_key or len(secret_key.strip()) == 0:
        raise ConfigValidationError(
            "PAYSTACK_SECRET_KEY is required and must not be empty!\n"
            "This key authenticates API calls and verifies webhook signatures.\n"
            "Get it from the Paystack dashboard (Settings > API Keys & Webhooks).\n"
            "Add to .env: PAYSTACK_SECRET_KEY=sk_live_..."
        )

    if not secret_key.startswith(("sk_live_", "sk_test_")):
        raise ConfigValidationError(
            "PAYSTACK_SECRET_KEY does not look like a Paystack secret key (expected sk_live_... or sk_test_...)\n"
            "The public key (pk_...) cannot be used on the server."
        )


def validate_db_url(db_url: Optional[str], runtime_environment: RuntimeEnvironment) -> None:
    """
    Validate the database URL.

    Raises:
        ConfigValidationError: If the URL is malformed, or in-memory SQLite in production
    """
    validate_required_config(db_url, 'DB_URL', 'sqlite+aiosqlite:///data/maikanwa.db')
    try:
        url = make_url(db_url)
    except ArgumentError:
        raise ConfigValidationError(f"DB_URL is not a valid SQLAlchemy URL: {db_url}")

    in_memory = url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")
    if runtime_environment == RuntimeEnvironment.PROD and in_memory:
        raise ConfigValidationError(
            "DB_URL points to an in-memory SQLite database in PROD!\n"
            "Orders and payments would be lost on restart.\n"
            "Add to .env: DB_URL=sqlite+aiosqlite:///data/maikanwa.db (or a server database URL)"
        )


def validate_required_config(value: Optional[str], name: str, example: str = "") -> None:
    """
    Validate that a required config value is set.

    Raises:
        ConfigValidationError: If value is missing
    """
    if not value:
        error_msg = f"{name} is required but not set!"
        if example:
            error_msg += f"\nAdd to .env: {name}={example}"
        raise ConfigValidationError(error_msg)


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration at startup.

    Raises:
        ConfigValidationError: If any validation fails
    """
    runtime_environment = config_module.RUNTIME_ENVIRONMENT
    validate_db_url(config_module.DB_URL, runtime_environment)
    validate_required_config(config_module.SITE_URL, 'SITE_URL', 'https://maikanwa.com')

    # DEV and TEST run without payments; only production must take them
    if runtime_environment == RuntimeEnvironment.PROD:
        validate_paystack_secret(config_module.PAYSTACK_SECRET_KEY)


def validate_or_exit(config_module) -> None:
    """
    Validate configuration and exit with error code 1 if validation fails.

    This is the main entry point for startup validation.
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Configuration Validation Failed\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nStartup aborted. Please fix configuration and try again.\n", file=sys.stderr)
        sys.exit(1)
