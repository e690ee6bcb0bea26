import os
import sys

from dotenv import load_dotenv

from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT")
    if not _runtime_env_str:
        raise ValueError("RUNTIME_ENVIRONMENT environment variable is not set")
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str)
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

# HTTP server
WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = int(os.environ.get("WEBAPP_PORT")) if os.environ.get("WEBAPP_PORT") else 8000
SITE_URL = os.environ.get("SITE_URL", "http://localhost:3000").rstrip("/")

# Database
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/maikanwa.db")

# Currency (all money is stored in kobo, the minor unit of NGN)
DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "NGN")
DEFAULT_COUNTRY = os.environ.get("DEFAULT_COUNTRY", "NG")

# Paystack
PAYSTACK_SECRET_KEY = os.environ.get("PAYSTACK_SECRET_KEY", "")
PAYSTACK_BASE_URL = os.environ.get("PAYSTACK_BASE_URL", "https://api.paystack.co").rstrip("/")
PAYSTACK_CALLBACK_URL = os.environ.get("PAYSTACK_CALLBACK_URL", "")
PAYSTACK_TIMEOUT_SECONDS = int(os.environ.get("PAYSTACK_TIMEOUT_SECONDS", "15"))

# Order lifecycle
ORDER_TIMEOUT_MINUTES = int(os.environ.get("ORDER_TIMEOUT_MINUTES", "60"))  # Unpaid Paystack orders expire after N minutes
ORDER_EXPIRY_ENABLED = os.environ.get("ORDER_EXPIRY_ENABLED", "true") == "true"
ORDER_EXPIRY_CHECK_INTERVAL_SECONDS = int(os.environ.get("ORDER_EXPIRY_CHECK_INTERVAL_SECONDS", "60"))

# Sessions and cookies
SESSION_COOKIE_NAME = "mkw_session"
GUEST_COOKIE_NAME = "mk_guest"
SESSION_DAYS = int(os.environ.get("SESSION_DAYS", "30"))
GUEST_CART_DAYS = int(os.environ.get("GUEST_CART_DAYS", "30"))
PASSWORD_RESET_TTL_MINUTES = int(os.environ.get("PASSWORD_RESET_TTL_MINUTES", "60"))
PASSWORD_HASH_ITERATIONS = int(os.environ.get("PASSWORD_HASH_ITERATIONS", "390000"))
COOKIE_SECURE = os.environ.get(
    "COOKIE_SECURE", "true" if RUNTIME_ENVIRONMENT == RuntimeEnvironment.PROD else "false"
) == "true"

# Redis (rate limiting); empty = rate limiting disabled
REDIS_URL = os.environ.get("REDIS_URL", "")

# Rate Limiting Configuration
MAX_ORDERS_PER_USER_PER_HOUR = int(os.environ.get("MAX_ORDERS_PER_USER_PER_HOUR", "10"))  # Prevent checkout spam
MAX_PAYMENT_CHECKS_PER_MINUTE = int(os.environ.get("MAX_PAYMENT_CHECKS_PER_MINUTE", "10"))  # Prevent verify polling spam

# Seed data
SEED_ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@maikanwa.com")
SEED_ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "")

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs
LOG_DIR = os.environ.get("LOG_DIR", "logs")

# Log Retention: Environment-specific defaults
# Dev: 30 days for debugging
# Prod: 5 days default to save disk space
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))

# HTTP Security Configuration
SECURITY_HEADERS_ENABLED = os.environ.get("SECURITY_HEADERS_ENABLED", "false") == "true"
CSP_ENABLED = os.environ.get("CSP_ENABLED", "false") == "true"
HSTS_ENABLED = os.environ.get("HSTS_ENABLED", "false") == "true"  # Only for HTTPS deployments
CORS_ALLOWED_ORIGINS = os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if os.environ.get("CORS_ALLOWED_ORIGINS") else []
