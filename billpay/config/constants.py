"""
Default values for settings.

Kept apart from settings.py so tests and the CLI can reference them.
"""

# Daily at 9 AM
DEFAULT_PAYMENT_CHECK_CRON = "0 9 * * *"

# Retry policy: fixed delay between attempts, not exponential
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 5000

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///billpay.sqlite3"

# Settlement provider HTTP client
DEFAULT_PROVIDER_BASE_URL = "https://prod-s0-webapp-proxy.nubank.com.br"
DEFAULT_PROVIDER_TIMEOUT_SECONDS = 30
PROVIDER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
)

# Operator HTTP API
DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_API_PORT = 8080

# Id prefixes by payment kind
BILL_ID_PREFIX = "bill"
TRANSFER_ID_PREFIX = "transfer"
