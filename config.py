from datetime import timedelta

# Load environment variables
from dotenv import load_dotenv
load_dotenv()

from utils.security_utils import get_env_variable


def _env_flag(var_name, default='true'):
    return str(get_env_variable(var_name, default)).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Application settings read from the environment (and .env, when present)."""

    APP_ENV = get_env_variable('APP_ENV', 'development')
    SECRET_KEY = get_env_variable('SECRET_KEY', 'learnhub-secret-key')

    # Token signing
    JWT_SECRET = get_env_variable('JWT_SECRET', 'learnhub-jwt-secret-change-in-production')
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRES_IN = timedelta(days=int(get_env_variable('JWT_EXPIRES_DAYS', '7')))

    # Database
    DATABASE_PATH = get_env_variable('DATABASE_PATH', 'learnhub.db')
    DB_POOL_SIZE = int(get_env_variable('DB_POOL_SIZE', '5'))

    # Rate limiting, as "<max requests>/<window seconds>"
    RATE_LIMIT_ENABLED = _env_flag('RATE_LIMIT_ENABLED')
    AUTH_RATE_LIMIT = get_env_variable('AUTH_RATE_LIMIT', '5/60')
    API_RATE_LIMIT = get_env_variable('API_RATE_LIMIT', '100/60')

    # Logging
    LOG_LEVEL = get_env_variable('LOG_LEVEL', 'INFO').upper()
    LOG_FILE = get_env_variable('LOG_FILE', None)

    # First admin bootstrap (both must be set)
    SEED_ADMIN_EMAIL = get_env_variable('SEED_ADMIN_EMAIL', None)
    SEED_ADMIN_PASSWORD = get_env_variable('SEED_ADMIN_PASSWORD', None)

    @classmethod
    def as_dict(cls):
        return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}


def parse_rate_limit(value):
    """Parse a "<max>/<seconds>" rate limit string into a (max, seconds) tuple."""
    try:
        max_requests, window_seconds = str(value).split('/', 1)
        return int(max_requests), int(window_seconds)
    except ValueError:
        raise ValueError(f"Invalid rate limit value: {value!r}")
