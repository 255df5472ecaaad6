import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    # Provide a safe development fallback to avoid 500s when SECRET_KEY is missing.
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-me'
    DATABASE_URL = os.getenv('DATABASE_URL')
    SQLALCHEMY_DATABASE_URI = DATABASE_URL or 'sqlite:///gms.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Create tables on startup for single-installation deployments without migrations
    AUTO_CREATE_SCHEMA = _flag('AUTO_CREATE_SCHEMA', 'true')

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    REMEMBER_COOKIE_HTTPONLY = True

    # Membership billing
    MONTHLY_PRICE = os.getenv('MONTHLY_PRICE', '150.00')
    RANDOM_ID_MAX_ATTEMPTS = int(os.getenv('RANDOM_ID_MAX_ATTEMPTS', 10))
    EXPIRING_SOON_DAYS = int(os.getenv('EXPIRING_SOON_DAYS', 7))
    MOBILE_COUNTRY_CODE = os.getenv('MOBILE_COUNTRY_CODE', '20')

    # Training progress ratings (applies to both create and update)
    TRAINING_RATING_MIN = int(os.getenv('TRAINING_RATING_MIN', 1))
    TRAINING_RATING_MAX = int(os.getenv('TRAINING_RATING_MAX', 5))

    # Audit log reader cap
    AUDIT_SEARCH_LIMIT = int(os.getenv('AUDIT_SEARCH_LIMIT', 1000))

    # Outgoing email. Disabled or dry-run delivery writes messages to EMAIL_DRY_RUN_PATH.
    SMTP_ENABLED = _flag('SMTP_ENABLED', 'false')
    SMTP_HOST = os.getenv('SMTP_HOST', 'smtp.gmail.com')
    SMTP_PORT = int(os.getenv('SMTP_PORT', 587))
    SMTP_USERNAME = os.getenv('SMTP_USERNAME')
    SMTP_PASSWORD = os.getenv('SMTP_PASSWORD')
    SMTP_USE_TLS = _flag('SMTP_USE_TLS', 'true')
    SMTP_TIMEOUT = int(os.getenv('SMTP_TIMEOUT', 10))
    MAIL_FROM = os.getenv('MAIL_FROM') or SMTP_USERNAME or 'noreply@gym.local'
    MAIL_FROM_NAME = os.getenv('MAIL_FROM_NAME', 'Gym Management System')
    EMAIL_DRY_RUN = _flag('EMAIL_DRY_RUN', 'true')
    EMAIL_DRY_RUN_PATH = os.getenv('EMAIL_DRY_RUN_PATH', 'logs/emails')
    EMAIL_ASYNC = _flag('EMAIL_ASYNC', 'true')
    OWNER_RECOVERY_EMAIL = os.getenv('OWNER_RECOVERY_EMAIL')

    # Rate limiting
    RATELIMIT_ENABLED = _flag('RATELIMIT_ENABLED', 'true')
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')

    EXPORT_DIR = os.getenv('EXPORT_DIR', 'exports')


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    AUTO_CREATE_SCHEMA = True
    SMTP_ENABLED = False
    EMAIL_DRY_RUN = True
    EMAIL_ASYNC = False
    RATELIMIT_ENABLED = False
    OWNER_RECOVERY_EMAIL = None
