"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    Base configuration class.

    One process serves the store: the open cart and the settlement latch are
    held in memory, so run Gunicorn with a single worker (`--workers 1`).
    """

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')

    # Database - one local SQLite file per device
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///minimart.sqlite3')

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', '0') == '1'

    # Persistent store limits (mirrors the ~5MB quota of a browser store)
    STORE_MAX_VALUE_BYTES = int(os.getenv('STORE_MAX_VALUE_BYTES', 5 * 1024 * 1024))

    # Stock policy: negative stock is allowed unless strict mode is enabled
    STRICT_STOCK = os.getenv('STRICT_STOCK', 'false').lower() == 'true'
    LOW_STOCK_THRESHOLD = int(os.getenv('LOW_STOCK_THRESHOLD', '5'))

    # Business Information (default store name until settings are saved)
    BUSINESS_NAME = os.getenv('BUSINESS_NAME', 'My Store')

    # Error tracking
    SENTRY_DSN = os.getenv('SENTRY_DSN')


class TestingConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    STRICT_STOCK = False
    BUSINESS_NAME = 'Test Store'
