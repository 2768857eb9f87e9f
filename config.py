"""Configuration module for Flask application."""
import os
import tempfile

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    JSON_SORT_KEYS = False

    # Storage backend: 'native' (file-backed SQLite) or 'snapshot'
    # (in-memory SQLite persisted to a key-value store after each commit)
    STORAGE_BACKEND = os.getenv('STORAGE_BACKEND', 'native').lower()
    DATABASE_NAME = os.getenv('DATABASE_NAME', 'kasir.db')
    DATABASE_DIR = os.getenv('DATABASE_DIR', 'instance')
    SQL_ECHO = os.getenv('SQL_ECHO', 'false').lower() == 'true'

    # Snapshot store (only used by the snapshot backend)
    SNAPSHOT_STORE = os.getenv('SNAPSHOT_STORE', 'file').lower()
    SNAPSHOT_DIR = os.getenv('SNAPSHOT_DIR', os.path.join('instance', 'local_storage'))
    SNAPSHOT_KEY_PREFIX = os.getenv('SNAPSHOT_KEY_PREFIX', 'sqlitedb_')
    SNAPSHOT_QUOTA_BYTES = int(os.getenv('SNAPSHOT_QUOTA_BYTES', 5 * 1024 * 1024))  # 5MB
    REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

    # Business Information (seeded into the settings table on first start)
    STORE_NAME = os.getenv('STORE_NAME', 'Toko Sejahtera')

    # Stock Configuration
    LOW_STOCK_THRESHOLD = int(os.getenv('LOW_STOCK_THRESHOLD', '5'))


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    DEBUG = False
    STORAGE_BACKEND = 'snapshot'
    SNAPSHOT_STORE = 'file'
    # Keep test data out of the working tree
    DATABASE_DIR = os.path.join(tempfile.gettempdir(), 'kasir-test', 'db')
    SNAPSHOT_DIR = os.path.join(tempfile.gettempdir(), 'kasir-test', 'local_storage')
    SQL_ECHO = False
