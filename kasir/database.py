"""Database configuration and initialization."""
import atexit
import logging

from flask import current_app
from sqlalchemy.orm import declarative_base

from kasir.exceptions import InitializationError

logger = logging.getLogger(__name__)

# Create SQLAlchemy base (table definitions only; data goes through the storage engines)
Base = declarative_base()


def init_db(app):
    """
    Open the configured storage engine and bring the schema up.

    The engine is owned by the app (``app.extensions['storage']``) and closed
    at interpreter exit. If the engine or the schema cannot be initialized the
    failure is logged once and the storage slot stays empty: the app keeps
    serving, but every data call fails with InitializationError.
    """
    from kasir.storage import create_storage
    from kasir.services.schema_service import init_schema

    app.extensions['storage'] = None
    storage = None
    try:
        storage = create_storage(app.config)
        init_schema(storage, store_name=app.config.get('STORE_NAME'))
    except InitializationError as e:
        app.logger.critical(f"[DB] Database initialization failed, sales are disabled: {e}")
        if storage is not None:
            storage.close()
        app.extensions['storage_error'] = str(e)
        return None

    app.extensions['storage'] = storage
    atexit.register(storage.close)
    app.logger.info(f"[DB] Storage ready: {storage!r}")
    return storage


def get_storage():
    """Get the storage engine of the current app."""
    storage = current_app.extensions.get('storage')
    if storage is None:
        raise InitializationError(
            current_app.extensions.get('storage_error', 'Database is not initialized')
        )
    return storage


def close_db(app):
    """Close the app's storage engine (persists the snapshot backend once more)."""
    storage = app.extensions.get('storage')
    if storage is not None:
        storage.close()
        app.extensions['storage'] = None
