"""Schema creation and default settings."""
import logging
from typing import Optional

from kasir.database import Base
from kasir.exceptions import InitializationError, StorageError
from kasir import models  # noqa: F401  (registers the tables on Base.metadata)

logger = logging.getLogger(__name__)

DEFAULT_STORE_NAME = 'Toko Sejahtera'


def init_schema(storage, store_name: Optional[str] = None) -> None:
    """
    Create the four tables and seed the default settings, in one transaction.

    Tables are created only if missing and the seed uses INSERT OR IGNORE, so
    running this again changes nothing. Must complete before the first
    repository call.

    Raises:
        InitializationError: the schema could not be created.
    """
    def body(tx):
        Base.metadata.create_all(bind=tx.connection, checkfirst=True)
        tx.execute_sql(
            'INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);',
            ['store_name', store_name or DEFAULT_STORE_NAME]
        )

    try:
        storage.run_transaction(body)
    except StorageError as e:
        logger.error(f"[SCHEMA] Database transaction error: {e}")
        raise InitializationError(f"Schema initialization failed: {e}") from e
    except Exception as e:
        logger.exception(f"[SCHEMA] Unexpected error while creating schema: {e}")
        raise InitializationError(f"Schema initialization failed: {e}") from e

    logger.info('[SCHEMA] Database initialized successfully')


def list_tables(storage) -> list:
    """Names of the user tables, sorted."""
    with storage.transaction() as tx:
        result = tx.execute_sql(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name;"
        )
    return [row['name'] for row in result.rows]
