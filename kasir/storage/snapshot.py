"""
Snapshot backend: in-memory SQLite persisted to a key-value store.

The in-memory database has no durability of its own. After every committed
transaction the whole database image is serialized and written to the
snapshot store; at startup the last image is loaded back. A failed write is
logged and the commit stands for the life of the process (it will not
survive a restart). Rolled back transactions are never persisted.
"""
import logging
import sqlite3
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from kasir.exceptions import InitializationError, SnapshotError, StorageError
from kasir.storage.base import StorageEngine
from kasir.storage.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class SnapshotEngine(StorageEngine):
    """In-memory SQLite whose state is snapshotted after each commit."""

    backend = 'snapshot'

    def __init__(self, name: str, store: SnapshotStore, key_prefix: str = 'sqlitedb_', echo: bool = False):
        super().__init__(name, echo=echo)
        self.store = store
        self.key_prefix = key_prefix

    @property
    def snapshot_key(self) -> str:
        return f"{self.key_prefix}{self.name}"

    def _create_engine(self):
        # One shared connection: the in-memory database lives and dies with it
        return create_engine(
            'sqlite://',
            echo=self.echo,
            poolclass=StaticPool,
            connect_args={'check_same_thread': False},
        )

    def _after_open(self) -> None:
        try:
            data = self.store.load(self.snapshot_key)
        except SnapshotError as e:
            self._engine.dispose()
            self._engine = None
            raise InitializationError(f"Cannot read saved database '{self.name}': {e}") from e

        if not data:
            logger.info(f"[SNAPSHOT] No saved database for '{self.name}', starting empty")
            return

        try:
            self._restore(data)
            logger.info(f"[SNAPSHOT] Loaded '{self.name}' from store ({len(data)} bytes)")
        except sqlite3.DatabaseError as e:
            logger.error(f"[SNAPSHOT] Error loading database from store: {e}")
            # Continue with a new database if loading fails
            self._engine.dispose()
            self._engine = self._build_engine()

    def _restore(self, data: bytes) -> None:
        raw = self._engine.raw_connection()
        try:
            dbapi_connection = raw.driver_connection
            dbapi_connection.deserialize(data)
            # Touch the schema so a garbage image fails here, not in the first sale
            dbapi_connection.execute('SELECT count(*) FROM sqlite_master').fetchone()
            dbapi_connection.execute('PRAGMA foreign_keys=ON')
        finally:
            raw.close()

    def _serialize(self) -> bytes:
        raw = self._engine.raw_connection()
        try:
            return raw.driver_connection.serialize()
        finally:
            raw.close()

    def _after_commit(self) -> None:
        self.persist()

    def _before_close(self) -> None:
        self.persist()

    def persist(self) -> bool:
        """Write the current image to the store. Failures are logged, not raised."""
        with self._lock:
            if self._engine is None:
                return False
            try:
                data = self._serialize()
                self.store.save(self.snapshot_key, data)
            except (SnapshotError, sqlite3.Error) as e:
                logger.warning(f"[SNAPSHOT] Error saving database to store: {e}")
                return False
            logger.debug(f"[SNAPSHOT] Saved '{self.name}' ({len(data)} bytes)")
            return True

    def reload(self) -> 'SnapshotEngine':
        """Drop the in-memory database and load the saved image again."""
        with self._lock:
            if self._in_transaction:
                raise StorageError('Cannot reload inside a transaction')
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
            return self.open()

    def clear(self) -> None:
        """Remove the saved image. The in-memory database is left as is."""
        try:
            self.store.delete(self.snapshot_key)
        except SnapshotError as e:
            raise StorageError(f"Cannot clear saved database '{self.name}': {e}") from e

    @property
    def snapshot_size(self) -> Optional[int]:
        with self._lock:
            if self._engine is None:
                return None
            return len(self._serialize())
