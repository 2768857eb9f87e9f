"""Storage engines: one transaction contract, two backends."""
from typing import Optional

from kasir.storage.base import ResultSet, RowList, SQLTransaction, StorageEngine
from kasir.storage.native import NativeEngine
from kasir.storage.snapshot import SnapshotEngine
from kasir.storage.snapshot_store import (
    FileSnapshotStore, RedisSnapshotStore, SnapshotStore, create_snapshot_store
)

BACKENDS = ('native', 'snapshot')


def open_storage(
    backend: str,
    name: str,
    directory: Optional[str] = None,
    store: Optional[SnapshotStore] = None,
    key_prefix: str = 'sqlitedb_',
    echo: bool = False,
) -> StorageEngine:
    """Build and open the engine chosen by ``backend``."""
    if backend == 'native':
        engine = NativeEngine(name, directory=directory, echo=echo)
    elif backend == 'snapshot':
        if store is None:
            raise ValueError('The snapshot backend needs a snapshot store')
        engine = SnapshotEngine(name, store, key_prefix=key_prefix, echo=echo)
    else:
        raise ValueError(f"Unknown storage backend: {backend!r} (expected one of {BACKENDS})")
    return engine.open()


def create_storage(config) -> StorageEngine:
    """Open the engine described by a Flask-style config mapping."""
    backend = config.get('STORAGE_BACKEND', 'native')
    store = create_snapshot_store(config) if backend == 'snapshot' else None
    return open_storage(
        backend,
        config.get('DATABASE_NAME', 'kasir.db'),
        directory=config.get('DATABASE_DIR'),
        store=store,
        key_prefix=config.get('SNAPSHOT_KEY_PREFIX', 'sqlitedb_'),
        echo=config.get('SQL_ECHO', False),
    )


__all__ = [
    'BACKENDS', 'open_storage', 'create_storage',
    'StorageEngine', 'NativeEngine', 'SnapshotEngine', 'SQLTransaction', 'ResultSet', 'RowList',
    'SnapshotStore', 'FileSnapshotStore', 'RedisSnapshotStore', 'create_snapshot_store',
]
