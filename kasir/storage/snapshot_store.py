"""
Key-value stores holding serialized database snapshots.

The snapshot engine writes the full binary image of its in-memory database
under one key per database name (``sqlitedb_{name}``), the way a browser app
keeps a sql.js database in localStorage. Stores enforce a size quota.
"""

import logging
import os
import tempfile
from typing import Optional

import redis
from redis.exceptions import RedisError
from werkzeug.utils import secure_filename

from kasir.exceptions import SnapshotError, SnapshotQuotaExceeded

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Base store. ``quota_bytes=None`` means unlimited."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes

    def load(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def save(self, key: str, data: bytes) -> None:
        """Write a snapshot. Raises SnapshotQuotaExceeded or SnapshotError."""
        if self.quota_bytes is not None and len(data) > self.quota_bytes:
            raise SnapshotQuotaExceeded(len(data), self.quota_bytes)
        self._write(key, data)

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def _write(self, key: str, data: bytes) -> None:
        raise NotImplementedError


class FileSnapshotStore(SnapshotStore):
    """One file per key inside a local directory."""

    def __init__(self, directory: str, quota_bytes: Optional[int] = None):
        super().__init__(quota_bytes)
        self.directory = directory

    def _path(self, key: str) -> str:
        filename = secure_filename(key)
        if not filename:
            raise SnapshotError(f"Invalid snapshot key: {key!r}")
        return os.path.join(self.directory, f"{filename}.snapshot")

    def load(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'rb') as fh:
                return fh.read()
        except OSError as e:
            raise SnapshotError(f"Cannot read snapshot {path}: {e}") from e

    def _write(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            os.makedirs(self.directory, exist_ok=True)
            # Write aside and swap in, so a crash never leaves half a snapshot
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix='.tmp')
            try:
                with os.fdopen(fd, 'wb') as fh:
                    fh.write(data)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise SnapshotError(f"Cannot write snapshot {path}: {e}") from e

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            raise SnapshotError(f"Cannot delete snapshot {path}: {e}") from e


class RedisSnapshotStore(SnapshotStore):
    """Redis-backed store; values are raw bytes."""

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        url: str = 'redis://localhost:6379/0',
        quota_bytes: Optional[int] = None,
    ):
        super().__init__(quota_bytes)
        if client is None:
            client = redis.from_url(
                url,
                decode_responses=False,
                socket_connect_timeout=3,
                socket_timeout=3,
                socket_keepalive=True,
                retry_on_timeout=True,
                health_check_interval=30
            )
        self.client = client

    def load(self, key: str) -> Optional[bytes]:
        try:
            return self.client.get(key)
        except RedisError as e:
            raise SnapshotError(f"Redis get failed for {key}: {e}") from e

    def _write(self, key: str, data: bytes) -> None:
        try:
            self.client.set(key, data)
        except RedisError as e:
            raise SnapshotError(f"Redis set failed for {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except RedisError as e:
            raise SnapshotError(f"Redis delete failed for {key}: {e}") from e


def create_snapshot_store(config) -> SnapshotStore:
    """Build the store selected by SNAPSHOT_STORE from a config mapping."""
    kind = config.get('SNAPSHOT_STORE', 'file')
    quota = config.get('SNAPSHOT_QUOTA_BYTES')
    if kind == 'file':
        return FileSnapshotStore(config.get('SNAPSHOT_DIR', 'local_storage'), quota_bytes=quota)
    if kind == 'redis':
        logger.info(f"[SNAPSHOT] Using redis store at {config.get('REDIS_URL')}")
        return RedisSnapshotStore(url=config.get('REDIS_URL', 'redis://localhost:6379/0'), quota_bytes=quota)
    raise ValueError(f"Unknown snapshot store: {kind}")
