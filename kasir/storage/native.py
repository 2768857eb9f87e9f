"""Native backend: a SQLite database file on the local disk."""
import logging
import os
from typing import Optional

from sqlalchemy import create_engine

from kasir.storage.base import StorageEngine

logger = logging.getLogger(__name__)


class NativeEngine(StorageEngine):
    """File-backed SQLite. Durability comes from SQLite's own commit."""

    backend = 'native'

    def __init__(self, name: str, directory: Optional[str] = None, echo: bool = False):
        super().__init__(name, echo=echo)
        self.directory = directory

    @property
    def path(self) -> str:
        if self.directory:
            return os.path.join(self.directory, self.name)
        return self.name

    def _create_engine(self):
        if self.directory:
            os.makedirs(self.directory, exist_ok=True)
        logger.debug(f"[STORAGE] Native database file: {self.path}")
        return create_engine(
            f"sqlite:///{self.path}",
            echo=self.echo,
            connect_args={'check_same_thread': False},
        )
