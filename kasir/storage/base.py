"""
Storage engine contract shared by the native and snapshot backends.

Every engine exposes the same unit of work:

    with storage.transaction() as tx:
        tx.execute_sql('UPDATE products SET stock = stock - ? WHERE id = ?;', [qty, pid])

or, callback style:

    storage.run_transaction(body, on_error=..., on_success=...)

Statements of one transaction either all become visible or none do.
Transaction bodies are serialized per engine; they never interleave.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from kasir.exceptions import StorageError, StatementError

logger = logging.getLogger(__name__)


class RowList:
    """Materialized rows of one statement, readable as rows.item(i) or as a list."""

    def __init__(self, rows: List[Dict[str, Any]]):
        self._rows = rows

    @property
    def length(self) -> int:
        return len(self._rows)

    def item(self, index: int) -> Dict[str, Any]:
        return self._rows[index]

    def __len__(self):
        return len(self._rows)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self._rows)

    def __getitem__(self, index):
        return self._rows[index]

    def __repr__(self):
        return f"<RowList(length={len(self._rows)})>"


class ResultSet:
    """Outcome of a single statement."""

    def __init__(self, rows: List[Dict[str, Any]], rows_affected: int = 0):
        self.rows = RowList(rows)
        self.rows_affected = rows_affected

    def first(self) -> Optional[Dict[str, Any]]:
        return self.rows.item(0) if len(self.rows) else None

    def scalar(self) -> Any:
        """First column of the first row, or None."""
        row = self.first()
        if row is None:
            return None
        return next(iter(row.values()), None)


class SQLTransaction:
    """Executor handed to a transaction body; only valid while the body runs."""

    def __init__(self, connection):
        self._connection = connection
        self._active = True

    @property
    def connection(self):
        """Underlying SQLAlchemy connection (used for metadata DDL)."""
        self._check_active()
        return self._connection

    def execute_sql(
        self,
        sql,
        params=None,
        on_result: Optional[Callable[['SQLTransaction', ResultSet], Any]] = None,
        on_error: Optional[Callable[['SQLTransaction', StatementError], Any]] = None,
    ) -> Optional[ResultSet]:
        """
        Run one statement inside the transaction.

        Args:
            sql: SQL string with positional ``?`` or named ``:name`` markers,
                or any SQLAlchemy executable.
            params: sequence for positional markers, mapping for named ones.
            on_result: called as ``on_result(tx, result_set)`` on success.
            on_error: called as ``on_error(tx, error)`` on failure. Returning
                True marks the error as handled and the body goes on; anything
                else aborts the whole transaction.

        Returns:
            The ResultSet, or None when a failure was handled by on_error.

        Raises:
            StatementError: statement failed and was not handled.
        """
        self._check_active()
        try:
            result = self._run(sql, params)
        except SQLAlchemyError as exc:
            error = StatementError(sql, exc)
            error.__cause__ = exc
            logger.error(f"[STORAGE] SQL error: {exc.__class__.__name__}: {exc} in statement: {sql}")
            if on_error is not None and on_error(self, error) is True:
                return None
            raise error

        if on_result is not None:
            on_result(self, result)
        return result

    # Short alias for repository code
    execute = execute_sql

    def _run(self, sql, params) -> ResultSet:
        if isinstance(sql, str):
            if isinstance(params, dict):
                cursor = self._connection.execute(text(sql), params)
            else:
                cursor = self._connection.exec_driver_sql(sql, tuple(params) if params else None)
        else:
            cursor = self._connection.execute(sql, params or {})

        if cursor.returns_rows:
            rows = [dict(row._mapping) for row in cursor]
            return ResultSet(rows)
        return ResultSet([], rows_affected=max(cursor.rowcount, 0))

    def _check_active(self):
        if not self._active:
            raise StorageError('Transaction is no longer active')

    def _finish(self):
        self._active = False


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _install_sqlite_listeners(engine: Engine) -> None:
    """
    Take BEGIN/COMMIT/ROLLBACK away from pysqlite so that every transaction
    is an explicit ``BEGIN TRANSACTION`` and DDL is transactional too.
    Foreign keys are off by default in SQLite; turn them on per connection.

    Also registers ``unicode_lower()``: SQLite's own ``lower()`` only folds
    ASCII letters.
    """

    @event.listens_for(engine, 'connect')
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        dbapi_connection.create_function('unicode_lower', 1, _unicode_lower, deterministic=True)
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()

    @event.listens_for(engine, 'begin')
    def _on_begin(connection):
        connection.exec_driver_sql('BEGIN TRANSACTION')


class StorageEngine:
    """Base class of both backends. Subclasses build the SQLAlchemy engine."""

    backend = None

    def __init__(self, name: str, echo: bool = False):
        self.name = name
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._lock = threading.RLock()
        self._in_transaction = False
        self._closed = False

    def __repr__(self):
        return f"<{self.__class__.__name__}(name='{self.name}', open={self.is_open})>"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> 'StorageEngine':
        """Build the engine on first use. Safe to call repeatedly."""
        with self._lock:
            if self._closed:
                raise StorageError(f"Database '{self.name}' is closed")
            if self._engine is None:
                self._engine = self._build_engine()
                self._after_open()
                logger.info(f"[STORAGE] Opened {self.backend} database '{self.name}'")
        return self

    def close(self) -> None:
        """Release the engine. Further use raises StorageError."""
        with self._lock:
            if self._engine is not None:
                self._before_close()
                self._engine.dispose()
                self._engine = None
                logger.info(f"[STORAGE] Closed {self.backend} database '{self.name}'")
            self._closed = True

    def _build_engine(self) -> Engine:
        engine = self._create_engine()
        _install_sqlite_listeners(engine)
        return engine

    def _create_engine(self) -> Engine:
        raise NotImplementedError

    def _after_open(self) -> None:
        pass

    def _before_close(self) -> None:
        pass

    def _after_commit(self) -> None:
        pass

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[SQLTransaction]:
        """Scoped unit of work: commit on normal exit, rollback on exception."""
        with self._lock:
            if self._in_transaction:
                raise StorageError('Nested transactions are not supported')
            self.open()
            self._in_transaction = True
            try:
                with self._engine.connect() as connection:
                    trans = connection.begin()
                    tx = SQLTransaction(connection)
                    try:
                        yield tx
                    except BaseException:
                        tx._finish()
                        self._rollback(trans)
                        raise
                    tx._finish()
                    try:
                        trans.commit()
                    except SQLAlchemyError as exc:
                        raise StorageError(f"Commit failed: {exc}") from exc
                self._after_commit()
            finally:
                self._in_transaction = False

    def run_transaction(
        self,
        body: Callable[[SQLTransaction], Any],
        on_error: Optional[Callable[[Exception], Any]] = None,
        on_success: Optional[Callable[[], Any]] = None,
    ) -> Any:
        """
        Callback form of transaction().

        ``body(tx)`` runs inside one transaction. On commit ``on_success()``
        fires and the body's return value is returned. On failure the
        transaction is rolled back and ``on_error(exc)`` fires; without an
        on_error the exception propagates.
        """
        try:
            with self.transaction() as tx:
                result = body(tx)
        except Exception as exc:
            logger.error(f"[STORAGE] Transaction error: {exc}")
            if on_error is None:
                raise
            on_error(exc)
            return None

        if on_success is not None:
            on_success()
        return result

    def _rollback(self, trans) -> None:
        try:
            trans.rollback()
        except SQLAlchemyError as exc:
            logger.error(f"[STORAGE] Error during rollback: {exc}")
