"""
Unit tests for the storage engine contract (both backends).
"""

import threading
import time

import pytest

from kasir.exceptions import StatementError, StorageError
from kasir.storage import NativeEngine, SnapshotEngine, open_storage

INSERT_PRODUCT = (
    'INSERT INTO products (id, name, price, stock, created_at, updated_at) '
    'VALUES (?, ?, ?, ?, 0, 0);'
)


def _count_products(storage):
    with storage.transaction() as tx:
        return tx.execute_sql('SELECT COUNT(*) AS count FROM products;').scalar()


class TestOpenStorage:
    """Tests for backend selection."""

    def test_backend_is_chosen_by_name(self, tmp_path, snapshot_store):
        native = open_storage('native', 'a.db', directory=str(tmp_path))
        snapshot = open_storage('snapshot', 'a.db', store=snapshot_store)

        assert isinstance(native, NativeEngine)
        assert isinstance(snapshot, SnapshotEngine)
        assert native.is_open and snapshot.is_open

        native.close()
        snapshot.close()

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            open_storage('websql', 'a.db')

    def test_snapshot_backend_needs_store(self):
        with pytest.raises(ValueError):
            open_storage('snapshot', 'a.db')


class TestResultSet:
    """Tests for statement results."""

    def test_rows_length_and_item(self, storage):
        with storage.transaction() as tx:
            tx.execute_sql(INSERT_PRODUCT, ['p1', 'Kopi', 2000, 5])
            tx.execute_sql(INSERT_PRODUCT, ['p2', 'Teh', 1500, 7])
            result = tx.execute_sql('SELECT id, name FROM products ORDER BY name;')

        assert result.rows.length == 2
        assert len(result.rows) == 2
        assert result.rows.item(0) == {'id': 'p1', 'name': 'Kopi'}
        assert [row['id'] for row in result.rows] == ['p1', 'p2']

    def test_rows_affected(self, storage):
        with storage.transaction() as tx:
            tx.execute_sql(INSERT_PRODUCT, ['p1', 'Kopi', 2000, 5])
            tx.execute_sql(INSERT_PRODUCT, ['p2', 'Teh', 1500, 7])
            result = tx.execute_sql('UPDATE products SET stock = stock + 1;')

        assert result.rows_affected == 2
        assert result.rows.length == 0

    def test_named_parameters(self, storage):
        with storage.transaction() as tx:
            tx.execute_sql(INSERT_PRODUCT, ['p1', 'Kopi', 2000, 5])
            result = tx.execute_sql('SELECT name FROM products WHERE id = :id;', {'id': 'p1'})

        assert result.scalar() == 'Kopi'

    def test_on_result_callback(self, storage):
        seen = []
        with storage.transaction() as tx:
            tx.execute_sql(
                'SELECT value FROM settings WHERE key = ?;',
                ['store_name'],
                on_result=lambda t, rs: seen.append((t is tx, rs.first()['value']))
            )

        assert seen == [(True, 'Toko Sejahtera')]


class TestRunTransaction:
    """Tests for the callback transaction contract."""

    def test_success_commits_and_calls_on_success(self, storage):
        calls = []

        result = storage.run_transaction(
            lambda tx: tx.execute_sql(INSERT_PRODUCT, ['p1', 'Kopi', 2000, 5]) and 'done',
            on_error=lambda e: calls.append('error'),
            on_success=lambda: calls.append('success')
        )

        assert result == 'done'
        assert calls == ['success']
        assert _count_products(storage) == 1

    def test_failing_statement_rolls_back_everything(self, storage):
        errors = []

        def body(tx):
            tx.execute_sql(INSERT_PRODUCT, ['p1', 'Kopi', 2000, 5])
            tx.execute_sql('INSERT INTO no_such_table VALUES (1);')
            tx.execute_sql(INSERT_PRODUCT, ['p2', 'Teh', 1500, 7])

        storage.run_transaction(body, on_error=errors.append, on_success=lambda: errors.append('success'))

        assert len(errors) == 1
        assert isinstance(errors[0], StatementError)
        assert errors[0].__cause__ is not None
        assert _count_products(storage) == 0

    def test_error_without_handler_propagates(self, storage):
        with pytest.raises(StatementError):
            storage.run_transaction(lambda tx: tx.execute_sql('SELEC 1;'))

    def test_exception_in_body_rolls_back(self, storage):
        def body(tx):
            tx.execute_sql(INSERT_PRODUCT, ['p1', 'Kopi', 2000, 5])
            raise RuntimeError('cashier pressed cancel')

        with pytest.raises(RuntimeError):
            storage.run_transaction(body)

        assert _count_products(storage) == 0


class TestStatementErrorChannel:
    """Tests for the per-statement error callback."""

    def test_handled_error_lets_body_continue(self, storage):
        seen = []

        def handler(tx, error):
            seen.append(error)
            return True

        with storage.transaction() as tx:
            tx.execute_sql(INSERT_PRODUCT, ['p1', 'Kopi', 2000, 5])
            result = tx.execute_sql(INSERT_PRODUCT, ['p1', 'Kopi lagi', 2000, 5], on_error=handler)
            tx.execute_sql(INSERT_PRODUCT, ['p2', 'Teh', 1500, 7])

        assert result is None
        assert len(seen) == 1
        assert isinstance(seen[0], StatementError)
        assert _count_products(storage) == 2

    def test_unhandled_error_aborts(self, storage):
        seen = []

        with pytest.raises(StatementError):
            with storage.transaction() as tx:
                tx.execute_sql(INSERT_PRODUCT, ['p1', 'Kopi', 2000, 5])
                tx.execute_sql(
                    INSERT_PRODUCT, ['p1', 'Kopi lagi', 2000, 5],
                    on_error=lambda t, e: seen.append(e)
                )

        assert len(seen) == 1
        assert _count_products(storage) == 0

    def test_foreign_keys_are_enforced(self, storage):
        with pytest.raises(StatementError):
            with storage.transaction() as tx:
                tx.execute_sql(
                    'INSERT INTO transaction_items (id, transaction_id, product_id, quantity, price, subtotal) '
                    'VALUES (?, ?, ?, ?, ?, ?);',
                    ['i1', 'missing-sale', 'missing-product', 1, 1000, 1000]
                )


class TestEngineLifecycle:
    """Tests for nesting, closing and serialization."""

    def test_nested_transaction_is_rejected(self, storage):
        with pytest.raises(StorageError):
            with storage.transaction():
                with storage.transaction():
                    pass

    def test_executor_is_dead_after_commit(self, storage):
        with storage.transaction() as tx:
            pass

        with pytest.raises(StorageError):
            tx.execute_sql('SELECT 1;')

    def test_closed_engine_refuses_work(self, storage):
        storage.close()

        assert not storage.is_open
        with pytest.raises(StorageError):
            with storage.transaction():
                pass

    def test_transactions_never_interleave(self, storage):
        order = []
        first_started = threading.Event()

        def first():
            with storage.transaction() as tx:
                order.append('first-begin')
                first_started.set()
                time.sleep(0.2)
                tx.execute_sql(INSERT_PRODUCT, ['p1', 'Kopi', 2000, 5])
                order.append('first-end')

        def second():
            first_started.wait()
            with storage.transaction() as tx:
                order.append('second')
                tx.execute_sql(INSERT_PRODUCT, ['p2', 'Teh', 1500, 7])

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert order == ['first-begin', 'first-end', 'second']
        assert _count_products(storage) == 2
