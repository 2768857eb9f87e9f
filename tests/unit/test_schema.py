"""
Unit tests for schema initialization.
"""

import pytest

from kasir.exceptions import InitializationError
from kasir.services import settings_service
from kasir.services.schema_service import DEFAULT_STORE_NAME, init_schema, list_tables


def _schema_sql(storage):
    with storage.transaction() as tx:
        result = tx.execute_sql("SELECT name, sql FROM sqlite_master ORDER BY name;")
    return [(row['name'], row['sql']) for row in result.rows]


class TestInitSchema:
    """Test table creation and default settings."""

    def test_creates_four_tables(self, storage):
        assert list_tables(storage) == ['products', 'settings', 'transaction_items', 'transactions']

    def test_seeds_default_store_name(self, storage):
        assert settings_service.get_store_name(storage) == DEFAULT_STORE_NAME

    def test_second_run_changes_nothing(self, storage):
        """Running init again keeps the schema and settings as they were."""
        settings_service.set_setting(storage, 'store_name', 'Warung Bu Sri')
        schema_before = _schema_sql(storage)
        settings_before = settings_service.get_all_settings(storage)

        init_schema(storage, store_name='Another Name')

        assert _schema_sql(storage) == schema_before
        assert settings_service.get_all_settings(storage) == settings_before
        assert settings_service.get_store_name(storage) == 'Warung Bu Sri'

    def test_custom_store_name_on_first_run(self, tmp_path):
        from kasir.storage import open_storage

        engine = open_storage('native', 'fresh.db', directory=str(tmp_path))
        try:
            init_schema(engine, store_name='Toko Makmur')
            assert settings_service.get_store_name(engine) == 'Toko Makmur'
        finally:
            engine.close()

    def test_closed_engine_is_an_initialization_error(self, storage):
        storage.close()

        with pytest.raises(InitializationError):
            init_schema(storage)

    def test_line_items_cascade_with_their_sale(self, storage, mie):
        """Deleting a sale header removes its lines."""
        from kasir.services import transaction_service

        sale_id = transaction_service.create_sale(
            storage, 3500, 5000, [{'product_id': mie, 'quantity': 1, 'price': 3500}]
        )
        with storage.transaction() as tx:
            tx.execute_sql('DELETE FROM transactions WHERE id = ?;', [sale_id])
            remaining = tx.execute_sql('SELECT COUNT(*) FROM transaction_items;').scalar()

        assert remaining == 0
