"""Settings repository: string key/value pairs."""
from typing import Dict, Optional

from kasir.services.schema_service import DEFAULT_STORE_NAME


def get_setting(storage, key: str, default: Optional[str] = None) -> Optional[str]:
    with storage.transaction() as tx:
        value = tx.execute_sql('SELECT value FROM settings WHERE key = ?;', [key]).scalar()
    return default if value is None else value


def set_setting(storage, key: str, value: str) -> None:
    """Insert or overwrite one setting."""
    with storage.transaction() as tx:
        tx.execute_sql(
            'INSERT INTO settings (key, value) VALUES (?, ?) '
            'ON CONFLICT(key) DO UPDATE SET value = excluded.value;',
            [key, str(value)]
        )


def get_all_settings(storage) -> Dict[str, str]:
    with storage.transaction() as tx:
        result = tx.execute_sql('SELECT key, value FROM settings ORDER BY key ASC;')
    return {row['key']: row['value'] for row in result.rows}


def get_store_name(storage) -> str:
    return get_setting(storage, 'store_name', DEFAULT_STORE_NAME)
