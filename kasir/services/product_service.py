"""
Product repository.

Plain functions over an explicitly passed storage engine. Every function
runs in its own transaction and returns plain dicts. Input validation
(non-empty name, positive price) belongs to the caller.
"""
import logging
from typing import Any, Dict, List, Optional

from kasir.exceptions import BusinessLogicError, ProductInUseError
from kasir.utils.identifiers import new_id
from kasir.utils.timestamps import current_timestamp

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('name', 'price', 'stock')


def _escape_like(value: str) -> str:
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def list_products(storage) -> List[Dict[str, Any]]:
    """All products ordered by name."""
    with storage.transaction() as tx:
        result = tx.execute_sql('SELECT * FROM products ORDER BY name ASC;')
    return list(result.rows)


def get_product(storage, product_id: str) -> Optional[Dict[str, Any]]:
    """Single product, or None when the id is unknown."""
    with storage.transaction() as tx:
        result = tx.execute_sql('SELECT * FROM products WHERE id = ?;', [product_id])
    return result.first()


def search_products(storage, query: str) -> List[Dict[str, Any]]:
    """
    Products whose name contains ``query``, ignoring case, ordered by name.

    Case folding is done with Python's ``str.lower`` so accented letters
    match too ('éclair' finds 'Éclair Cokelat').
    """
    pattern = f"%{_escape_like((query or '').lower())}%"
    with storage.transaction() as tx:
        result = tx.execute_sql(
            "SELECT * FROM products WHERE unicode_lower(name) LIKE ? ESCAPE '\\' ORDER BY name ASC;",
            [pattern]
        )
    return list(result.rows)


def create_product(storage, name: str, price: float, stock: int) -> str:
    """Insert a product and return its new id."""
    product_id = new_id()
    now = current_timestamp()
    with storage.transaction() as tx:
        tx.execute_sql(
            'INSERT INTO products (id, name, price, stock, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?);',
            [product_id, name, price, stock, now, now]
        )
    logger.info(f"[PRODUCTS] Created product {product_id} ({name})")
    return product_id


def update_product(storage, product_id: str, **fields) -> bool:
    """
    Rewrite only the supplied fields (name, price, stock) plus updated_at.

    Fields left out or passed as None are not touched. With nothing to
    update this is a no-op that succeeds.

    Returns:
        False if no product has this id, True otherwise.
    """
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise BusinessLogicError(f"Unknown product field(s): {', '.join(sorted(unknown))}")

    updates = []
    values = []
    for field in UPDATABLE_FIELDS:
        if fields.get(field) is not None:
            updates.append(f"{field} = ?")
            values.append(fields[field])

    if not updates:
        return True

    updates.append('updated_at = ?')
    values.append(current_timestamp())
    values.append(product_id)

    with storage.transaction() as tx:
        result = tx.execute_sql(f"UPDATE products SET {', '.join(updates)} WHERE id = ?;", values)
    return result.rows_affected > 0


def delete_product(storage, product_id: str) -> bool:
    """
    Delete a product that no sale refers to.

    The reference check and the delete share one transaction, so a sale
    cannot slip in between them.

    Raises:
        ProductInUseError: the product appears in at least one sale.

    Returns:
        False if no product has this id.
    """
    with storage.transaction() as tx:
        count = tx.execute_sql(
            'SELECT COUNT(*) AS count FROM transaction_items WHERE product_id = ?;',
            [product_id]
        ).scalar()
        if count > 0:
            logger.warning(f"[PRODUCTS] Refused to delete {product_id}: used by {count} sale line(s)")
            raise ProductInUseError(product_id, count)

        result = tx.execute_sql('DELETE FROM products WHERE id = ?;', [product_id])

    if result.rows_affected:
        logger.info(f"[PRODUCTS] Deleted product {product_id}")
    return result.rows_affected > 0


def adjust_stock(storage, product_id: str, delta: int) -> bool:
    """
    Add ``delta`` (may be negative) to the stock and stamp updated_at.

    There is no floor: stock may go below zero.

    Returns:
        False if no product has this id.
    """
    with storage.transaction() as tx:
        result = tx.execute_sql(
            'UPDATE products SET stock = stock + ?, updated_at = ? WHERE id = ?;',
            [delta, current_timestamp(), product_id]
        )
    return result.rows_affected > 0


def list_low_stock(storage, threshold: int) -> List[Dict[str, Any]]:
    """Products at or below ``threshold`` units, lowest stock first."""
    with storage.transaction() as tx:
        result = tx.execute_sql(
            'SELECT * FROM products WHERE stock <= ? ORDER BY stock ASC, name ASC;',
            [threshold]
        )
    return list(result.rows)


def count_low_stock(storage, threshold: int) -> int:
    """Number of products that need restocking."""
    with storage.transaction() as tx:
        return tx.execute_sql(
            'SELECT COUNT(*) AS count FROM products WHERE stock <= ?;',
            [threshold]
        ).scalar()
