"""
Sales (transaction) repository with transactional logic.
Handles sale creation, stock decrements and sales reports.
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from kasir.exceptions import BusinessLogicError, SaleError, StorageError
from kasir.utils.identifiers import new_id
from kasir.utils.timestamps import current_timestamp, day_bounds

logger = logging.getLogger(__name__)

# Largest accepted gap between the given change and payment - total
CHANGE_TOLERANCE = 0.01


def _merge_items(items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Collapse cart lines that repeat the same product at the same price."""
    merged: Dict[tuple, Dict[str, Any]] = {}
    for item in items:
        key = (item['product_id'], item['price'])
        if key in merged:
            merged[key]['quantity'] += item['quantity']
        else:
            merged[key] = {
                'product_id': item['product_id'],
                'quantity': item['quantity'],
                'price': item['price'],
            }
    return list(merged.values())


def _resolve_change(total_amount: float, payment_amount: float, change_amount: Optional[float]) -> float:
    expected = payment_amount - total_amount
    if change_amount is None:
        return expected
    if abs(change_amount - expected) > CHANGE_TOLERANCE:
        raise BusinessLogicError(
            f'Kembalian ({change_amount}) tidak sesuai dengan pembayaran - total ({expected})',
            payload={'expected_change': expected}
        )
    return change_amount


def create_sale(
    storage,
    total_amount: float,
    payment_amount: float,
    items: List[Dict[str, Any]],
    change_amount: Optional[float] = None,
) -> str:
    """
    Record a sale as one atomic unit.

    Steps (all in one transaction):
    1. Insert the transaction header
    2. Insert one line per cart item, subtotal = price * quantity
    3. Decrement each product's stock by the line quantity

    If any step fails nothing is kept: no header, no lines, no stock change.

    Args:
        storage: storage engine
        total_amount: sale total
        payment_amount: amount tendered
        items: list of dicts with product_id, quantity, price
        change_amount: optional; defaults to payment - total

    Returns:
        The new transaction id

    Raises:
        BusinessLogicError: change_amount disagrees with payment - total
        SaleError: the sale was rolled back (cause attached)
    """
    change = _resolve_change(total_amount, payment_amount, change_amount)
    lines = _merge_items(items)
    transaction_id = new_id()
    now = current_timestamp()

    try:
        with storage.transaction() as tx:
            # 1. Header
            tx.execute_sql(
                'INSERT INTO transactions (id, total_amount, payment_amount, change_amount, created_at) '
                'VALUES (?, ?, ?, ?, ?);',
                [transaction_id, total_amount, payment_amount, change, now]
            )

            for line in lines:
                subtotal = line['price'] * line['quantity']

                # 2. Line item
                tx.execute_sql(
                    'INSERT INTO transaction_items (id, transaction_id, product_id, quantity, price, subtotal) '
                    'VALUES (?, ?, ?, ?, ?, ?);',
                    [new_id(), transaction_id, line['product_id'], line['quantity'], line['price'], subtotal]
                )

                # 3. Stock
                tx.execute_sql(
                    'UPDATE products SET stock = stock - ?, updated_at = ? WHERE id = ?;',
                    [line['quantity'], now, line['product_id']]
                )
    except StorageError as e:
        logger.error(f"[SALES] Sale rolled back: {e}")
        raise SaleError(f'Gagal menyimpan transaksi: {e.message}') from e

    logger.info(f"[SALES] Sale {transaction_id} recorded: {len(lines)} line(s), total {total_amount}")
    return transaction_id


def list_transactions(storage) -> List[Dict[str, Any]]:
    """All sale headers, newest first, without their lines."""
    with storage.transaction() as tx:
        result = tx.execute_sql('SELECT * FROM transactions ORDER BY created_at DESC, rowid DESC;')
    return list(result.rows)


def get_transaction(storage, transaction_id: str) -> Optional[Dict[str, Any]]:
    """Sale header with an ``items`` list (each with product_name), or None."""
    with storage.transaction() as tx:
        transaction = tx.execute_sql(
            'SELECT * FROM transactions WHERE id = ?;', [transaction_id]
        ).first()
        if transaction is None:
            return None

        items = tx.execute_sql(
            """
            SELECT ti.*, p.name AS product_name
            FROM transaction_items ti
            LEFT JOIN products p ON ti.product_id = p.id
            WHERE ti.transaction_id = ?
            ORDER BY ti.rowid ASC;
            """,
            [transaction_id]
        )

    transaction['items'] = list(items.rows)
    return transaction


def get_sales_report(storage, start: int, end: int) -> Dict[str, Any]:
    """
    Revenue, sale count and per-product breakdown for ``start <= created_at <= end``.

    Returns:
        dict with:
        - total: revenue (0 when there are no sales)
        - count: number of sales
        - items: [{product_id, product_name, total_quantity, total_sales}]
          ordered by quantity sold, highest first
    """
    with storage.transaction() as tx:
        summary = tx.execute_sql(
            'SELECT SUM(total_amount) AS total, COUNT(*) AS count '
            'FROM transactions WHERE created_at BETWEEN ? AND ?;',
            [start, end]
        ).first()

        items = tx.execute_sql(
            """
            SELECT ti.product_id, p.name AS product_name,
                   SUM(ti.quantity) AS total_quantity, SUM(ti.subtotal) AS total_sales
            FROM transaction_items ti
            JOIN transactions t ON ti.transaction_id = t.id
            LEFT JOIN products p ON ti.product_id = p.id
            WHERE t.created_at BETWEEN ? AND ?
            GROUP BY ti.product_id
            ORDER BY total_quantity DESC, product_name ASC;
            """,
            [start, end]
        )

    return {
        'start': start,
        'end': end,
        'total': summary['total'] or 0,
        'count': summary['count'] or 0,
        'items': list(items.rows),
    }


def get_daily_report(storage, day: Optional[date] = None) -> Dict[str, Any]:
    """Sales report for one calendar day (today by default)."""
    start, end = day_bounds(day)
    return get_sales_report(storage, start, end)
