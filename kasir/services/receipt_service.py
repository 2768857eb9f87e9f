"""
Receipt data for a finished sale.

Only the data is built here; there is no printer protocol. print_receipt
logs the receipt and reports it as not printed.
"""
import logging
from typing import Any, Dict, Optional

from kasir.services.settings_service import get_store_name
from kasir.services.transaction_service import get_transaction

logger = logging.getLogger(__name__)


def build_receipt(storage, transaction_id: str) -> Optional[Dict[str, Any]]:
    """Receipt dict for a sale, or None when the sale does not exist."""
    transaction = get_transaction(storage, transaction_id)
    if transaction is None:
        return None

    return {
        'store_name': get_store_name(storage),
        'transaction_id': transaction['id'],
        'created_at': transaction['created_at'],
        'lines': [
            {
                'product_name': item['product_name'],
                'quantity': item['quantity'],
                'price': item['price'],
                'subtotal': item['subtotal'],
            }
            for item in transaction['items']
        ],
        'total_amount': transaction['total_amount'],
        'payment_amount': transaction['payment_amount'],
        'change_amount': transaction['change_amount'],
        'printed': False,
    }


def print_receipt(storage, transaction_id: str) -> Optional[Dict[str, Any]]:
    """Printing stub: returns the receipt without sending it anywhere."""
    receipt = build_receipt(storage, transaction_id)
    if receipt is None:
        return None
    logger.info(f"[RECEIPT] No printer configured, receipt {transaction_id} not printed")
    return receipt
