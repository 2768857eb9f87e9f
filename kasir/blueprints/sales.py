"""Sales blueprint: checkout, sale history and reports."""
from datetime import date
from typing import Any, Dict, List

from flask import Blueprint, current_app, jsonify, request

from kasir.database import get_storage
from kasir.exceptions import BusinessLogicError, NotFoundError
from kasir.services import product_service, receipt_service, transaction_service

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')
reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_cart(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Validate the cart lines of a checkout request."""
    items = data.get('items')
    if not isinstance(items, list) or not items:
        raise BusinessLogicError('Keranjang kosong')

    cart = []
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get('product_id'), str):
            raise BusinessLogicError('Item keranjang tidak valid')
        quantity = item.get('quantity')
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise BusinessLogicError('Jumlah harus lebih dari 0')
        price = item.get('price')
        if not _is_number(price) or price <= 0:
            raise BusinessLogicError('Harga harus lebih dari 0')
        cart.append({'product_id': item['product_id'], 'quantity': quantity, 'price': price})
    return cart


@sales_bp.post('')
def create_sale():
    """Check out a cart."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BusinessLogicError('Body JSON tidak valid.')

    cart = _parse_cart(data)
    total_amount = data.get('total_amount')
    payment_amount = data.get('payment_amount')
    change_amount = data.get('change_amount')
    if not _is_number(total_amount) or not _is_number(payment_amount):
        raise BusinessLogicError('Total dan pembayaran wajib diisi')
    if change_amount is not None and not _is_number(change_amount):
        raise BusinessLogicError('Kembalian tidak valid')

    cart_total = sum(line['price'] * line['quantity'] for line in cart)
    if abs(cart_total - total_amount) > transaction_service.CHANGE_TOLERANCE:
        raise BusinessLogicError(f'Total ({total_amount}) tidak sesuai dengan isi keranjang ({cart_total})')
    if payment_amount < total_amount:
        raise BusinessLogicError('Pembayaran kurang dari total')

    transaction_id = transaction_service.create_sale(
        get_storage(), total_amount, payment_amount, cart, change_amount=change_amount
    )
    return jsonify({'status': 'success', 'id': transaction_id}), 201


@sales_bp.get('')
def list_sales():
    return jsonify(transaction_service.list_transactions(get_storage()))


@sales_bp.get('/<transaction_id>')
def get_sale(transaction_id):
    transaction = transaction_service.get_transaction(get_storage(), transaction_id)
    if transaction is None:
        raise NotFoundError(f'Transaksi {transaction_id} tidak ditemukan')
    return jsonify(transaction)


@sales_bp.get('/<transaction_id>/receipt')
def get_receipt(transaction_id):
    receipt = receipt_service.print_receipt(get_storage(), transaction_id)
    if receipt is None:
        raise NotFoundError(f'Transaksi {transaction_id} tidak ditemukan')
    return jsonify(receipt)


@reports_bp.get('/sales')
def sales_report():
    """Report for ?start=&end= (Unix seconds, both inclusive)."""
    start = request.args.get('start', type=int)
    end = request.args.get('end', type=int)
    if start is None or end is None:
        raise BusinessLogicError('Parameter start dan end wajib diisi (detik Unix)')
    if start > end:
        raise BusinessLogicError('start harus sebelum end')
    return jsonify(transaction_service.get_sales_report(get_storage(), start, end))


@reports_bp.get('/daily')
def daily_report():
    """Today's (or ?date=YYYY-MM-DD) report plus the low stock count."""
    day = None
    raw = request.args.get('date')
    if raw:
        try:
            day = date.fromisoformat(raw)
        except ValueError:
            raise BusinessLogicError('Format tanggal harus YYYY-MM-DD')

    storage = get_storage()
    report = transaction_service.get_daily_report(storage, day)
    threshold = current_app.config.get('LOW_STOCK_THRESHOLD', 5)
    report['low_stock_count'] = product_service.count_low_stock(storage, threshold)
    report['items_sold'] = sum(item['total_quantity'] for item in report['items'])
    return jsonify(report)
