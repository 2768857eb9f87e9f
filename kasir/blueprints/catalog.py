"""Catalog blueprint: JSON endpoints for the product screen."""
from typing import Any, Dict, Optional

from flask import Blueprint, current_app, jsonify, request

from kasir.database import get_storage
from kasir.exceptions import BusinessLogicError, NotFoundError
from kasir.services import product_service

catalog_bp = Blueprint('catalog', __name__, url_prefix='/products')


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_product(data: Dict[str, Any], partial: bool = False) -> Optional[str]:
    """Validate product fields. Returns error message or None."""
    if not partial or 'name' in data:
        name = data.get('name')
        if not isinstance(name, str) or not name.strip():
            return 'Nama produk wajib diisi.'
    if not partial or 'price' in data:
        price = data.get('price')
        if not _is_number(price) or price <= 0:
            return 'Harga harus lebih dari 0.'
    if not partial or 'stock' in data:
        stock = data.get('stock')
        if not isinstance(stock, int) or isinstance(stock, bool) or stock < 0:
            return 'Stok harus bilangan bulat 0 atau lebih.'
    return None


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BusinessLogicError('Body JSON tidak valid.')
    return data


@catalog_bp.get('')
def list_products():
    """List all products, or search by name with ?q=."""
    storage = get_storage()
    query = (request.args.get('q') or '').strip()
    if query:
        products = product_service.search_products(storage, query)
    else:
        products = product_service.list_products(storage)
    return jsonify(products)


@catalog_bp.get('/low-stock')
def low_stock():
    """Products at or below the restock threshold."""
    threshold = request.args.get('threshold', type=int)
    if threshold is None:
        threshold = current_app.config.get('LOW_STOCK_THRESHOLD', 5)
    products = product_service.list_low_stock(get_storage(), threshold)
    return jsonify({'threshold': threshold, 'count': len(products), 'products': products})


@catalog_bp.get('/<product_id>')
def get_product(product_id):
    product = product_service.get_product(get_storage(), product_id)
    if product is None:
        raise NotFoundError(f'Produk {product_id} tidak ditemukan')
    return jsonify(product)


@catalog_bp.post('')
def create_product():
    data = _json_body()
    error = _validate_product(data)
    if error:
        raise BusinessLogicError(error)

    product_id = product_service.create_product(
        get_storage(), data['name'].strip(), data['price'], data['stock']
    )
    return jsonify({'status': 'success', 'id': product_id}), 201


@catalog_bp.patch('/<product_id>')
def update_product(product_id):
    data = _json_body()
    fields = {k: v for k, v in data.items() if k in product_service.UPDATABLE_FIELDS}
    error = _validate_product(fields, partial=True)
    if error:
        raise BusinessLogicError(error)
    if 'name' in fields:
        fields['name'] = fields['name'].strip()

    storage = get_storage()
    # An empty update touches no row, so look the product up instead
    if not fields and product_service.get_product(storage, product_id) is None:
        raise NotFoundError(f'Produk {product_id} tidak ditemukan')
    if not product_service.update_product(storage, product_id, **fields):
        raise NotFoundError(f'Produk {product_id} tidak ditemukan')
    return jsonify({'status': 'success', 'id': product_id})


@catalog_bp.delete('/<product_id>')
def delete_product(product_id):
    if not product_service.delete_product(get_storage(), product_id):
        raise NotFoundError(f'Produk {product_id} tidak ditemukan')
    return jsonify({'status': 'success', 'id': product_id})


@catalog_bp.post('/<product_id>/stock')
def adjust_stock(product_id):
    data = _json_body()
    delta = data.get('delta')
    if not isinstance(delta, int) or isinstance(delta, bool):
        raise BusinessLogicError('delta harus bilangan bulat.')

    storage = get_storage()
    if not product_service.adjust_stock(storage, product_id, delta):
        raise NotFoundError(f'Produk {product_id} tidak ditemukan')
    return jsonify(product_service.get_product(storage, product_id))
