"""Settings blueprint: store settings as key/value strings."""
from flask import Blueprint, jsonify, request

from kasir.database import get_storage
from kasir.exceptions import BusinessLogicError
from kasir.services import settings_service

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')

MAX_KEY_LENGTH = 64


@settings_bp.get('')
def list_settings():
    return jsonify(settings_service.get_all_settings(get_storage()))


@settings_bp.put('/<key>')
def update_setting(key):
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('value'), str):
        raise BusinessLogicError('Nilai pengaturan wajib berupa teks.')
    if len(key) > MAX_KEY_LENGTH:
        raise BusinessLogicError(f'Kunci maksimal {MAX_KEY_LENGTH} karakter.')
    if key == 'store_name' and not data['value'].strip():
        raise BusinessLogicError('Nama toko wajib diisi.')

    storage = get_storage()
    settings_service.set_setting(storage, key, data['value'])
    return jsonify({'key': key, 'value': settings_service.get_setting(storage, key)})
