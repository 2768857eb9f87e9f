"""Models package - exports all SQLAlchemy models."""
from kasir.models.product import Product
from kasir.models.sale import Sale
from kasir.models.sale_item import SaleItem
from kasir.models.setting import Setting

__all__ = ['Product', 'Sale', 'SaleItem', 'Setting']
