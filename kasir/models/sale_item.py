"""Sale item (transaction line) model."""
from sqlalchemy import Column, Text, REAL, Integer, ForeignKey
from sqlalchemy.orm import relationship
from kasir.database import Base


class SaleItem(Base):
    """Line of a sale. Price is a snapshot of the product price at sale time."""

    __tablename__ = 'transaction_items'

    id = Column(Text, primary_key=True, nullable=False)
    transaction_id = Column(
        Text, ForeignKey('transactions.id', ondelete='CASCADE'), nullable=False, index=True
    )
    product_id = Column(
        Text, ForeignKey('products.id', ondelete='RESTRICT'), nullable=False, index=True
    )
    quantity = Column(Integer, nullable=False)
    price = Column(REAL, nullable=False)
    subtotal = Column(REAL, nullable=False)

    # Relationships
    sale = relationship('Sale', back_populates='items')
    product = relationship('Product', back_populates='sale_items')

    def __repr__(self):
        return f"<SaleItem(id='{self.id}', product_id='{self.product_id}', quantity={self.quantity})>"
