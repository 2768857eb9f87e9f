"""Product model."""
from sqlalchemy import Column, Text, REAL, Integer
from sqlalchemy.orm import relationship
from kasir.database import Base


class Product(Base):
    """Product sold at the till."""

    __tablename__ = 'products'

    id = Column(Text, primary_key=True, nullable=False)
    name = Column(Text, nullable=False)
    price = Column(REAL, nullable=False)
    # No floor: stock may go negative when the shop oversells
    stock = Column(Integer, nullable=False)
    created_at = Column(Integer, nullable=False)
    updated_at = Column(Integer, nullable=False)

    # Relationships
    sale_items = relationship('SaleItem', back_populates='product', passive_deletes='all')

    def __repr__(self):
        return f"<Product(id='{self.id}', name='{self.name}', stock={self.stock})>"
