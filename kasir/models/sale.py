"""Sale (transaction header) model."""
from sqlalchemy import Column, Text, REAL, Integer
from sqlalchemy.orm import relationship
from kasir.database import Base


class Sale(Base):
    """One checkout event. Created once together with its items, never updated."""

    __tablename__ = 'transactions'

    id = Column(Text, primary_key=True, nullable=False)
    total_amount = Column(REAL, nullable=False)
    payment_amount = Column(REAL, nullable=False)
    change_amount = Column(REAL, nullable=False)
    created_at = Column(Integer, nullable=False, index=True)

    # Relationships
    items = relationship('SaleItem', back_populates='sale', cascade='all, delete-orphan', passive_deletes=True)

    def __repr__(self):
        return f"<Sale(id='{self.id}', total_amount={self.total_amount})>"
