"""Setting model."""
from sqlalchemy import Column, Text
from kasir.database import Base


class Setting(Base):
    """Key/value store settings (store_name, ...)."""

    __tablename__ = 'settings'

    key = Column(Text, primary_key=True, nullable=False)
    value = Column(Text, nullable=False)

    def __repr__(self):
        return f"<Setting(key='{self.key}', value='{self.value}')>"
