import uuid

from sqlalchemy import Column, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


class InventoryCategory(Base):
    __tablename__ = "inventory_categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    category_id = Column(
        String(36),
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # 'ml' | 'pcs' | 'grams' | 'bottle' | 'pack'
    unit_type = Column(Text, nullable=False)
    low_stock_threshold = Column(Numeric(12, 3), nullable=False, default=5)

    category = relationship("Category", back_populates="inventory_category")
    portions = relationship("PortionOption", back_populates="inventory_category", cascade="all, delete-orphan")
