import uuid

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    menu_item_id = Column(
        String(36),
        ForeignKey("menu_items.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # insertion order, used for stable listings
    seq = Column(Integer, nullable=False, default=0, index=True)

    unit = Column(Text, nullable=False)
    current_stock = Column(Numeric(14, 3), nullable=False, default=0)
    # NULL: use the category threshold
    low_stock_threshold = Column(Numeric(12, 3), nullable=True)
    default_bottle_size = Column(Numeric(10, 2), nullable=True)

    menu_item = relationship("MenuItem")
    movements = relationship("StockMovement", back_populates="inventory_item", cascade="all, delete-orphan")
