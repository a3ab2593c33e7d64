import uuid

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from ..database import Base


class PortionOption(Base):
    __tablename__ = "portion_options"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    inventory_category_id = Column(
        String(36),
        ForeignKey("inventory_categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = Column(String, nullable=False)
    size = Column(Numeric(12, 3), nullable=False)
    price_multiplier = Column(Numeric(10, 4), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    fixed_price = Column(Numeric(12, 2), nullable=True)

    inventory_category = relationship("InventoryCategory", back_populates="portions")
