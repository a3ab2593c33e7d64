import uuid
from sqlalchemy import Boolean, Column, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from .database import Base


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # base price, quoted at the base portion
    available = Column(Boolean, nullable=False, default=True)
    # Portion the base price is quoted at (NULL: the cheapest portion of the category)
    price_portion_id = Column(String(36), ForeignKey("portion_options.id", ondelete="SET NULL"), nullable=True)

    category = relationship("Category", back_populates="menu_items")
