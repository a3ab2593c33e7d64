import uuid
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from .database import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False, unique=True, index=True)
    sort_order = Column(Integer, nullable=False, default=0)

    menu_items = relationship("MenuItem", back_populates="category")
    inventory_category = relationship("InventoryCategory", back_populates="category", uselist=False)
