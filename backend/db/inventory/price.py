from sqlalchemy import Column, ForeignKey, Numeric, String

from ..database import Base


class ItemPortionPrice(Base):
    __tablename__ = "item_portion_prices"

    menu_item_id = Column(String(36), ForeignKey("menu_items.id", ondelete="CASCADE"), primary_key=True)
    portion_option_id = Column(String(36), ForeignKey("portion_options.id", ondelete="CASCADE"), primary_key=True)

    price = Column(Numeric(12, 2), nullable=False)
