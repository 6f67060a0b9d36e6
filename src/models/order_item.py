from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from src.database import Base


class OrderItem(Base):
    __tablename__ = "order_items"

    id_order_item = Column(Integer, primary_key=True, index=True)
    id_order = Column(Integer, ForeignKey('orders.id_order'), index=True, nullable=False)
    description = Column(String(255), default=None)
    quantity = Column(Integer, default=1)
    unit_price_cents = Column(Integer, default=0)

    order = relationship("Order", back_populates="items")
