from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from src.database import Base


class Order(Base):
    """Proiezione minima dell'ordine: esistenza, destinazione e righe per la dichiarazione doganale"""
    __tablename__ = "orders"

    id_order = Column(Integer, primary_key=True, index=True)
    reference = Column(String(64), default=None)
    shipping_name = Column(String(255), default=None)
    shipping_company = Column(String(255), default=None)
    shipping_email = Column(String(255), default=None)
    shipping_phone = Column(String(64), default=None)
    shipping_line1 = Column(String(255), default=None)
    shipping_line2 = Column(String(255), default=None)
    shipping_city = Column(String(128), default=None)
    shipping_state = Column(String(64), default=None)
    shipping_postal_code = Column(String(32), default=None)
    shipping_country = Column(String(2), default=None)
    date_add = Column(DateTime, default=datetime.utcnow)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    shipments = relationship("OrderShipment", back_populates="order", order_by="OrderShipment.parcel_index")
