from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime

from src.database import Base


class ShippingBoxPreset(Base):
    __tablename__ = "shipping_box_presets"

    id_shipping_box_preset = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False, unique=True)
    length_in = Column(Float, nullable=False)
    width_in = Column(Float, nullable=False)
    height_in = Column(Float, nullable=False)
    default_weight_lb = Column(Float, nullable=True, default=None)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
