from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime

from src.database import Base

SHIP_FROM_SETTINGS_ID = 1


class ShipFromSettings(Base):
    """Indirizzo di partenza: singleton (id fisso = 1), aggiornato solo per sostituzione completa"""
    __tablename__ = "ship_from_settings"

    id_ship_from_settings = Column(Integer, primary_key=True, default=SHIP_FROM_SETTINGS_ID)
    name = Column(String(255), default=None)
    company = Column(String(255), default=None)
    address1 = Column(String(255), default=None)
    address2 = Column(String(255), default=None)
    city = Column(String(128), default=None)
    state = Column(String(64), default=None)
    postal = Column(String(32), default=None)
    country = Column(String(2), default="US")
    phone = Column(String(64), default=None)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
