from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey

from src.database import Base


class OrderRateQuote(Base):
    """Voce della cache quotazioni: una per spedizione, valida fino a expires_at e per la stessa signature"""
    __tablename__ = "order_rate_quotes"

    id_order_rate_quote = Column(Integer, primary_key=True, index=True)
    id_order_shipment = Column(Integer, ForeignKey('order_shipments.id_order_shipment', ondelete="CASCADE"),
                               unique=True, nullable=False, index=True)
    id_order = Column(Integer, index=True, nullable=False)
    signature = Column(String(64), nullable=False)
    rates_json = Column(Text, nullable=False, default="[]")
    warning = Column(Text, nullable=True, default=None)
    created_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)
