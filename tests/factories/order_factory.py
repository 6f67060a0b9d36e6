"""
Factory per creare ordini di test con destinazione e righe
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from src.models.order import Order
from src.models.order_item import OrderItem


def create_order_data(**kwargs) -> Dict[str, Any]:
    """Destinazione completa negli Stati Uniti, telefono incluso"""
    data = {
        "reference": "ORD-TEST",
        "shipping_name": "Jane Doe",
        "shipping_company": None,
        "shipping_email": "jane@example.com",
        "shipping_phone": "+1 555 0100",
        "shipping_line1": "1 Main St",
        "shipping_line2": None,
        "shipping_city": "Austin",
        "shipping_state": "TX",
        "shipping_postal_code": "73301",
        "shipping_country": "US",
    }
    data.update(kwargs)
    return data


def create_order(
    db: Session,
    items: Optional[List[Dict[str, Any]]] = None,
    **kwargs
) -> Order:
    """
    Inserisce un ordine con le sue righe.

    Args:
        db: sessione di test
        items: righe (description, quantity, unit_price_cents); default una riga
        **kwargs: campi dell'ordine da sovrascrivere
    """
    order = Order(**create_order_data(**kwargs))
    if items is None:
        items = [{"description": "T-shirt", "quantity": 2, "unit_price_cents": 1500}]
    order.items = [OrderItem(**item) for item in items]
    db.add(order)
    db.commit()
    db.refresh(order)
    return order
