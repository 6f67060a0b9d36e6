from .order import Order
from .order_item import OrderItem
from .ship_from_settings import ShipFromSettings
from .shipping_box_preset import ShippingBoxPreset
from .order_shipment import OrderShipment, LabelState, DimensionSource
from .order_rate_quote import OrderRateQuote

__all__ = [
    "Order",
    "OrderItem",
    "ShipFromSettings",
    "ShippingBoxPreset",
    "OrderShipment",
    "LabelState",
    "DimensionSource",
    "OrderRateQuote",
]
