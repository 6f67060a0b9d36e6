"""
Router Services

This module contains services that are specifically used by FastAPI routers.
These services handle business logic for API endpoints.
"""

from .shipping_settings_service import ShippingSettingsService
from .order_shipment_service import OrderShipmentService
from .shipment_quote_service import ShipmentQuoteService
from .label_purchase_service import LabelPurchaseService
from .label_status_service import LabelStatusService
from .custom_order_quote_service import CustomOrderQuoteService

__all__ = [
    "ShippingSettingsService",
    "OrderShipmentService",
    "ShipmentQuoteService",
    "LabelPurchaseService",
    "LabelStatusService",
    "CustomOrderQuoteService",
]
