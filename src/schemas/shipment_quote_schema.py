from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from src.schemas.order_shipment_schema import OrderShipmentsResponseSchema, OrderShipmentResponseSchema


class RateQuoteSchema(BaseModel):
    id: str
    carrier: str
    service: str
    amount_cents: int
    currency: str = "USD"
    eta_days_min: Optional[float] = None
    eta_days_max: Optional[float] = None


class RawResponseHintsSchema(BaseModel):
    """Indizi leggibili dalla macchina per distinguere 'nessun servizio' da 'richiesta malformata'"""
    status_code: Optional[int] = None
    has_error: bool = False
    error_code: Optional[str] = None


class ShipmentQuoteRequestSchema(BaseModel):
    force_refresh: bool = False


class ShipmentQuotesResponseSchema(OrderShipmentsResponseSchema):
    shipment: Optional[OrderShipmentResponseSchema] = None
    rates: List[RateQuoteSchema]
    cached: bool
    expires_at: Optional[datetime] = None
    quote_selected_id: Optional[str] = None
    warning: Optional[str] = None
    raw_response_hints: Optional[RawResponseHintsSchema] = None


class BuyLabelSchema(BaseModel):
    quote_selected_id: Optional[str] = Field(None, max_length=255)
    refresh: bool = False


class LabelPurchaseResponseSchema(OrderShipmentsResponseSchema):
    shipment: OrderShipmentResponseSchema
    pending_refresh: bool = False
    quote_selected_id: Optional[str] = None


class LabelStatusResponseSchema(OrderShipmentsResponseSchema):
    shipment: OrderShipmentResponseSchema
    refreshed: bool
    pending_refresh: bool = False


class DestinationSchema(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=64)
    line1: Optional[str] = Field(None, max_length=255)
    line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=128)
    state: Optional[str] = Field(None, max_length=64)
    postal_code: Optional[str] = Field(None, max_length=32)
    country: Optional[str] = Field(None, max_length=64)


class ParcelInputSchema(BaseModel):
    id_box_preset: Optional[int] = Field(None, gt=0)
    length_in: Optional[float] = None
    width_in: Optional[float] = None
    height_in: Optional[float] = None
    weight_lb: Optional[float] = None


class QuoteItemSchema(BaseModel):
    description: Optional[str] = None
    quantity: Optional[float] = None
    declared_value_cents: Optional[float] = None


class CustomOrderQuoteRequestSchema(BaseModel):
    destination: DestinationSchema
    parcel: ParcelInputSchema
    items: Optional[List[QuoteItemSchema]] = None


class CustomOrderQuoteResponseSchema(BaseModel):
    rates: List[RateQuoteSchema]
    cheapest: Optional[RateQuoteSchema] = None
    cached: bool = False
    warning: Optional[str] = None
    raw_response_hints: Optional[RawResponseHintsSchema] = None
