from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from src.models.order_shipment import DimensionSource


class OrderShipmentSchema(BaseModel):
    """Creazione collo: preset oppure tutte e tre le dimensioni custom"""
    id_box_preset: Optional[int] = Field(None, gt=0)
    custom_length_in: Optional[float] = None
    custom_width_in: Optional[float] = None
    custom_height_in: Optional[float] = None
    weight_lb: Optional[float] = None


class OrderShipmentUpdateSchema(BaseModel):
    """
    Aggiornamento parziale.

    - id_box_preset: passa alla fonte preset
    - custom_*: passa alla fonte custom (tutte e tre)
    - dimension_source="custom" senza misure: torna alle misure custom già salvate
    - quote_selected_id: registra la quotazione scelta (solo suggerimento per l'acquisto)
    """
    id_box_preset: Optional[int] = Field(None, gt=0)
    dimension_source: Optional[DimensionSource] = None
    custom_length_in: Optional[float] = None
    custom_width_in: Optional[float] = None
    custom_height_in: Optional[float] = None
    weight_lb: Optional[float] = None
    quote_selected_id: Optional[str] = Field(None, max_length=255)


class OrderShipmentResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id_order_shipment: int
    id_order: int
    parcel_index: int
    dimension_source: str
    id_box_preset: Optional[int] = None
    box_preset_name: Optional[str] = None
    custom_length_in: Optional[float] = None
    custom_width_in: Optional[float] = None
    custom_height_in: Optional[float] = None
    effective_length_in: Optional[float] = None
    effective_width_in: Optional[float] = None
    effective_height_in: Optional[float] = None
    weight_lb: Optional[float] = None
    easyship_shipment_id: Optional[str] = None
    easyship_label_id: Optional[str] = None
    carrier: Optional[str] = None
    service: Optional[str] = None
    tracking_number: Optional[str] = None
    label_url: Optional[str] = None
    label_cost_amount_cents: Optional[int] = None
    label_currency: str = "USD"
    label_state: str
    quote_selected_id: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    purchased_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ShipmentSummarySchema(BaseModel):
    shipment_count: int = 0
    generated_count: int = 0
    actual_label_total_cents: int = 0


class OrderShipmentsResponseSchema(BaseModel):
    id_order: int
    shipments: List[OrderShipmentResponseSchema]
    summary: ShipmentSummarySchema


class OrderShipmentMutationResponseSchema(OrderShipmentsResponseSchema):
    shipment: Optional[OrderShipmentResponseSchema] = None
