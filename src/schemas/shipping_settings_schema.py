from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class ShipFromSchema(BaseModel):
    """Sostituzione completa dell'indirizzo di partenza: i campi omessi vengono azzerati"""
    name: Optional[str] = Field(None, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    address1: Optional[str] = Field(None, max_length=255)
    address2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=128)
    state: Optional[str] = Field(None, max_length=64)
    postal: Optional[str] = Field(None, max_length=32)
    country: Optional[str] = Field(None, max_length=64)
    phone: Optional[str] = Field(None, max_length=64)


class ShipFromResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: Optional[str] = None
    company: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    updated_at: Optional[datetime] = None


class ShippingBoxPresetSchema(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    length_in: float = Field(..., gt=0)
    width_in: float = Field(..., gt=0)
    height_in: float = Field(..., gt=0)
    default_weight_lb: Optional[float] = Field(None, gt=0)


class ShippingBoxPresetUpdateSchema(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    length_in: Optional[float] = Field(None, gt=0)
    width_in: Optional[float] = Field(None, gt=0)
    height_in: Optional[float] = Field(None, gt=0)
    default_weight_lb: Optional[float] = Field(None, gt=0)


class ShippingBoxPresetResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id_shipping_box_preset: int
    name: str
    length_in: float
    width_in: float
    height_in: float
    default_weight_lb: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AllShippingBoxPresetsResponseSchema(BaseModel):
    box_presets: List[ShippingBoxPresetResponseSchema]
    total: int


class ShippingSettingsResponseSchema(BaseModel):
    ship_from: ShipFromResponseSchema
    box_presets: List[ShippingBoxPresetResponseSchema]
