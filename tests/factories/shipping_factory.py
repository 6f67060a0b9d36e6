"""
Factory per indirizzo di partenza, preset scatola e colli
"""
from datetime import datetime
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session
from src.models.ship_from_settings import ShipFromSettings, SHIP_FROM_SETTINGS_ID
from src.models.shipping_box_preset import ShippingBoxPreset
from src.models.order_shipment import OrderShipment, LabelState, DimensionSource


def create_ship_from_data(**kwargs) -> Dict[str, Any]:
    data = {
        "name": "Warehouse",
        "company": "Acme Inc",
        "address1": "500 Industrial Way",
        "address2": None,
        "city": "Reno",
        "state": "NV",
        "postal": "89501",
        "country": "US",
        "phone": "+1 555 0199",
    }
    data.update(kwargs)
    return data


def create_ship_from(db: Session, **kwargs) -> ShipFromSettings:
    settings = ShipFromSettings(id_ship_from_settings=SHIP_FROM_SETTINGS_ID, **create_ship_from_data(**kwargs))
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings


def create_box_preset(
    db: Session,
    name: str = "Small box",
    length_in: float = 10.0,
    width_in: float = 8.0,
    height_in: float = 4.0,
    default_weight_lb: Optional[float] = 1.5
) -> ShippingBoxPreset:
    preset = ShippingBoxPreset(
        name=name,
        length_in=length_in,
        width_in=width_in,
        height_in=height_in,
        default_weight_lb=default_weight_lb,
    )
    db.add(preset)
    db.commit()
    db.refresh(preset)
    return preset


def create_shipment(
    db: Session,
    order_id: int,
    parcel_index: int = 0,
    preset: Optional[ShippingBoxPreset] = None,
    dims=(12.0, 9.0, 3.0),
    weight_lb: Optional[float] = 2.0,
    **kwargs
) -> OrderShipment:
    """Collo con misure custom, oppure legato al preset se fornito"""
    shipment = OrderShipment(
        id_order=order_id,
        parcel_index=parcel_index,
        weight_lb=weight_lb,
        label_state=LabelState.PENDING.value,
        created_at=datetime.utcnow(),
    )
    if preset is not None:
        shipment.dimension_source = DimensionSource.PRESET.value
        shipment.id_box_preset = preset.id_shipping_box_preset
        shipment.box_preset_name = preset.name
    else:
        shipment.dimension_source = DimensionSource.CUSTOM.value
        shipment.custom_length_in, shipment.custom_width_in, shipment.custom_height_in = dims
    for key, value in kwargs.items():
        setattr(shipment, key, value)
    db.add(shipment)
    db.commit()
    db.refresh(shipment)
    return shipment
