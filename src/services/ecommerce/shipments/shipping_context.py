"""
Costruzione degli input per il gateway vettore: indirizzi, collo e articoli dichiarati.

Le funzioni build_* validano la completezza e sollevano l'errore di dominio
corrispondente con la lista dei campi mancanti.
"""
from typing import Any, Dict, List, Optional, Tuple

from src.core.exceptions import ExceptionFactory
from src.models.order import Order
from src.models.order_item import OrderItem
from src.models.order_shipment import OrderShipment
from src.models.ship_from_settings import ShipFromSettings
from src.services.core.tool import trim_or_none, round3
from src.services.ecommerce.shipments.carrier_gateway import AddressSpec, ParcelSpec, RateItem, carrier_slug

US_STATE_CODES = frozenset({
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "DC", "FL", "GA", "HI", "ID", "IL", "IN", "IA",
    "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ", "NM",
    "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA",
    "WV", "WI", "WY",
})

SHIP_FROM_REQUIRED_FIELDS = ("name", "address1", "city", "state", "postal", "country")
DESTINATION_REQUIRED_FIELDS = ("name", "line1", "city", "state", "postal_code", "country")


def normalize_country(value: Any, default: str = "US") -> str:
    country = trim_or_none(value)
    return country.upper() if country else default


def missing_fields(values: Dict[str, Any], required: Tuple[str, ...]) -> List[str]:
    return [field_name for field_name in required if not trim_or_none(values.get(field_name))]


def ship_from_values(ship_from: Optional[ShipFromSettings]) -> Dict[str, Any]:
    """Valori del singleton come dict (record vuoto se mai configurato)"""
    fields = ("name", "company", "address1", "address2", "city", "state", "postal", "country", "phone")
    return {field_name: getattr(ship_from, field_name, None) if ship_from else None for field_name in fields}


def build_ship_from_spec(ship_from: Optional[ShipFromSettings]) -> AddressSpec:
    values = ship_from_values(ship_from)
    missing = missing_fields(values, SHIP_FROM_REQUIRED_FIELDS)
    if missing:
        raise ExceptionFactory.ship_from_incomplete(missing)
    return AddressSpec(
        name=values["name"].strip(),
        company_name=trim_or_none(values["company"]),
        phone=trim_or_none(values["phone"]),
        address_line1=values["address1"].strip(),
        address_line2=trim_or_none(values["address2"]),
        city=values["city"].strip(),
        state=values["state"].strip().upper(),
        postal_code=values["postal"].strip(),
        country_code=normalize_country(values["country"]),
    )


def order_destination_values(order: Order) -> Dict[str, Any]:
    return {
        "name": order.shipping_name,
        "company": order.shipping_company,
        "email": order.shipping_email,
        "phone": order.shipping_phone,
        "line1": order.shipping_line1,
        "line2": order.shipping_line2,
        "city": order.shipping_city,
        "state": order.shipping_state,
        "postal_code": order.shipping_postal_code,
        "country": normalize_country(order.shipping_country),
    }


def build_destination_spec(values: Dict[str, Any], require_phone: bool = False) -> AddressSpec:
    """Destinazione completa oppure DESTINATION_INCOMPLETE (e DESTINATION_PHONE_REQUIRED in acquisto)"""
    values = dict(values)
    values["country"] = normalize_country(values.get("country"))
    missing = missing_fields(values, DESTINATION_REQUIRED_FIELDS)
    if missing:
        raise ExceptionFactory.destination_incomplete(missing)
    if require_phone and not trim_or_none(values.get("phone")):
        raise ExceptionFactory.destination_phone_required()
    return AddressSpec(
        name=values["name"].strip(),
        company_name=trim_or_none(values.get("company")),
        email=trim_or_none(values.get("email")),
        phone=trim_or_none(values.get("phone")),
        address_line1=values["line1"].strip(),
        address_line2=trim_or_none(values.get("line2")),
        city=values["city"].strip(),
        state=values["state"].strip().upper(),
        postal_code=values["postal_code"].strip(),
        country_code=values["country"],
    )


def build_parcel_spec(shipment: OrderShipment) -> ParcelSpec:
    dims = shipment.effective_dimensions
    weight = shipment.weight_lb
    if not dims or any(value is None or value <= 0 for value in dims) or weight is None or weight <= 0:
        raise ExceptionFactory.parcel_incomplete(shipment.id_order_shipment)
    length, width, height = dims
    return ParcelSpec(length_in=round3(length), width_in=round3(width), height_in=round3(height), weight_lb=round3(weight))


def order_rate_items(items: List[OrderItem]) -> List[Dict[str, Any]]:
    """Righe ordine nel formato accettato da EasyshipMapper.sanitize_items"""
    return [
        {
            "description": item.description,
            "quantity": item.quantity,
            "declared_value_cents": item.unit_price_cents,
        }
        for item in items
    ]


def rate_signature_payload(
    order_id: Optional[int],
    destination: AddressSpec,
    parcel: ParcelSpec,
    allowed_carriers: List[str],
    items: Optional[List[RateItem]] = None
) -> Dict[str, Any]:
    """Payload canonico della richiesta: cambia se cambiano collo, destinazione o vettori ammessi"""
    payload: Dict[str, Any] = {
        "order_id": order_id,
        "destination": {
            "postal_code": destination.postal_code,
            "country": destination.country_code,
            "state": destination.state,
            "city": destination.city,
        },
        "parcel": {
            "length_in": parcel.length_in,
            "width_in": parcel.width_in,
            "height_in": parcel.height_in,
            "weight_lb": parcel.weight_lb,
        },
        "allowed_carriers": sorted(carrier_slug(carrier) for carrier in allowed_carriers),
    }
    if items is not None:
        payload["items"] = [[item.description, item.quantity, item.declared_value_cents] for item in items]
    return payload
